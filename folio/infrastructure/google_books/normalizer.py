"""Map Google Books volume records onto the local Book attribute set."""

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional
from uuid import uuid4

from folio.domain.entities import LIST_DELIMITER, Book, pick_cover
from folio.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Lengths of the bounded `books` columns.
COLUMN_LIMITS = {
    "external_id": 64,
    "title": 500,
    "subtitle": 500,
    "authors": 1000,
    "publisher": 255,
    "categories": 1000,
    "language": 10,
    "isbn_10": 10,
    "isbn_13": 13,
    "small_thumbnail": 1000,
    "thumbnail": 1000,
    "large_thumbnail": 1000,
    "preview_link": 1000,
    "info_link": 1000,
}


@dataclass
class NormalizedBook:
    """A provider volume reshaped into Book attributes, not yet persisted."""

    external_id: Optional[str]
    title: Optional[str]
    subtitle: Optional[str] = None
    authors: Optional[str] = None
    publisher: Optional[str] = None
    published_date: Optional[date] = None
    published_date_precision: Optional[str] = None
    description: Optional[str] = None
    page_count: Optional[int] = None
    categories: Optional[str] = None
    language: Optional[str] = None
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None
    small_thumbnail: Optional[str] = None
    thumbnail: Optional[str] = None
    large_thumbnail: Optional[str] = None
    preview_link: Optional[str] = None
    info_link: Optional[str] = None

    def validate(self) -> None:
        if not self.external_id:
            raise ValidationError("Volume has no id")
        if not self.title or not self.title.strip():
            raise ValidationError("Title can't be blank", external_id=self.external_id)
        for name, limit in COLUMN_LIMITS.items():
            value = getattr(self, name)
            if value and len(value) > limit:
                raise ValidationError(
                    f"{name} exceeds {limit} characters", external_id=self.external_id
                )

    def cover_image_url(self, size: str = "medium") -> Optional[str]:
        return pick_cover(self.small_thumbnail, self.thumbnail, self.large_thumbnail, size)

    def to_book(self) -> Book:
        return Book(id=uuid4(), **asdict(self))


def parse_published_date(value: Optional[str]) -> tuple[Optional[date], Optional[str]]:
    """Parse a provider publish date into ``(date, precision)``.

    ``"2020"`` is a year (January 1st), ``"2020-03"`` a month (the 1st), and
    anything else must be a full ``YYYY-MM-DD`` date.  Unparseable values
    degrade to ``(None, None)``.
    """
    if not value or not value.strip():
        return None, None
    value = value.strip()
    try:
        if len(value) == 4:
            return datetime.strptime(value, "%Y").date(), "year"
        if len(value) == 7:
            return datetime.strptime(value, "%Y-%m").date(), "month"
        return datetime.strptime(value, "%Y-%m-%d").date(), "day"
    except ValueError:
        logger.warning("Unparseable publishedDate %r; storing no date", value)
        return None, None


def _https(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


def _join(values: Optional[list[str]]) -> Optional[str]:
    if not values:
        return None
    return LIST_DELIMITER.join(v for v in values if v) or None


def extract_isbns(identifiers: Optional[list[dict[str, Any]]]) -> tuple[Optional[str], Optional[str]]:
    isbn_10 = None
    isbn_13 = None
    for identifier in identifiers or []:
        kind = identifier.get("type")
        if kind == "ISBN_10" and isbn_10 is None:
            isbn_10 = identifier.get("identifier")
        elif kind == "ISBN_13" and isbn_13 is None:
            isbn_13 = identifier.get("identifier")
    return isbn_10, isbn_13


def normalize_volume(item: dict[str, Any]) -> NormalizedBook:
    """Pure mapping of one provider volume; never raises on missing fields."""
    volume_info = item.get("volumeInfo") or {}
    image_links = volume_info.get("imageLinks") or {}
    isbn_10, isbn_13 = extract_isbns(volume_info.get("industryIdentifiers"))
    published_date, precision = parse_published_date(volume_info.get("publishedDate"))

    large = image_links.get("large") or image_links.get("extraLarge") or image_links.get("medium")

    return NormalizedBook(
        external_id=item.get("id"),
        title=volume_info.get("title"),
        subtitle=volume_info.get("subtitle"),
        authors=_join(volume_info.get("authors")),
        publisher=volume_info.get("publisher"),
        published_date=published_date,
        published_date_precision=precision,
        description=volume_info.get("description"),
        page_count=volume_info.get("pageCount"),
        categories=_join(volume_info.get("categories")),
        language=volume_info.get("language"),
        isbn_10=isbn_10,
        isbn_13=isbn_13,
        small_thumbnail=_https(image_links.get("smallThumbnail")),
        thumbnail=_https(image_links.get("thumbnail")),
        large_thumbnail=_https(large),
        preview_link=volume_info.get("previewLink"),
        info_link=volume_info.get("infoLink"),
    )

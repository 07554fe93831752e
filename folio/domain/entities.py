"""Domain entities for Folio."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional
from uuid import UUID

LIST_DELIMITER = ", "

# Preference order when the requested cover size is missing.
_COVER_FALLBACKS = {
    "small": ("small", "medium", "large"),
    "medium": ("medium", "large", "small"),
    "large": ("large", "medium", "small"),
}


def split_list(value: Optional[str]) -> list[str]:
    """Split a delimiter-joined authors/categories field into clean items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def pick_cover(
    small: Optional[str], medium: Optional[str], large: Optional[str], size: str = "medium"
) -> Optional[str]:
    """Return the requested cover variant, else the closest available one."""
    variants = {"small": small, "medium": medium, "large": large}
    for candidate in _COVER_FALLBACKS.get(size, _COVER_FALLBACKS["medium"]):
        if variants[candidate]:
            return variants[candidate]
    return None


@dataclass
class User:
    id: UUID
    username: str
    email: str
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Book:
    id: UUID
    title: str
    external_id: Optional[str] = None
    subtitle: Optional[str] = None
    authors: Optional[str] = None
    publisher: Optional[str] = None
    published_date: Optional[date] = None
    published_date_precision: Optional[str] = None  # year | month | day
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
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def authors_list(self) -> list[str]:
        return split_list(self.authors)

    @property
    def categories_list(self) -> list[str]:
        return split_list(self.categories)

    @property
    def published_year(self) -> Optional[int]:
        return self.published_date.year if self.published_date else None

    def cover_image_url(self, size: str = "medium") -> Optional[str]:
        return pick_cover(self.small_thumbnail, self.thumbnail, self.large_thumbnail, size)


@dataclass
class Review:
    id: UUID
    user_id: UUID
    book_id: UUID
    rating: int
    content: Optional[str] = None
    spoiler_alert: bool = False
    helpful_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class PreferenceSignal:
    """Favorite genres and authors derived from a user's highly rated reviews.

    Both lists hold ``(name, frequency)`` pairs, most frequent first.
    Computed per request and never persisted.
    """

    genres: list[tuple[str, int]] = field(default_factory=list)
    authors: list[tuple[str, int]] = field(default_factory=list)

    @property
    def favorite_genres(self) -> list[str]:
        return [name for name, _ in self.genres]

    @property
    def favorite_authors(self) -> list[str]:
        return [name for name, _ in self.authors]

    @property
    def is_empty(self) -> bool:
        return not self.genres and not self.authors


@dataclass
class RecommendedBook:
    book: Book
    source: str  # genre | author | popularity | similar | subject


@dataclass
class RecommendationResult:
    """Ordered recommendations plus a per-book trace of the supplying strategy."""

    items: list[RecommendedBook] = field(default_factory=list)
    strategy: str = "personalized"
    message: Optional[str] = None

    @property
    def books(self) -> list[Book]:
        return [item.book for item in self.items]


@dataclass
class SkippedItem:
    external_id: Optional[str]
    reason: str


@dataclass
class ImportReport:
    """Outcome of importing one provider response into the catalog."""

    books: list[Book] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)
    total_items: int = 0

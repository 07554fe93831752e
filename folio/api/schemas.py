"""Pydantic schemas for API requests and responses."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from folio.domain.entities import Book


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    external_id: Optional[str] = Field(None, max_length=64)
    subtitle: Optional[str] = Field(None, max_length=500)
    authors: Optional[str] = Field(None, max_length=1000, description="Comma separated")
    publisher: Optional[str] = Field(None, max_length=255)
    published_date: Optional[date] = None
    description: Optional[str] = None
    page_count: Optional[int] = Field(None, ge=0)
    categories: Optional[str] = Field(None, max_length=1000, description="Comma separated")
    language: Optional[str] = Field(None, max_length=10)
    isbn_10: Optional[str] = Field(None, min_length=10, max_length=10)
    isbn_13: Optional[str] = Field(None, min_length=13, max_length=13)
    small_thumbnail: Optional[str] = Field(None, max_length=1000)
    thumbnail: Optional[str] = Field(None, max_length=1000)
    large_thumbnail: Optional[str] = Field(None, max_length=1000)
    preview_link: Optional[str] = Field(None, max_length=1000)
    info_link: Optional[str] = Field(None, max_length=1000)


class BookUpdate(BookCreate):
    """Partial update; only fields present in the request body change."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)


class BookResponse(BaseModel):
    id: UUID
    external_id: Optional[str] = None
    title: str
    subtitle: Optional[str] = None
    authors: Optional[str] = None
    authors_list: list[str] = []
    publisher: Optional[str] = None
    published_date: Optional[date] = None
    published_date_precision: Optional[str] = None
    published_year: Optional[int] = None
    description: Optional[str] = None
    page_count: Optional[int] = None
    categories: Optional[str] = None
    categories_list: list[str] = []
    language: Optional[str] = None
    isbn_10: Optional[str] = None
    isbn_13: Optional[str] = None
    cover_url: Optional[str] = None
    preview_link: Optional[str] = Field(None, max_length=1000)
    info_link: Optional[str] = Field(None, max_length=1000)
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_book(cls, book: Book) -> "BookResponse":
        return cls.model_validate(book).model_copy(update={"cover_url": book.cover_image_url()})


class BookListResponse(BaseModel):
    books: list[BookResponse]
    total: int
    page: int
    limit: int


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    content: Optional[str] = Field(None, max_length=2000)
    spoiler_alert: bool = False


class ReviewUpdateRequest(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    content: Optional[str] = Field(None, max_length=2000)
    spoiler_alert: Optional[bool] = None


class ReviewResponse(BaseModel):
    id: UUID
    user_id: UUID
    book_id: UUID
    rating: int
    content: Optional[str] = None
    spoiler_alert: bool = False
    helpful_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Catalog import
# ---------------------------------------------------------------------------
class CatalogImportRequest(BaseModel):
    external_id: str = Field(..., min_length=1, max_length=64)


class SkippedItemResponse(BaseModel):
    external_id: Optional[str] = None
    reason: str

    model_config = ConfigDict(from_attributes=True)


class ImportResponse(BaseModel):
    """Books imported (or matched) from one provider query."""

    books: list[BookResponse]
    skipped: list[SkippedItemResponse] = []
    total_items: int = Field(0, description="Provider's estimate of total matches")


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
class RecommendedBookResponse(BookResponse):
    source: str = Field(..., description="genre | author | popularity | similar | subject")


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendedBookResponse]
    total: int = Field(0, description="Number of recommendations returned")
    strategy: str = Field("personalized", description="personalized | popularity | similar | subject")
    message: Optional[str] = None
    based_on: Optional[BookResponse] = None
    genre: Optional[str] = None

"""Repository interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from folio.domain.entities import Book, Review, User


class IUserRepository(ABC):

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass


@dataclass
class BookFilter:
    """Catalog listing filters (substring matches are case-insensitive)."""

    author: Optional[str] = None
    genre: Optional[str] = None
    published_only: bool = False
    min_rating: Optional[float] = None
    sort_by: Optional[str] = None  # rating | reviews | newest | oldest
    skip: int = 0
    limit: int = 20


class IBookRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        """Persist a new book.

        Raises :class:`~folio.domain.exceptions.DuplicateRaceError` when a
        uniqueness constraint (external id or ISBN) rejects the row.
        """
        pass

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def get_by_external_id(self, external_id: str) -> Optional[Book]:
        pass

    @abstractmethod
    async def get_by_isbn(
        self, isbn_10: Optional[str] = None, isbn_13: Optional[str] = None
    ) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_books(self, filters: BookFilter) -> list[Book]:
        pass

    @abstractmethod
    async def count(self, filters: Optional[BookFilter] = None) -> int:
        """Count books matching ``filters``, ignoring paging; all books when omitted."""
        pass

    @abstractmethod
    async def update(self, book: Book) -> Book:
        """Write descriptive fields only; rating statistics are left untouched."""
        pass

    @abstractmethod
    async def delete(self, book_id: UUID) -> bool:
        pass

    @abstractmethod
    async def find_by_genre(self, genre: str, limit: int = 5) -> list[Book]:
        pass

    @abstractmethod
    async def find_by_author(self, author: str, limit: int = 5) -> list[Book]:
        pass

    @abstractmethod
    async def list_popular(
        self, limit: int = 10, exclude_ids: Optional[set[UUID]] = None
    ) -> list[Book]:
        """Books ordered by (average_rating desc, review_count desc)."""
        pass

    @abstractmethod
    async def lock_for_update(self, book_id: UUID) -> Optional[Book]:
        """Load a book holding a row lock until the transaction ends."""
        pass

    @abstractmethod
    async def set_statistics(self, book_id: UUID, average_rating: float, review_count: int) -> Book:
        """Store derived rating statistics and commit the unit of work."""
        pass


class IReviewRepository(ABC):

    @abstractmethod
    async def create(self, review: Review) -> Review:
        pass

    @abstractmethod
    async def get_by_id(self, review_id: UUID) -> Optional[Review]:
        pass

    @abstractmethod
    async def get_by_user_and_book(self, user_id: UUID, book_id: UUID) -> Optional[Review]:
        pass

    @abstractmethod
    async def get_by_book(
        self, book_id: UUID, rating: Optional[int] = None, with_content: bool = False
    ) -> list[Review]:
        pass

    @abstractmethod
    async def get_by_user(self, user_id: UUID, min_rating: Optional[int] = None) -> list[Review]:
        """A user's reviews in creation order, optionally only ``rating >= min_rating``."""
        pass

    @abstractmethod
    async def update(self, review: Review) -> Review:
        pass

    @abstractmethod
    async def delete(self, review_id: UUID) -> bool:
        pass

    @abstractmethod
    async def increment_helpful(self, review_id: UUID) -> Optional[Review]:
        pass

    @abstractmethod
    async def get_rating_stats(self, book_id: UUID) -> tuple[int, float]:
        """Return ``(review_count, average_rating)`` for a book's current reviews."""
        pass


@dataclass
class SearchOptions:
    start_index: int = 0
    max_results: int = 20
    language: Optional[str] = None
    order_by: Optional[str] = None  # relevance | newest
    print_type: Optional[str] = None
    filter: Optional[str] = None


@dataclass
class SearchResponse:
    """Provider envelope: raw volume records plus the provider's total estimate."""

    items: list[dict[str, Any]] = field(default_factory=list)
    total_items: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.items


class ICatalogProvider(ABC):

    @abstractmethod
    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResponse:
        pass

    @abstractmethod
    async def get_volume(self, external_id: str) -> Optional[dict[str, Any]]:
        """Full-detail lookup; ``None`` when the provider has no such volume."""
        pass

    @abstractmethod
    async def search_by_isbn(self, isbn: str) -> SearchResponse:
        pass

    @abstractmethod
    async def search_by_author(self, author: str) -> SearchResponse:
        pass

    @abstractmethod
    async def search_by_title(self, title: str) -> SearchResponse:
        pass

    @abstractmethod
    async def search_by_subject(self, subject: str) -> SearchResponse:
        pass

    @abstractmethod
    async def popular(
        self, subject: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        pass

    @abstractmethod
    async def new_releases(self, options: Optional[SearchOptions] = None) -> SearchResponse:
        pass

    @abstractmethod
    async def similar_to(
        self, title: str, author: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        pass

"""Application service interfaces (ports).

Route handlers depend on these abstractions; the concrete classes in
``folio/services/`` are wired by ``folio/core/dependencies.py`` and can be
swapped for test doubles through ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from folio.domain.entities import Book, ImportReport, RecommendationResult, Review
from folio.domain.repositories import BookFilter, SearchOptions, SearchResponse


class IBookService(ABC):

    @abstractmethod
    async def create_book(self, **fields: Any) -> Book:
        pass

    @abstractmethod
    async def get_book(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_books(self, filters: BookFilter) -> list[Book]:
        pass

    @abstractmethod
    async def count_books(self, filters: Optional[BookFilter] = None) -> int:
        pass

    @abstractmethod
    async def update_book(self, book_id: UUID, **fields: Any) -> Optional[Book]:
        pass

    @abstractmethod
    async def delete_book(self, book_id: UUID) -> bool:
        pass


class ICatalogService(ABC):

    @abstractmethod
    async def import_all(self, response: SearchResponse) -> ImportReport:
        """Normalize and upsert every item; invalid items are skipped, not fatal."""
        pass

    @abstractmethod
    async def search_and_import(
        self, query: str, search_type: str = "general", options: Optional[SearchOptions] = None
    ) -> ImportReport:
        pass

    @abstractmethod
    async def import_by_id(self, external_id: str) -> Optional[Book]:
        pass

    @abstractmethod
    async def import_popular(
        self, subject: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> ImportReport:
        pass

    @abstractmethod
    async def import_new_releases(self, options: Optional[SearchOptions] = None) -> ImportReport:
        pass


class IReviewService(ABC):

    @abstractmethod
    async def create_review(
        self,
        user_id: UUID,
        book_id: UUID,
        rating: int,
        content: Optional[str] = None,
        spoiler_alert: bool = False,
    ) -> Review:
        pass

    @abstractmethod
    async def update_review(
        self,
        user_id: UUID,
        review_id: UUID,
        rating: Optional[int] = None,
        content: Optional[str] = None,
        spoiler_alert: Optional[bool] = None,
        book_id: Optional[UUID] = None,
    ) -> Review:
        pass

    @abstractmethod
    async def delete_review(
        self, user_id: UUID, review_id: UUID, book_id: Optional[UUID] = None
    ) -> None:
        pass

    @abstractmethod
    async def list_reviews(
        self, book_id: UUID, rating: Optional[int] = None, with_content: bool = False
    ) -> list[Review]:
        pass

    @abstractmethod
    async def mark_helpful(self, review_id: UUID, book_id: Optional[UUID] = None) -> Review:
        pass


class IRecommendationService(ABC):

    @abstractmethod
    async def recommend_for_user(
        self, user_id: UUID, target_size: Optional[int] = None
    ) -> RecommendationResult:
        pass

    @abstractmethod
    async def recommend_for_book(self, book_id: UUID, limit: int = 10) -> RecommendationResult:
        pass

    @abstractmethod
    async def recommend_by_genre(self, genre: str) -> RecommendationResult:
        pass

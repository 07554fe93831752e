"""Recommendation ranking for Folio.

Personalized recommendations are assembled from three candidate sources,
consumed in a fixed order:

  1. Genre    -- top-rated books in the user's favorite genres
  2. Author   -- top-rated books by the user's favorite authors
  3. Popular  -- catalog-wide (average_rating, review_count) ordering

Candidates are deduplicated (first occurrence wins) and stripped of books the
user has already reviewed *before* the popularity top-up and truncation, so a
full list is returned whenever the catalog has enough unseen books.  Sources
are never re-sorted against each other.

The narrower variants (similar-to-a-book, by-genre) query the external catalog
and import what they find.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from folio.domain.entities import Book, RecommendationResult, RecommendedBook
from folio.domain.exceptions import CatalogError
from folio.domain.repositories import (
    IBookRepository,
    ICatalogProvider,
    IReviewRepository,
    SearchOptions,
)
from folio.domain.services import IRecommendationService
from folio.services.catalog_service import CatalogService
from folio.services.preference_service import PreferenceExtractor

logger = logging.getLogger(__name__)

PER_PREFERENCE_LIMIT = 5


class RecommendationService(IRecommendationService):

    def __init__(
        self,
        book_repository: IBookRepository,
        review_repository: IReviewRepository,
        provider: ICatalogProvider,
        default_size: int = 10,
    ):
        self.book_repository = book_repository
        self.review_repository = review_repository
        self.provider = provider
        self.default_size = default_size
        self.preferences = PreferenceExtractor(review_repository, book_repository)
        self.catalog = CatalogService(book_repository, provider)

    # ------------------------------------------------------------------
    # Personalized ranking
    # ------------------------------------------------------------------

    async def rank(self, user_id: UUID, target_size: Optional[int] = None) -> RecommendationResult:
        """Rank up to ``target_size`` books for ``user_id``.

        Database errors propagate; see :meth:`recommend_for_user` for the
        degrading wrapper.
        """
        if target_size is None:
            target_size = self.default_size
        reviews = await self.review_repository.get_by_user(user_id)
        reviewed_ids = {r.book_id for r in reviews}

        if not reviewed_ids:
            popular = await self.book_repository.list_popular(limit=target_size)
            logger.info("User %s has no reviews; popularity fallback", user_id)
            return RecommendationResult(
                items=[RecommendedBook(book=b, source="popularity") for b in popular],
                strategy="popularity",
                message="Popular books",
            )

        signal = await self.preferences.extract(user_id)

        candidates: list[tuple[Book, str]] = []
        for genre in signal.favorite_genres:
            books = await self.book_repository.find_by_genre(genre, limit=PER_PREFERENCE_LIMIT)
            candidates.extend((b, "genre") for b in books)
        for author in signal.favorite_authors:
            books = await self.book_repository.find_by_author(author, limit=PER_PREFERENCE_LIMIT)
            candidates.extend((b, "author") for b in books)

        items: list[RecommendedBook] = []
        seen: set[UUID] = set(reviewed_ids)
        for book, source in candidates:
            if book.id in seen:
                continue
            seen.add(book.id)
            items.append(RecommendedBook(book=book, source=source))

        if len(items) < target_size:
            popular = await self.book_repository.list_popular(
                limit=target_size - len(items), exclude_ids=seen
            )
            items.extend(RecommendedBook(book=b, source="popularity") for b in popular)

        items = items[:target_size]
        logger.info(
            "Ranked %d recommendations for user %s (%d from preferences)",
            len(items),
            user_id,
            sum(1 for i in items if i.source != "popularity"),
        )
        return RecommendationResult(
            items=items,
            strategy="personalized",
            message="Based on your reading history and preferences",
        )

    async def recommend_for_user(
        self, user_id: UUID, target_size: Optional[int] = None
    ) -> RecommendationResult:
        try:
            return await self.rank(user_id, target_size)
        except Exception as exc:
            logger.exception("Recommendation ranking failed for user %s", user_id)
            return RecommendationResult(
                strategy="personalized",
                message=f"Failed to generate recommendations: {exc}",
            )

    # ------------------------------------------------------------------
    # Provider-backed variants
    # ------------------------------------------------------------------

    async def recommend_for_book(self, book_id: UUID, limit: int = 10) -> RecommendationResult:
        """Books similar to ``book_id`` by author and title keywords.

        Raises :class:`LookupError` for an unknown seed book.
        """
        seed = await self.book_repository.get_by_id(book_id)
        if not seed:
            raise LookupError("Book not found")

        authors = seed.authors_list
        try:
            response = await self.provider.similar_to(
                seed.title,
                authors[0] if authors else None,
                SearchOptions(max_results=limit + 1),
            )
            report = await self.catalog.import_all(response)
        except CatalogError as exc:
            logger.warning("Similar-book lookup failed for %s: %s", book_id, exc)
            return RecommendationResult(
                strategy="similar", message=f"Failed to generate recommendations: {exc}"
            )

        books = [b for b in report.books if b.id != seed.id][:limit]
        if not books:
            return RecommendationResult(strategy="similar", message="No recommendations found")
        return RecommendationResult(
            items=[RecommendedBook(book=b, source="similar") for b in books],
            strategy="similar",
        )

    async def recommend_by_genre(self, genre: str) -> RecommendationResult:
        if not genre or not genre.strip():
            raise ValueError("Genre parameter is required")

        try:
            response = await self.provider.search_by_subject(genre.strip())
            report = await self.catalog.import_all(response)
        except CatalogError as exc:
            logger.warning("Genre lookup failed for %r: %s", genre, exc)
            return RecommendationResult(
                strategy="subject", message=f"Failed to get genre recommendations: {exc}"
            )

        if not report.books:
            return RecommendationResult(strategy="subject", message="No books found for this genre")
        return RecommendationResult(
            items=[RecommendedBook(book=b, source="subject") for b in report.books],
            strategy="subject",
        )

"""Review service and the book rating statistics it keeps current."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from folio.domain.entities import Book, Review
from folio.domain.repositories import IBookRepository, IReviewRepository
from folio.domain.services import IReviewService

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 2000


class BookStatisticsMaintainer:
    """Recomputes ``average_rating`` and ``review_count`` for one book.

    Must run in the same session as the review change it follows.  The book
    row is locked first, so concurrent recomputes of one book serialize while
    different books proceed independently.
    """

    def __init__(self, book_repository: IBookRepository, review_repository: IReviewRepository):
        self.book_repository = book_repository
        self.review_repository = review_repository

    async def recompute(self, book_id: UUID) -> Book:
        book = await self.book_repository.lock_for_update(book_id)
        if book is None:
            raise LookupError(f"Book {book_id} not found")

        review_count, average = await self.review_repository.get_rating_stats(book_id)
        average_rating = round(average, 2) if review_count else 0.0

        updated = await self.book_repository.set_statistics(book_id, average_rating, review_count)
        logger.debug(
            "Book %s statistics: %d reviews, average %.2f", book_id, review_count, average_rating
        )
        return updated


class ReviewService(IReviewService):
    """Review CRUD; every write refreshes the parent book's statistics."""

    def __init__(
        self,
        review_repository: IReviewRepository,
        book_repository: IBookRepository,
        statistics: Optional[BookStatisticsMaintainer] = None,
    ):
        self.review_repository = review_repository
        self.book_repository = book_repository
        self.statistics = statistics or BookStatisticsMaintainer(book_repository, review_repository)

    async def create_review(
        self,
        user_id: UUID,
        book_id: UUID,
        rating: int,
        content: Optional[str] = None,
        spoiler_alert: bool = False,
    ) -> Review:
        self._validate(rating, content)

        book = await self.book_repository.get_by_id(book_id)
        if not book:
            raise LookupError("Book not found")

        existing = await self.review_repository.get_by_user_and_book(user_id, book_id)
        if existing:
            raise ValueError("You have already reviewed this book")

        now = datetime.utcnow()
        review = Review(
            id=uuid4(),
            user_id=user_id,
            book_id=book_id,
            rating=rating,
            content=content,
            spoiler_alert=spoiler_alert,
            created_at=now,
            updated_at=now,
        )
        created = await self.review_repository.create(review)
        await self.statistics.recompute(book_id)
        logger.info("Review created: %s for book %s", created.id, book_id)
        return created

    async def update_review(
        self,
        user_id: UUID,
        review_id: UUID,
        rating: Optional[int] = None,
        content: Optional[str] = None,
        spoiler_alert: Optional[bool] = None,
        book_id: Optional[UUID] = None,
    ) -> Review:
        review = await self._get_owned(user_id, review_id, book_id)

        if rating is not None:
            review.rating = rating
        if content is not None:
            review.content = content
        if spoiler_alert is not None:
            review.spoiler_alert = spoiler_alert
        self._validate(review.rating, review.content)

        updated = await self.review_repository.update(review)
        await self.statistics.recompute(review.book_id)
        logger.info("Review updated: %s", review_id)
        return updated

    async def delete_review(
        self, user_id: UUID, review_id: UUID, book_id: Optional[UUID] = None
    ) -> None:
        review = await self._get_owned(user_id, review_id, book_id)
        await self.review_repository.delete(review_id)
        await self.statistics.recompute(review.book_id)
        logger.info("Review deleted: %s from book %s", review_id, review.book_id)

    async def list_reviews(
        self, book_id: UUID, rating: Optional[int] = None, with_content: bool = False
    ) -> list[Review]:
        return await self.review_repository.get_by_book(
            book_id, rating=rating, with_content=with_content
        )

    async def get_review(self, review_id: UUID) -> Optional[Review]:
        return await self.review_repository.get_by_id(review_id)

    async def mark_helpful(self, review_id: UUID, book_id: Optional[UUID] = None) -> Review:
        if book_id is not None:
            await self._get_scoped(review_id, book_id)
        review = await self.review_repository.increment_helpful(review_id)
        if review is None:
            raise LookupError("Review not found")
        return review

    async def _get_owned(
        self, user_id: UUID, review_id: UUID, book_id: Optional[UUID] = None
    ) -> Review:
        review = await self._get_scoped(review_id, book_id)
        if review.user_id != user_id:
            raise PermissionError("You can only modify your own reviews")
        return review

    async def _get_scoped(self, review_id: UUID, book_id: Optional[UUID] = None) -> Review:
        """Fetch a review, treating one that belongs to another book as missing."""
        review = await self.review_repository.get_by_id(review_id)
        if not review or (book_id is not None and review.book_id != book_id):
            raise LookupError("Review not found")
        return review

    @staticmethod
    def _validate(rating: int, content: Optional[str]) -> None:
        if not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        if content and len(content) > MAX_CONTENT_LENGTH:
            raise ValueError(f"Review content is limited to {MAX_CONTENT_LENGTH} characters")

"""Repository implementations."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from folio.domain.entities import Book, Review, User
from folio.domain.exceptions import DuplicateRaceError, ValidationError
from folio.domain.repositories import (
    BookFilter,
    IBookRepository,
    IReviewRepository,
    IUserRepository,
)
from folio.infrastructure.database.models import BookModel, ReviewModel, UserModel

# Descriptive columns copied between entity and model.  Rating statistics are
# absent: only set_statistics() writes them.
_BOOK_FIELDS = (
    "external_id",
    "title",
    "subtitle",
    "authors",
    "publisher",
    "published_date",
    "published_date_precision",
    "description",
    "page_count",
    "categories",
    "language",
    "isbn_10",
    "isbn_13",
    "small_thumbnail",
    "thumbnail",
    "large_thumbnail",
    "preview_link",
    "info_link",
)


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        db_user = UserModel(
            id=user.id,
            username=user.username,
            email=user.email,
            is_active=user.is_active,
            created_at=user.created_at,
        )
        self.session.add(db_user)
        await self.session.commit()
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            is_active=model.is_active,
            created_at=model.created_at,
        )


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            created_at=book.created_at,
            updated_at=book.updated_at,
            **{name: getattr(book, name) for name in _BOOK_FIELDS},
        )
        self.session.add(db_book)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateRaceError(book.external_id)
        except DataError as exc:
            await self.session.rollback()
            raise ValidationError(
                f"Book rejected by the database: {exc.orig}", external_id=book.external_id
            ) from exc
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        db_book = await self._get_model(book_id)
        return self._to_entity(db_book) if db_book else None

    async def get_by_external_id(self, external_id: str) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel).where(BookModel.external_id == external_id)
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def get_by_isbn(
        self, isbn_10: Optional[str] = None, isbn_13: Optional[str] = None
    ) -> Optional[Book]:
        clauses = []
        if isbn_13:
            clauses.append(BookModel.isbn_13 == isbn_13)
        if isbn_10:
            clauses.append(BookModel.isbn_10 == isbn_10)
        if not clauses:
            return None
        result = await self.session.execute(select(BookModel).where(or_(*clauses)))
        db_book = result.scalars().first()
        return self._to_entity(db_book) if db_book else None

    async def list_books(self, filters: BookFilter) -> list[Book]:
        stmt = self._filtered(select(BookModel), filters)

        if filters.sort_by == "rating":
            stmt = stmt.order_by(BookModel.average_rating.desc())
        elif filters.sort_by == "reviews":
            stmt = stmt.order_by(BookModel.review_count.desc())
        elif filters.sort_by == "newest":
            stmt = stmt.order_by(BookModel.published_date.desc().nulls_last())
        elif filters.sort_by == "oldest":
            stmt = stmt.order_by(BookModel.published_date.asc().nulls_last())
        else:
            stmt = stmt.order_by(BookModel.created_at.desc())

        result = await self.session.execute(stmt.offset(filters.skip).limit(filters.limit))
        return [self._to_entity(b) for b in result.scalars().all()]

    async def count(self, filters: Optional[BookFilter] = None) -> int:
        stmt = select(func.count()).select_from(BookModel)
        if filters is not None:
            stmt = self._filtered(stmt, filters)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _filtered(stmt: Select, filters: BookFilter) -> Select:
        if filters.author:
            stmt = stmt.where(BookModel.authors.ilike(f"%{filters.author}%"))
        if filters.genre:
            stmt = stmt.where(BookModel.categories.ilike(f"%{filters.genre}%"))
        if filters.published_only:
            stmt = stmt.where(BookModel.published_date.is_not(None))
        if filters.min_rating is not None:
            stmt = stmt.where(BookModel.average_rating >= filters.min_rating)
        return stmt

    async def update(self, book: Book) -> Book:
        db_book = await self._get_model(book.id)
        if db_book is None:
            raise LookupError(f"Book {book.id} not found")
        for name in _BOOK_FIELDS:
            setattr(db_book, name, getattr(book, name))
        db_book.updated_at = datetime.utcnow()
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValueError("Another book already uses this external id or ISBN")
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def delete(self, book_id: UUID) -> bool:
        db_book = await self._get_model(book_id)
        if db_book:
            await self.session.delete(db_book)
            await self.session.commit()
            return True
        return False

    async def find_by_genre(self, genre: str, limit: int = 5) -> list[Book]:
        stmt = (
            select(BookModel)
            .where(BookModel.categories.ilike(f"%{genre}%"))
            .order_by(BookModel.average_rating.desc(), BookModel.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(b) for b in result.scalars().all()]

    async def find_by_author(self, author: str, limit: int = 5) -> list[Book]:
        stmt = (
            select(BookModel)
            .where(BookModel.authors.ilike(f"%{author}%"))
            .order_by(BookModel.average_rating.desc(), BookModel.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(b) for b in result.scalars().all()]

    async def list_popular(
        self, limit: int = 10, exclude_ids: Optional[set[UUID]] = None
    ) -> list[Book]:
        stmt = select(BookModel)
        if exclude_ids:
            stmt = stmt.where(BookModel.id.not_in(list(exclude_ids)))
        stmt = stmt.order_by(
            BookModel.average_rating.desc(),
            BookModel.review_count.desc(),
            BookModel.created_at.asc(),
        ).limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_entity(b) for b in result.scalars().all()]

    async def lock_for_update(self, book_id: UUID) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel)
            .where(BookModel.id == book_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def set_statistics(self, book_id: UUID, average_rating: float, review_count: int) -> Book:
        db_book = await self._get_model(book_id)
        if db_book is None:
            raise LookupError(f"Book {book_id} not found")
        db_book.average_rating = average_rating
        db_book.review_count = review_count
        await self.session.commit()
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def _get_model(self, book_id: UUID) -> Optional[BookModel]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            average_rating=model.average_rating or 0.0,
            review_count=model.review_count or 0,
            created_at=model.created_at,
            updated_at=model.updated_at,
            **{name: getattr(model, name) for name in _BOOK_FIELDS},
        )


# ---------------------------------------------------------------------------
# Review Repository
# ---------------------------------------------------------------------------
class ReviewRepository(IReviewRepository):
    """Review writes are flushed, not committed.

    The statistics maintainer commits once the parent book has been
    recomputed, so the review change and the new aggregates land together.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, review: Review) -> Review:
        db_review = ReviewModel(
            id=review.id,
            user_id=review.user_id,
            book_id=review.book_id,
            rating=review.rating,
            content=review.content,
            spoiler_alert=review.spoiler_alert,
            helpful_count=review.helpful_count,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )
        self.session.add(db_review)
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            raise ValueError("You have already reviewed this book")
        return self._to_entity(db_review)

    async def get_by_id(self, review_id: UUID) -> Optional[Review]:
        db_review = await self._get_model(review_id)
        return self._to_entity(db_review) if db_review else None

    async def get_by_user_and_book(self, user_id: UUID, book_id: UUID) -> Optional[Review]:
        result = await self.session.execute(
            select(ReviewModel).where(
                ReviewModel.user_id == user_id,
                ReviewModel.book_id == book_id,
            )
        )
        db_review = result.scalar_one_or_none()
        return self._to_entity(db_review) if db_review else None

    async def get_by_book(
        self, book_id: UUID, rating: Optional[int] = None, with_content: bool = False
    ) -> list[Review]:
        stmt = select(ReviewModel).where(ReviewModel.book_id == book_id)
        if rating is not None:
            stmt = stmt.where(ReviewModel.rating == rating)
        if with_content:
            stmt = stmt.where(ReviewModel.content.is_not(None), ReviewModel.content != "")
        result = await self.session.execute(stmt.order_by(ReviewModel.created_at.desc()))
        return [self._to_entity(r) for r in result.scalars().all()]

    async def get_by_user(self, user_id: UUID, min_rating: Optional[int] = None) -> list[Review]:
        stmt = select(ReviewModel).where(ReviewModel.user_id == user_id)
        if min_rating is not None:
            stmt = stmt.where(ReviewModel.rating >= min_rating)
        result = await self.session.execute(stmt.order_by(ReviewModel.created_at.asc()))
        return [self._to_entity(r) for r in result.scalars().all()]

    async def update(self, review: Review) -> Review:
        db_review = await self._get_model(review.id)
        if db_review is None:
            raise LookupError(f"Review {review.id} not found")
        db_review.rating = review.rating
        db_review.content = review.content
        db_review.spoiler_alert = review.spoiler_alert
        db_review.updated_at = datetime.utcnow()
        await self.session.flush()
        return self._to_entity(db_review)

    async def delete(self, review_id: UUID) -> bool:
        db_review = await self._get_model(review_id)
        if db_review is None:
            return False
        await self.session.delete(db_review)
        await self.session.flush()
        return True

    async def increment_helpful(self, review_id: UUID) -> Optional[Review]:
        await self.session.execute(
            update(ReviewModel)
            .where(ReviewModel.id == review_id)
            .values(helpful_count=ReviewModel.helpful_count + 1)
        )
        await self.session.commit()
        result = await self.session.execute(
            select(ReviewModel)
            .where(ReviewModel.id == review_id)
            .execution_options(populate_existing=True)
        )
        db_review = result.scalar_one_or_none()
        return self._to_entity(db_review) if db_review else None

    async def get_rating_stats(self, book_id: UUID) -> tuple[int, float]:
        result = await self.session.execute(
            select(func.count(ReviewModel.id), func.avg(ReviewModel.rating)).where(
                ReviewModel.book_id == book_id
            )
        )
        count, average = result.one()
        return int(count or 0), float(average or 0.0)

    async def _get_model(self, review_id: UUID) -> Optional[ReviewModel]:
        result = await self.session.execute(select(ReviewModel).where(ReviewModel.id == review_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: ReviewModel) -> Review:
        return Review(
            id=model.id,
            user_id=model.user_id,
            book_id=model.book_id,
            rating=model.rating,
            content=model.content,
            spoiler_alert=model.spoiler_alert,
            helpful_count=model.helpful_count or 0,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

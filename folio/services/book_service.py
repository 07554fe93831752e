"""Book service for locally authored catalog entries."""

import logging
from dataclasses import fields as dataclass_fields
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from folio.domain.entities import Book
from folio.domain.exceptions import DuplicateRaceError
from folio.domain.repositories import BookFilter, IBookRepository
from folio.domain.services import IBookService

logger = logging.getLogger(__name__)

# Rating statistics belong to the review statistics maintainer.
_READ_ONLY = {"id", "average_rating", "review_count", "created_at", "updated_at"}
EDITABLE_FIELDS = tuple(f.name for f in dataclass_fields(Book) if f.name not in _READ_ONLY)


class BookService(IBookService):
    """Book service handling business logic."""

    def __init__(self, book_repository: IBookRepository):
        self.book_repository = book_repository

    async def create_book(self, **fields: Any) -> Book:
        values = self._editable(fields)
        if not (values.get("title") or "").strip():
            raise ValueError("Title can't be blank")

        await self._ensure_unique(values)

        now = datetime.utcnow()
        book = Book(id=uuid4(), created_at=now, updated_at=now, **values)
        try:
            created = await self.book_repository.create(book)
        except DuplicateRaceError:
            raise ValueError("A book with this external id or ISBN already exists")
        logger.info("Book created: %s (%s)", created.id, created.title)
        return created

    async def get_book(self, book_id: UUID) -> Optional[Book]:
        return await self.book_repository.get_by_id(book_id)

    async def list_books(self, filters: BookFilter) -> list[Book]:
        return await self.book_repository.list_books(filters)

    async def count_books(self, filters: Optional[BookFilter] = None) -> int:
        return await self.book_repository.count(filters)

    async def update_book(self, book_id: UUID, **fields: Any) -> Optional[Book]:
        """Merge-update descriptive fields (only supplied fields change)."""
        book = await self.book_repository.get_by_id(book_id)
        if not book:
            return None

        values = self._editable(fields)
        if "title" in values and not (values["title"] or "").strip():
            raise ValueError("Title can't be blank")
        for name, value in values.items():
            setattr(book, name, value)
        return await self.book_repository.update(book)

    async def delete_book(self, book_id: UUID) -> bool:
        deleted = await self.book_repository.delete(book_id)
        if deleted:
            logger.info("Book deleted: %s", book_id)
        return deleted

    async def _ensure_unique(self, values: dict[str, Any]) -> None:
        external_id = values.get("external_id")
        if external_id and await self.book_repository.get_by_external_id(external_id):
            raise ValueError("A book with this external id already exists")
        if await self.book_repository.get_by_isbn(
            isbn_10=values.get("isbn_10"), isbn_13=values.get("isbn_13")
        ):
            raise ValueError("A book with this ISBN already exists")

    @staticmethod
    def _editable(fields: dict[str, Any]) -> dict[str, Any]:
        return {name: value for name, value in fields.items() if name in EDITABLE_FIELDS}

from collections.abc import AsyncGenerator, Callable
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from folio.domain.entities import Book, User
from folio.infrastructure.database.models import Base
from folio.infrastructure.database.repository import (
    BookRepository,
    ReviewRepository,
    UserRepository,
)
from folio.infrastructure.google_books.client import GoogleBooksClient


@pytest.fixture
async def engine(tmp_path):
    """A fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'folio.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest.fixture
def book_repo(session) -> BookRepository:
    return BookRepository(session)


@pytest.fixture
def review_repo(session) -> ReviewRepository:
    return ReviewRepository(session)


@pytest.fixture
def user_repo(session) -> UserRepository:
    return UserRepository(session)


@pytest.fixture
def make_user(user_repo) -> Callable:
    async def _make(username: Optional[str] = None) -> User:
        name = username or f"user_{uuid4().hex[:8]}"
        return await user_repo.create(User(id=uuid4(), username=name, email=f"{name}@example.com"))

    return _make


@pytest.fixture
def make_book(book_repo) -> Callable:
    """Insert a book; ``average_rating``/``review_count`` go through set_statistics."""

    async def _make(
        title: str = "A Book",
        average_rating: float = 0.0,
        review_count: int = 0,
        created_at: Optional[datetime] = None,
        **fields: Any,
    ) -> Book:
        created_at = created_at or datetime.utcnow()
        book = await book_repo.create(
            Book(id=uuid4(), title=title, created_at=created_at, updated_at=created_at, **fields)
        )
        if average_rating or review_count:
            book = await book_repo.set_statistics(book.id, average_rating, review_count)
        return book

    return _make


def volume(
    external_id: Optional[str],
    title: Optional[str] = "A Book",
    authors: tuple = ("Ann Author",),
    categories: tuple = ("Fiction",),
    isbn_10: Optional[str] = None,
    isbn_13: Optional[str] = None,
    published: Optional[str] = "2020-03-15",
    image_links: Optional[dict] = None,
) -> dict[str, Any]:
    """A Google Books volume record as returned by ``/volumes``."""
    identifiers = []
    if isbn_10:
        identifiers.append({"type": "ISBN_10", "identifier": isbn_10})
    if isbn_13:
        identifiers.append({"type": "ISBN_13", "identifier": isbn_13})
    info: dict[str, Any] = {
        "authors": list(authors),
        "categories": list(categories),
        "industryIdentifiers": identifiers,
        "language": "en",
    }
    if title is not None:
        info["title"] = title
    if published is not None:
        info["publishedDate"] = published
    if image_links is not None:
        info["imageLinks"] = image_links
    item: dict[str, Any] = {"kind": "books#volume", "volumeInfo": info}
    if external_id is not None:
        item["id"] = external_id
    return item


@pytest.fixture
def make_volume() -> Callable:
    return volume


class RecordingHandler:
    """``httpx.MockTransport`` handler that records requests and replays a response."""

    def __init__(self, status_code: int = 200, json: Any = None, exc: Optional[Exception] = None):
        self.status_code = status_code
        self.json = json if json is not None else {"totalItems": 0, "items": []}
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, json=self.json)

    @property
    def last_params(self) -> httpx.QueryParams:
        return self.requests[-1].url.params


@pytest.fixture
def google_books() -> Callable:
    """Build a ``(client, handler)`` pair backed by a mock transport."""

    def _build(
        status_code: int = 200, json: Any = None, exc: Optional[Exception] = None
    ) -> tuple[GoogleBooksClient, RecordingHandler]:
        handler = RecordingHandler(status_code=status_code, json=json, exc=exc)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GoogleBooksClient(api_key="test-key", http_client=http_client), handler

    return _build

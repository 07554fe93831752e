"""Dependency injection container."""

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from folio.core.config import settings
from folio.core.security import decode_access_token
from folio.domain.entities import User
from folio.domain.repositories import (
    IBookRepository,
    ICatalogProvider,
    IReviewRepository,
    IUserRepository,
)
from folio.domain.services import (
    IBookService,
    ICatalogService,
    IRecommendationService,
    IReviewService,
)
from folio.infrastructure.database.connection import get_db
from folio.infrastructure.database.repository import (
    BookRepository,
    ReviewRepository,
    UserRepository,
)
from folio.infrastructure.google_books.client import GoogleBooksClient
from folio.services.book_service import BookService
from folio.services.catalog_service import CatalogService
from folio.services.recommendation import RecommendationService
from folio.services.review_service import ReviewService

# Tokens are issued elsewhere; tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_catalog_provider() -> ICatalogProvider:
    """Return the Google Books client configured from settings."""
    return GoogleBooksClient(
        api_key=settings.google_books_api_key,
        base_url=settings.google_books_base_url,
        timeout=settings.google_books_timeout,
    )


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_review_repository(session: AsyncSession = Depends(get_db)) -> IReviewRepository:
    return ReviewRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_book_service(
    repo: IBookRepository = Depends(get_book_repository),
) -> IBookService:
    return BookService(book_repository=repo)


async def get_catalog_service(
    repo: IBookRepository = Depends(get_book_repository),
    provider: ICatalogProvider = Depends(get_catalog_provider),
) -> ICatalogService:
    return CatalogService(book_repository=repo, provider=provider)


async def get_review_service(
    review_repo: IReviewRepository = Depends(get_review_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
) -> IReviewService:
    # Both repositories share the request session, so a review write and the
    # statistics recompute commit together.
    return ReviewService(review_repository=review_repo, book_repository=book_repo)


async def get_recommendation_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    review_repo: IReviewRepository = Depends(get_review_repository),
    provider: ICatalogProvider = Depends(get_catalog_provider),
) -> IRecommendationService:
    return RecommendationService(
        book_repository=book_repo,
        review_repository=review_repo,
        provider=provider,
        default_size=settings.recommendation_size,
    )


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    user_repo: IUserRepository = Depends(get_user_repository),
) -> User:
    """Decode the bearer JWT and return the user named by its ``sub`` claim."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise credentials_exception
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise credentials_exception
    user = await user_repo.get_by_id(user_id)
    if user is None or not user.is_active:
        raise credentials_exception
    return user

"""Book API routes (local catalog CRUD and reviews)."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from folio.api.schemas import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ReviewCreateRequest,
    ReviewResponse,
    ReviewUpdateRequest,
)
from folio.core.dependencies import get_book_service, get_current_user, get_review_service
from folio.domain.entities import User
from folio.domain.exceptions import ValidationError
from folio.domain.repositories import BookFilter
from folio.domain.services import IBookService, IReviewService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
@router.get("", response_model=BookListResponse)
async def list_books(
    book_service: Annotated[IBookService, Depends(get_book_service)],
    author: Optional[str] = None,
    genre: Optional[str] = None,
    published_only: bool = False,
    min_rating: Annotated[Optional[float], Query(ge=0, le=5)] = None,
    sort_by: Annotated[Optional[str], Query(pattern="^(rating|reviews|newest|oldest)$")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> BookListResponse:
    """List catalog books with filters and pagination."""
    filters = BookFilter(
        author=author,
        genre=genre,
        published_only=published_only,
        min_rating=min_rating,
        sort_by=sort_by,
        skip=(page - 1) * limit,
        limit=limit,
    )
    books = await book_service.list_books(filters)
    total = await book_service.count_books(filters)
    return BookListResponse(
        books=[BookResponse.from_book(b) for b in books],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    body: BookCreate,
    book_service: Annotated[IBookService, Depends(get_book_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> BookResponse:
    """Add a locally authored book."""
    try:
        book = await book_service.create_book(**body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return BookResponse.from_book(book)


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: UUID,
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    book = await book_service.get_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.from_book(book)


@router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: UUID,
    body: BookUpdate,
    book_service: Annotated[IBookService, Depends(get_book_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> BookResponse:
    """Update descriptive metadata; rating statistics are not writable."""
    try:
        updated = await book_service.update_book(book_id, **body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.from_book(updated)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: UUID,
    book_service: Annotated[IBookService, Depends(get_book_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    """Remove a book and its reviews."""
    deleted = await book_service.delete_book(book_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Book not found")


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@router.get("/{book_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    book_id: UUID,
    review_service: Annotated[IReviewService, Depends(get_review_service)],
    rating: Annotated[Optional[int], Query(ge=1, le=5)] = None,
    with_content: bool = False,
) -> list[ReviewResponse]:
    reviews = await review_service.list_reviews(book_id, rating=rating, with_content=with_content)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.post(
    "/{book_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED
)
async def create_review(
    book_id: UUID,
    body: ReviewCreateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> ReviewResponse:
    """Submit a review; the book's rating statistics are updated before returning."""
    try:
        review = await review_service.create_review(
            user_id=current_user.id,
            book_id=book_id,
            rating=body.rating,
            content=body.content,
            spoiler_alert=body.spoiler_alert,
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ReviewResponse.model_validate(review)


@router.put("/{book_id}/reviews/{review_id}", response_model=ReviewResponse)
async def update_review(
    book_id: UUID,
    review_id: UUID,
    body: ReviewUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> ReviewResponse:
    try:
        review = await review_service.update_review(
            user_id=current_user.id,
            review_id=review_id,
            rating=body.rating,
            content=body.content,
            spoiler_alert=body.spoiler_alert,
            book_id=book_id,
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ReviewResponse.model_validate(review)


@router.delete("/{book_id}/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    book_id: UUID,
    review_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> None:
    try:
        await review_service.delete_review(current_user.id, review_id, book_id=book_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/{book_id}/reviews/{review_id}/helpful", response_model=ReviewResponse)
async def mark_review_helpful(
    book_id: UUID,
    review_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    review_service: Annotated[IReviewService, Depends(get_review_service)],
) -> ReviewResponse:
    try:
        review = await review_service.mark_helpful(review_id, book_id=book_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ReviewResponse.model_validate(review)

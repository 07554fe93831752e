"""Recommendation API routes."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from folio.api.schemas import BookResponse, RecommendationResponse, RecommendedBookResponse
from folio.core.dependencies import (
    get_book_service,
    get_current_user,
    get_recommendation_service,
)
from folio.domain.entities import RecommendationResult, User
from folio.domain.services import IBookService, IRecommendationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _to_response(result: RecommendationResult, **extra) -> RecommendationResponse:
    recs = [
        RecommendedBookResponse(**BookResponse.from_book(item.book).model_dump(), source=item.source)
        for item in result.items
    ]
    return RecommendationResponse(
        recommendations=recs,
        total=len(recs),
        strategy=result.strategy,
        message=result.message,
        **extra,
    )


@router.get("", response_model=RecommendationResponse)
async def get_user_recommendations(
    current_user: Annotated[User, Depends(get_current_user)],
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
    limit: Annotated[Optional[int], Query(ge=1, le=50)] = None,
) -> RecommendationResponse:
    """Personalized suggestions for the current user.

    Books come from the user's favorite genres, then favorite authors, then
    the popularity ordering; each carries the ``source`` that supplied it.
    Users without reviews get the popularity ordering only.
    """
    result = await recommendation_service.recommend_for_user(current_user.id, limit)
    return _to_response(result)


@router.get("/books/{book_id}", response_model=RecommendationResponse)
async def get_book_recommendations(
    book_id: UUID,
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=39)] = 10,
) -> RecommendationResponse:
    """Books similar to ``book_id``, found on Google Books and imported."""
    try:
        result = await recommendation_service.recommend_for_book(book_id, limit)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    seed = await book_service.get_book(book_id)
    return _to_response(result, based_on=BookResponse.from_book(seed) if seed else None)


@router.get("/genre", response_model=RecommendationResponse)
async def get_genre_recommendations(
    recommendation_service: Annotated[IRecommendationService, Depends(get_recommendation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    genre: Annotated[str, Query(min_length=1)],
) -> RecommendationResponse:
    try:
        result = await recommendation_service.recommend_by_genre(genre)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _to_response(result, genre=genre)

"""External catalog routes: search Google Books and import results."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from folio.api.schemas import BookResponse, CatalogImportRequest, ImportResponse, SkippedItemResponse
from folio.core.dependencies import get_catalog_service, get_current_user
from folio.domain.entities import ImportReport, User
from folio.domain.exceptions import (
    AuthError,
    CatalogError,
    DuplicateRaceError,
    QuotaError,
    ValidationError,
)
from folio.domain.repositories import SearchOptions
from folio.domain.services import ICatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/catalog", tags=["catalog"])


def _provider_error(exc: CatalogError) -> HTTPException:
    if isinstance(exc, QuotaError):
        return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    if isinstance(exc, AuthError):
        logger.error("Google Books rejected the configured API key")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Catalog provider unavailable: {exc}",
    )


def _import_response(report: ImportReport) -> ImportResponse:
    return ImportResponse(
        books=[BookResponse.from_book(b) for b in report.books],
        skipped=[SkippedItemResponse.model_validate(s) for s in report.skipped],
        total_items=report.total_items,
    )


@router.get("/search", response_model=ImportResponse)
async def search_catalog(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
    q: Annotated[str, Query(min_length=1)],
    search_type: Annotated[
        str, Query(pattern="^(general|isbn|author|title|subject)$")
    ] = "general",
    limit: Annotated[int, Query(ge=1, le=40)] = 20,
    start_index: Annotated[int, Query(ge=0)] = 0,
    language: Optional[str] = None,
    order_by: Annotated[Optional[str], Query(pattern="^(relevance|newest)$")] = None,
) -> ImportResponse:
    """Search Google Books and import every valid match into the catalog."""
    options = SearchOptions(
        start_index=start_index, max_results=limit, language=language, order_by=order_by
    )
    try:
        report = await catalog_service.search_and_import(q, search_type, options)
    except CatalogError as e:
        raise _provider_error(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _import_response(report)


@router.post("/import", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def import_volume(
    body: CatalogImportRequest,
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> BookResponse:
    """Import one volume by its Google Books id (returns the existing book if known)."""
    try:
        book = await catalog_service.import_by_id(body.external_id)
    except CatalogError as e:
        raise _provider_error(e)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except DuplicateRaceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if book is None:
        raise HTTPException(status_code=404, detail="Volume not found")
    return BookResponse.from_book(book)


@router.get("/popular", response_model=ImportResponse)
async def popular_books(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
    subject: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=40)] = 20,
) -> ImportResponse:
    try:
        report = await catalog_service.import_popular(subject, SearchOptions(max_results=limit))
    except CatalogError as e:
        raise _provider_error(e)
    return _import_response(report)


@router.get("/new-releases", response_model=ImportResponse)
async def new_releases(
    catalog_service: Annotated[ICatalogService, Depends(get_catalog_service)],
    limit: Annotated[int, Query(ge=1, le=40)] = 20,
) -> ImportResponse:
    try:
        report = await catalog_service.import_new_releases(SearchOptions(max_results=limit))
    except CatalogError as e:
        raise _provider_error(e)
    return _import_response(report)

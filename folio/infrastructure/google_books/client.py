"""Google Books volumes API client.

Builds provider queries, executes them over ``httpx`` with a per-request
timeout, and classifies each response:

  200            → parsed envelope
  401            → :class:`AuthError`
  403, 429       → :class:`QuotaError`
  404            → ``None`` for single-volume lookups, empty envelope for search
  anything else  → :class:`ProviderError` (also timeouts / transport failures)

Nothing is retried here; retry policy belongs to the caller.
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Optional

import httpx

from folio.domain.exceptions import AuthError, ProviderError, QuotaError
from folio.domain.repositories import ICatalogProvider, SearchOptions, SearchResponse

logger = logging.getLogger(__name__)

MAX_RESULTS_CAP = 40  # provider hard limit per page


def clamp_max_results(value: Optional[int]) -> int:
    if value is None:
        return 20
    return max(1, min(value, MAX_RESULTS_CAP))


def title_keywords(title: str, count: int = 2) -> list[str]:
    """The ``count`` longest words of a title, kept in title order."""
    words = title.split()
    longest = sorted(range(len(words)), key=lambda i: -len(words[i]))[:count]
    return [words[i] for i in sorted(longest)]


class GoogleBooksClient(ICatalogProvider):
    """Async client for ``/volumes`` search and single-volume lookup."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://www.googleapis.com/books/v1",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client
        if not api_key:
            logger.warning("No Google Books API key configured; provider limits will be lower")

    # -- core calls ---------------------------------------------------------

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResponse:
        """Run a free-text volume search."""
        params = self._build_search_params(query, options or SearchOptions())
        data = await self._get("/volumes", params)
        if data is None:
            return SearchResponse()
        return SearchResponse(
            items=list(data.get("items") or []),
            total_items=int(data.get("totalItems") or 0),
        )

    async def get_volume(self, external_id: str) -> Optional[dict[str, Any]]:
        """Fetch a single volume with the full projection."""
        params = self._default_params()
        params["projection"] = "full"
        return await self._get(f"/volumes/{external_id}", params)

    # -- query builders -----------------------------------------------------

    async def search_by_isbn(self, isbn: str) -> SearchResponse:
        return await self.search(f"isbn:{isbn}")

    async def search_by_author(self, author: str) -> SearchResponse:
        return await self.search(f"inauthor:{author}")

    async def search_by_title(self, title: str) -> SearchResponse:
        return await self.search(f"intitle:{title}")

    async def search_by_subject(self, subject: str) -> SearchResponse:
        return await self.search(f"subject:{subject}")

    async def popular(
        self, subject: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        """Bestseller approximation: relevance-ordered subject (or fiction) search."""
        query = f"subject:{subject}" if subject else "fiction"
        options = replace(options or SearchOptions(), order_by="relevance")
        return await self.search(query, options)

    async def new_releases(
        self, options: Optional[SearchOptions] = None, today: Optional[date] = None
    ) -> SearchResponse:
        """Volumes published last year or this year, newest first."""
        current_year = (today or date.today()).year
        query = f"publishedDate:{current_year - 1}..{current_year}"
        options = replace(options or SearchOptions(), order_by="newest")
        return await self.search(query, options)

    async def similar_to(
        self, title: str, author: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> SearchResponse:
        """Author clause plus the two longest title words."""
        query_parts = []
        if author:
            query_parts.append(f"inauthor:{author}")
        if title:
            keywords = title_keywords(title)
            if keywords:
                query_parts.append(" ".join(keywords))
        query = " ".join(query_parts)
        if not query:
            return SearchResponse()

        options = replace(options or SearchOptions(max_results=10), order_by="relevance")
        return await self.search(query, options)

    # -- internals ----------------------------------------------------------

    def _default_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"printType": "books", "projection": "lite"}
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _build_search_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        params = self._default_params()
        params["q"] = query
        params["startIndex"] = max(options.start_index or 0, 0)
        params["maxResults"] = clamp_max_results(options.max_results)
        if options.order_by:
            params["orderBy"] = options.order_by
        if options.language:
            params["langRestrict"] = options.language
        if options.print_type:
            params["printType"] = options.print_type
        if options.filter:
            params["filter"] = options.filter
        return params

    async def _get(self, path: str, params: dict[str, Any]) -> Optional[dict[str, Any]]:
        url = f"{self.base_url}{path}"
        logger.debug("Google Books request %s q=%r", path, params.get("q"))
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)
        except httpx.TimeoutException as exc:
            logger.error("Google Books request timed out: %s", exc)
            raise ProviderError("Google Books request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("Google Books transport error: %s", exc)
            raise ProviderError(f"Google Books transport error: {exc}") from exc
        return self._handle_response(response)

    @staticmethod
    def _handle_response(response: httpx.Response) -> Optional[dict[str, Any]]:
        status = response.status_code
        if status == 200:
            try:
                return response.json()
            except ValueError as exc:
                logger.error("Google Books returned a non-JSON body: %s", response.text[:200])
                raise ProviderError("Malformed Google Books response", status_code=status) from exc
        if status == 401:
            raise AuthError("Invalid API key")
        if status == 403:
            raise QuotaError("API quota exceeded or forbidden")
        if status == 404:
            return None
        if status == 429:
            raise QuotaError("Rate limit exceeded")
        logger.error("Google Books API error %s: %s", status, response.text[:200])
        raise ProviderError(
            f"Google Books API error: {status} - {response.reason_phrase}", status_code=status
        )

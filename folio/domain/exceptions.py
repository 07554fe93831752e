"""Error taxonomy for catalog ingestion.

Provider failures derive from :class:`CatalogError` and surface unchanged to
callers of search/import.  :class:`ValidationError` marks a single catalog item
that cannot be persisted; batch imports record it and move on.
:class:`DuplicateRaceError` travels from the book repository to the upsert
store, which recovers from it by re-fetching; a conflict it cannot resolve
is raised on to the caller.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for external catalog provider failures."""


class AuthError(CatalogError):
    """The provider rejected our API key (HTTP 401)."""


class QuotaError(CatalogError):
    """Rate limit or quota exceeded, or access forbidden (HTTP 403/429)."""


class ProviderError(CatalogError):
    """Any other provider failure: unexpected status, timeout, transport error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(Exception):
    """A normalized catalog record fails local persistence constraints."""

    def __init__(self, message: str, external_id: Optional[str] = None):
        super().__init__(message)
        self.external_id = external_id


class DuplicateRaceError(Exception):
    """A uniqueness constraint fired while creating a book."""

    def __init__(self, external_id: Optional[str] = None):
        super().__init__(f"Book already exists (external_id={external_id})")
        self.external_id = external_id

"""Catalog ingestion: provider results into local Books without duplicates."""

import logging
from typing import Optional

from folio.domain.entities import Book, ImportReport, SkippedItem
from folio.domain.exceptions import DuplicateRaceError, ValidationError
from folio.domain.repositories import (
    IBookRepository,
    ICatalogProvider,
    SearchOptions,
    SearchResponse,
)
from folio.domain.services import ICatalogService
from folio.infrastructure.google_books.normalizer import NormalizedBook, normalize_volume

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("general", "isbn", "author", "title", "subject")


class CatalogService(ICatalogService):
    """Upserts normalized provider volumes into the catalog.

    ``external_id``, ``isbn_10`` and ``isbn_13`` are unique in the database,
    so two concurrent imports of the same volume cannot both insert.  The
    loser of that race gets :class:`DuplicateRaceError` from the repository
    and resolves it by re-reading the winner's row.
    """

    def __init__(self, book_repository: IBookRepository, provider: ICatalogProvider):
        self.book_repository = book_repository
        self.provider = provider

    async def find_or_create(self, record: NormalizedBook) -> Book:
        """Return the Book for ``record``, inserting it on first sight.

        Re-importing a known volume returns the stored Book unchanged.  Raises
        :class:`DuplicateRaceError` only when a uniqueness conflict cannot be
        traced back to any stored Book.
        """
        record.validate()

        existing = await self.book_repository.get_by_external_id(record.external_id)
        if existing:
            return existing

        try:
            created = await self.book_repository.create(record.to_book())
            logger.info("Imported book %s (%s)", created.id, record.external_id)
            return created
        except DuplicateRaceError:
            logger.info("Lost insert race for %s; re-reading", record.external_id)

        existing = await self.book_repository.get_by_external_id(record.external_id)
        if existing:
            return existing

        # Conflict on an ISBN held by a different provider volume.
        existing = await self.book_repository.get_by_isbn(
            isbn_10=record.isbn_10, isbn_13=record.isbn_13
        )
        if existing:
            logger.info(
                "Volume %s shares an ISBN with book %s; reusing it",
                record.external_id,
                existing.id,
            )
            return existing

        raise DuplicateRaceError(record.external_id)

    async def import_all(self, response: SearchResponse) -> ImportReport:
        report = ImportReport(total_items=response.total_items)
        for item in response.items:
            record = normalize_volume(item)
            try:
                book = await self.find_or_create(record)
            except ValidationError as exc:
                logger.warning("Skipping volume %s: %s", record.external_id, exc)
                report.skipped.append(SkippedItem(external_id=record.external_id, reason=str(exc)))
                continue
            except DuplicateRaceError:
                logger.warning("Skipping volume %s: unresolved duplicate", record.external_id)
                report.skipped.append(
                    SkippedItem(external_id=record.external_id, reason="Unresolved duplicate")
                )
                continue
            report.books.append(book)

        if report.skipped:
            logger.warning(
                "Imported %d of %d volumes (%d skipped)",
                len(report.books),
                len(response.items),
                len(report.skipped),
            )
        return report

    async def search_and_import(
        self, query: str, search_type: str = "general", options: Optional[SearchOptions] = None
    ) -> ImportReport:
        if not query or not query.strip():
            raise ValueError("Search query is required")
        query = query.strip()

        if search_type == "isbn":
            response = await self.provider.search_by_isbn(query)
        elif search_type == "author":
            response = await self.provider.search_by_author(query)
        elif search_type == "title":
            response = await self.provider.search_by_title(query)
        elif search_type == "subject":
            response = await self.provider.search_by_subject(query)
        elif search_type == "general":
            response = await self.provider.search(query, options)
        else:
            raise ValueError(f"search_type must be one of: {', '.join(SEARCH_TYPES)}")

        return await self.import_all(response)

    async def import_by_id(self, external_id: str) -> Optional[Book]:
        existing = await self.book_repository.get_by_external_id(external_id)
        if existing:
            return existing

        item = await self.provider.get_volume(external_id)
        if item is None:
            return None
        return await self.find_or_create(normalize_volume(item))

    async def import_popular(
        self, subject: Optional[str] = None, options: Optional[SearchOptions] = None
    ) -> ImportReport:
        response = await self.provider.popular(subject, options)
        return await self.import_all(response)

    async def import_new_releases(self, options: Optional[SearchOptions] = None) -> ImportReport:
        response = await self.provider.new_releases(options)
        return await self.import_all(response)

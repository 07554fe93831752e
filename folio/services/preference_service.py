"""Preference extraction from a user's highly rated reviews."""

import logging
from collections import Counter
from uuid import UUID

from folio.domain.entities import PreferenceSignal
from folio.domain.repositories import IBookRepository, IReviewRepository

logger = logging.getLogger(__name__)

LIKED_RATING = 4  # ratings of 4 and 5 count as liking a book
TOP_N = 3


class PreferenceExtractor:
    """Derives favorite genres and authors; nothing is persisted.

    Each liked book adds one count per distinct genre and per distinct
    author.  Reviews are visited oldest first, and ``Counter.most_common``
    keeps insertion order among equal counts, so ties go to whichever name
    the user liked first.
    """

    def __init__(self, review_repository: IReviewRepository, book_repository: IBookRepository):
        self.review_repository = review_repository
        self.book_repository = book_repository

    async def extract(self, user_id: UUID) -> PreferenceSignal:
        liked = await self.review_repository.get_by_user(user_id, min_rating=LIKED_RATING)
        if not liked:
            return PreferenceSignal()

        genre_counts: Counter = Counter()
        author_counts: Counter = Counter()
        for review in liked:
            book = await self.book_repository.get_by_id(review.book_id)
            if not book:
                continue
            genre_counts.update(dict.fromkeys(book.categories_list, 1))
            author_counts.update(dict.fromkeys(book.authors_list, 1))

        signal = PreferenceSignal(
            genres=genre_counts.most_common(TOP_N),
            authors=author_counts.most_common(TOP_N),
        )
        logger.info(
            "Preferences for user %s: genres=%s authors=%s",
            user_id,
            signal.favorite_genres,
            signal.favorite_authors,
        )
        return signal

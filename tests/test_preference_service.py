"""Tests for favorite genre/author extraction."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from folio.domain.entities import Review
from folio.services.preference_service import PreferenceExtractor

T0 = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def extractor(review_repo, book_repo) -> PreferenceExtractor:
    return PreferenceExtractor(review_repo, book_repo)


@pytest.fixture
def add_review(review_repo, session):
    """Insert a review at a fixed point in time (statistics are irrelevant here)."""
    counter = {"n": 0}

    async def _add(user_id, book_id, rating):
        counter["n"] += 1
        at = T0 + timedelta(minutes=counter["n"])
        review = await review_repo.create(
            Review(
                id=uuid4(),
                user_id=user_id,
                book_id=book_id,
                rating=rating,
                created_at=at,
                updated_at=at,
            )
        )
        await session.commit()
        return review

    return _add


async def test_no_reviews_gives_empty_signal(extractor, make_user):
    user = await make_user()

    signal = await extractor.extract(user.id)

    assert signal.is_empty


async def test_only_liked_books_count(extractor, make_user, make_book, add_review):
    user = await make_user()
    liked = await make_book("Liked", categories="Fantasy", authors="Ann Leckie")
    disliked = await make_book("Disliked", categories="Horror", authors="Stephen King")
    await add_review(user.id, liked.id, 4)
    await add_review(user.id, disliked.id, 3)

    signal = await extractor.extract(user.id)

    assert signal.favorite_genres == ["Fantasy"]
    assert signal.favorite_authors == ["Ann Leckie"]


async def test_only_low_ratings_gives_empty_signal(extractor, make_user, make_book, add_review):
    user = await make_user()
    book = await make_book(categories="Horror", authors="Stephen King")
    await add_review(user.id, book.id, 2)

    assert (await extractor.extract(user.id)).is_empty


async def test_top_three_by_frequency(extractor, make_user, make_book, add_review):
    user = await make_user()
    specs = [
        ("Poetry", "A1"),
        ("Fantasy, Adventure", "A2"),
        ("Fantasy, History", "A2"),
        ("Fantasy, History, Adventure", "A3"),
        ("Adventure", "A3"),
        ("History", "A3"),
    ]
    for i, (categories, author) in enumerate(specs):
        book = await make_book(f"Book {i}", categories=categories, authors=author)
        await add_review(user.id, book.id, 5)

    signal = await extractor.extract(user.id)

    assert signal.genres == [("Fantasy", 3), ("Adventure", 3), ("History", 3)]
    assert signal.authors == [("A3", 3), ("A2", 2), ("A1", 1)]


async def test_ties_go_to_first_encountered(extractor, make_user, make_book, add_review):
    user = await make_user()
    first = await make_book("First", categories="Mystery", authors="Zed")
    second = await make_book("Second", categories="Romance", authors="Amy")
    await add_review(user.id, first.id, 5)
    await add_review(user.id, second.id, 4)

    signal = await extractor.extract(user.id)

    assert signal.favorite_genres == ["Mystery", "Romance"]
    assert signal.favorite_authors == ["Zed", "Amy"]


async def test_book_counts_once_per_distinct_genre(extractor, make_user, make_book, add_review):
    user = await make_user()
    repeated = await make_book("Repeated", categories="Fantasy, Fantasy", authors="Ann, Ann")
    other = await make_book("Other", categories="Poetry", authors="Bea")
    await add_review(user.id, repeated.id, 5)
    await add_review(user.id, other.id, 5)

    signal = await extractor.extract(user.id)

    assert signal.genres == [("Fantasy", 1), ("Poetry", 1)]
    assert signal.authors == [("Ann", 1), ("Bea", 1)]

"""Tests for review CRUD and the book statistics it maintains."""

from uuid import uuid4

import pytest

from folio.services.review_service import BookStatisticsMaintainer, ReviewService


@pytest.fixture
def reviews(review_repo, book_repo) -> ReviewService:
    return ReviewService(review_repository=review_repo, book_repository=book_repo)


async def test_statistics_follow_create_update_delete(reviews, book_repo, make_user, make_book):
    book = await make_book("Dune")
    alice, bob, carol = await make_user("alice"), await make_user("bob"), await make_user("carol")

    await reviews.create_review(alice.id, book.id, rating=5)
    current = await book_repo.get_by_id(book.id)
    assert (current.review_count, current.average_rating) == (1, 5.0)

    await reviews.create_review(bob.id, book.id, rating=4)
    carol_review = await reviews.create_review(carol.id, book.id, rating=2, content="Slow start")
    current = await book_repo.get_by_id(book.id)
    assert current.review_count == 3
    assert current.average_rating == pytest.approx(3.67, abs=0.005)

    await reviews.update_review(carol.id, carol_review.id, rating=3)
    current = await book_repo.get_by_id(book.id)
    assert current.average_rating == pytest.approx(4.0)

    await reviews.delete_review(carol.id, carol_review.id)
    current = await book_repo.get_by_id(book.id)
    assert (current.review_count, current.average_rating) == (2, 4.5)


async def test_last_review_removed_resets_statistics(reviews, book_repo, make_user, make_book):
    book = await make_book()
    user = await make_user()
    review = await reviews.create_review(user.id, book.id, rating=3)

    await reviews.delete_review(user.id, review.id)

    current = await book_repo.get_by_id(book.id)
    assert current.review_count == 0
    assert current.average_rating == 0.0


async def test_second_review_of_same_book_is_rejected(reviews, book_repo, make_user, make_book):
    book = await make_book()
    user = await make_user()
    await reviews.create_review(user.id, book.id, rating=4)

    with pytest.raises(ValueError):
        await reviews.create_review(user.id, book.id, rating=1)

    current = await book_repo.get_by_id(book.id)
    assert (current.review_count, current.average_rating) == (1, 4.0)


async def test_review_of_unknown_book(reviews, make_user):
    user = await make_user()

    with pytest.raises(LookupError):
        await reviews.create_review(user.id, uuid4(), rating=4)


@pytest.mark.parametrize("rating", [0, 6])
async def test_rating_out_of_range(reviews, make_user, make_book, rating):
    book = await make_book()
    user = await make_user()

    with pytest.raises(ValueError):
        await reviews.create_review(user.id, book.id, rating=rating)


async def test_content_length_limit(reviews, make_user, make_book):
    book = await make_book()
    user = await make_user()

    with pytest.raises(ValueError):
        await reviews.create_review(user.id, book.id, rating=4, content="x" * 2001)


async def test_only_owner_can_modify(reviews, make_user, make_book):
    book = await make_book()
    owner, stranger = await make_user(), await make_user()
    review = await reviews.create_review(owner.id, book.id, rating=4)

    with pytest.raises(PermissionError):
        await reviews.update_review(stranger.id, review.id, rating=1)
    with pytest.raises(PermissionError):
        await reviews.delete_review(stranger.id, review.id)


async def test_list_reviews_filters(reviews, make_user, make_book):
    book = await make_book()
    a, b = await make_user(), await make_user()
    await reviews.create_review(a.id, book.id, rating=5, content="Loved it")
    await reviews.create_review(b.id, book.id, rating=3)

    assert len(await reviews.list_reviews(book.id)) == 2
    assert [r.rating for r in await reviews.list_reviews(book.id, rating=5)] == [5]
    assert [r.content for r in await reviews.list_reviews(book.id, with_content=True)] == [
        "Loved it"
    ]


async def test_mark_helpful_increments(reviews, make_user, make_book):
    book = await make_book()
    user = await make_user()
    review = await reviews.create_review(user.id, book.id, rating=4)

    await reviews.mark_helpful(review.id)
    updated = await reviews.mark_helpful(review.id)

    assert updated.helpful_count == 2


async def test_mark_helpful_unknown_review(reviews):
    with pytest.raises(LookupError):
        await reviews.mark_helpful(uuid4())


async def test_recompute_unknown_book(book_repo, review_repo):
    with pytest.raises(LookupError):
        await BookStatisticsMaintainer(book_repo, review_repo).recompute(uuid4())


async def test_book_update_does_not_touch_statistics(reviews, book_repo, make_user, make_book):
    book = await make_book("Dune")
    user = await make_user()
    await reviews.create_review(user.id, book.id, rating=5)

    stale = await book_repo.get_by_id(book.id)
    stale.title = "Dune (Deluxe)"
    stale.average_rating = 1.0
    stale.review_count = 99
    await book_repo.update(stale)

    current = await book_repo.get_by_id(book.id)
    assert current.title == "Dune (Deluxe)"
    assert (current.review_count, current.average_rating) == (1, 5.0)


async def test_review_operations_check_the_parent_book(reviews, make_user, make_book):
    book, other_book = await make_book("Mine"), await make_book("Other")
    user = await make_user()
    review = await reviews.create_review(user.id, book.id, rating=4)

    with pytest.raises(LookupError):
        await reviews.update_review(user.id, review.id, rating=1, book_id=other_book.id)
    with pytest.raises(LookupError):
        await reviews.delete_review(user.id, review.id, book_id=other_book.id)
    with pytest.raises(LookupError):
        await reviews.mark_helpful(review.id, book_id=other_book.id)

    updated = await reviews.update_review(user.id, review.id, rating=2, book_id=book.id)
    assert updated.rating == 2
    assert (await reviews.mark_helpful(review.id, book_id=book.id)).helpful_count == 1

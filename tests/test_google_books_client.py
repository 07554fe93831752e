"""Tests for the Google Books client: query building and status classification."""

from datetime import date

import httpx
import pytest

from folio.domain.exceptions import AuthError, ProviderError, QuotaError
from folio.domain.repositories import SearchOptions
from folio.infrastructure.google_books.client import (
    GoogleBooksClient,
    clamp_max_results,
    title_keywords,
)


# ── Query parameters ───────────────────────────────


async def test_search_sends_default_params(google_books, make_volume):
    client, handler = google_books(json={"totalItems": 1, "items": [make_volume("v1")]})

    response = await client.search("dune")

    params = handler.last_params
    assert handler.requests[-1].url.path.endswith("/volumes")
    assert params["q"] == "dune"
    assert params["key"] == "test-key"
    assert params["printType"] == "books"
    assert params["projection"] == "lite"
    assert params["maxResults"] == "20"
    assert params["startIndex"] == "0"
    assert response.total_items == 1
    assert response.items[0]["id"] == "v1"


async def test_search_options_are_mapped(google_books):
    client, handler = google_books()

    await client.search(
        "dune",
        SearchOptions(start_index=40, max_results=15, language="fr", order_by="newest"),
    )

    params = handler.last_params
    assert params["startIndex"] == "40"
    assert params["maxResults"] == "15"
    assert params["langRestrict"] == "fr"
    assert params["orderBy"] == "newest"


async def test_max_results_is_capped_at_40(google_books):
    client, handler = google_books()

    await client.search("dune", SearchOptions(max_results=500))

    assert handler.last_params["maxResults"] == "40"


def test_clamp_max_results_bounds():
    assert clamp_max_results(None) == 20
    assert clamp_max_results(0) == 1
    assert clamp_max_results(41) == 40
    assert clamp_max_results(12) == 12


async def test_api_key_is_omitted_when_not_configured():
    handler_requests = []

    def handler(request):
        handler_requests.append(request)
        return httpx.Response(200, json={"totalItems": 0})

    client = GoogleBooksClient(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    response = await client.search("dune")

    assert "key" not in handler_requests[0].url.params
    assert response.is_empty


async def test_get_volume_uses_full_projection(google_books, make_volume):
    client, handler = google_books(json=make_volume("abc123"))

    item = await client.get_volume("abc123")

    assert handler.requests[-1].url.path.endswith("/volumes/abc123")
    assert handler.last_params["projection"] == "full"
    assert item["id"] == "abc123"


# ── Builders ───────────────────────────────────────


@pytest.mark.parametrize(
    "method, value, expected",
    [
        ("search_by_isbn", "9780441013593", "isbn:9780441013593"),
        ("search_by_author", "Frank Herbert", "inauthor:Frank Herbert"),
        ("search_by_title", "Dune", "intitle:Dune"),
        ("search_by_subject", "Science Fiction", "subject:Science Fiction"),
    ],
)
async def test_field_builders(google_books, method, value, expected):
    client, handler = google_books()

    await getattr(client, method)(value)

    assert handler.last_params["q"] == expected


async def test_popular_defaults_to_fiction_by_relevance(google_books):
    client, handler = google_books()

    await client.popular()

    assert handler.last_params["q"] == "fiction"
    assert handler.last_params["orderBy"] == "relevance"
    assert handler.last_params["maxResults"] == "20"


async def test_popular_with_subject(google_books):
    client, handler = google_books()

    await client.popular("history", SearchOptions(max_results=5))

    assert handler.last_params["q"] == "subject:history"
    assert handler.last_params["maxResults"] == "5"


async def test_new_releases_spans_last_and_current_year(google_books):
    client, handler = google_books()

    await client.new_releases(today=date(2024, 6, 1))

    assert handler.last_params["q"] == "publishedDate:2023..2024"
    assert handler.last_params["orderBy"] == "newest"


async def test_similar_to_uses_author_and_longest_title_words(google_books):
    client, handler = google_books()

    await client.similar_to("The Left Hand of Darkness", "Ursula K. Le Guin")

    assert handler.last_params["q"] == "inauthor:Ursula K. Le Guin Left Darkness"
    assert handler.last_params["orderBy"] == "relevance"
    assert handler.last_params["maxResults"] == "10"


async def test_similar_to_empty_query_makes_no_request(google_books):
    client, handler = google_books()

    response = await client.similar_to("", None)

    assert response.is_empty
    assert handler.requests == []


def test_title_keywords_keeps_title_order():
    assert title_keywords("A Wizard of Earthsea") == ["Wizard", "Earthsea"]
    assert title_keywords("Dune") == ["Dune"]
    assert title_keywords("") == []


# ── Status classification ──────────────────────────


async def test_401_raises_auth_error(google_books):
    client, _ = google_books(status_code=401, json={"error": {}})

    with pytest.raises(AuthError):
        await client.search("dune")


@pytest.mark.parametrize("status_code", [403, 429])
async def test_quota_statuses_raise_quota_error(google_books, status_code):
    client, _ = google_books(status_code=status_code, json={"error": {}})

    with pytest.raises(QuotaError):
        await client.search("dune")


async def test_404_on_get_volume_returns_none(google_books):
    client, _ = google_books(status_code=404, json={"error": {}})

    assert await client.get_volume("missing") is None


async def test_404_on_search_returns_empty_envelope(google_books):
    client, _ = google_books(status_code=404, json={"error": {}})

    response = await client.search("dune")

    assert response.is_empty
    assert response.total_items == 0


async def test_server_error_carries_status(google_books):
    client, _ = google_books(status_code=502, json={"error": {}})

    with pytest.raises(ProviderError) as exc_info:
        await client.search("dune")

    assert exc_info.value.status_code == 502


async def test_timeout_becomes_provider_error(google_books):
    client, _ = google_books(exc=httpx.ReadTimeout("read timed out"))

    with pytest.raises(ProviderError) as exc_info:
        await client.search("dune")

    assert exc_info.value.status_code is None


async def test_transport_error_becomes_provider_error(google_books):
    client, _ = google_books(exc=httpx.ConnectError("connection refused"))

    with pytest.raises(ProviderError):
        await client.get_volume("abc")


async def test_non_json_body_becomes_provider_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="<html>gateway hiccup</html>")
    )
    client = GoogleBooksClient(api_key="test-key", http_client=httpx.AsyncClient(transport=transport))

    with pytest.raises(ProviderError) as exc_info:
        await client.search("dune")

    assert exc_info.value.status_code == 200

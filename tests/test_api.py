# File: tests/test_api.py
from __future__ import annotations

import pytest

from bookstack_backup.client.api import BookStackAPI
from bookstack_backup.client.fetcher import auth_headers
from bookstack_backup.exceptions import FetchError, ResponseParseError


@pytest.mark.asyncio()
async def test_list_pages_follows_pagination(bookstack, make_instance):
    for i in range(1, 6):
        bookstack.add_page(i, f"Page {i}", book_id=1)
    bookstack.batch_limit = 2

    async with BookStackAPI(make_instance(base_url=bookstack.url)) as api:
        pages = await api.list_pages()

    assert [p.id for p in pages] == [1, 2, 3, 4, 5]
    assert bookstack.requests.count("/api/pages") == 3


@pytest.mark.asyncio()
async def test_shelve_books_keep_upstream_order(bookstack, make_instance):
    bookstack.shelves["4"] = [7, 3, 5]

    async with BookStackAPI(make_instance(base_url=bookstack.url)) as api:
        assert await api.shelve_book_ids("4") == ["7", "3", "5"]


@pytest.mark.asyncio()
async def test_http_error_raises_fetch_error(bookstack, make_instance):
    async with BookStackAPI(make_instance(base_url=bookstack.url)) as api:
        with pytest.raises(FetchError) as info:
            await api.page(42)

    assert info.value.status == 404
    assert info.value.url.endswith("/api/pages/42")


@pytest.mark.asyncio()
async def test_non_json_body_raises_parse_error(bookstack, make_instance):
    bookstack.add_page(1, "Alpha", book_id=1)
    bookstack.garbled_pages.add(1)

    async with BookStackAPI(make_instance(base_url=bookstack.url)) as api:
        with pytest.raises(ResponseParseError):
            await api.page(1)


@pytest.mark.asyncio()
async def test_slow_response_times_out(bookstack, make_instance):
    bookstack.add_page(1, "Slow", book_id=1)
    bookstack.delays[1] = 1.0

    async with BookStackAPI(make_instance(base_url=bookstack.url, timeout=0.2)) as api:
        with pytest.raises(FetchError, match="no response"):
            await api.page(1)


@pytest.mark.asyncio()
async def test_page_detail_fields(bookstack, make_instance):
    bookstack.add_page(8, "Detail", book_id=2, html="<h2>x</h2>")

    async with BookStackAPI(make_instance(base_url=bookstack.url)) as api:
        detail = await api.page(8)

    assert (detail.id, detail.name, detail.html) == (8, "Detail", "<h2>x</h2>")


def test_auth_header_format(make_instance):
    assert auth_headers(make_instance()) == {"Authorization": "Token tid:tsecret"}


@pytest.mark.asyncio()
async def test_fetch_outside_context_is_rejected(make_instance):
    api = BookStackAPI(make_instance())
    with pytest.raises(RuntimeError):
        await api.list_pages()

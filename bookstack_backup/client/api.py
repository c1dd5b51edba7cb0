# bookstack_backup/client/api.py
"""
Thin read-only wrapper over the three BookStack endpoints the backup needs:
the page listing, a shelve record and a page record.
"""
from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional
from urllib.parse import quote

from aiohttp import ClientSession

from bookstack_backup.client.fetcher import Fetcher, open_session
from bookstack_backup.client.models import PageDetail, PageMeta
from bookstack_backup.config import InstanceConfig
from bookstack_backup.exceptions import ResponseParseError

__all__ = ("BookStackAPI", "PAGE_BATCH")

#: largest ``count`` the listing endpoints accept
PAGE_BATCH = 500


class BookStackAPI:
    """Async context manager owning the HTTP session of one crawl."""

    def __init__(self, instance: InstanceConfig, session: Optional[ClientSession] = None) -> None:
        self.instance = instance
        self._session = session
        self._owns_session = session is None
        self._fetcher: Optional[Fetcher] = None

    async def __aenter__(self) -> BookStackAPI:
        if self._session is None:
            self._session = open_session(self.instance)
        self._fetcher = Fetcher(self._session, self.instance)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._fetcher = None

    def url(self, path: str) -> str:
        return f"{self.instance.base_url}{path}"

    async def _get_json(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        if self._fetcher is None:
            raise RuntimeError("Session not initialized")
        body = await self._fetcher.fetch(self.url(path), params)
        try:
            return json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResponseParseError(f"{path}: response is not valid JSON ({exc})") from exc

    async def list_pages(self) -> List[PageMeta]:
        """Return every page of the instance, following ``offset`` pagination."""
        pages: List[PageMeta] = []
        offset = 0
        while True:
            payload = await self._get_json(
                "/api/pages", {"count": str(PAGE_BATCH), "offset": str(offset)}
            )
            if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
                raise ResponseParseError("/api/pages: missing 'data' list")
            batch = payload["data"]
            pages.extend(PageMeta.from_json(record) for record in batch)
            offset += len(batch)
            total = payload.get("total")
            if not batch or not isinstance(total, int) or offset >= total:
                return pages

    async def shelve_book_ids(self, shelve_id: str) -> List[str]:
        """Return the member book ids of a shelve in the order BookStack reports them."""
        path = f"/api/shelves/{quote(shelve_id, safe='')}"
        payload = await self._get_json(path)
        books = payload.get("books") if isinstance(payload, dict) else None
        if not isinstance(books, list):
            raise ResponseParseError(f"{path}: missing 'books' list")
        ids: List[str] = []
        for book in books:
            book_id = book.get("id") if isinstance(book, dict) else None
            if isinstance(book_id, bool) or not isinstance(book_id, int):
                raise ResponseParseError(f"{path}: book entry without integer id: {book!r}")
            ids.append(str(book_id))
        return ids

    async def page(self, page_id: int) -> PageDetail:
        return PageDetail.from_json(await self._get_json(f"/api/pages/{page_id}"))

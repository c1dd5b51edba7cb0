# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web

from bookstack_backup.config import InstanceConfig

FIXED_DAY = date(2024, 5, 17)


class FakeBookStack:
    """In-memory BookStack exposing the three read endpoints used by the backup."""

    def __init__(self) -> None:
        self.url = ""
        self.pages: List[Dict[str, Any]] = []
        self.details: Dict[int, Dict[str, Any]] = {}
        self.shelves: Dict[str, List[int]] = {}
        self.broken_pages: set[int] = set()
        self.garbled_pages: set[int] = set()
        self.delays: Dict[int, float] = {}
        self.gates: Dict[int, asyncio.Event] = {}
        self.batch_limit: Optional[int] = None
        self.requests: List[str] = []
        self.auth: List[str] = []

    def add_page(
        self,
        page_id: int,
        name: str,
        book_id: int,
        chapter_id: Optional[int] = 0,
        html: Optional[str] = None,
    ) -> None:
        self.pages.append(
            {"id": page_id, "name": name, "book_id": book_id, "chapter_id": chapter_id}
        )
        self.details[page_id] = {
            "id": page_id,
            "name": name,
            "html": html if html is not None else f"<p>{name} body</p>",
        }

    def _record(self, request: web.Request) -> None:
        self.requests.append(request.path)
        self.auth.append(request.headers.get("Authorization", ""))

    async def list_pages(self, request: web.Request) -> web.Response:
        self._record(request)
        count = int(request.query.get("count", "100"))
        if self.batch_limit is not None:
            count = min(count, self.batch_limit)
        offset = int(request.query.get("offset", "0"))
        data = self.pages[offset : offset + count]
        return web.json_response({"data": data, "total": len(self.pages)})

    async def get_page(self, request: web.Request) -> web.Response:
        self._record(request)
        page_id = int(request.match_info["page_id"])
        if page_id in self.delays:
            await asyncio.sleep(self.delays[page_id])
        if page_id in self.gates:
            await self.gates[page_id].wait()
        if page_id in self.broken_pages:
            return web.json_response({"error": {"message": "boom"}}, status=500)
        if page_id in self.garbled_pages:
            return web.Response(text="<html>not json</html>", content_type="text/html")
        if page_id not in self.details:
            return web.json_response({"error": {"message": "not found"}}, status=404)
        return web.json_response(self.details[page_id])

    async def get_shelve(self, request: web.Request) -> web.Response:
        self._record(request)
        shelve_id = request.match_info["shelve_id"]
        if shelve_id not in self.shelves:
            return web.json_response({"error": {"message": "not found"}}, status=404)
        books = [{"id": b, "name": f"Book {b}"} for b in self.shelves[shelve_id]]
        return web.json_response({"id": int(shelve_id), "books": books})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/pages", self.list_pages)
        app.router.add_get("/api/pages/{page_id}", self.get_page)
        app.router.add_get("/api/shelves/{shelve_id}", self.get_shelve)
        return app


@pytest_asyncio.fixture
async def bookstack() -> AsyncIterator[FakeBookStack]:
    """Start a fake BookStack on a free port, yield it, ensure cleanup."""
    fake = FakeBookStack()
    runner = web.AppRunner(fake.app())
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    fake.url = f"http://{host}:{port}"
    try:
        yield fake
    finally:
        await runner.cleanup()


@pytest.fixture()
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture()
def make_instance(backup_dir: Path) -> Callable[..., InstanceConfig]:
    """
    Return a factory building a valid InstanceConfig.
    Keyword arguments override the defaults.
    """

    def factory(**overrides: Any) -> InstanceConfig:
        data: Dict[str, Any] = {
            "name": "wiki",
            "base_url": "http://127.0.0.1:9",
            "token_id": "tid",
            "token_secret": "tsecret",
            "backup_path": backup_dir,
            "schedule": "0 3 * * *",
            "target": {"type": "book", "ids": ["1"]},
        }
        data.update(overrides)
        return InstanceConfig(**data)

    return factory


def exported_files(root: Path) -> List[str]:
    """Relative POSIX paths of every file below *root*, sorted."""
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())

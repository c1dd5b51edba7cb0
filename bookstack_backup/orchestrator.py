# File: bookstack_backup/orchestrator.py
"""bookstack_backup.orchestrator: обход полка → книга → глава → страница и выгрузка в Markdown.

Ошибки изолируются на уровне страницы, главы, книги и полки; наружу выходит
только ошибка выбора цели (:class:`UnsupportedTargetError`).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional, Sequence

from bookstack_backup.client.api import BookStackAPI
from bookstack_backup.client.models import PageDetail, PageMeta
from bookstack_backup.config import BookTarget, InstanceConfig, ShelveTarget
from bookstack_backup.exceptions import FetchError, ResponseParseError, UnsupportedTargetError
from bookstack_backup.exporter.converter import html_to_markdown
from bookstack_backup.exporter.writer import (
    book_root,
    chapter_dir,
    page_filename,
    render_page,
    write_export,
)
from bookstack_backup.logger import for_instance

__all__ = [
    "CrawlReport",
    "CrawlOrchestrator",
    "crawl",
    "filter_book_pages",
    "group_by_chapter",
    "sort_pages",
]

_API_ERRORS = (FetchError, ResponseParseError)


@dataclass(slots=True)
class CrawlReport:
    """Итог одного обхода экземпляра."""

    instance: str
    books_crawled: int = 0
    books_failed: int = 0
    shelves_failed: int = 0
    chapters_skipped: int = 0
    pages_written: int = 0
    pages_failed: int = 0
    files: List[Path] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"books ok={self.books_crawled} failed={self.books_failed}, "
            f"shelves failed={self.shelves_failed}, chapters skipped={self.chapters_skipped}, "
            f"pages written={self.pages_written} failed={self.pages_failed}"
        )


def filter_book_pages(pages: Iterable[PageMeta], book_id: str) -> List[PageMeta]:
    """Страницы книги *book_id* в исходном порядке списка (точное сравнение id)."""
    wanted = str(book_id)
    return [p for p in pages if str(p.book_id) == wanted]


def group_by_chapter(pages: Iterable[PageMeta]) -> Dict[int, List[PageMeta]]:
    """Разбивает страницы по ``chapter_id``; порядок внутри группы сохраняется."""
    groups: Dict[int, List[PageMeta]] = {}
    for page in pages:
        groups.setdefault(page.chapter_id, []).append(page)
    return groups


def sort_pages(pages: Iterable[PageMeta]) -> List[PageMeta]:
    """Устойчивая сортировка по имени без учёта регистра."""
    return sorted(pages, key=lambda p: p.name.casefold())


class CrawlOrchestrator:
    """Выгружает цель одного экземпляра BookStack в дерево Markdown-файлов."""

    def __init__(
        self,
        instance: InstanceConfig,
        *,
        api_factory: Callable[[InstanceConfig], BookStackAPI] = BookStackAPI,
        converter: Callable[[str], str] = html_to_markdown,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.instance = instance
        self._api_factory = api_factory
        self._convert = converter
        self._today = today
        self.log = for_instance(instance.name)

    @property
    def name(self) -> str:
        return self.instance.name

    async def crawl(self) -> CrawlReport:
        """Полный обход цели. Бросает UnsupportedTargetError до любой сетевой или файловой работы."""
        target = self.instance.target
        if not isinstance(target, (BookTarget, ShelveTarget)):
            kind = getattr(target, "type", type(target).__name__)
            raise UnsupportedTargetError(f"unsupported target type: {kind}")

        report = CrawlReport(instance=self.name)
        day = self._today()
        self.log.info("Starting crawl of %s %s", target.type, ", ".join(target.ids))

        async with self._api_factory(self.instance) as api:
            if isinstance(target, BookTarget):
                for book_id in target.ids:
                    await self._crawl_book(api, book_id, day, report)
            else:
                for shelve_id in target.ids:
                    await self._crawl_shelve(api, shelve_id, day, report)

        self.log.info("Crawl complete: %s", report.summary())
        return report

    async def _crawl_shelve(
        self, api: BookStackAPI, shelve_id: str, day: date, report: CrawlReport
    ) -> None:
        self.log.info("Crawling shelve ID %s", shelve_id)
        try:
            book_ids = await api.shelve_book_ids(shelve_id)
        except _API_ERRORS as exc:
            self.log.error("Error crawling shelve ID %s: %s", shelve_id, exc)
            report.shelves_failed += 1
            return

        for book_id in book_ids:
            await self._crawl_book(api, book_id, day, report, shelve_id=shelve_id)
        self.log.info("Shelve %s crawl complete (%d books)", shelve_id, len(book_ids))

    async def _crawl_book(
        self,
        api: BookStackAPI,
        book_id: str,
        day: date,
        report: CrawlReport,
        shelve_id: Optional[str] = None,
    ) -> None:
        self.log.info("Crawling book ID %s", book_id)
        try:
            pages = filter_book_pages(await api.list_pages(), book_id)
        except _API_ERRORS as exc:
            self.log.error("Error crawling book ID %s: %s", book_id, exc)
            report.books_failed += 1
            return

        root = book_root(self.instance.backup_path, day, book_id, shelve_id)
        self.log.debug("Creating root directory: %s", root)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.log.error("Cannot create root directory %s: %s", root, exc)
            report.books_failed += 1
            return

        for chapter_id, chapter_pages in group_by_chapter(pages).items():
            await self._export_chapter(api, root, chapter_id, chapter_pages, report)

        report.books_crawled += 1
        self.log.info("Book %s crawl complete (%d pages listed)", book_id, len(pages))

    async def _export_chapter(
        self,
        api: BookStackAPI,
        root: Path,
        chapter_id: int,
        pages: Sequence[PageMeta],
        report: CrawlReport,
    ) -> None:
        directory = chapter_dir(root, chapter_id)
        self.log.debug("Creating chapter directory: %s", directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self.log.error("Cannot create chapter directory %s: %s", directory, exc)
            report.chapters_skipped += 1
            return

        # numbering follows the sort; pages that failed to fetch do not take a number
        number = 0
        async for detail in self._fetch_details(api, sort_pages(pages), report):
            if detail is None:
                continue
            number += 1
            self._export_page(detail, directory, number, report)

    async def _fetch_details(
        self, api: BookStackAPI, pages: Sequence[PageMeta], report: CrawlReport
    ) -> AsyncIterator[Optional[PageDetail]]:
        """
        Yield page details in the order of *pages*, each as soon as it and every
        page before it have resolved; ``None`` marks a failed fetch.

        With ``concurrency=1`` pages are fetched one by one; otherwise up to
        ``concurrency`` requests run ahead of the page being written.
        """
        if self.instance.concurrency == 1:
            for meta in pages:
                yield await self._fetch_one(api, meta, report)
            return

        semaphore = asyncio.Semaphore(self.instance.concurrency)

        async def bounded(meta: PageMeta) -> Optional[PageDetail]:
            async with semaphore:
                return await self._fetch_one(api, meta, report)

        tasks = [asyncio.create_task(bounded(meta)) for meta in pages]
        try:
            for task in tasks:
                yield await task
        finally:
            for task in tasks:
                task.cancel()

    async def _fetch_one(
        self, api: BookStackAPI, meta: PageMeta, report: CrawlReport
    ) -> Optional[PageDetail]:
        try:
            return await api.page(meta.id)
        except _API_ERRORS as exc:
            self.log.error("Error processing page %d: %s", meta.id, exc)
            report.pages_failed += 1
            return None

    def _export_page(
        self, detail: PageDetail, directory: Path, number: int, report: CrawlReport
    ) -> None:
        path = directory / page_filename(number, detail.name)
        content = render_page(detail.name, self._convert(detail.html))
        try:
            write_export(path, content)
        except OSError as exc:
            self.log.error("Error writing page %d to %s: %s", detail.id, path, exc)
            report.pages_failed += 1
            return
        report.pages_written += 1
        report.files.append(path)


async def crawl(instance: InstanceConfig) -> CrawlReport:
    """Обёртка для однократного обхода экземпляра с настройками по умолчанию."""
    return await CrawlOrchestrator(instance).crawl()

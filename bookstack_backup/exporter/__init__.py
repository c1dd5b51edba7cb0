# File: bookstack_backup/exporter/__init__.py
"""bookstack_backup.exporter: конвертация HTML в Markdown и запись файлов бэкапа."""

from bookstack_backup.exporter.converter import html_to_markdown
from bookstack_backup.exporter.writer import (
    book_root,
    chapter_dir,
    page_filename,
    render_page,
    sanitize_filename,
    write_export,
)

__all__ = [
    "html_to_markdown",
    "book_root",
    "chapter_dir",
    "page_filename",
    "render_page",
    "sanitize_filename",
    "write_export",
]

# File: bookstack_backup/exporter/writer.py
"""bookstack_backup.exporter.writer: раскладка файлов бэкапа и запись Markdown на диск.

Структура каталога::

    <backup_path>/<YYYY-MM-DD>/[shelve_<id>/]book_<id>/Kapitel_<id>/<NN>_<name>.md
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Optional, Union

__all__ = [
    "sanitize_filename",
    "page_filename",
    "book_root",
    "chapter_dir",
    "render_page",
    "write_export",
]

_UNSAFE_RE = re.compile(r"[^0-9A-Za-zÄäÖöÜüß \-_]")


def sanitize_filename(name: str) -> str:
    """Заменяет каждый недопустимый символ на ``_`` (без схлопывания повторов)."""
    return _UNSAFE_RE.sub("_", name)


def page_filename(number: int, name: str) -> str:
    """Имя файла страницы: двузначный 1-based номер, ``_`` и очищенное имя."""
    return f"{number:02d}_{sanitize_filename(name)}.md"


def book_root(
    backup_path: Union[str, Path],
    day: date,
    book_id: str,
    shelve_id: Optional[str] = None,
) -> Path:
    """Корневой каталог книги; сегмент полки есть только при обходе через полку."""
    root = Path(backup_path) / day.isoformat()
    if shelve_id is not None:
        root /= f"shelve_{shelve_id}"
    return root / f"book_{book_id}"


def chapter_dir(root: Path, chapter_id: int) -> Path:
    return root / f"Kapitel_{chapter_id}"


def render_page(name: str, markdown: str) -> str:
    """Заголовок первого уровня, пустая строка, тело страницы."""
    return f"# {name}\n\n{markdown}"


def write_export(path: Union[str, Path], content: str) -> Path:
    """Создаёт недостающие каталоги и (пере)записывает файл в UTF-8."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p

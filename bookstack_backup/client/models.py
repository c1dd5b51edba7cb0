# bookstack_backup/client/models.py
"""
Records returned by the BookStack REST API.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from bookstack_backup.exceptions import ResponseParseError

#: chapter id used for pages that live directly in a book
NO_CHAPTER = 0


def _int_field(record: Mapping[str, Any], key: str, default: int | None = None) -> int:
    value = record.get(key, default)
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ResponseParseError(f"field {key!r} is not an integer: {value!r}")
    try:
        return int(value)
    except ValueError as exc:
        raise ResponseParseError(f"field {key!r} is not an integer: {value!r}") from exc


def _str_field(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ResponseParseError(f"field {key!r} is not a string: {value!r}")
    return value


@dataclass(slots=True, frozen=True)
class PageMeta:
    """Listing entry of a page: enough to filter, group and sort it."""

    id: int
    name: str
    book_id: int
    chapter_id: int = NO_CHAPTER

    @classmethod
    def from_json(cls, record: Any) -> PageMeta:
        if not isinstance(record, Mapping):
            raise ResponseParseError(f"page listing entry is not an object: {record!r}")
        if "id" not in record or "book_id" not in record:
            raise ResponseParseError(f"page listing entry without id/book_id: {record!r}")
        return cls(
            id=_int_field(record, "id"),
            name=_str_field(record, "name"),
            book_id=_int_field(record, "book_id"),
            chapter_id=_int_field(record, "chapter_id", NO_CHAPTER),
        )


@dataclass(slots=True, frozen=True)
class PageDetail:
    """Full page record including the rendered HTML body."""

    id: int
    name: str
    html: str

    @classmethod
    def from_json(cls, record: Any) -> PageDetail:
        if not isinstance(record, Mapping) or "id" not in record:
            raise ResponseParseError("page detail is not an object with an id")
        return cls(
            id=_int_field(record, "id"),
            name=_str_field(record, "name"),
            html=_str_field(record, "html"),
        )

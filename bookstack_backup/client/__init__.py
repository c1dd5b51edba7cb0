# bookstack_backup/client/__init__.py
"""HTTP access to a BookStack instance."""

from bookstack_backup.client.api import BookStackAPI
from bookstack_backup.client.fetcher import Fetcher, auth_headers
from bookstack_backup.client.models import NO_CHAPTER, PageDetail, PageMeta

__all__ = ["BookStackAPI", "Fetcher", "auth_headers", "NO_CHAPTER", "PageDetail", "PageMeta"]

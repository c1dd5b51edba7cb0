"""Exception hierarchy shared by the client, the crawl pipeline and the scheduler."""

from __future__ import annotations


class BackupError(RuntimeError):
    """Base class for every error raised by bookstack_backup."""


class FetchError(BackupError):
    """An HTTP request failed: transport error, timeout or an error status."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"GET {url} failed: {reason}")


class ResponseParseError(BackupError):
    """The upstream answered, but the body is not the JSON record we expected."""


class UnsupportedTargetError(BackupError):
    """The instance target is neither a book nor a shelve target."""


class SchedulerSetupError(BackupError):
    """A job could not be registered, e.g. because of a malformed cron expression."""

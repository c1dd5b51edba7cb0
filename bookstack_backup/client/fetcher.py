# bookstack_backup/client/fetcher.py
"""
Fetcher module: authenticated GET requests against one BookStack instance.
"""
from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from bookstack_backup.config import InstanceConfig
from bookstack_backup.exceptions import FetchError
from bookstack_backup.logger import for_instance


def auth_headers(instance: InstanceConfig) -> dict[str, str]:
    """Token header in the ``Token <id>:<secret>`` form BookStack expects."""
    secret = instance.token_secret.get_secret_value()
    return {"Authorization": f"Token {instance.token_id}:{secret}"}


def open_session(instance: InstanceConfig) -> ClientSession:
    """Create a session carrying the instance credentials and request timeout."""
    return ClientSession(
        timeout=ClientTimeout(total=instance.timeout),
        headers={**auth_headers(instance), "Accept": "application/json"},
        raise_for_status=False,
    )


class Fetcher:
    """Returns raw response bodies; every failure surfaces as :class:`FetchError`."""

    def __init__(self, session: ClientSession, instance: InstanceConfig) -> None:
        self.session = session
        self.instance = instance
        self.log = for_instance(instance.name)

    async def fetch(self, url: str, params: Optional[Mapping[str, str]] = None) -> bytes:
        """
        GET *url* and return the body.

        No retries: a failed request is reported once and the caller decides
        which unit of work to skip.
        """
        self.log.debug("GET %s %s", url, dict(params or {}))
        try:
            async with self.session.get(url, params=params) as resp:
                if resp.status >= 400:
                    raise FetchError(url, f"HTTP {resp.status}", resp.status)
                return await resp.read()
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"no response within {self.instance.timeout}s") from exc
        except ClientError as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc

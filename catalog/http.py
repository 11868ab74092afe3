"""Outbound HTTP shared by the token scraper, catalog client and manifest resolver."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable

import requests

from catalog.types import FetchError
from config.settings import HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

Fetcher = Callable[..., Awaitable[requests.Response]]

_SESSION: requests.Session | None = None
_SESSION_LOCK = threading.Lock()


def get_session() -> requests.Session:
    global _SESSION
    if _SESSION is not None:
        return _SESSION
    with _SESSION_LOCK:
        if _SESSION is None:
            _SESSION = requests.Session()
    return _SESSION


def _get(url: str, params: dict[str, Any] | None, headers: dict[str, str], timeout: float) -> requests.Response:
    return get_session().get(url, params=params, headers=headers, timeout=timeout)


async def fetch(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = HTTP_TIMEOUT_SECONDS,
) -> requests.Response:
    """GET ``url`` off the event loop; transport failures become ``FetchError``."""
    try:
        return await asyncio.to_thread(_get, url, params, headers or {}, timeout)
    except requests.RequestException as exc:
        logger.info("[HTTP] request=%s status=error error=%s", url, exc.__class__.__name__)
        raise FetchError(f"Request failed: {exc.__class__.__name__}") from exc


def is_success(response) -> bool:
    return 200 <= int(response.status_code) < 300

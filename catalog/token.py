"""Developer-token lifecycle for the Apple Music catalog.

There is no public issuance endpoint, so the token is scraped from the web
player's JavaScript bundle and cached for ``TOKEN_TTL_SECONDS``.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any

from catalog import http
from catalog.cache import CacheStore
from catalog.types import Credential, FetchError, ParseError
from config.settings import (
    BROWSE_PAGE_URL,
    BROWSER_USER_AGENT,
    TOKEN_CACHE_KEY,
    TOKEN_TTL_SECONDS,
    WEB_ORIGIN,
)

logger = logging.getLogger(__name__)

_ASSET_PATH_RE = re.compile(r"/assets/index[~-][a-zA-Z0-9]+\.js")
# Base64 of '{"alg":"ES256","typ":"JWT","kid":'
_SIGNED_TOKEN_RE = re.compile(r'"(eyJhbGciOiJFUzI1NiIsInR5cCI6IkpXVCIsImtpZCI6[^"]+)"')
_GENERIC_JWT_RE = re.compile(r'"(eyJ[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{20,})"')


def extract_asset_path(html: str) -> str:
    match = _ASSET_PATH_RE.search(html or "")
    if not match:
        raise ParseError("no asset path")
    return match.group(0)


def extract_token(script: str) -> str:
    """Return the bearer token embedded in the bundle, preferring the ES256 signature."""
    for pattern in (_SIGNED_TOKEN_RE, _GENERIC_JWT_RE):
        match = pattern.search(script or "")
        if match:
            return match.group(1)
    raise ParseError("no token")


class CredentialProvider:
    def __init__(
        self,
        cache: CacheStore,
        *,
        fetch: http.Fetcher = http.fetch,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        cache_key: str = TOKEN_CACHE_KEY,
        clock=time.time,
    ) -> None:
        self._cache = cache
        self._fetch = fetch
        self._ttl_seconds = ttl_seconds
        self._cache_key = cache_key
        self._clock = clock
        self._refresh_lock = asyncio.Lock()

    def _cached(self) -> Credential | None:
        row: Any = self._cache.get(self._cache_key)
        if not isinstance(row, dict) or not row.get("token"):
            return None
        expires_at = float(row.get("expires_at") or 0.0)
        if expires_at <= self._clock():
            return None
        return Credential(token=str(row["token"]), expires_at=expires_at)

    async def get(self) -> Credential:
        cached = self._cached()
        if cached is not None:
            return cached
        # Requests that miss together wait for one scrape instead of each running their own.
        async with self._refresh_lock:
            cached = self._cached()
            if cached is not None:
                logger.debug("[TOKEN] cache=hit after waiting for refresh")
                return cached
            token = await self._scrape()
            credential = Credential(token=token, expires_at=self._clock() + self._ttl_seconds)
            self._cache.set(
                self._cache_key,
                {"token": credential.token, "expires_at": credential.expires_at},
                self._ttl_seconds,
            )
            logger.info("[TOKEN] scrape ok cache=miss token=%s", credential.redacted())
            return credential

    def invalidate(self) -> None:
        self._cache.delete(self._cache_key)
        logger.info("[TOKEN] invalidated")

    async def _scrape(self) -> str:
        browse = await self._fetch(
            BROWSE_PAGE_URL,
            headers={
                "User-Agent": BROWSER_USER_AGENT,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
        )
        if not http.is_success(browse):
            raise FetchError(f"Failed to fetch Apple Music browse page: {browse.status_code}", browse.status_code)

        asset_url = f"{WEB_ORIGIN}{extract_asset_path(browse.text)}"
        logger.debug("[TOKEN] bundle=%s", asset_url)

        bundle = await self._fetch(asset_url, headers={"User-Agent": BROWSER_USER_AGENT})
        if not http.is_success(bundle):
            raise FetchError(f"Failed to fetch JS bundle: {bundle.status_code}", bundle.status_code)

        return extract_token(bundle.text)

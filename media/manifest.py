"""Resolve an HLS animated-artwork manifest to a directly playable segment URL.

Master playlists list ``#EXT-X-STREAM-INF`` variants; the highest bandwidth
variant's media playlist is fetched and its first segment returned. A playlist
without variants is treated as the media playlist itself.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

from catalog import http
from catalog.types import ArtworkError, StreamVariant
from config.settings import BROWSER_USER_AGENT

logger = logging.getLogger(__name__)

_STREAM_INF_PREFIX = "#EXT-X-STREAM-INF:"
_BANDWIDTH_RE = re.compile(r"[:,]BANDWIDTH=(\d+)")
_SEGMENT_EXTENSIONS = (".ts", ".mp4", ".m4s")


def base_url(url: str) -> str:
    idx = url.rfind("/")
    return url[: idx + 1] if idx != -1 else url


def resolve_url(path: str, base: str) -> str:
    if path.startswith(("http://", "https://")):
        return path
    if path.startswith("//"):
        return f"https:{path}"
    if path.startswith("/"):
        parts = urlsplit(base)
        return f"{parts.scheme}://{parts.netloc}{path}"
    return base + path


def parse_stream_variants(content: str, base: str) -> list[StreamVariant]:
    """Each tag with a bandwidth pairs with the next URI line after it.

    Two tags in a row both resolve to the same following URI.
    """
    lines = [line.strip() for line in content.splitlines()]
    variants: list[StreamVariant] = []
    for idx, line in enumerate(lines):
        if not line.startswith(_STREAM_INF_PREFIX):
            continue
        match = _BANDWIDTH_RE.search(line)
        if not match:
            continue
        uri = next((candidate for candidate in lines[idx + 1 :] if candidate and not candidate.startswith("#")), None)
        if uri is not None:
            variants.append(StreamVariant(bandwidth=int(match.group(1)), url=resolve_url(uri, base)))
    return variants


def select_variant(variants: list[StreamVariant]) -> StreamVariant | None:
    best = None
    for variant in variants:
        # Strict comparison keeps the first of equal bandwidths.
        if best is None or variant.bandwidth > best.bandwidth:
            best = variant
    return best


def extract_first_segment(content: str, base: str) -> str | None:
    for line in content.splitlines():
        uri = line.strip()
        if not uri or uri.startswith("#"):
            continue
        if uri.split("?", 1)[0].endswith(_SEGMENT_EXTENSIONS) or "." in uri:
            return resolve_url(uri, base)
    return None


class ManifestResolver:
    def __init__(self, *, fetch: http.Fetcher = http.fetch) -> None:
        self._fetch = fetch

    async def _fetch_text(self, url: str) -> str | None:
        try:
            response = await self._fetch(url, headers={"User-Agent": BROWSER_USER_AGENT})
        except ArtworkError as exc:
            logger.warning("[MANIFEST] fetch failed url=%s error=%s", url, exc.message)
            return None
        if not http.is_success(response):
            logger.warning("[MANIFEST] fetch failed url=%s status=%s", url, response.status_code)
            return None
        return response.text

    async def resolve(self, manifest_url: str) -> str | None:
        """Return the first media segment URL, or ``None`` on any failure."""
        try:
            return await self._resolve(manifest_url)
        except Exception:
            logger.exception("[MANIFEST] unexpected error resolving %s", manifest_url)
            return None

    async def _resolve(self, manifest_url: str) -> str | None:
        content = await self._fetch_text(manifest_url)
        if content is None:
            return None

        variants = parse_stream_variants(content, base_url(manifest_url))
        best = select_variant(variants)
        if best is None:
            logger.info("[MANIFEST] variants=0 treating as media playlist url=%s", manifest_url)
            return extract_first_segment(content, base_url(manifest_url))

        logger.info("[MANIFEST] variants=%d selected_bandwidth=%d", len(variants), best.bandwidth)
        media_content = await self._fetch_text(best.url)
        if media_content is None:
            return None
        segment = extract_first_segment(media_content, base_url(best.url))
        if segment is None:
            logger.warning("[MANIFEST] no segment in media playlist url=%s", best.url)
        return segment

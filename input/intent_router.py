"""Routing of caller parameters to an album resolution strategy."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from catalog.types import SearchQuery, UserError
from config.settings import DEFAULT_STOREFRONT

MISSING_PARAMETERS_MESSAGE = "Missing parameters. Use: ?s=song&a=artist, ?id=albumId, or ?url=appleMusicUrl"
INVALID_URL_MESSAGE = "Invalid Apple Music URL"

# /album/<slug>/<id>, /album/<id>, optionally followed by ?i=<track>
_ALBUM_PATH_RE = re.compile(r"/album/(?:[^/?#]+/)?(\d+)")


class IntentType(Enum):
    ALBUM_ID = "album_id"
    SOURCE_URL = "source_url"
    SEARCH = "search"


@dataclass(frozen=True)
class ArtworkRequest:
    song: str | None = None
    artist: str | None = None
    album_id: str | None = None
    source_url: str | None = None
    album_name: str | None = None
    duration_ms: int | None = None
    storefront: str = DEFAULT_STOREFRONT


@dataclass(frozen=True)
class Intent:
    type: IntentType
    album_id: str | None = None
    query: SearchQuery | None = None


def parse_album_id_from_url(url: str) -> Optional[str]:
    """Extract the numeric album id from an Apple Music album URL.

    >>> parse_album_id_from_url("https://music.apple.com/us/album/some-name/1440650428?i=999")
    '1440650428'
    """
    match = _ALBUM_PATH_RE.search(url or "")
    return match.group(1) if match else None


def detect_intent(request: ArtworkRequest) -> Intent:
    """Pick the strategy for ``request`` without network calls.

    Priority: explicit album id, then source URL, then song + artist search.
    """
    album_id = _clean(request.album_id)
    if album_id:
        return Intent(type=IntentType.ALBUM_ID, album_id=album_id)

    source_url = _clean(request.source_url)
    if source_url:
        parsed = parse_album_id_from_url(source_url)
        if not parsed:
            raise UserError(INVALID_URL_MESSAGE)
        return Intent(type=IntentType.SOURCE_URL, album_id=parsed)

    song = _clean(request.song)
    artist = _clean(request.artist)
    if song and artist:
        query = SearchQuery(
            song=song,
            artist=artist,
            album=_clean(request.album_name),
            duration_ms=request.duration_ms,
            storefront=_clean(request.storefront) or DEFAULT_STOREFRONT,
        )
        return Intent(type=IntentType.SEARCH, query=query)

    raise UserError(MISSING_PARAMETERS_MESSAGE)


def _clean(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None

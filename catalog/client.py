"""Apple Music catalog client for song search and album artwork lookups."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any

from pydantic import ValidationError

from catalog import http
from catalog.types import (
    AlbumArtwork,
    AlbumResource,
    AlbumResponse,
    CandidateTrack,
    Credential,
    FetchError,
    MatchResult,
    Outcome,
    ParseError,
    SearchQuery,
    SearchResponse,
    SongResource,
)
from config.settings import ARTWORK_SIZE_PX, CATALOG_API_BASE, SEARCH_LIMIT, WEB_ORIGIN
from engine.search_scoring import filter_by_duration, select_best_candidate
from input.intent_router import parse_album_id_from_url

logger = logging.getLogger(__name__)


def candidate_from_song(song: SongResource) -> CandidateTrack | None:
    """Flatten a search hit; hits with no resolvable album id are dropped."""
    album_id = None
    relationships = song.relationships
    if relationships and relationships.albums and relationships.albums.data:
        album_id = relationships.albums.data[0].id
    if not album_id:
        album_id = parse_album_id_from_url(song.attributes.url)
    if not album_id:
        return None
    attrs = song.attributes
    return CandidateTrack(
        name=attrs.name,
        artist=attrs.artist_name,
        album=attrs.album_name,
        duration_ms=attrs.duration_in_millis,
        album_id=album_id,
        raw=song.model_dump(by_alias=True),
    )


def resolve_artwork_template(template: str, size_px: int = ARTWORK_SIZE_PX) -> str:
    return template.replace("{w}", str(size_px)).replace("{h}", str(size_px))


def album_artwork_from_resource(album: AlbumResource) -> AlbumArtwork:
    attrs = album.attributes
    animated_url = None
    video = attrs.editorial_video
    if video is not None:
        for asset in (video.motion_detail_square, video.motion_square_video_1x1):
            if asset is not None and asset.video:
                animated_url = asset.video
                break
    return AlbumArtwork(
        name=attrs.name,
        artist=attrs.artist_name,
        album_id=album.id,
        static_url=resolve_artwork_template(attrs.artwork.url),
        animated_url=animated_url,
    )


class CatalogClient:
    def __init__(self, *, fetch: http.Fetcher = http.fetch, api_base: str = CATALOG_API_BASE) -> None:
        self._fetch = fetch
        self.api_base = api_base.rstrip("/")

    def _headers(self, credential: Credential) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential.token}",
            "Origin": WEB_ORIGIN,
            "Referer": f"{WEB_ORIGIN}/",
        }

    async def search(self, query: SearchQuery, credential: Credential) -> Outcome[MatchResult]:
        storefront = urllib.parse.quote(query.storefront, safe="")
        response = await self._fetch(
            f"{self.api_base}/catalog/{storefront}/search",
            params={"term": query.term, "types": "songs", "limit": SEARCH_LIMIT},
            headers=self._headers(credential),
        )
        logger.info("[CATALOG] request=search status=%s term=%r", response.status_code, query.term)
        if response.status_code == 401:
            return Outcome.auth_expired()
        if not http.is_success(response):
            raise FetchError(f"Search failed: {response.status_code}", response.status_code)

        payload = _parse(SearchResponse, response, "search")
        songs = payload.results.songs.data if payload.results.songs else []
        candidates = [c for c in (candidate_from_song(song) for song in songs) if c is not None]
        candidates = filter_by_duration(candidates, query.duration_ms)
        best = select_best_candidate(candidates, query)
        if best is None:
            logger.info("[CATALOG] search candidates=%d match=none", len(candidates))
        else:
            logger.info(
                "[CATALOG] search candidates=%d match=%r album_id=%s score=%.3f",
                len(candidates),
                best.track.name,
                best.track.album_id,
                best.score,
            )
        return Outcome.ok(best)

    async def fetch_album(self, album_id: str, storefront: str, credential: Credential) -> Outcome[AlbumArtwork]:
        url = "{base}/catalog/{storefront}/albums/{album_id}".format(
            base=self.api_base,
            storefront=urllib.parse.quote(storefront, safe=""),
            album_id=urllib.parse.quote(album_id, safe=""),
        )
        response = await self._fetch(
            url,
            params={"extend": "editorialVideo"},
            headers=self._headers(credential),
        )
        logger.info("[CATALOG] request=album status=%s album_id=%s", response.status_code, album_id)
        if response.status_code == 401:
            return Outcome.auth_expired()
        if response.status_code == 404:
            return Outcome.not_found()
        if not http.is_success(response):
            raise FetchError(f"Album fetch failed: {response.status_code}", response.status_code)

        payload = _parse(AlbumResponse, response, "album")
        if not payload.data:
            return Outcome.not_found()
        return Outcome.ok(album_artwork_from_resource(payload.data[0]))


def _parse(model, response, label: str) -> Any:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        logger.warning("[CATALOG] request=%s unexpected payload: %s", label, exc)
        raise ParseError(f"Unexpected {label} response") from exc

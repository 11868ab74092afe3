"""Album artwork resolution: input routing, catalog lookups and video resolution."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from catalog.cache import CacheStore, build_cache
from catalog.client import CatalogClient
from catalog.types import (
    AlbumArtwork,
    ArtworkResult,
    AuthExpiredError,
    Credential,
    CredentialError,
    FetchError,
    NotFoundError,
    Outcome,
    OutcomeKind,
    ParseError,
    UserError,
)
from catalog.token import CredentialProvider
from config.settings import DEFAULT_STOREFRONT
from input.intent_router import MISSING_PARAMETERS_MESSAGE, ArtworkRequest, detect_intent
from media.manifest import ManifestResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_MATCH_MESSAGE = "No matching tracks found"
ALBUM_NOT_FOUND_MESSAGE = "Album not found"
AUTH_FAILED_MESSAGE = "Failed to authenticate with Apple Music"


class ArtworkResolver:
    def __init__(
        self,
        credentials: CredentialProvider,
        catalog: CatalogClient,
        manifests: ManifestResolver,
    ) -> None:
        self.credentials = credentials
        self.catalog = catalog
        self.manifests = manifests

    async def _credential(self) -> Credential:
        try:
            return await self.credentials.get()
        except (FetchError, ParseError) as exc:
            logger.error("[RESOLVER] token scrape failed: %s", exc.message)
            raise CredentialError(AUTH_FAILED_MESSAGE) from exc

    async def _with_credential(self, call: Callable[[Credential], Awaitable[Outcome[T]]]) -> Outcome[T]:
        """Run ``call``; on an expired credential refresh it and retry exactly once."""
        outcome = await call(await self._credential())
        if outcome.kind is not OutcomeKind.AUTH_EXPIRED:
            return outcome

        logger.info("[RESOLVER] credential rejected; refreshing and retrying once")
        self.credentials.invalidate()
        outcome = await call(await self._credential())
        if outcome.kind is OutcomeKind.AUTH_EXPIRED:
            raise AuthExpiredError("Apple Music rejected a freshly scraped token")
        return outcome

    async def resolve(self, request: ArtworkRequest) -> ArtworkResult:
        intent = detect_intent(request)
        track_name = None
        track_artist = None

        query = intent.query
        if query is not None:
            outcome = await self._with_credential(lambda credential: self.catalog.search(query, credential))
            match = outcome.value
            if match is None:
                raise UserError(NO_MATCH_MESSAGE)
            album_id = match.track.album_id
            track_name = match.track.name
            track_artist = match.track.artist
            storefront = query.storefront
        elif intent.album_id:
            album_id = intent.album_id
            storefront = request.storefront or DEFAULT_STOREFRONT
        else:
            raise UserError(MISSING_PARAMETERS_MESSAGE)

        logger.info("[RESOLVER] route=%s album_id=%s storefront=%s", intent.type.value, album_id, storefront)
        album_outcome = await self._with_credential(
            lambda credential: self.catalog.fetch_album(album_id, storefront, credential)
        )
        album: AlbumArtwork | None = album_outcome.value
        if album_outcome.kind is OutcomeKind.NOT_FOUND or album is None:
            raise NotFoundError(ALBUM_NOT_FOUND_MESSAGE)

        video_url = None
        if album.animated_url:
            video_url = await self.manifests.resolve(album.animated_url)

        return ArtworkResult(
            name=track_name or album.name,
            artist=track_artist or album.artist,
            album_id=album.album_id,
            static_url=album.static_url,
            animated_url=album.animated_url,
            video_url=video_url,
        )


def build_artwork_resolver(cache: CacheStore | None = None) -> ArtworkResolver:
    return ArtworkResolver(
        credentials=CredentialProvider(cache if cache is not None else build_cache()),
        catalog=CatalogClient(),
        manifests=ManifestResolver(),
    )

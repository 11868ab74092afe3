"""Value types, upstream response schemas and error taxonomy for artwork resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from config.settings import DEFAULT_STOREFRONT

T = TypeVar("T")


class ArtworkError(Exception):
    """Base class for failures surfaced to the caller as a single message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchError(ArtworkError):
    """Non-2xx upstream response or transport failure."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ParseError(ArtworkError):
    """Expected pattern absent in scraped text."""


class UserError(ArtworkError):
    """Malformed or insufficient caller input."""


class NotFoundError(ArtworkError):
    """Resolution finished without a usable album."""


class AuthExpiredError(ArtworkError):
    """Upstream kept rejecting the credential after a refresh."""


class CredentialError(ArtworkError):
    """The bearer token could not be scraped."""


class OutcomeKind(Enum):
    OK = "ok"
    AUTH_EXPIRED = "auth_expired"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an authenticated catalog call.

    ``value`` is only meaningful for ``OK``; it may still be ``None`` when the
    call succeeded but produced no usable match.
    """

    kind: OutcomeKind
    value: Optional[T] = None

    @classmethod
    def ok(cls, value: Optional[T]) -> "Outcome[T]":
        return cls(OutcomeKind.OK, value)

    @classmethod
    def auth_expired(cls) -> "Outcome[T]":
        return cls(OutcomeKind.AUTH_EXPIRED)

    @classmethod
    def not_found(cls) -> "Outcome[T]":
        return cls(OutcomeKind.NOT_FOUND)


@dataclass(frozen=True)
class Credential:
    token: str
    expires_at: float  # epoch seconds

    def redacted(self) -> str:
        return f"{self.token[:12]}..." if len(self.token) > 12 else "***"


@dataclass(frozen=True)
class SearchQuery:
    song: str
    artist: str
    album: str | None = None
    duration_ms: int | None = None
    storefront: str = DEFAULT_STOREFRONT

    @property
    def term(self) -> str:
        return f"{self.song} {self.artist}".strip()


@dataclass(frozen=True)
class CandidateTrack:
    name: str
    artist: str
    album: str
    duration_ms: int | None
    album_id: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class MatchResult:
    track: CandidateTrack
    score: float


@dataclass(frozen=True)
class AlbumArtwork:
    name: str
    artist: str
    album_id: str
    static_url: str
    animated_url: str | None = None


@dataclass(frozen=True)
class StreamVariant:
    bandwidth: int
    url: str


@dataclass(frozen=True)
class ArtworkResult:
    name: str
    artist: str
    album_id: str
    static_url: str
    animated_url: str | None
    video_url: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "artist": self.artist,
            "albumId": self.album_id,
            "static": self.static_url,
            "animated": self.animated_url,
            "videoUrl": self.video_url,
        }


# Upstream catalog payloads. Only the fields read by the resolver are declared;
# everything optional upstream is optional here.


class _CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ArtworkTemplate(_CatalogModel):
    url: str
    width: int | None = None
    height: int | None = None


class ResourceRef(_CatalogModel):
    id: str
    type: str | None = None


class ResourceList(_CatalogModel):
    data: list[ResourceRef] = Field(default_factory=list)


class SongRelationships(_CatalogModel):
    albums: ResourceList | None = None


class SongAttributes(_CatalogModel):
    name: str
    artist_name: str = Field(alias="artistName")
    album_name: str = Field(default="", alias="albumName")
    url: str = ""
    duration_in_millis: int | None = Field(default=None, alias="durationInMillis")
    artwork: ArtworkTemplate | None = None


class SongResource(_CatalogModel):
    id: str
    type: str | None = None
    attributes: SongAttributes
    relationships: SongRelationships | None = None


class SongResults(_CatalogModel):
    data: list[SongResource] = Field(default_factory=list)


class SearchResults(_CatalogModel):
    songs: SongResults | None = None


class SearchResponse(_CatalogModel):
    results: SearchResults = Field(default_factory=SearchResults)


class VideoAsset(_CatalogModel):
    video: str | None = None


class EditorialVideo(_CatalogModel):
    motion_detail_square: VideoAsset | None = Field(default=None, alias="motionDetailSquare")
    motion_square_video_1x1: VideoAsset | None = Field(default=None, alias="motionSquareVideo1x1")


class AlbumAttributes(_CatalogModel):
    name: str
    artist_name: str = Field(alias="artistName")
    artwork: ArtworkTemplate
    editorial_video: EditorialVideo | None = Field(default=None, alias="editorialVideo")


class AlbumResource(_CatalogModel):
    id: str
    type: str | None = None
    attributes: AlbumAttributes


class AlbumResponse(_CatalogModel):
    data: list[AlbumResource] = Field(default_factory=list)

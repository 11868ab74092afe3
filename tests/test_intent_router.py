from __future__ import annotations

import pytest

from catalog.types import UserError
from input.intent_router import (
    INVALID_URL_MESSAGE,
    MISSING_PARAMETERS_MESSAGE,
    ArtworkRequest,
    IntentType,
    detect_intent,
    parse_album_id_from_url,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://x/us/album/some-name/1440650428",
        "https://x/us/album/1440650428",
        "https://x/album/some-name/1440650428?i=999",
        "https://music.apple.com/gb/album/1989-taylors-version/1440650428",
    ],
)
def test_parse_album_id_from_url(url) -> None:
    assert parse_album_id_from_url(url) == "1440650428"


@pytest.mark.parametrize(
    "url",
    [
        "https://x/us/album/some-name",
        "https://x/us/playlist/pl.123",
        "",
    ],
)
def test_parse_album_id_from_url_without_numeric_segment(url) -> None:
    assert parse_album_id_from_url(url) is None


def test_album_id_wins_over_url_and_search() -> None:
    intent = detect_intent(
        ArtworkRequest(
            album_id=" 123 ",
            source_url="https://x/us/album/name/456",
            song="Song",
            artist="Artist",
        )
    )
    assert intent.type == IntentType.ALBUM_ID
    assert intent.album_id == "123"
    assert intent.query is None


def test_url_wins_over_search() -> None:
    intent = detect_intent(ArtworkRequest(source_url="https://x/us/album/name/456", song="Song", artist="Artist"))
    assert intent.type == IntentType.SOURCE_URL
    assert intent.album_id == "456"


def test_invalid_url_is_a_user_error() -> None:
    with pytest.raises(UserError) as excinfo:
        detect_intent(ArtworkRequest(source_url="https://x/us/artist/queen/3296287", song="Song", artist="Artist"))
    assert excinfo.value.message == INVALID_URL_MESSAGE


def test_search_builds_query() -> None:
    intent = detect_intent(
        ArtworkRequest(song="Song", artist="Artist", album_name="Album", duration_ms=180000, storefront="gb")
    )
    assert intent.type == IntentType.SEARCH
    assert intent.query.song == "Song"
    assert intent.query.artist == "Artist"
    assert intent.query.album == "Album"
    assert intent.query.duration_ms == 180000
    assert intent.query.storefront == "gb"
    assert intent.query.term == "Song Artist"


@pytest.mark.parametrize(
    "request_",
    [
        ArtworkRequest(),
        ArtworkRequest(song="Song"),
        ArtworkRequest(artist="Artist"),
        ArtworkRequest(song="  ", artist="Artist"),
    ],
)
def test_missing_parameters(request_) -> None:
    with pytest.raises(UserError) as excinfo:
        detect_intent(request_)
    assert excinfo.value.message == MISSING_PARAMETERS_MESSAGE

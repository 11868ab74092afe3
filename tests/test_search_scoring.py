from __future__ import annotations

import pytest

from catalog.types import CandidateTrack, SearchQuery
from engine.search_scoring import (
    filter_by_duration,
    normalize_text,
    rank_candidates,
    score_candidate,
    select_best_candidate,
    similarity,
    variant_penalty,
)

_SAMPLES = [
    "",
    "Hello",
    "  Don't   Stop Me Now!! ",
    "Beyoncé / Halo (Live)",
    "AC/DC & Friends",
    "snake_case_title",
    "İstanbul",
    "42",
]


def _candidate(name, artist="Queen", album="Jazz", duration_ms=None, album_id="1") -> CandidateTrack:
    return CandidateTrack(name=name, artist=artist, album=album, duration_ms=duration_ms, album_id=album_id)


@pytest.mark.parametrize("text", _SAMPLES)
def test_normalize_text_is_idempotent(text) -> None:
    once = normalize_text(text)
    assert normalize_text(once) == once


def test_normalize_text_strips_punctuation_and_collapses_whitespace() -> None:
    assert normalize_text("  Don't   Stop Me Now!! ") == "dont stop me now"
    assert normalize_text("AC/DC & Friends") == "acdc friends"
    assert normalize_text("snake_case") == "snakecase"
    assert normalize_text(None) == ""


@pytest.mark.parametrize("a", _SAMPLES)
@pytest.mark.parametrize("b", _SAMPLES)
def test_similarity_is_symmetric_and_bounded(a, b) -> None:
    forward = similarity(a, b)
    assert forward == similarity(b, a)
    assert 0.0 <= forward <= 1.0


@pytest.mark.parametrize("text", _SAMPLES)
def test_similarity_of_identical_strings_is_one(text) -> None:
    assert similarity(text, text) == 1.0


def test_similarity_equal_after_normalization() -> None:
    assert similarity("Bohemian Rhapsody!", "bohemian   rhapsody") == 1.0


def test_similarity_substring_uses_length_ratio() -> None:
    # "queen" (5) inside "queen band" (10)
    assert similarity("Queen", "Queen Band") == pytest.approx(0.7 + 0.3 * 0.5)


def test_similarity_character_overlap() -> None:
    # "abcd" vs "abef": shared a, b -> 2 * 2 / 8
    assert similarity("abcd", "abef") == pytest.approx(0.5)
    assert similarity("abc", "xyz") == 0.0


def test_similarity_with_one_empty_side_is_zero() -> None:
    assert similarity("", "something") == 0.0


def test_score_without_album_redistributes_weight() -> None:
    query = SearchQuery(song="Bohemian Rhapsody", artist="Queen")
    assert score_candidate(_candidate("Bohemian Rhapsody"), query) == pytest.approx(1.0)

    # Perfect track, unrelated artist: only the track share remains.
    score = score_candidate(_candidate("Bohemian Rhapsody", artist="xyz"), SearchQuery(song="Bohemian Rhapsody", artist="Queen"))
    assert score == pytest.approx(0.5 / 0.875, abs=1e-3)


def test_score_with_album_uses_three_factors() -> None:
    query = SearchQuery(song="Bohemian Rhapsody", artist="Queen", album="A Night at the Opera")
    exact = _candidate("Bohemian Rhapsody", album="A Night at the Opera")
    assert score_candidate(exact, query) == pytest.approx(1.0)

    wrong_album = _candidate("Bohemian Rhapsody", album="xyz")
    assert score_candidate(wrong_album, query) == pytest.approx(0.875, abs=0.02)


def test_variant_penalties_apply_unless_requested() -> None:
    assert variant_penalty("Song (Remix)", "Song") == pytest.approx(0.15)
    assert variant_penalty("Song (Live)", "Song") == pytest.approx(0.10)
    assert variant_penalty("Song - Acoustic", "Song") == pytest.approx(0.075)
    assert variant_penalty("Song (Live Acoustic Remix)", "Song") == pytest.approx(0.325)
    assert variant_penalty("Song (Remix)", "Song Remix") == 0.0
    assert variant_penalty("Song (Live)", "song live") == 0.0
    assert variant_penalty("Song", "Song") == 0.0


def test_score_is_not_clamped() -> None:
    query = SearchQuery(song="zzzz", artist="qqqq")
    candidate = _candidate("Live Acoustic Remix", artist="abc")
    assert score_candidate(candidate, query) < 0


def test_original_beats_remix() -> None:
    query = SearchQuery(song="Blinding Lights", artist="The Weeknd")
    ranked = rank_candidates(
        [
            _candidate("Blinding Lights (Remix)", artist="The Weeknd", album_id="2"),
            _candidate("Blinding Lights", artist="The Weeknd", album_id="1"),
        ],
        query,
    )
    assert ranked[0].track.album_id == "1"


def test_rank_keeps_first_occurrence_on_tie() -> None:
    query = SearchQuery(song="Song", artist="Queen")
    ranked = rank_candidates([_candidate("Song", album_id="a"), _candidate("Song", album_id="b")], query)
    assert [result.track.album_id for result in ranked] == ["a", "b"]


def test_select_best_candidate_enforces_threshold() -> None:
    query = SearchQuery(song="Yesterday", artist="The Beatles")
    weak = [_candidate("Completely Different", artist="Someone Else")]
    assert select_best_candidate(weak, query) is None

    strong = weak + [_candidate("Yesterday", artist="The Beatles", album_id="99")]
    best = select_best_candidate(strong, query)
    assert best is not None
    assert best.track.album_id == "99"
    assert best.score >= 0.6


def test_filter_by_duration_keeps_candidates_within_window() -> None:
    near = _candidate("Song", duration_ms=201500, album_id="near")
    far = _candidate("Song", duration_ms=250000, album_id="far")
    unknown = _candidate("Song", duration_ms=None, album_id="unknown")

    kept = filter_by_duration([near, far, unknown], 200000)

    assert [c.album_id for c in kept] == ["near"]


def test_filter_by_duration_falls_back_when_nothing_survives() -> None:
    far = _candidate("Song", duration_ms=250000, album_id="far")
    assert filter_by_duration([far], 200000) == [far]
    assert filter_by_duration([far], None) == [far]

"""Fuzzy scoring of catalog search results against a song/artist(/album) query."""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from catalog.types import CandidateTrack, MatchResult, SearchQuery
from config.settings import DURATION_TOLERANCE_MS, MIN_MATCH_SCORE

_WEIGHTS = {
    "track": 0.50,
    "artist": 0.375,
    "album": 0.125,
}
# Without an album the album weight is spread over track/artist in proportion.
_TWO_FACTOR_WEIGHTS = {
    "track": _WEIGHTS["track"] / (_WEIGHTS["track"] + _WEIGHTS["artist"]),
    "artist": _WEIGHTS["artist"] / (_WEIGHTS["track"] + _WEIGHTS["artist"]),
}

# (terms that mark the variant in a candidate name, penalty)
_VARIANT_PENALTIES = (
    (("remix",), 0.15),
    (("live", "(live"), 0.10),
    (("acoustic",), 0.075),
)

_NON_ALNUM_RE = re.compile(r"[^\w\s]|_")
_WS_RE = re.compile(r"\s+")


def normalize_text(value) -> str:
    if not value:
        return ""
    text = str(value).lower()
    text = _NON_ALNUM_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def similarity(a, b) -> float:
    """Similarity in [0, 1] between two strings after normalization.

    Exact matches score 1.0; containment scores 0.7 plus a length-ratio bonus of
    up to 0.3; otherwise the Dice coefficient over character counts is used.
    """
    left = normalize_text(a)
    right = normalize_text(b)
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0

    shorter, longer = (left, right) if len(left) <= len(right) else (right, left)
    if shorter in longer:
        return 0.7 + 0.3 * (len(shorter) / len(longer))

    left_counts = Counter(left)
    right_counts = Counter(right)
    shared = sum(min(count, right_counts[char]) for char, count in left_counts.items())
    return (2.0 * shared) / (len(left) + len(right))


def variant_penalty(candidate_name: str, query_song: str) -> float:
    name = str(candidate_name or "").lower()
    requested = str(query_song or "").lower()
    penalty = 0.0
    for terms, amount in _VARIANT_PENALTIES:
        if terms[0] in requested:
            continue
        if any(term in name for term in terms):
            penalty += amount
    return penalty


def score_candidate(candidate: CandidateTrack, query: SearchQuery) -> float:
    """Weighted track/artist(/album) similarity minus variant penalties.

    Not clamped: heavy penalties can push a score below zero.
    """
    track_score = similarity(candidate.name, query.song)
    artist_score = similarity(candidate.artist, query.artist)
    if query.album:
        album_score = similarity(candidate.album, query.album)
        score = (
            _WEIGHTS["track"] * track_score
            + _WEIGHTS["artist"] * artist_score
            + _WEIGHTS["album"] * album_score
        )
    else:
        score = _TWO_FACTOR_WEIGHTS["track"] * track_score + _TWO_FACTOR_WEIGHTS["artist"] * artist_score
    return score - variant_penalty(candidate.name, query.song)


def filter_by_duration(
    candidates: list[CandidateTrack],
    duration_ms: int | None,
    tolerance_ms: int = DURATION_TOLERANCE_MS,
) -> list[CandidateTrack]:
    """Keep candidates within ``tolerance_ms`` of the target; never filter down to nothing."""
    if duration_ms is None:
        return list(candidates)
    within = [
        candidate
        for candidate in candidates
        if candidate.duration_ms is not None and abs(candidate.duration_ms - duration_ms) <= tolerance_ms
    ]
    return within or list(candidates)


def rank_candidates(candidates: Iterable[CandidateTrack], query: SearchQuery) -> list[MatchResult]:
    scored = [MatchResult(track=candidate, score=score_candidate(candidate, query)) for candidate in candidates]
    # Stable sort keeps first occurrence ahead on ties.
    scored.sort(key=lambda result: result.score, reverse=True)
    return scored


def select_best_candidate(
    candidates: Iterable[CandidateTrack],
    query: SearchQuery,
    min_score: float = MIN_MATCH_SCORE,
) -> MatchResult | None:
    ranked = rank_candidates(candidates, query)
    if not ranked or ranked[0].score < min_score:
        return None
    return ranked[0]

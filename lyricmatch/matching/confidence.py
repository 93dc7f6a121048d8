"""
Confidence scoring for lyrics candidates

Combines title similarity, artist similarity and duration agreement into a
single weighted score in [0, 1], with one human-readable reason per signal.

Weights are fixed: title 0.5, artist 0.3, duration 0.2. When either side
lacks a duration the score is recomputed over title and artist alone
(divided by 0.8) instead of leaving the duration share empty.
"""

from typing import Iterable, List

from ..lrclib.models import MatchResult, TrackCandidate, TrackQuery
from ..utils.helpers import calculate_similarity, format_seconds_delta


TITLE_WEIGHT = 0.5
ARTIST_WEIGHT = 0.3
DURATION_WEIGHT = 0.2

# Seconds of difference at which the duration signal reaches zero
DURATION_TOLERANCE = 10.0


def calculate_confidence(query: TrackQuery, candidate: TrackCandidate) -> MatchResult:
    """
    Score how likely a candidate is the track the query describes

    Args:
        query: What the user searched for
        candidate: Record returned by the lyrics store

    Returns:
        MatchResult with the clamped score and reasons in the order
        title, artist, duration
    """
    reasons: List[str] = []

    # 1. Title
    title_sim = calculate_similarity(query.track_name, candidate.track_name)
    score = title_sim * TITLE_WEIGHT
    if title_sim > 0.9:
        reasons.append("Title is an exact or near-exact match.")
    elif title_sim > 0.7:
        reasons.append("Title is a close match.")
    else:
        reasons.append(f"Title mismatch detected ({round(title_sim * 100)}% match).")

    # 2. Artist
    artist_sim = calculate_similarity(query.artist_name, candidate.artist_name)
    score += artist_sim * ARTIST_WEIGHT
    if artist_sim > 0.9:
        reasons.append("Artist match confirmed.")
    elif artist_sim > 0.5:
        reasons.append("Artist name is similar.")
    else:
        reasons.append("Artist name differs significantly.")

    # 3. Duration
    if query.duration and candidate.duration:
        delta = abs(query.duration - candidate.duration)
        duration_score = max(0.0, 1 - delta / DURATION_TOLERANCE)
        score += duration_score * DURATION_WEIGHT

        shown = format_seconds_delta(delta)
        if delta <= 2:
            reasons.append(f"Duration matches perfectly (±{shown}s).")
        elif delta <= 5:
            reasons.append(f"Duration is close (±{shown}s).")
        else:
            reasons.append(f"Significant duration difference ({shown}s).")
    else:
        # Replaces the running score rather than adding to it
        score = (title_sim * TITLE_WEIGHT + artist_sim * ARTIST_WEIGHT) / (TITLE_WEIGHT + ARTIST_WEIGHT)
        reasons.append("Duration comparison skipped (missing data).")

    return MatchResult(
        track=candidate,
        confidence_score=min(1.0, max(0.0, score)),
        confidence_reasons=tuple(reasons)
    )


def rank_candidates(query: TrackQuery, candidates: Iterable[TrackCandidate]) -> List[MatchResult]:
    """
    Score every candidate and order them best first

    Ties keep the store's original order.

    Args:
        query: What the user searched for
        candidates: Records returned by the lyrics store

    Returns:
        MatchResults sorted by descending confidence
    """
    results = [calculate_confidence(query, candidate) for candidate in candidates]
    results.sort(key=lambda result: result.confidence_score, reverse=True)
    return results

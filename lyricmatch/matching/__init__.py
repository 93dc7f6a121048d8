"""
Matching package: confidence scoring and best-match resolution

- calculate_confidence: weighted title/artist/duration score with reasons
- rank_candidates: score and sort a list of candidates
- find_best_match: query the lyrics store according to a SearchStrategy
"""

from .confidence import (
    calculate_confidence,
    rank_candidates,
    TITLE_WEIGHT,
    ARTIST_WEIGHT,
    DURATION_WEIGHT
)
from .strategy import find_best_match

__all__ = [
    'calculate_confidence',
    'rank_candidates',
    'find_best_match',
    'TITLE_WEIGHT',
    'ARTIST_WEIGHT',
    'DURATION_WEIGHT',
]

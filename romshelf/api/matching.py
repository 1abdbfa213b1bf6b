"""Title normalization and fuzzy matching of IGDB search results."""

import logging
import re
from difflib import SequenceMatcher
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


# Best scores below this reject every candidate
FUZZY_MATCH_THRESHOLD = 0.4

_PUNCTUATION_RE = re.compile(r"[^\w\s'-]")
_WHITESPACE_RE = re.compile(r"\s{2,}")


def normalize_title(title: str) -> str:
    """
    Normalize a game title for searching.

    Lower-cases, turns punctuation other than apostrophes and hyphens into
    spaces and collapses runs of whitespace.

    Args:
        title: Raw title

    Returns:
        Normalized title

    Example:
        >>> normalize_title("Zelda II: The Adventure of Link!")
        "zelda ii the adventure of link"
    """
    result = _PUNCTUATION_RE.sub(' ', title.lower())
    result = _WHITESPACE_RE.sub(' ', result)
    return result.strip()


def calculate_similarity(name1: str, name2: str) -> float:
    """
    Calculate similarity score between two names.

    Uses SequenceMatcher for fuzzy string matching.

    Args:
        name1: First name
        name2: Second name

    Returns:
        Similarity score between 0.0 and 1.0
    """
    if not name1 or not name2:
        return 0.0
    return SequenceMatcher(None, name1, name2).ratio()


def _candidate_names(candidate: Dict[str, Any]) -> Iterator[str]:
    """Yield the primary name followed by each alternative name."""
    yield (candidate.get('name') or '').lower()
    for alternative in candidate.get('alternative_names') or []:
        yield (alternative.get('name') or '').lower()


def score_candidates(
    base_title: str,
    candidates: List[Dict[str, Any]]
) -> Tuple[Optional[Dict[str, Any]], float]:
    """
    Find the best scoring candidate without applying the threshold.

    Args:
        base_title: Title to match against
        candidates: IGDB game objects

    Returns:
        Tuple of (best candidate or None, best score)
    """
    base = base_title.lower()
    best: Optional[Dict[str, Any]] = None
    best_score = -1.0

    for candidate in candidates:
        for name in _candidate_names(candidate):
            score = calculate_similarity(base, name)
            # Strict comparison keeps the first candidate on ties
            if score > best_score:
                best, best_score = candidate, score

    return best, max(best_score, 0.0)


def pick_best_fuzzy_match(
    base_title: str,
    candidates: List[Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    """
    Pick the candidate whose name or alternative name best matches.

    Args:
        base_title: Normalized title of the local game
        candidates: IGDB game objects with 'name' and optional 'alternative_names'

    Returns:
        Best candidate when its score reaches FUZZY_MATCH_THRESHOLD, else None
    """
    if not candidates:
        return None

    best, score = score_candidates(base_title, candidates)
    if best is None or score < FUZZY_MATCH_THRESHOLD:
        logger.debug(f"No fuzzy match for '{base_title}' (best score {score:.2f})")
        return None

    logger.debug(f"Fuzzy match for '{base_title}': '{best.get('name')}' ({score:.2f})")
    return best

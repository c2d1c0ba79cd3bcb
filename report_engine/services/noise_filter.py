"""
Noise filter for mined terms.

Removes low-information terms from a term -> frequency map before it is
ranked. A term is noise when any of these hold:

- its lowercase form is in the stoplist
- its length is <= min_length
- it is purely numeric ("2024", "3.5", "1,000")
- its frequency is < min_frequency

When filtering would leave nothing, callers fall back to the unfiltered
ranking (still enforcing the length rule) via rank_terms_with_fallback, so
a sparse dataset shows its few terms rather than an empty insight list.

The same filter is used for missing-feature keywords, terminology gaps and
missing use cases; only the stoplist and the source field differ.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from report_engine.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_NUMERIC_PATTERN = re.compile(r"^[+-]?\d+(?:[.,]\d+)*%?$")


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class NoiseFilterConfig:
    """
    Parameters for one noise filtering pass.

    Attributes:
        stoplist: Lowercase terms that are always dropped.
        min_length: Terms with length <= this are dropped.
        min_frequency: Terms seen fewer times than this are dropped.

    Example:
        config = NoiseFilterConfig(stoplist=frozenset({"https"}), min_length=2)
    """
    stoplist: FrozenSet[str] = field(default_factory=frozenset)
    min_length: int = 2
    min_frequency: int = 1

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NoiseFilterConfig":
        settings = settings or get_settings()
        return cls(
            stoplist=normalize_stoplist(settings.keyword_stoplist),
            min_length=settings.min_term_length,
            min_frequency=settings.min_term_frequency,
        )


def normalize_stoplist(terms: Iterable[str]) -> FrozenSet[str]:
    """Lowercase and strip a stoplist, dropping blanks."""
    return frozenset(t.strip().lower() for t in terms if t and t.strip())


# =============================================================================
# Predicates
# =============================================================================


def is_numeric_term(term: str) -> bool:
    return bool(_NUMERIC_PATTERN.match(term.strip()))


def is_noise(
    term: str,
    frequency: int,
    stoplist: FrozenSet[str],
    min_length: int,
    min_frequency: int,
) -> bool:
    """Return True if the term should be removed from mined insights."""
    text = term.strip()
    if len(text) <= min_length:
        return True
    if text.lower() in stoplist:
        return True
    if is_numeric_term(text):
        return True
    return frequency < min_frequency


# =============================================================================
# Filtering
# =============================================================================


def filter_terms(
    terms: Mapping[str, int],
    stoplist: Iterable[str],
    min_length: int,
    min_frequency: int,
) -> Dict[str, int]:
    """
    Drop noise terms from a frequency map.

    Args:
        terms: Term -> frequency, in discovery order.
        stoplist: Terms to drop, compared case-insensitively.
        min_length: Terms with length <= this are dropped.
        min_frequency: Terms seen fewer times than this are dropped.

    Returns:
        A new map with the surviving terms, in their original order.

    Example:
        >>> filter_terms({"https": 5, "pricing": 3, "a": 10}, {"https"}, 2, 1)
        {'pricing': 3}
    """
    stop = normalize_stoplist(stoplist)
    return {
        term: count
        for term, count in terms.items()
        if not is_noise(term, count, stop, min_length, min_frequency)
    }


def rank_terms(terms: Mapping[str, int], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """
    Order terms by frequency descending.

    sorted() is stable, so terms with equal frequency keep the order in
    which they were first seen.
    """
    ranked = sorted(terms.items(), key=lambda item: -item[1])
    if limit is not None:
        ranked = ranked[:max(0, limit)]
    return ranked


def rank_terms_with_fallback(
    terms: Mapping[str, int],
    config: NoiseFilterConfig,
    limit: int,
) -> List[Tuple[str, int]]:
    """
    Filter then rank terms, falling back to a length-only filter.

    If the full filter removes every term, the top ``limit`` terms are taken
    from the unfiltered map instead, still dropping terms with length
    <= ``config.min_length``.

    Returns:
        Up to ``limit`` (term, frequency) pairs, most frequent first.
    """
    filtered = filter_terms(terms, config.stoplist, config.min_length, config.min_frequency)
    if filtered or not terms:
        return rank_terms(filtered, limit)

    logger.debug(f"Noise filter removed all {len(terms)} terms, falling back to unfiltered ranking")
    fallback = {
        term: count
        for term, count in terms.items()
        if len(term.strip()) > config.min_length
    }
    return rank_terms(fallback, limit)

"""
Frequency mining over one-to-many record fields.

mine_frequencies scans every record, pulls a list of terms out of each with
an extractor function, counts every occurrence of each distinct term,
and returns the top N as FrequencyTerm values.

Properties:
- A record contributes 1 for every occurrence of a term it carries, so a
  question asked twice in one conversation counts twice.
- Extractors may return None or a non-list; that record contributes nothing.
- Ties keep the order in which terms were first discovered, so repeated
  runs over the same input give the same ranking.

Extractors for the fields the dashboards mine are defined at the bottom of
this module.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from report_engine.models import ConversationRecord, FrequencyTerm, RawReportRecord
from report_engine.services.noise_filter import (
    NoiseFilterConfig,
    rank_terms,
    rank_terms_with_fallback,
)


# Default length of a ranked insight list
DEFAULT_TOP_N = 10

Extractor = Callable[[Any], Optional[Iterable[Any]]]


def count_terms(records: Sequence[Any], extractor: Extractor) -> Dict[str, int]:
    """
    Count every occurrence of each term, in discovery order.
    """
    counts: Dict[str, int] = {}
    for record in records:
        values = extractor(record)
        if not isinstance(values, (list, tuple, set, frozenset)):
            continue
        for value in values:
            if not isinstance(value, str):
                continue
            term = value.strip()
            if not term:
                continue
            counts[term] = counts.get(term, 0) + 1
    return counts


def mine_frequencies(
    records: Sequence[Any],
    extractor: Extractor,
    limit: int = DEFAULT_TOP_N,
    noise: Optional[NoiseFilterConfig] = None,
) -> List[FrequencyTerm]:
    """
    Rank the terms an extractor finds across a record set.

    Args:
        records: Records to scan.
        extractor: Returns the terms carried by one record.
        limit: Maximum number of terms returned.
        noise: When given, noise terms are removed first, with the
            unfiltered fallback described in the noise_filter module.

    Returns:
        At most ``limit`` terms, most frequent first.
    """
    counts = count_terms(records, extractor)
    if noise is not None:
        ranked = rank_terms_with_fallback(counts, noise, limit)
    else:
        ranked = rank_terms(counts, limit)
    return [FrequencyTerm(term=term, frequency=frequency) for term, frequency in ranked]


# =============================================================================
# Extractors
# =============================================================================


def missing_keywords_of(record: RawReportRecord) -> List[str]:
    return record.missing_keywords(limit=None)


def terminology_gaps_of(record: RawReportRecord) -> List[str]:
    return record.terminology_gap_terms()


def missing_use_cases_of(record: RawReportRecord) -> List[str]:
    return record.missing_use_case_phrases()


def questions_of(conversation: ConversationRecord) -> List[str]:
    return conversation.questions_asked


def content_gaps_of(conversation: ConversationRecord) -> List[str]:
    return conversation.content_gaps

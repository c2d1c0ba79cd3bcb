"""
Grouped statistics over report and conversation record sets.

Provides the two aggregation shapes the dashboards render:

- aggregate_by_date: one TimeBucket per calendar day inside a trailing
  window, with counts, a flagged count, per-field score means and a
  flagged rate.
- aggregate_by_category: one CategorySummary per distinct value of a
  string field, sorted by count descending.

Plus the headline stat blocks for both reports.

Averaging rules:
- Score samples that are null or 0 are left out of a mean; a missing score
  never pulls an average down.
- Any mean or rate with an empty denominator is 0, never NaN.

Dates are calendar days taken from each record's own timestamp as written;
no timezone conversion is applied.

Records may be pydantic models or plain dicts; fields are read by name.
"""

from collections import OrderedDict
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np

from report_engine.models import (
    CategorySummary,
    ChatbotStats,
    ConversationRecord,
    EnrichedRecord,
    ReportStats,
    TimeBucket,
    coerce_date,
    safe_float,
)
from report_engine.models.enums import AnalysisStatus


# Decimal places kept on means and rates
ROUND_DIGITS = 2


# =============================================================================
# Helpers
# =============================================================================


def get_field(record: Any, name: str) -> Any:
    """Read a field from a model or a mapping."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def mean_of_present(samples: Iterable[Any]) -> float:
    """
    Mean of the non-null, non-zero samples, or 0.0 when there are none.
    """
    values = [v for v in (safe_float(s) for s in samples) if v]
    if not values:
        return 0.0
    return round(float(np.mean(values)), ROUND_DIGITS)


def percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100.0, ROUND_DIGITS)


def _category_value(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# Time Buckets
# =============================================================================


def aggregate_by_date(
    records: Sequence[Any],
    window_days: int,
    date_field: str = "started_at",
    flag_field: Optional[str] = "lead_captured",
    score_fields: Sequence[str] = ("engagement_score", "resolution_score"),
    today: Optional[date] = None,
) -> List[TimeBucket]:
    """
    Bucket records by calendar day within [today - window_days, today].

    Args:
        records: Records to aggregate.
        window_days: Size of the trailing window in days.
        date_field: Field holding the event date or timestamp.
        flag_field: Boolean field counted into flagged_count, or None.
        score_fields: Numeric fields averaged per bucket.
        today: End of the window (default: date.today()).

    Returns:
        Buckets sorted by date ascending. Days without records are omitted;
        records without a readable date are skipped.

    Example:
        >>> aggregate_by_date([], window_days=30)
        []
    """
    end = today or date.today()
    start = end - timedelta(days=window_days)

    counts: Dict[date, int] = {}
    flagged: Dict[date, int] = {}
    samples: Dict[date, Dict[str, List[Any]]] = {}

    for record in records:
        day = coerce_date(get_field(record, date_field), field_name=date_field)
        if day is None or day < start or day > end:
            continue
        if day not in counts:
            counts[day] = 0
            flagged[day] = 0
            samples[day] = {name: [] for name in score_fields}
        counts[day] += 1
        if flag_field and get_field(record, flag_field):
            flagged[day] += 1
        for name in score_fields:
            samples[day][name].append(get_field(record, name))

    return [
        TimeBucket(
            date=day,
            count=counts[day],
            flagged_count=flagged[day],
            averages={name: mean_of_present(samples[day][name]) for name in score_fields},
            rate=percentage(flagged[day], counts[day]),
        )
        for day in sorted(counts)
    ]


# =============================================================================
# Category Summaries
# =============================================================================


def aggregate_by_category(
    records: Sequence[Any],
    dimension_field: str,
    flag_field: Optional[str] = None,
    score_fields: Sequence[str] = (),
) -> List[CategorySummary]:
    """
    Group records by the value of a string (or enum) field.

    Records whose value is null or blank are left out. Output is sorted by
    count descending; equal counts keep first-seen order.

    Example:
        Reports with priority scores [5, 3, 1] grouped on "priority_bucket"
        give high, medium and low with a count of 1 each.
    """
    groups: "OrderedDict[str, List[Any]]" = OrderedDict()
    for record in records:
        value = _category_value(get_field(record, dimension_field))
        if value is None:
            continue
        groups.setdefault(value, []).append(record)

    summaries = [
        CategorySummary(
            value=value,
            count=len(members),
            flagged_count=(
                sum(1 for m in members if get_field(m, flag_field)) if flag_field else 0
            ),
            averages={
                name: mean_of_present(get_field(m, name) for m in members)
                for name in score_fields
            },
        )
        for value, members in groups.items()
    ]
    return sorted(summaries, key=lambda s: -s.count)


# =============================================================================
# Headline Stats
# =============================================================================


def compute_report_stats(
    records: Sequence[EnrichedRecord],
    high_priority_threshold: int = 4,
) -> ReportStats:
    """
    Headline numbers for the content gap report.

    avg_similarity is the mean similarity of all records as a percentage.
    """
    if not records:
        return ReportStats()
    similarities = np.array([r.similarity_score * 100.0 for r in records], dtype=float)
    return ReportStats(
        total=len(records),
        high_priority=sum(1 for r in records if r.priority_score >= high_priority_threshold),
        avg_similarity=round(float(similarities.mean()), ROUND_DIGITS),
        mention_count=sum(1 for r in records if r.brand_mentioned),
    )


def compute_chatbot_stats(conversations: Sequence[ConversationRecord]) -> ChatbotStats:
    """Headline numbers for chatbot analytics."""
    total = len(conversations)
    leads = sum(1 for c in conversations if c.lead_captured)
    analyzed = sum(1 for c in conversations if c.analysis_status == AnalysisStatus.ANALYZED)
    return ChatbotStats(
        total_conversations=total,
        leads_captured=leads,
        lead_capture_rate=percentage(leads, total),
        avg_engagement_score=mean_of_present(c.engagement_score for c in conversations),
        avg_resolution_score=mean_of_present(c.resolution_score for c in conversations),
        high_potential_leads=sum(1 for c in conversations if c.is_high_potential),
        conversations_analyzed=analyzed,
        pending_analysis=sum(
            1 for c in conversations if c.analysis_status == AnalysisStatus.PENDING
        ),
    )

"""
Join engine for content gap reports and raw AI response texts.

The two collections are written by independent processes, so a report and
the text it was generated from only share a correlation key: the report's
query_id, which the text carries as metadata.query_id. The candidate texts
are already scoped to the report date when they are fetched; when both
sides still carry a date they must agree here as well.

Join rules:
- Unmatched reports are kept, with null text/prompt fields.
- When several texts share a key, the first in fetch order wins and a
  warning is logged, since that usually means duplicate or ambiguous
  upstream rows.
- Output order and length equal the input reports'.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from report_engine.models import EnrichedRecord, RawReportRecord, RawTextRecord

logger = logging.getLogger(__name__)


def index_texts_by_key(texts: Sequence[RawTextRecord]) -> Dict[str, List[RawTextRecord]]:
    """Group texts by correlation key, keeping fetch order within each key."""
    index: Dict[str, List[RawTextRecord]] = defaultdict(list)
    for text in texts:
        key = text.correlation_key
        if key is not None:
            index[key].append(text)
    return dict(index)


def _dates_agree(report: RawReportRecord, text: RawTextRecord) -> bool:
    text_date = text.metadata_date
    if report.execution_date is None or text_date is None:
        return True
    return report.execution_date == text_date


def find_match(
    report: RawReportRecord,
    index: Dict[str, List[RawTextRecord]],
) -> Optional[RawTextRecord]:
    """
    Return the first text matching the report, or None.

    Logs a warning when more than one candidate matches.
    """
    if report.query_id is None:
        return None
    candidates = [t for t in index.get(report.query_id, []) if _dates_agree(report, t)]
    if not candidates:
        return None
    if len(candidates) > 1:
        logger.warning(
            f"{len(candidates)} raw texts share query_id {report.query_id} "
            f"(execution {report.execution_id}); using the first"
        )
    return candidates[0]


def enrich(report: RawReportRecord, text: Optional[RawTextRecord]) -> EnrichedRecord:
    """Build an EnrichedRecord from a report and its matched text, if any."""
    data = report.model_dump(exclude={"priority_bucket"})
    if text is not None:
        data.update(
            text=text.content,
            prompt=text.prompt,
            text_record_id=text.id,
        )
    return EnrichedRecord.model_validate(data)


def correlate(
    reports: Sequence[RawReportRecord],
    texts: Sequence[RawTextRecord],
) -> List[EnrichedRecord]:
    """
    Match every report to its raw text.

    Args:
        reports: Normalized reports, in their default display order.
        texts: Normalized raw texts for the same date, in fetch order.

    Returns:
        One EnrichedRecord per report, in the same order. Reports without a
        matching text carry null text and prompt fields.
    """
    index = index_texts_by_key(texts)
    enriched = [enrich(report, find_match(report, index)) for report in reports]

    matched = sum(1 for record in enriched if record.text_record_id is not None)
    logger.debug(
        f"Correlated {len(reports)} reports with {len(texts)} texts: "
        f"{matched} matched, {len(enriched) - matched} unmatched"
    )
    return enriched

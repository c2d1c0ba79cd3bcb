"""
Report assembly entry points.

Each builder takes an injected RecordStore, fetches the snapshot it needs,
normalizes it, and runs the engine components over it:

    raw fetch -> normalize -> correlate -> {aggregate, mine} -> view

Key Functions:
- build_report_view: Content gap report for one execution date
- build_content_gap_insights: Ranked keywords, terminology gaps and use cases
- build_analytics_view: Chatbot timeline, breakdowns, mined terms and stats
- apply_filters_and_paginate: Faceted, paginated slice of report records
- load_conversations / fetch_message_preview: Conversation list and preview

Failure policy:
- The latest-date lookup, report fetch and conversation fetch are primary;
  their failure raises UpstreamFetchFailure.
- The raw text fetch is secondary; its failure is logged and the report is
  built without enrichment (text_fetch_degraded=True).
- No date with data is an empty view, not an error.

Filters never change what is aggregated: stats and insights always cover
the full snapshot.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from report_engine.core.config import Settings, get_settings
from report_engine.core.exceptions import UpstreamFetchFailure
from report_engine.core.record_store import RecordStore
from report_engine.models import (
    AnalyticsView,
    ContentGapInsights,
    ConversationMessage,
    ConversationRecord,
    EnrichedRecord,
    FilterState,
    Page,
    RawReportRecord,
    RawTextRecord,
    ReportView,
    coerce_date,
)
from report_engine.services.aggregator import (
    aggregate_by_category,
    aggregate_by_date,
    compute_chatbot_stats,
    compute_report_stats,
)
from report_engine.services.correlator import correlate
from report_engine.services.faceted_view import (
    apply_filters,
    conversation_facet_options,
    paginate,
    report_facet_options,
)
from report_engine.services.insight_miner import (
    content_gaps_of,
    mine_frequencies,
    missing_keywords_of,
    missing_use_cases_of,
    questions_of,
    terminology_gaps_of,
)
from report_engine.services.noise_filter import NoiseFilterConfig

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Messages shown in a conversation preview
DEFAULT_PREVIEW_MESSAGES = 3


# =============================================================================
# Fetch Helpers
# =============================================================================


async def _primary_fetch(source: str, call: Awaitable[Any]) -> Any:
    """Await a fetch whose failure is fatal to the request."""
    try:
        return await call
    except UpstreamFetchFailure:
        raise
    except Exception as e:
        logger.error(f"Fetch of {source} failed: {e}")
        raise UpstreamFetchFailure(
            f"Could not load {source}. Please retry.",
            source=source,
        ) from e


def _as_failure(source: str, error: BaseException) -> UpstreamFetchFailure:
    if isinstance(error, UpstreamFetchFailure):
        return error
    logger.error(f"Fetch of {source} failed: {error}")
    failure = UpstreamFetchFailure(f"Could not load {source}. Please retry.", source=source)
    failure.__cause__ = error
    return failure


def _parse_rows(model: Type[M], rows: Sequence[Dict[str, Any]], source: str) -> List[M]:
    """
    Validate store rows into models, skipping rows that cannot be read at all.
    """
    parsed: List[M] = []
    for row in rows:
        try:
            parsed.append(model.model_validate(dict(row)))
        except ValidationError as e:
            logger.warning(f"Skipping unreadable {source} row: {e.error_count()} errors")
    return parsed


async def _resolve_date_scope(store: RecordStore, date_scope: Optional[date]) -> Optional[date]:
    """Use the requested date, or the latest date with reports."""
    if date_scope is not None:
        return date_scope
    latest = await _primary_fetch("latest report date", store.fetch_latest_date())
    return coerce_date(latest, field_name="latest_date")


async def _fetch_reports_and_texts(store: RecordStore, day: date):
    """
    Fetch reports and raw texts for a date concurrently.

    Returns:
        Tuple of (report rows, text rows, texts_degraded).

    Raises:
        UpstreamFetchFailure: If the report fetch fails.
    """
    day_str = day.isoformat()
    report_rows, text_rows = await asyncio.gather(
        store.fetch_reports(day_str),
        store.fetch_raw_texts(day_str),
        return_exceptions=True,
    )
    if isinstance(report_rows, BaseException):
        raise _as_failure("content gap reports", report_rows)

    if isinstance(text_rows, BaseException):
        logger.warning(f"Raw text fetch for {day_str} failed, building report without enrichment: {text_rows}")
        return report_rows, [], True
    return report_rows, text_rows, False


# =============================================================================
# Content Gap Report
# =============================================================================


async def build_report_view(
    store: RecordStore,
    date_scope: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> ReportView:
    """
    Build the content gap report for one execution date.

    Args:
        store: Record store to read from.
        date_scope: Execution date to report on; defaults to the latest
            date with reports.
        settings: Engine settings (default: get_settings()).

    Returns:
        ReportView with correlated records in default order (priority
        descending), headline stats and facet options. is_empty is True when
        no reports exist for the date, or at all.

    Raises:
        UpstreamFetchFailure: If the date lookup or report fetch fails.
    """
    settings = settings or get_settings()

    day = await _resolve_date_scope(store, date_scope)
    if day is None:
        logger.info("No content gap reports available")
        return ReportView(is_empty=True)

    report_rows, text_rows, degraded = await _fetch_reports_and_texts(store, day)
    reports = _parse_rows(RawReportRecord, report_rows, "report")
    texts = _parse_rows(RawTextRecord, text_rows, "raw text")

    records = correlate(reports, texts)
    logger.info(f"Built content gap report for {day}: {len(records)} records")

    return ReportView(
        date_scope=day,
        is_empty=not records,
        text_fetch_degraded=degraded,
        records=records,
        stats=compute_report_stats(records, settings.high_priority_threshold),
        facets=report_facet_options(records),
    )


def apply_filters_and_paginate(
    records: Sequence[EnrichedRecord],
    filters: FilterState,
    page: int,
    page_size: int,
) -> Page[EnrichedRecord]:
    """
    Filter records with every active facet, then return one page.

    Raises:
        ValueError: If page_size < 1.
    """
    return paginate(apply_filters(records, filters), page, page_size, EnrichedRecord)


async def build_content_gap_insights(
    store: RecordStore,
    date_scope: Optional[date] = None,
    limit: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> ContentGapInsights:
    """
    Mine ranked insight lists from one execution date's reports.

    Only the report fetch is needed; raw texts play no part in the insights.
    """
    settings = settings or get_settings()
    limit = limit or settings.top_terms_limit

    day = await _resolve_date_scope(store, date_scope)
    if day is None:
        return ContentGapInsights()

    rows = await _primary_fetch("content gap reports", store.fetch_reports(day.isoformat()))
    reports = _parse_rows(RawReportRecord, rows, "report")
    noise = NoiseFilterConfig.from_settings(settings)

    return ContentGapInsights(
        date_scope=day,
        missing_keywords=mine_frequencies(reports, missing_keywords_of, limit, noise),
        terminology_gaps=mine_frequencies(reports, terminology_gaps_of, limit, noise),
        missing_use_cases=mine_frequencies(reports, missing_use_cases_of, limit, noise),
    )


# =============================================================================
# Chatbot Analytics
# =============================================================================


def window_start(window_days: int, today: Optional[date] = None) -> datetime:
    """Midnight UTC at the start of a trailing window ending today."""
    start = (today or date.today()) - timedelta(days=window_days)
    return datetime.combine(start, time.min, tzinfo=timezone.utc)


async def load_conversations(
    store: RecordStore,
    window_days: int,
    today: Optional[date] = None,
) -> List[ConversationRecord]:
    """Fetch and normalize the conversations started within the window."""
    rows = await _primary_fetch(
        "chatbot conversations",
        store.fetch_conversations(window_start(window_days, today)),
    )
    return _parse_rows(ConversationRecord, rows, "conversation")


async def build_analytics_view(
    store: RecordStore,
    window_days: Optional[int] = None,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> AnalyticsView:
    """
    Build chatbot analytics over a trailing window.

    Returns:
        AnalyticsView with a daily timeline (conversations, leads, average
        engagement and resolution, lead capture rate), intent and industry
        breakdowns, top asked questions, top content gaps, headline stats
        and facet options.

    Raises:
        UpstreamFetchFailure: If the conversation fetch fails.
    """
    settings = settings or get_settings()
    window_days = window_days or settings.analytics_window_days
    limit = settings.top_terms_limit

    conversations = await load_conversations(store, window_days, today)
    logger.info(f"Building chatbot analytics over {len(conversations)} conversations ({window_days} days)")

    return AnalyticsView(
        window_days=window_days,
        timeline=aggregate_by_date(
            conversations,
            window_days,
            date_field="started_at",
            flag_field="lead_captured",
            score_fields=("engagement_score", "resolution_score"),
            today=today,
        ),
        by_category=aggregate_by_category(
            conversations,
            "visitor_intent",
            flag_field="lead_captured",
            score_fields=("engagement_score", "lead_quality_score"),
        ),
        by_industry=aggregate_by_category(
            conversations,
            "industry_segment",
            flag_field="lead_captured",
            score_fields=("engagement_score", "lead_quality_score"),
        ),
        top_terms=mine_frequencies(conversations, questions_of, limit),
        top_content_gaps=mine_frequencies(conversations, content_gaps_of, limit),
        stats=compute_chatbot_stats(conversations),
        facets=conversation_facet_options(conversations),
    )


def _message_order(message: ConversationMessage) -> tuple:
    # Naive timestamps are read as UTC so they compare with offset-aware ones
    stamp = message.timestamp
    if stamp is None:
        return (True, datetime.min.replace(tzinfo=timezone.utc))
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return (False, stamp)


async def fetch_message_preview(
    store: RecordStore,
    conversation_id: str,
    limit: int = DEFAULT_PREVIEW_MESSAGES,
) -> List[ConversationMessage]:
    """First ``limit`` messages of a conversation, oldest first."""
    rows = await _primary_fetch(
        "conversation messages",
        store.fetch_messages(conversation_id, limit),
    )
    messages = _parse_rows(ConversationMessage, rows, "message")
    messages.sort(key=_message_order)
    return messages[:limit]

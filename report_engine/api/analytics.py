"""
FastAPI router module for chatbot analytics endpoints.

Endpoints:
- GET  /analytics/chatbot: Timeline, intent/industry breakdowns, top terms, stats
- POST /analytics/chatbot/conversations/search: Filtered, paginated conversations
- GET  /analytics/chatbot/conversations/{conversation_id}/messages: Message preview
- GET  /analytics/chatbot/export: CSV download of the (filtered) conversations
"""

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from report_engine.core.dependencies import RecordStoreDep, SettingsDep
from report_engine.core.exceptions import UpstreamFetchFailure
from report_engine.models import (
    AnalyticsView,
    ConversationFilterState,
    ConversationMessage,
    ConversationRecord,
    ConversationSearchRequest,
    LeadStatus,
    Page,
)
from report_engine.services.export import CONVERSATION_COLUMNS, flatten_conversations, to_csv_bytes
from report_engine.services.faceted_view import apply_conversation_filters, paginate
from report_engine.services.report_builder import (
    DEFAULT_PREVIEW_MESSAGES,
    build_analytics_view,
    fetch_message_preview,
    load_conversations,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _upstream_error(e: UpstreamFetchFailure) -> HTTPException:
    logger.error(f"Chatbot analytics request failed ({e.source}): {e.message}")
    return HTTPException(status_code=502, detail=e.message)


@router.get("/chatbot", response_model=AnalyticsView)
async def get_chatbot_analytics(
    store: RecordStoreDep,
    settings: SettingsDep,
    window_days: Optional[int] = Query(None, ge=1, le=365),
) -> AnalyticsView:
    """
    Get chatbot analytics for a trailing window (default 30 days).

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    try:
        return await build_analytics_view(store, window_days, settings=settings)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)


@router.post("/chatbot/conversations/search", response_model=Page[ConversationRecord])
async def search_conversations(
    request: ConversationSearchRequest,
    store: RecordStoreDep,
    settings: SettingsDep,
) -> Page[ConversationRecord]:
    """
    Filter and paginate conversations, newest first.

    Raises:
        HTTPException 400: If page_size exceeds the configured maximum.
        HTTPException 502: If the record store could not be read.
    """
    page_size = request.page_size or settings.default_page_size
    if page_size > settings.max_page_size:
        raise HTTPException(
            status_code=400,
            detail=f"page_size must be at most {settings.max_page_size}",
        )

    window_days = request.window_days or settings.analytics_window_days
    try:
        conversations = await load_conversations(store, window_days)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)

    filtered = apply_conversation_filters(conversations, request.filters)
    return paginate(filtered, request.page, page_size, ConversationRecord)


@router.get(
    "/chatbot/conversations/{conversation_id}/messages",
    response_model=List[ConversationMessage],
)
async def get_conversation_messages(
    conversation_id: str,
    store: RecordStoreDep,
    limit: int = Query(DEFAULT_PREVIEW_MESSAGES, ge=1, le=50),
) -> List[ConversationMessage]:
    """
    Get the first messages of a conversation, oldest first.

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    try:
        return await fetch_message_preview(store, conversation_id, limit)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)


@router.get("/chatbot/export")
async def export_conversations(
    store: RecordStoreDep,
    settings: SettingsDep,
    window_days: Optional[int] = Query(None, ge=1, le=365),
    search: Optional[str] = Query(None),
    intent: Optional[str] = Query(None),
    industry: Optional[str] = Query(None),
    buyer_stage: Optional[str] = Query(None),
    lead_status: Optional[LeadStatus] = Query(None),
) -> Response:
    """
    Download conversations as CSV, applying the same filters as the list.

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    filters = ConversationFilterState(
        search=search,
        intent=intent,
        industry=industry,
        buyer_stage=buyer_stage,
        lead_status=lead_status,
    )
    try:
        conversations = await load_conversations(
            store, window_days or settings.analytics_window_days
        )
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)

    rows = flatten_conversations(apply_conversation_filters(conversations, filters))
    return Response(
        content=to_csv_bytes(rows, CONVERSATION_COLUMNS),
        media_type="text/csv",
        headers={
            "Content-Disposition": (
                f'attachment; filename="chatbot-analytics-{date.today().isoformat()}.csv"'
            )
        },
    )

"""
FastAPI router module for the content gap report endpoints.

Endpoints:
- GET  /reports/content-gaps: Correlated report records, stats and facets
- POST /reports/content-gaps/search: Filtered, paginated records with tab counts
- GET  /reports/content-gaps/insights: Ranked keywords, terminology gaps, use cases
- GET  /reports/content-gaps/export: CSV download, optionally exploded per item

Every endpoint defaults to the latest execution date with reports. A store
failure is returned as 502 with a message suitable for display; an empty
dataset is a normal 200 response with is_empty set.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from report_engine.core.dependencies import RecordStoreDep, SettingsDep
from report_engine.core.exceptions import UpstreamFetchFailure
from report_engine.models import (
    ContentGapInsights,
    ExplodeMode,
    ReportSearchRequest,
    ReportSearchResponse,
    ReportView,
)
from report_engine.services.export import flatten_report_records, report_columns, to_csv_bytes
from report_engine.services.faceted_view import priority_counts
from report_engine.services.report_builder import (
    apply_filters_and_paginate,
    build_content_gap_insights,
    build_report_view,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _upstream_error(e: UpstreamFetchFailure) -> HTTPException:
    logger.error(f"Content gap request failed ({e.source}): {e.message}")
    return HTTPException(status_code=502, detail=e.message)


@router.get("/content-gaps", response_model=ReportView)
async def get_content_gap_report(
    store: RecordStoreDep,
    settings: SettingsDep,
    date_scope: Optional[date] = Query(None, alias="date", description="Execution date (YYYY-MM-DD)"),
) -> ReportView:
    """
    Get the content gap report for an execution date.

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    try:
        return await build_report_view(store, date_scope, settings=settings)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)


@router.post("/content-gaps/search", response_model=ReportSearchResponse)
async def search_content_gaps(
    request: ReportSearchRequest,
    store: RecordStoreDep,
    settings: SettingsDep,
) -> ReportSearchResponse:
    """
    Filter and paginate content gap records.

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

    try:
        view = await build_report_view(store, request.date, settings=settings)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)

    return ReportSearchResponse(
        date_scope=view.date_scope,
        text_fetch_degraded=view.text_fetch_degraded,
        priority_counts=priority_counts(view.records, request.filters),
        results=apply_filters_and_paginate(
            view.records, request.filters, request.page, page_size
        ),
    )


@router.get("/content-gaps/insights", response_model=ContentGapInsights)
async def get_content_gap_insights(
    store: RecordStoreDep,
    settings: SettingsDep,
    date_scope: Optional[date] = Query(None, alias="date"),
    limit: Optional[int] = Query(None, ge=1, le=100),
) -> ContentGapInsights:
    """
    Get ranked missing keywords, terminology gaps and missing use cases.

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    try:
        return await build_content_gap_insights(store, date_scope, limit, settings=settings)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)


@router.get("/content-gaps/export")
async def export_content_gaps(
    store: RecordStoreDep,
    settings: SettingsDep,
    date_scope: Optional[date] = Query(None, alias="date"),
    explode: Optional[ExplodeMode] = Query(None, description="One row per faq, keyword or action"),
) -> Response:
    """
    Download the content gap report as CSV.

    Raises:
        HTTPException 502: If the record store could not be read.
    """
    try:
        view = await build_report_view(store, date_scope, settings=settings)
    except UpstreamFetchFailure as e:
        raise _upstream_error(e)

    rows = flatten_report_records(view.records, explode)
    suffix = view.date_scope.isoformat() if view.date_scope else "empty"
    return Response(
        content=to_csv_bytes(rows, report_columns(explode)),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="content-gaps-{suffix}.csv"'},
    )

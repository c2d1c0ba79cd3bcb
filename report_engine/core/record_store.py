"""
Record store access for the report engine.

The engine never talks to the database directly. Every read goes through a
RecordStore, which is injected into the report builders; tests pass an
AsyncMock in its place and production wires in PostgresRecordStore.

Every method returns plain dicts (the model layer normalizes them) and raises
UpstreamFetchFailure when the underlying query cannot be completed.

Usage:
    store = PostgresRecordStore(settings)
    rows = await store.fetch_reports("2025-06-02")
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import asyncpg

from report_engine.core.config import Settings, get_settings
from report_engine.core.database import get_db_pool
from report_engine.core.exceptions import UpstreamFetchFailure
from report_engine.sql.report_queries import (
    get_conversations_query,
    get_latest_execution_date_query,
    get_messages_query,
    get_raw_texts_query,
    get_reports_query,
)

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Read-only access to the upstream record sources."""

    async def fetch_reports(self, date_equals: Optional[str] = None) -> List[Dict[str, Any]]:
        ...

    async def fetch_raw_texts(self, date_equals: str) -> List[Dict[str, Any]]:
        ...

    async def fetch_latest_date(self) -> Optional[str]:
        ...

    async def fetch_conversations(self, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        ...

    async def fetch_messages(self, conversation_id: str, limit: int) -> List[Dict[str, Any]]:
        ...


class PostgresRecordStore:
    """
    RecordStore backed by the shared asyncpg pool.

    Connection and query errors are wrapped in UpstreamFetchFailure tagged
    with the table they came from; the original exception is chained.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def _fetch(self, source: str, sql: str, *args: Any) -> List[Dict[str, Any]]:
        try:
            pool = await get_db_pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *args)
        except UpstreamFetchFailure:
            raise
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error(f"Fetch from {source} failed: {e}")
            raise UpstreamFetchFailure(
                f"Could not read {source}. Try again shortly.",
                source=source,
            ) from e
        return [dict(row) for row in rows]

    async def fetch_reports(self, date_equals: Optional[str] = None) -> List[Dict[str, Any]]:
        table = self.settings.reports_table
        sql = get_reports_query(table, filter_by_date=date_equals is not None)
        args = (date_equals,) if date_equals is not None else ()
        return await self._fetch(table, sql, *args)

    async def fetch_raw_texts(self, date_equals: str) -> List[Dict[str, Any]]:
        table = self.settings.raw_texts_table
        return await self._fetch(table, get_raw_texts_query(table), date_equals)

    async def fetch_latest_date(self) -> Optional[str]:
        """Most recent execution date as YYYY-MM-DD, or None when no reports exist."""
        table = self.settings.reports_table
        rows = await self._fetch(table, get_latest_execution_date_query(table))
        if not rows:
            return None
        value = rows[0].get("execution_date")
        if value is None:
            return None
        if hasattr(value, "isoformat"):
            return value.isoformat()[:10]
        return str(value)[:10]

    async def fetch_conversations(self, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        table = self.settings.conversations_table
        sql = get_conversations_query(table, since=since is not None)
        args = (since,) if since is not None else ()
        return await self._fetch(table, sql, *args)

    async def fetch_messages(self, conversation_id: str, limit: int) -> List[Dict[str, Any]]:
        table = self.settings.messages_table
        return await self._fetch(table, get_messages_query(table), conversation_id, limit)

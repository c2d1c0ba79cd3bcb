"""
SQL Query Module for the report engine.

Provides parameterized SQL queries for the record store, keeping query text
separate from the code that executes it.

Example usage:
    from report_engine.sql import get_reports_query

    sql = get_reports_query("content_gap_reports", filter_by_date=True)
"""

from report_engine.sql.report_queries import (
    REPORT_COLUMNS,
    get_conversations_query,
    get_latest_execution_date_query,
    get_messages_query,
    get_raw_texts_query,
    get_reports_query,
    quote_identifier,
)

__all__ = [
    'REPORT_COLUMNS',
    'get_conversations_query',
    'get_latest_execution_date_query',
    'get_messages_query',
    'get_raw_texts_query',
    'get_reports_query',
    'quote_identifier',
]

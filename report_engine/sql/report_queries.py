"""
Report Queries Module for the report engine.

Provides parameterized PostgreSQL queries for the record store: content gap
report rows, raw AI response texts, chatbot conversations and messages.

Table names come from configuration and are validated as plain identifiers
before being interpolated; every value is passed as a $n parameter.

JSON columns are selected as-is. Depending on the column type and the
connection codecs they arrive as text or decoded values, and the model layer
normalizes both.
"""

import re


_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

# Columns selected for content gap reports
REPORT_COLUMNS = (
    "id",
    "query_id",
    "execution_id",
    "execution_date",
    "persona_id",
    "persona_name",
    "target_page_url",
    "page_title",
    "priority_score",
    "similarity_score",
    "suggested_faqs",
    "suggested_tldr",
    "missing_features",
    "terminology_gaps",
    "missing_use_cases",
    "competitive_gaps",
    "priority_actions",
    "inecta_mentioned",
    "inecta_mention_count",
    "created_at",
)


def quote_identifier(name: str) -> str:
    """
    Validate and double-quote a (optionally schema-qualified) table name.

    Raises:
        ValueError: If the name is not a plain SQL identifier.
    """
    if not _IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return ".".join(f'"{part}"' for part in name.split("."))


# =============================================================================
# CONTENT GAP REPORTS
# =============================================================================

def get_latest_execution_date_query(table: str) -> str:
    """
    Generate SQL returning the most recent execution_date, or no rows.
    """
    return f"""
    SELECT execution_date
    FROM {quote_identifier(table)}
    WHERE execution_date IS NOT NULL
    ORDER BY execution_date DESC
    LIMIT 1
    """


def get_reports_query(table: str, filter_by_date: bool) -> str:
    """
    Generate SQL for content gap reports.

    Args:
        table: Reports table name.
        filter_by_date: When True the query takes $1 as the execution date
            (ISO string compared against the date column).

    Note:
        Ordered by priority descending then similarity ascending; the engine
        relies on this as the default ordering of the report list.
    """
    where = "WHERE execution_date = $1::date" if filter_by_date else ""
    return f"""
    SELECT {", ".join(REPORT_COLUMNS)}
    FROM {quote_identifier(table)}
    {where}
    ORDER BY priority_score DESC, similarity_score ASC
    """


# =============================================================================
# RAW TEXTS
# =============================================================================

def get_raw_texts_query(table: str) -> str:
    """
    Generate SQL for raw texts whose metadata date matches $1.

    The date is matched at calendar-day granularity: metadata.execution_date
    when present, otherwise the creation date.
    """
    return f"""
    SELECT id, content, metadata, created_at
    FROM {quote_identifier(table)}
    WHERE COALESCE(
        LEFT(metadata->>'execution_date', 10),
        LEFT(metadata->>'date', 10),
        TO_CHAR(created_at, 'YYYY-MM-DD')
    ) = $1
    ORDER BY created_at ASC, id ASC
    """


# =============================================================================
# CHATBOT CONVERSATIONS
# =============================================================================

def get_conversations_query(table: str, since: bool) -> str:
    """
    Generate SQL for analysed chatbot conversations, newest first.

    Args:
        table: Conversations table or view.
        since: When True the query takes $1 as a lower bound on started_at.
    """
    where = "WHERE started_at >= $1" if since else ""
    return f"""
    SELECT *
    FROM {quote_identifier(table)}
    {where}
    ORDER BY started_at DESC
    """


def get_messages_query(table: str) -> str:
    """
    Generate SQL for the first $2 messages of conversation $1.
    """
    return f"""
    SELECT role, content, timestamp
    FROM {quote_identifier(table)}
    WHERE conversation_id = $1
    ORDER BY timestamp ASC
    LIMIT $2
    """

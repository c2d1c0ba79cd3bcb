"""
Pytest configuration and shared fixtures for report engine tests.

Provides:
- Mock asyncpg pool fixtures for record store tests
- A mock RecordStore (AsyncMock) preloaded with report, raw text,
  conversation and message rows shaped like the upstream tables
- Settings isolated from the developer's environment

Sample data notes:
- Report q-1 has two raw texts sharing its key; q-2's only text carries a
  different date, and q-3 has none, so two of three reports stay unmatched.
- JSON columns mix pre-decoded values, JSON strings and malformed text.
- Conversation dates are relative to ANALYTICS_TODAY; one sits outside the
  30 day window.
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Generator, List
from unittest.mock import AsyncMock, Mock, patch

import pytest

from report_engine.core.config import Settings
from report_engine.models import (
    ConversationRecord,
    EnrichedRecord,
    RawReportRecord,
    RawTextRecord,
)
from report_engine.services.correlator import correlate


REPORT_DATE = date(2025, 6, 2)
ANALYTICS_TODAY = date(2025, 6, 30)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - scenario: worked examples from the engine's documented behaviour
    """
    config.addinivalue_line(
        'markers',
        'scenario: marks worked-example tests of documented engine behaviour'
    )


# ============================================================
# SETTINGS
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only, ignoring any local .env file."""
    return Settings(_env_file=None, database_url=None)


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Mock asyncpg pool whose acquire() yields a mock connection.

    Usage:
        conn = mock_db_pool.acquire.return_value.__aenter__.return_value
        conn.fetch.return_value = [{'id': 1}]
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)
    pool.close = AsyncMock(return_value=None)

    return pool


@pytest.fixture
def mock_database(mock_db_pool: AsyncMock) -> Generator[AsyncMock, None, None]:
    """
    Patch the record store's pool accessor to return mock_db_pool.

    Patched where it is imported, not at the source module.
    """
    with patch(
        'report_engine.core.record_store.get_db_pool',
        new=AsyncMock(return_value=mock_db_pool),
    ):
        yield mock_db_pool


# ============================================================
# SAMPLE ROWS
# ============================================================

@pytest.fixture
def report_rows() -> List[Dict[str, Any]]:
    """Three content gap rows in store order (priority descending)."""
    return [
        {
            'id': 1,
            'query_id': 'q-1',
            'execution_id': 'e-1',
            'execution_date': '2025-06-02',
            'persona_id': 10,
            'persona_name': 'Plant Manager',
            'target_page_url': 'https://example.com/erp',
            'page_title': 'Food ERP',
            'priority_score': 5,
            'similarity_score': 0.42,
            'suggested_faqs': json.dumps([
                {'question': 'Does it handle lot tracking?', 'answer': 'Yes, end to end.'},
            ]),
            'suggested_tldr': 'ERP for food processors',
            'missing_features': json.dumps({
                'missing_keywords': {'traceability': 3, 'pricing': 2},
            }),
            'terminology_gaps': {'lot code': 2, 'https': 1},
            'missing_use_cases': ['recall management'],
            'competitive_gaps': None,
            'priority_actions': {'actions': ['Add pricing page', 'Add FAQ']},
            'inecta_mentioned': True,
            'inecta_mention_count': 2,
            'created_at': datetime(2025, 6, 2, 8, 0, tzinfo=timezone.utc),
        },
        {
            'id': 2,
            'query_id': 'q-2',
            'execution_id': 'e-1',
            'execution_date': date(2025, 6, 2),
            'persona_id': 11,
            'persona_name': 'CFO',
            'target_page_url': 'https://example.com/pricing',
            'page_title': 'Pricing',
            'priority_score': 3,
            'similarity_score': 0.8,
            'suggested_faqs': None,
            'suggested_tldr': None,
            'missing_features': {'pricing': 1, 'similarity_score': 0.8},
            'terminology_gaps': '{not json',
            'missing_use_cases': [{'use_case': 'recall management'}, 'cost control'],
            'competitive_gaps': '',
            'priority_actions': None,
            'inecta_mentioned': False,
            'inecta_mention_count': 0,
            'created_at': '2025-06-02T08:05:00Z',
        },
        {
            'id': 3,
            'query_id': 'q-3',
            'execution_id': 'e-1',
            'execution_date': '2025-06-02',
            'persona_id': 10,
            'persona_name': 'Plant Manager',
            'target_page_url': 'https://example.com/erp',
            'page_title': 'Lot Tracking',
            'priority_score': 1,
            'similarity_score': 0.1,
            'suggested_faqs': '[]',
            'suggested_tldr': 'Track lots across plants',
            'missing_features': None,
            'terminology_gaps': {'lot code': 1},
            'missing_use_cases': None,
            'competitive_gaps': None,
            'priority_actions': {'actions': []},
            'inecta_mentioned': None,
            'inecta_mention_count': None,
            'created_at': None,
        },
    ]


@pytest.fixture
def text_rows() -> List[Dict[str, Any]]:
    """Raw AI response texts in fetch order."""
    return [
        {
            'id': 't-1',
            'content': 'Answer one',
            'metadata': json.dumps({
                'query_id': 'q-1',
                'execution_date': '2025-06-02',
                'prompt': 'best food erp',
            }),
            'created_at': '2025-06-02T07:00:00Z',
        },
        {
            'id': 't-2',
            'content': 'Duplicate answer',
            'metadata': {'query_id': 'q-1', 'execution_date': '2025-06-02'},
            'created_at': '2025-06-02T07:30:00Z',
        },
        {
            'id': 't-3',
            'content': 'Stale answer',
            'metadata': {'query_id': 'q-2', 'execution_date': '2025-06-01'},
            'created_at': '2025-06-01T07:00:00Z',
        },
        {
            'id': 't-4',
            'content': 'Orphan',
            'metadata': 'not json at all',
            'created_at': '2025-06-02T07:00:00Z',
        },
    ]


@pytest.fixture
def conversation_rows() -> List[Dict[str, Any]]:
    """Chatbot conversations, newest first."""
    return [
        {
            'conversation_id': 'c-3',
            'started_at': '2025-06-29T09:00:00Z',
            'city': 'Boise',
            'country': 'US',
            'lead_captured': False,
            'engagement_score': 6,
            'resolution_score': 5,
            'visitor_intent': 'support',
            'industry_segment': None,
            'buyer_stage': 'awareness',
            'questions_asked': None,
            'topics_discussed': ['support'],
            'content_gaps': [],
            'lead_classification': 'low',
            'analysis_status': 'analyzed',
        },
        {
            'conversation_id': 'c-2',
            'started_at': '2025-06-28T16:00:00',
            'city': 'Austin',
            'country': 'US',
            'lead_captured': False,
            'engagement_score': 0,
            'resolution_score': None,
            'lead_quality_score': 4,
            'visitor_intent': 'pricing',
            'industry_segment': 'Bakery',
            'buyer_stage': 'consideration',
            'questions_asked': '["How much does it cost?"]',
            'topics_discussed': '["pricing"]',
            'content_gaps': ['pricing page', 'integrations'],
            'lead_classification': 'high_potential',
            'analysis_status': 'pending',
        },
        {
            'conversation_id': 'c-1',
            'started_at': datetime(2025, 6, 28, 10, 15, tzinfo=timezone.utc),
            'city': 'Madison',
            'country': 'US',
            'lead_captured': True,
            'visitor_email': 'ops@dairy.example',
            'visitor_name': 'Dana',
            'meeting_booked': True,
            'engagement_score': 8,
            'resolution_score': 7,
            'sentiment_score': 0.6,
            'lead_quality_score': 9,
            'visitor_intent': 'pricing',
            'industry_segment': 'Dairy',
            'buyer_stage': 'decision',
            'questions_asked': ['How much does it cost?', 'Do you support lot tracking?'],
            'topics_discussed': ['pricing', 'traceability'],
            'content_gaps': ['pricing page'],
            'lead_classification': 'high_value_lead',
            'analysis_status': 'analyzed',
        },
        {
            'conversation_id': 'c-0',
            'started_at': '2025-04-01T09:00:00Z',
            'lead_captured': True,
            'visitor_intent': 'pricing',
            'industry_segment': None,
            'questions_asked': [],
            'content_gaps': None,
            'lead_classification': None,
            'analysis_status': None,
        },
    ]


@pytest.fixture
def message_rows() -> List[Dict[str, Any]]:
    """Messages deliberately out of timestamp order."""
    return [
        {'role': 'assistant', 'content': 'Hi! How can I help?', 'timestamp': '2025-06-28T10:15:05Z'},
        {'role': 'user', 'content': 'Pricing please', 'timestamp': '2025-06-28T10:15:30Z'},
        {'role': 'system', 'content': 'Session started', 'timestamp': '2025-06-28T10:15:00Z'},
    ]


# ============================================================
# RECORD STORE MOCK
# ============================================================

@pytest.fixture
def mock_store(
    report_rows: List[Dict[str, Any]],
    text_rows: List[Dict[str, Any]],
    conversation_rows: List[Dict[str, Any]],
    message_rows: List[Dict[str, Any]],
) -> AsyncMock:
    """
    Mock RecordStore returning the sample rows.

    Override individual methods with side_effect to simulate failures.
    """
    store = AsyncMock()
    store.fetch_latest_date = AsyncMock(return_value='2025-06-02')
    store.fetch_reports = AsyncMock(return_value=report_rows)
    store.fetch_raw_texts = AsyncMock(return_value=text_rows)
    store.fetch_conversations = AsyncMock(return_value=conversation_rows)
    store.fetch_messages = AsyncMock(return_value=message_rows)
    return store


# ============================================================
# PARSED RECORDS
# ============================================================

@pytest.fixture
def reports(report_rows: List[Dict[str, Any]]) -> List[RawReportRecord]:
    return [RawReportRecord.from_record(row) for row in report_rows]


@pytest.fixture
def texts(text_rows: List[Dict[str, Any]]) -> List[RawTextRecord]:
    return [RawTextRecord.from_record(row) for row in text_rows]


@pytest.fixture
def enriched(reports: List[RawReportRecord], texts: List[RawTextRecord]) -> List[EnrichedRecord]:
    """The sample reports correlated with the sample texts."""
    return correlate(reports, texts)


@pytest.fixture
def conversations(conversation_rows: List[Dict[str, Any]]) -> List[ConversationRecord]:
    return [ConversationRecord.from_record(row) for row in conversation_rows]

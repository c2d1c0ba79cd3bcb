"""
Flattened, spreadsheet-ready export of report and conversation records.

Rows are plain dicts keyed by display column name; to_csv_bytes turns them
into a CSV download with pandas.

Content gap records can be exported one row per record, or exploded into
one row per nested item (FAQ, missing keyword or priority action). A record
with no items of the exploded kind still yields one row with blank item
columns, so no record disappears from the export.

Records without a matched raw text carry NOT_AVAILABLE in the prompt and
response columns instead of a blank cell.
"""

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from report_engine.models import ConversationRecord, EnrichedRecord, ExplodeMode

# Placeholder for enrichment fields of uncorrelated records
NOT_AVAILABLE = "Not available"

REPORT_COLUMNS: List[str] = [
    "Execution Date",
    "Persona",
    "Page Title",
    "Target URL",
    "Priority Score",
    "Priority",
    "Similarity (%)",
    "Brand Mentioned",
    "Mention Count",
    "Missing Keywords",
    "TL;DR",
    "Prompt",
    "AI Response",
]

EXPLODE_COLUMNS: Dict[ExplodeMode, List[str]] = {
    ExplodeMode.FAQS: ["FAQ Question", "FAQ Answer"],
    ExplodeMode.KEYWORDS: ["Keyword"],
    ExplodeMode.ACTIONS: ["Action"],
}

CONVERSATION_COLUMNS: List[str] = [
    "Date",
    "Time",
    "City",
    "Country",
    "Visitor Email",
    "Visitor Name",
    "Intent",
    "Industry",
    "Buyer Stage",
    "Lead Captured",
    "Lead Classification",
    "Engagement Score",
    "Resolution Score",
    "Sentiment Score",
    "Lead Quality Score",
    "Meeting Booked",
    "Analysis Status",
]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


# =============================================================================
# Content Gap Reports
# =============================================================================


def report_row(record: EnrichedRecord) -> Dict[str, Any]:
    """One export row for a content gap record, without exploded columns."""
    return {
        "Execution Date": record.execution_date.isoformat() if record.execution_date else "",
        "Persona": record.persona_name or "",
        "Page Title": record.page_title or "",
        "Target URL": record.target_page_url or "",
        "Priority Score": record.priority_score,
        "Priority": record.priority_bucket.value,
        "Similarity (%)": round(record.similarity_score * 100.0, 1),
        "Brand Mentioned": _yes_no(record.brand_mentioned),
        "Mention Count": record.brand_mention_count,
        "Missing Keywords": "; ".join(record.missing_keywords()),
        "TL;DR": record.suggested_tldr or "",
        "Prompt": record.prompt if record.prompt is not None else NOT_AVAILABLE,
        "AI Response": record.text if record.text is not None else NOT_AVAILABLE,
    }


def _exploded_items(record: EnrichedRecord, explode: ExplodeMode) -> List[Dict[str, Any]]:
    if explode == ExplodeMode.FAQS:
        return [
            {
                "FAQ Question": _blank_if_none(faq.get("question")),
                "FAQ Answer": _blank_if_none(faq.get("answer")),
            }
            for faq in record.suggested_faqs or []
        ]
    if explode == ExplodeMode.KEYWORDS:
        return [{"Keyword": keyword} for keyword in record.missing_keywords(limit=None)]
    return [{"Action": action} for action in record.action_items()]


def report_columns(explode: Optional[ExplodeMode] = None) -> List[str]:
    if explode is None:
        return list(REPORT_COLUMNS)
    return REPORT_COLUMNS + EXPLODE_COLUMNS[explode]


def flatten_report_records(
    records: Sequence[EnrichedRecord],
    explode: Optional[ExplodeMode] = None,
) -> List[Dict[str, Any]]:
    """
    Flatten content gap records into export rows.

    Args:
        records: Records in display order.
        explode: Nested collection to expand into one row per item, or None
            for one row per record.

    Returns:
        Rows in record order; exploded items follow their record's order.
    """
    rows: List[Dict[str, Any]] = []
    for record in records:
        base = report_row(record)
        if explode is None:
            rows.append(base)
            continue
        items = _exploded_items(record, explode)
        if not items:
            items = [{column: "" for column in EXPLODE_COLUMNS[explode]}]
        rows.extend({**base, **item} for item in items)
    return rows


# =============================================================================
# Chatbot Conversations
# =============================================================================


def conversation_row(conversation: ConversationRecord) -> Dict[str, Any]:
    started = conversation.started_at
    return {
        "Date": started.date().isoformat() if started else "",
        "Time": started.strftime("%H:%M:%S") if started else "",
        "City": conversation.city or "",
        "Country": conversation.country or "",
        "Visitor Email": conversation.visitor_email or "",
        "Visitor Name": conversation.visitor_name or "",
        "Intent": conversation.visitor_intent or "",
        "Industry": conversation.industry_segment or "",
        "Buyer Stage": conversation.buyer_stage or "",
        "Lead Captured": _yes_no(conversation.lead_captured),
        "Lead Classification": conversation.lead_classification or "",
        "Engagement Score": _blank_if_none(conversation.engagement_score),
        "Resolution Score": _blank_if_none(conversation.resolution_score),
        "Sentiment Score": _blank_if_none(conversation.sentiment_score),
        "Lead Quality Score": _blank_if_none(conversation.lead_quality_score),
        "Meeting Booked": _yes_no(conversation.meeting_booked),
        "Analysis Status": (
            conversation.analysis_status.value if conversation.analysis_status else ""
        ),
    }


def flatten_conversations(conversations: Sequence[ConversationRecord]) -> List[Dict[str, Any]]:
    return [conversation_row(c) for c in conversations]


# =============================================================================
# Serialization
# =============================================================================


def to_dataframe(rows: Sequence[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    """Build a DataFrame with a fixed column order, even when there are no rows."""
    return pd.DataFrame(list(rows), columns=list(columns))


def to_csv_bytes(rows: Sequence[Dict[str, Any]], columns: Sequence[str]) -> bytes:
    """Serialize export rows to UTF-8 CSV with a header row."""
    return to_dataframe(rows, columns).to_csv(index=False).encode("utf-8")

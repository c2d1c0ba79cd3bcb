"""
Pydantic request/response models for the report engine.

This module provides type-safe data validation and serialization for the
records the engine consumes (report rows, raw texts, chatbot conversations),
the values it produces (enriched records, time buckets, category summaries,
frequency terms, pages) and the API contracts built on top of them.

Every semi-structured field is passed through the normalizer in a
``mode='before'`` validator, so a model instance never holds a JSON string
where a dict or list is expected.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType, datetime
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from report_engine.models.enums import (
    AnalysisStatus,
    HIGH_POTENTIAL_CLASSIFICATIONS,
    LeadStatus,
    PriorityBucket,
)
from report_engine.models.normalization import (
    coerce_date,
    coerce_datetime,
    normalize_json_field,
    normalize_string_list,
    safe_float,
    safe_int,
)


T = TypeVar("T")

# Cap on keywords shown per report card
MAX_KEYWORDS_PER_RECORD = 10


# =============================================================================
# Source Records
# =============================================================================


class RawReportRecord(BaseModel):
    """
    A content gap report row keyed by (query_id, execution_id).

    Priority is clamped into 1-5 and similarity is stored as a fraction in
    [0, 1]; upstream rows that carry a percentage (e.g. 72.5) are scaled down.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = None
    query_id: Optional[str] = None
    execution_id: Optional[str] = None
    execution_date: Optional[DateType] = None
    persona_id: Optional[str] = None
    persona_name: Optional[str] = None
    target_page_url: Optional[str] = None
    page_title: Optional[str] = None
    priority_score: int = Field(default=1, ge=1, le=5)
    similarity_score: float = Field(default=0.0, ge=0.0, le=1.0)

    suggested_faqs: Optional[List[Dict[str, Any]]] = None
    suggested_tldr: Optional[str] = None
    missing_features: Optional[Dict[str, Any]] = None
    terminology_gaps: Optional[Dict[str, Any]] = None
    missing_use_cases: Optional[List[Any]] = None
    competitive_gaps: Optional[Dict[str, Any]] = None
    priority_actions: Optional[Dict[str, Any]] = None

    brand_mentioned: bool = Field(
        default=False,
        validation_alias=AliasChoices("brand_mentioned", "inecta_mentioned"),
    )
    brand_mention_count: int = Field(
        default=0,
        validation_alias=AliasChoices("brand_mention_count", "inecta_mention_count"),
    )
    created_at: Optional[datetime] = None

    @field_validator(
        "id", "query_id", "execution_id", "persona_id", mode="before"
    )
    @classmethod
    def _stringify_identifier(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    @field_validator("execution_date", mode="before")
    @classmethod
    def _parse_execution_date(cls, value: Any) -> Optional[DateType]:
        return coerce_date(value, field_name="execution_date")

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value, field_name="created_at")

    @field_validator("priority_score", mode="before")
    @classmethod
    def _clamp_priority(cls, value: Any) -> int:
        score = safe_int(value)
        if score is None:
            return 1
        return max(1, min(5, score))

    @field_validator("similarity_score", mode="before")
    @classmethod
    def _normalize_similarity(cls, value: Any) -> float:
        score = safe_float(value)
        if score is None:
            return 0.0
        if 1.0 < score <= 100.0:
            score = score / 100.0
        return max(0.0, min(1.0, score))

    @field_validator("brand_mentioned", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("brand_mention_count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return max(0, safe_int(value) or 0)

    @field_validator("suggested_faqs", mode="before")
    @classmethod
    def _normalize_faqs(cls, value: Any) -> Optional[List[Dict[str, Any]]]:
        parsed = normalize_json_field(value, expected=list, field_name="suggested_faqs")
        if parsed is None:
            return None
        return [item for item in parsed if isinstance(item, dict)]

    @field_validator("missing_features", mode="before")
    @classmethod
    def _normalize_missing_features(cls, value: Any) -> Optional[Dict[str, Any]]:
        return normalize_json_field(value, expected=dict, field_name="missing_features")

    @field_validator("terminology_gaps", mode="before")
    @classmethod
    def _normalize_terminology_gaps(cls, value: Any) -> Optional[Dict[str, Any]]:
        return normalize_json_field(value, expected=dict, field_name="terminology_gaps")

    @field_validator("missing_use_cases", mode="before")
    @classmethod
    def _normalize_missing_use_cases(cls, value: Any) -> Optional[List[Any]]:
        return normalize_json_field(value, expected=list, field_name="missing_use_cases")

    @field_validator("competitive_gaps", mode="before")
    @classmethod
    def _normalize_competitive_gaps(cls, value: Any) -> Optional[Dict[str, Any]]:
        return normalize_json_field(value, expected=dict, field_name="competitive_gaps")

    @field_validator("priority_actions", mode="before")
    @classmethod
    def _normalize_priority_actions(cls, value: Any) -> Optional[Dict[str, Any]]:
        return normalize_json_field(value, expected=dict, field_name="priority_actions")

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "RawReportRecord":
        """Build a report from a store row (dict or asyncpg.Record)."""
        return cls.model_validate(dict(row))

    @computed_field
    @property
    def priority_bucket(self) -> PriorityBucket:
        return PriorityBucket.from_score(self.priority_score)

    def missing_keywords(self, limit: Optional[int] = MAX_KEYWORDS_PER_RECORD) -> List[str]:
        """
        Keywords the target page is missing.

        Reads ``missing_features.missing_keywords`` when present; otherwise
        the keys of ``missing_features`` itself, minus ``similarity_score``.
        """
        if not self.missing_features:
            return []
        nested = self.missing_features.get("missing_keywords")
        if isinstance(nested, dict):
            return [k for k in nested.keys() if isinstance(k, str)][:limit]
        if isinstance(nested, list):
            return [k for k in nested if isinstance(k, str)][:limit]
        keys = [
            k for k in self.missing_features.keys()
            if isinstance(k, str) and k not in ("similarity_score", "missing_keywords")
        ]
        return keys[:limit]

    def terminology_gap_terms(self) -> List[str]:
        if not self.terminology_gaps:
            return []
        return [k for k in self.terminology_gaps.keys() if isinstance(k, str)]

    def missing_use_case_phrases(self) -> List[str]:
        """Use case phrases; entries may be plain strings or {"use_case": ...} objects."""
        if not self.missing_use_cases:
            return []
        phrases: List[str] = []
        for item in self.missing_use_cases:
            if isinstance(item, str):
                phrases.append(item)
            elif isinstance(item, dict):
                text = item.get("use_case") or item.get("name") or item.get("title")
                if isinstance(text, str):
                    phrases.append(text)
        return [p.strip() for p in phrases if p.strip()]

    def faq_texts(self) -> List[str]:
        """Each FAQ flattened to "question answer"."""
        texts = []
        for faq in self.suggested_faqs or []:
            question = faq.get("question") or ""
            answer = faq.get("answer") or ""
            texts.append(f"{question} {answer}".strip())
        return texts

    def action_items(self) -> List[str]:
        if not self.priority_actions:
            return []
        actions = self.priority_actions.get("actions")
        if not isinstance(actions, list):
            return []
        return [a for a in actions if isinstance(a, str)]


class RawTextRecord(BaseModel):
    """
    A raw AI response text with its metadata map.

    Correlated to a report through ``metadata.query_id``; the metadata date
    (``execution_date`` or ``date``) scopes which reports it may match.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    content: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _normalize_metadata(cls, value: Any) -> Dict[str, Any]:
        return normalize_json_field(value, expected=dict, field_name="metadata") or {}

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value, field_name="created_at")

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "RawTextRecord":
        return cls.model_validate(dict(row))

    @property
    def correlation_key(self) -> Optional[str]:
        key = self.metadata.get("query_id")
        if key is None or key == "":
            return None
        return str(key)

    @property
    def prompt(self) -> Optional[str]:
        for name in ("prompt", "prompt_text", "query"):
            value = self.metadata.get(name)
            if isinstance(value, str) and value.strip():
                return value
        return None

    @property
    def metadata_date(self) -> Optional[DateType]:
        raw = self.metadata.get("execution_date") or self.metadata.get("date")
        if raw is not None:
            return coerce_date(raw, field_name="metadata.date")
        if self.created_at is not None:
            return self.created_at.date()
        return None


class EnrichedRecord(RawReportRecord):
    """
    A report augmented with its matched raw text, if any.

    ``text`` and ``prompt`` are None when no raw text matched; consumers
    must render an explicit placeholder for that case.
    """
    text: Optional[str] = None
    prompt: Optional[str] = None
    text_record_id: Optional[str] = None

    @computed_field
    @property
    def has_context(self) -> bool:
        return self.text is not None or self.prompt is not None


class ConversationRecord(BaseModel):
    """An analysed chatbot conversation."""
    model_config = ConfigDict(frozen=True)

    conversation_id: str
    started_at: Optional[datetime] = None
    city: Optional[str] = None
    country: Optional[str] = None
    status: Optional[str] = None
    lead_captured: bool = False
    visitor_email: Optional[str] = None
    visitor_name: Optional[str] = None
    meeting_booked: bool = False
    engagement_score: Optional[float] = None
    resolution_score: Optional[float] = None
    sentiment_score: Optional[float] = None
    lead_quality_score: Optional[float] = None
    visitor_intent: Optional[str] = None
    industry_segment: Optional[str] = None
    buyer_stage: Optional[str] = None
    questions_asked: List[str] = Field(default_factory=list)
    topics_discussed: List[str] = Field(default_factory=list)
    content_gaps: List[str] = Field(default_factory=list)
    improvement_suggestions: Optional[str] = None
    analyzed_at: Optional[datetime] = None
    analysis_status: Optional[AnalysisStatus] = None
    lead_classification: Optional[str] = None

    @field_validator("conversation_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator("started_at", "analyzed_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value)

    @field_validator("lead_captured", "meeting_booked", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool(value)

    @field_validator(
        "engagement_score",
        "resolution_score",
        "sentiment_score",
        "lead_quality_score",
        mode="before",
    )
    @classmethod
    def _coerce_score(cls, value: Any) -> Optional[float]:
        return safe_float(value)

    @field_validator("questions_asked", "topics_discussed", "content_gaps", mode="before")
    @classmethod
    def _normalize_list(cls, value: Any, info) -> List[str]:
        return normalize_string_list(value, field_name=info.field_name)

    @field_validator("analysis_status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Optional[AnalysisStatus]:
        try:
            return AnalysisStatus(value) if value else None
        except ValueError:
            return None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "ConversationRecord":
        return cls.model_validate(dict(row))

    @property
    def is_high_potential(self) -> bool:
        return self.lead_classification in HIGH_POTENTIAL_CLASSIFICATIONS


class ConversationMessage(BaseModel):
    """A single chatbot message, used for the conversation preview."""
    role: str
    content: Optional[str] = None
    timestamp: Optional[datetime] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        return coerce_datetime(value)


# =============================================================================
# Aggregates
# =============================================================================


class TimeBucket(BaseModel):
    """
    Aggregate for one calendar day.

    ``averages`` maps each score field to the mean of its non-null, non-zero
    samples; ``rate`` is flagged_count / count as a percentage.
    """
    date: DateType
    count: int = 0
    flagged_count: int = 0
    averages: Dict[str, float] = Field(default_factory=dict)
    rate: float = 0.0


class CategorySummary(BaseModel):
    """Grouped statistics for one value of a categorical field."""
    value: str
    count: int = 0
    flagged_count: int = 0
    averages: Dict[str, float] = Field(default_factory=dict)


class FrequencyTerm(BaseModel):
    """A mined term with the number of times it was seen."""
    term: str
    frequency: int


# =============================================================================
# Faceted View
# =============================================================================


class FilterState(BaseModel):
    """
    Active facets for the content gap report.

    Immutable; owned by the caller and never modified by the engine.
    """
    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    priority: Optional[PriorityBucket] = None
    persona: Optional[str] = None
    url: Optional[str] = None
    min_priority: Optional[int] = Field(default=None, ge=1, le=5)
    min_similarity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    brand_mentioned: Optional[bool] = None


class ConversationFilterState(BaseModel):
    """Active facets for the chatbot conversation list."""
    model_config = ConfigDict(frozen=True)

    search: Optional[str] = None
    intent: Optional[str] = None
    industry: Optional[str] = None
    buyer_stage: Optional[str] = None
    lead_status: Optional[LeadStatus] = None


class Page(BaseModel, Generic[T]):
    """One 1-based page of a result set."""
    items: List[T] = Field(default_factory=list)
    page: int
    page_size: int
    total_items: int
    total_pages: int


class PriorityCounts(BaseModel):
    """Record counts per priority tab."""
    all: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


# =============================================================================
# Views
# =============================================================================


class ReportStats(BaseModel):
    """
    Headline numbers for the content gap report.

    avg_similarity is a percentage (0-100).
    """
    total: int = 0
    high_priority: int = 0
    avg_similarity: float = 0.0
    mention_count: int = 0


class ReportFacets(BaseModel):
    """Dropdown options derived from the full report set."""
    personas: List[str] = Field(default_factory=list)
    urls: List[str] = Field(default_factory=list)
    priority_counts: PriorityCounts = Field(default_factory=PriorityCounts)


class ReportView(BaseModel):
    """
    The content gap report for one execution date.

    is_empty distinguishes "no data has been collected" from a failed fetch.
    text_fetch_degraded is set when raw texts could not be fetched and every
    record was built without enrichment.
    """
    date_scope: Optional[DateType] = None
    is_empty: bool = False
    text_fetch_degraded: bool = False
    records: List[EnrichedRecord] = Field(default_factory=list)
    stats: ReportStats = Field(default_factory=ReportStats)
    facets: ReportFacets = Field(default_factory=ReportFacets)


class ContentGapInsights(BaseModel):
    """Ranked insights mined from one execution date's reports."""
    date_scope: Optional[DateType] = None
    missing_keywords: List[FrequencyTerm] = Field(default_factory=list)
    terminology_gaps: List[FrequencyTerm] = Field(default_factory=list)
    missing_use_cases: List[FrequencyTerm] = Field(default_factory=list)


class ChatbotStats(BaseModel):
    """Headline numbers for chatbot analytics."""
    total_conversations: int = 0
    leads_captured: int = 0
    lead_capture_rate: float = 0.0
    avg_engagement_score: float = 0.0
    avg_resolution_score: float = 0.0
    high_potential_leads: int = 0
    conversations_analyzed: int = 0
    pending_analysis: int = 0


class ConversationFacets(BaseModel):
    intents: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    buyer_stages: List[str] = Field(default_factory=list)


class AnalyticsView(BaseModel):
    """Chatbot analytics: timeline, category breakdowns and mined terms."""
    window_days: int
    timeline: List[TimeBucket] = Field(default_factory=list)
    by_category: List[CategorySummary] = Field(default_factory=list)
    by_industry: List[CategorySummary] = Field(default_factory=list)
    top_terms: List[FrequencyTerm] = Field(default_factory=list)
    top_content_gaps: List[FrequencyTerm] = Field(default_factory=list)
    stats: ChatbotStats = Field(default_factory=ChatbotStats)
    facets: ConversationFacets = Field(default_factory=ConversationFacets)


# =============================================================================
# Requests
# =============================================================================


class ReportSearchRequest(BaseModel):
    """Body for the paginated content gap search endpoint."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "date": "2025-06-02",
                "filters": {"search": "pricing", "priority": "high"},
                "page": 1,
                "page_size": 20,
            }
        }
    )

    date: Optional[DateType] = None
    filters: FilterState = Field(default_factory=FilterState)
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)


class ConversationSearchRequest(BaseModel):
    """Body for the paginated conversation search endpoint."""
    filters: ConversationFilterState = Field(default_factory=ConversationFilterState)
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    window_days: Optional[int] = Field(default=None, ge=1)


# =============================================================================
# Responses
# =============================================================================


class ReportSearchResponse(BaseModel):
    """
    One page of filtered content gap records.

    priority_counts reflects the active filters other than the priority tab.
    """
    date_scope: Optional[DateType] = None
    text_fetch_degraded: bool = False
    priority_counts: PriorityCounts = Field(default_factory=PriorityCounts)
    results: Page[EnrichedRecord]

"""
Package initialization file for report engine models.

Exports all Pydantic schemas, enumerations and normalization helpers so other
modules can import them from report_engine.models directly.

Usage:
    from report_engine.models import (
        RawReportRecord,
        EnrichedRecord,
        FilterState,
        PriorityBucket,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from report_engine.models.enums import (
    AnalysisStatus,
    ExplodeMode,
    HIGH_POTENTIAL_CLASSIFICATIONS,
    LeadStatus,
    PriorityBucket,
)

# =============================================================================
# Normalization helpers
# =============================================================================

from report_engine.models.normalization import (
    coerce_date,
    coerce_datetime,
    normalize_json_field,
    normalize_string_list,
    safe_float,
    safe_int,
)

# =============================================================================
# Schemas
# =============================================================================

from report_engine.models.schemas import (
    # Source records
    RawReportRecord,
    RawTextRecord,
    EnrichedRecord,
    ConversationRecord,
    ConversationMessage,
    # Aggregates
    TimeBucket,
    CategorySummary,
    FrequencyTerm,
    # Faceted view
    FilterState,
    ConversationFilterState,
    Page,
    PriorityCounts,
    # Views
    ReportStats,
    ReportFacets,
    ReportView,
    ContentGapInsights,
    ChatbotStats,
    ConversationFacets,
    AnalyticsView,
    # Requests
    ReportSearchRequest,
    ConversationSearchRequest,
    # Responses
    ReportSearchResponse,
)


__all__ = [
    # Enums
    "AnalysisStatus",
    "ExplodeMode",
    "HIGH_POTENTIAL_CLASSIFICATIONS",
    "LeadStatus",
    "PriorityBucket",
    # Normalization
    "coerce_date",
    "coerce_datetime",
    "normalize_json_field",
    "normalize_string_list",
    "safe_float",
    "safe_int",
    # Source records
    "RawReportRecord",
    "RawTextRecord",
    "EnrichedRecord",
    "ConversationRecord",
    "ConversationMessage",
    # Aggregates
    "TimeBucket",
    "CategorySummary",
    "FrequencyTerm",
    # Faceted view
    "FilterState",
    "ConversationFilterState",
    "Page",
    "PriorityCounts",
    # Views
    "ReportStats",
    "ReportFacets",
    "ReportView",
    "ContentGapInsights",
    "ChatbotStats",
    "ConversationFacets",
    "AnalyticsView",
    # Requests
    "ReportSearchRequest",
    "ConversationSearchRequest",
    # Responses
    "ReportSearchResponse",
]

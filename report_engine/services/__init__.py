"""
Report Engine Services Module

Engine components, leaf-first:
- noise_filter: Stoplist, length, numeric and frequency filtering of terms
- correlator: Joins reports to raw AI response texts by query_id
- aggregator: Date buckets, category summaries and headline stats
- insight_miner: Frequency-ranked terms from one-to-many fields
- faceted_view: Conjunctive filters, facet options and pagination
- export: Flattened rows and CSV serialization
- report_builder: Async entry points that fetch from the record store and
  assemble the views

All components except report_builder are pure functions over in-memory
records; report_builder is the only module that performs I/O.
"""

# =============================================================================
# Noise Filter
# =============================================================================

from report_engine.services.noise_filter import (
    NoiseFilterConfig,
    filter_terms,
    rank_terms,
    rank_terms_with_fallback,
)

# =============================================================================
# Correlator
# =============================================================================

from report_engine.services.correlator import correlate

# =============================================================================
# Aggregator
# =============================================================================

from report_engine.services.aggregator import (
    aggregate_by_category,
    aggregate_by_date,
    compute_chatbot_stats,
    compute_report_stats,
)

# =============================================================================
# Insight Miner
# =============================================================================

from report_engine.services.insight_miner import (
    DEFAULT_TOP_N,
    mine_frequencies,
)

# =============================================================================
# Faceted View
# =============================================================================

from report_engine.services.faceted_view import (
    apply_conversation_filters,
    apply_filters,
    paginate,
    priority_counts,
)

# =============================================================================
# Export
# =============================================================================

from report_engine.services.export import (
    NOT_AVAILABLE,
    flatten_conversations,
    flatten_report_records,
    to_csv_bytes,
)

# =============================================================================
# Report Builder
# =============================================================================

from report_engine.services.report_builder import (
    apply_filters_and_paginate,
    build_analytics_view,
    build_content_gap_insights,
    build_report_view,
    fetch_message_preview,
    load_conversations,
)


__all__ = [
    # Noise filter
    "NoiseFilterConfig",
    "filter_terms",
    "rank_terms",
    "rank_terms_with_fallback",
    # Correlator
    "correlate",
    # Aggregator
    "aggregate_by_category",
    "aggregate_by_date",
    "compute_chatbot_stats",
    "compute_report_stats",
    # Insight miner
    "DEFAULT_TOP_N",
    "mine_frequencies",
    # Faceted view
    "apply_conversation_filters",
    "apply_filters",
    "paginate",
    "priority_counts",
    # Export
    "NOT_AVAILABLE",
    "flatten_conversations",
    "flatten_report_records",
    "to_csv_bytes",
    # Report builder
    "apply_filters_and_paginate",
    "build_analytics_view",
    "build_content_gap_insights",
    "build_report_view",
    "fetch_message_preview",
    "load_conversations",
]

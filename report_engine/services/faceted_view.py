"""
Filtering and pagination for the report and conversation lists.

Filters are conjunctive: a record is kept only if every active facet
matches. Facets left as None are inactive. The functions never modify the
records or the FilterState they are given.

Priority filtering compares against the record's stored priority_bucket,
the same value the tab counts are computed from, so a tab's count always
equals the length of the list it selects.

Pagination is 1-based and stateless. A page past the end is an empty page.
"""

import math
from typing import Callable, List, Optional, Sequence, Type, TypeVar

from report_engine.models import (
    ConversationFacets,
    ConversationFilterState,
    ConversationRecord,
    EnrichedRecord,
    FilterState,
    LeadStatus,
    Page,
    PriorityBucket,
    PriorityCounts,
    ReportFacets,
)

T = TypeVar("T")


# =============================================================================
# Search
# =============================================================================


def _contains(needle: str, haystacks: Sequence[Optional[str]]) -> bool:
    return any(h and needle in h.lower() for h in haystacks)


def report_search_fields(record: EnrichedRecord) -> List[Optional[str]]:
    """Text searched for a content gap record: title, persona, TL;DR, keywords, FAQs."""
    return [
        record.page_title,
        record.persona_name,
        record.suggested_tldr,
        *record.missing_keywords(limit=None),
        *record.faq_texts(),
    ]


def conversation_search_fields(conversation: ConversationRecord) -> List[Optional[str]]:
    return [
        conversation.visitor_email,
        conversation.city,
        *conversation.questions_asked,
        *conversation.topics_discussed,
    ]


# =============================================================================
# Report Filters
# =============================================================================


def _report_predicates(filters: FilterState) -> List[Callable[[EnrichedRecord], bool]]:
    predicates: List[Callable[[EnrichedRecord], bool]] = []

    search = (filters.search or "").strip().lower()
    if search:
        predicates.append(lambda r: _contains(search, report_search_fields(r)))
    if filters.priority is not None:
        predicates.append(lambda r: r.priority_bucket == filters.priority)
    if filters.persona:
        predicates.append(lambda r: r.persona_name == filters.persona)
    if filters.url:
        predicates.append(lambda r: r.target_page_url == filters.url)
    if filters.min_priority is not None:
        predicates.append(lambda r: r.priority_score >= filters.min_priority)
    if filters.min_similarity is not None:
        predicates.append(lambda r: r.similarity_score >= filters.min_similarity)
    if filters.brand_mentioned is not None:
        predicates.append(lambda r: r.brand_mentioned == filters.brand_mentioned)

    return predicates


def apply_filters(records: Sequence[EnrichedRecord], filters: FilterState) -> List[EnrichedRecord]:
    """
    Return the records matching every active facet, in their original order.
    """
    predicates = _report_predicates(filters)
    return [r for r in records if all(p(r) for p in predicates)]


def priority_counts(records: Sequence[EnrichedRecord], filters: Optional[FilterState] = None) -> PriorityCounts:
    """
    Record counts for the all/high/medium/low tabs.

    Counts reflect every active facet except the priority tab itself, so
    each tab shows how many records selecting it would list.
    """
    if filters is not None:
        records = apply_filters(records, filters.model_copy(update={"priority": None}))
    buckets = [r.priority_bucket for r in records]
    return PriorityCounts(
        all=len(buckets),
        high=buckets.count(PriorityBucket.HIGH),
        medium=buckets.count(PriorityBucket.MEDIUM),
        low=buckets.count(PriorityBucket.LOW),
    )


def report_facet_options(
    records: Sequence[EnrichedRecord],
    filters: Optional[FilterState] = None,
) -> ReportFacets:
    """Sorted distinct personas and URLs, plus priority tab counts."""
    return ReportFacets(
        personas=sorted({r.persona_name for r in records if r.persona_name}),
        urls=sorted({r.target_page_url for r in records if r.target_page_url}),
        priority_counts=priority_counts(records, filters),
    )


# =============================================================================
# Conversation Filters
# =============================================================================


def lead_status_of(conversation: ConversationRecord) -> LeadStatus:
    if conversation.lead_captured:
        return LeadStatus.CONVERTED
    if conversation.is_high_potential:
        return LeadStatus.HIGH_POTENTIAL
    return LeadStatus.LOW_POTENTIAL


def apply_conversation_filters(
    conversations: Sequence[ConversationRecord],
    filters: ConversationFilterState,
) -> List[ConversationRecord]:
    """Conversation counterpart of apply_filters."""
    search = (filters.search or "").strip().lower()

    def matches(c: ConversationRecord) -> bool:
        if search and not _contains(search, conversation_search_fields(c)):
            return False
        if filters.intent and c.visitor_intent != filters.intent:
            return False
        if filters.industry and c.industry_segment != filters.industry:
            return False
        if filters.buyer_stage and c.buyer_stage != filters.buyer_stage:
            return False
        if filters.lead_status is not None and lead_status_of(c) != filters.lead_status:
            return False
        return True

    return [c for c in conversations if matches(c)]


def conversation_facet_options(conversations: Sequence[ConversationRecord]) -> ConversationFacets:
    return ConversationFacets(
        intents=sorted({c.visitor_intent for c in conversations if c.visitor_intent}),
        industries=sorted({c.industry_segment for c in conversations if c.industry_segment}),
        buyer_stages=sorted({c.buyer_stage for c in conversations if c.buyer_stage}),
    )


# =============================================================================
# Pagination
# =============================================================================


def paginate(
    items: Sequence[T],
    page: int,
    page_size: int,
    item_type: Optional[Type[T]] = None,
) -> Page[T]:
    """
    Slice one 1-based page out of a result set.

    Args:
        items: The full, already filtered, result set.
        page: 1-based page index. Values < 1 or past the last page give an
            empty page.
        page_size: Items per page; must be >= 1.
        item_type: Item model, used to return a parametrized Page[item_type].

    Raises:
        ValueError: If page_size < 1.

    Example:
        >>> paginate(list(range(10)), page=5, page_size=5).items
        []
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    total = len(items)
    total_pages = math.ceil(total / page_size) if total else 0
    if page < 1 or page > total_pages:
        page_items: List[T] = []
    else:
        start = (page - 1) * page_size
        page_items = list(items[start:start + page_size])

    page_model = Page[item_type] if item_type is not None else Page
    return page_model(
        items=page_items,
        page=page,
        page_size=page_size,
        total_items=total,
        total_pages=total_pages,
    )

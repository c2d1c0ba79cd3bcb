"""
Tests for faceted filtering and pagination.

Verifies:
1. Filters are conjunctive and always return a subset
2. Search is case-insensitive across title, persona, TL;DR, keywords, FAQs
3. Priority tab counts match the lists their tabs select
4. Pagination is 1-based, stateless, and empty past the last page
"""

import pytest

from report_engine.models import (
    ConversationFilterState,
    EnrichedRecord,
    FilterState,
    LeadStatus,
    PriorityBucket,
)
from report_engine.services.faceted_view import (
    apply_conversation_filters,
    apply_filters,
    conversation_facet_options,
    lead_status_of,
    paginate,
    priority_counts,
    report_facet_options,
)


def _ids(records):
    return [r.query_id for r in records]


class TestApplyFilters:

    def test_no_filters_keeps_everything(self, enriched) -> None:
        assert apply_filters(enriched, FilterState()) == enriched

    @pytest.mark.parametrize(
        "search,expected",
        [
            ("food erp", ["q-1"]),          # title
            ("cfo", ["q-2"]),               # persona
            ("ACROSS PLANTS", ["q-3"]),     # TL;DR
            ("traceab", ["q-1"]),           # missing keyword
            ("end to end", ["q-1"]),        # FAQ answer
            ("plant manager", ["q-1", "q-3"]),
            ("nothing matches", []),
        ],
    )
    def test_search(self, enriched, search: str, expected) -> None:
        assert _ids(apply_filters(enriched, FilterState(search=search))) == expected

    def test_search_reaches_keywords_past_the_display_cap(self) -> None:
        keywords = {f"kw{i:02d}": 1 for i in range(12)}
        record = EnrichedRecord(query_id="q-9", missing_features={"missing_keywords": keywords})

        assert len(record.missing_keywords()) == 10
        assert _ids(apply_filters([record], FilterState(search="kw11"))) == ["q-9"]

    def test_blank_search_inactive(self, enriched) -> None:
        assert len(apply_filters(enriched, FilterState(search="   "))) == 3

    def test_priority_bucket(self, enriched) -> None:
        assert _ids(apply_filters(enriched, FilterState(priority=PriorityBucket.MEDIUM))) == ["q-2"]

    def test_filters_are_conjunctive(self, enriched) -> None:
        filters = FilterState(persona="Plant Manager", priority=PriorityBucket.LOW)
        assert _ids(apply_filters(enriched, filters)) == ["q-3"]

    def test_thresholds(self, enriched) -> None:
        assert _ids(apply_filters(enriched, FilterState(min_priority=3))) == ["q-1", "q-2"]
        assert _ids(apply_filters(enriched, FilterState(min_similarity=0.5))) == ["q-2"]

    def test_url_and_brand(self, enriched) -> None:
        filters = FilterState(url="https://example.com/erp", brand_mentioned=False)
        assert _ids(apply_filters(enriched, filters)) == ["q-3"]

    @pytest.mark.parametrize(
        "filters",
        [
            FilterState(search="pricing"),
            FilterState(priority=PriorityBucket.HIGH, min_similarity=0.3),
            FilterState(persona="CFO", url="https://example.com/erp"),
        ],
    )
    def test_result_is_subset_satisfying_every_predicate(self, enriched, filters) -> None:
        filtered = apply_filters(enriched, filters)
        assert len(filtered) <= len(enriched)
        for record in filtered:
            assert record in enriched
            if filters.priority is not None:
                assert record.priority_bucket == filters.priority
            if filters.min_similarity is not None:
                assert record.similarity_score >= filters.min_similarity
            if filters.persona:
                assert record.persona_name == filters.persona
            if filters.url:
                assert record.target_page_url == filters.url

    def test_filter_state_is_immutable(self) -> None:
        filters = FilterState(search="x")
        with pytest.raises(Exception):
            filters.search = "y"


class TestFacetCounts:

    def test_unfiltered_counts(self, enriched) -> None:
        counts = priority_counts(enriched)
        assert (counts.all, counts.high, counts.medium, counts.low) == (3, 1, 1, 1)

    def test_counts_ignore_the_priority_tab_itself(self, enriched) -> None:
        filters = FilterState(persona="Plant Manager", priority=PriorityBucket.HIGH)
        counts = priority_counts(enriched, filters)
        assert (counts.all, counts.high, counts.medium, counts.low) == (2, 1, 0, 1)

    def test_tab_count_matches_tab_list(self, enriched) -> None:
        base = FilterState(search="plant")
        counts = priority_counts(enriched, base)
        for bucket in PriorityBucket:
            selected = apply_filters(enriched, base.model_copy(update={"priority": bucket}))
            assert getattr(counts, bucket.value) == len(selected)

    def test_facet_options(self, enriched) -> None:
        facets = report_facet_options(enriched)
        assert facets.personas == ["CFO", "Plant Manager"]
        assert facets.urls == ["https://example.com/erp", "https://example.com/pricing"]
        assert facets.priority_counts.all == 3


class TestConversationFilters:

    def test_lead_status(self, conversations) -> None:
        statuses = {c.conversation_id: lead_status_of(c) for c in conversations}
        assert statuses == {
            "c-3": LeadStatus.LOW_POTENTIAL,
            "c-2": LeadStatus.HIGH_POTENTIAL,
            "c-1": LeadStatus.CONVERTED,
            "c-0": LeadStatus.CONVERTED,
        }

    def test_search_email_city_questions_topics(self, conversations) -> None:
        def search(text):
            filters = ConversationFilterState(search=text)
            return [c.conversation_id for c in apply_conversation_filters(conversations, filters)]

        assert search("DAIRY.example") == ["c-1"]
        assert search("austin") == ["c-2"]
        assert search("cost") == ["c-2", "c-1"]
        assert search("traceability") == ["c-1"]

    def test_equality_facets(self, conversations) -> None:
        filters = ConversationFilterState(intent="pricing", lead_status=LeadStatus.CONVERTED)
        result = apply_conversation_filters(conversations, filters)
        assert [c.conversation_id for c in result] == ["c-1", "c-0"]

        filters = ConversationFilterState(industry="Bakery", buyer_stage="consideration")
        assert [c.conversation_id for c in apply_conversation_filters(conversations, filters)] == ["c-2"]

    def test_facet_options(self, conversations) -> None:
        facets = conversation_facet_options(conversations)
        assert facets.intents == ["pricing", "support"]
        assert facets.industries == ["Bakery", "Dairy"]
        assert facets.buyer_stages == ["awareness", "consideration", "decision"]


class TestPaginate:

    def test_first_and_last_page(self) -> None:
        items = list(range(25))
        first = paginate(items, page=1, page_size=10)
        assert first.items == list(range(10))
        assert first.total_items == 25
        assert first.total_pages == 3
        assert paginate(items, page=3, page_size=10).items == [20, 21, 22, 23, 24]

    @pytest.mark.scenario
    def test_page_past_the_end_is_empty(self) -> None:
        page = paginate(list(range(20)), page=5, page_size=10)
        assert page.items == []
        assert page.total_pages == 2
        assert page.page == 5

    def test_page_zero_is_empty(self) -> None:
        assert paginate([1, 2, 3], page=0, page_size=2).items == []

    def test_empty_input(self) -> None:
        page = paginate([], page=1, page_size=10)
        assert page.items == []
        assert page.total_pages == 0

    def test_invalid_page_size(self) -> None:
        with pytest.raises(ValueError):
            paginate([1], page=1, page_size=0)

    def test_stateless(self) -> None:
        items = list(range(7))
        assert paginate(items, 2, 3) == paginate(items, 2, 3)

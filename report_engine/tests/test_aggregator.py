"""
Tests for date buckets, category summaries and headline stats.

Verifies:
1. Window bounds and that bucket counts sum to the in-window record count
2. Null and zero scores never pull a mean down
3. Division by zero yields 0, not NaN
4. Category grouping skips blank values and sorts by count, stable on ties
5. Report and chatbot headline stats
"""

from datetime import date, timedelta

import pytest

from report_engine.models import TimeBucket
from report_engine.services.aggregator import (
    aggregate_by_category,
    aggregate_by_date,
    compute_chatbot_stats,
    compute_report_stats,
    mean_of_present,
    percentage,
)
from report_engine.tests.conftest import ANALYTICS_TODAY


class TestHelpers:

    def test_mean_excludes_null_and_zero(self) -> None:
        assert mean_of_present([8, 0, None, 6]) == 7.0

    def test_mean_of_nothing_is_zero(self) -> None:
        assert mean_of_present([]) == 0.0
        assert mean_of_present([None, 0]) == 0.0

    def test_percentage_divide_by_zero(self) -> None:
        assert percentage(3, 0) == 0.0
        assert percentage(1, 4) == 25.0


class TestAggregateByDate:

    @pytest.mark.scenario
    def test_empty_input_returns_empty_list(self) -> None:
        assert aggregate_by_date([], window_days=30) == []

    def test_conversation_timeline(self, conversations) -> None:
        buckets = aggregate_by_date(conversations, 30, today=ANALYTICS_TODAY)

        assert [b.date for b in buckets] == [date(2025, 6, 28), date(2025, 6, 29)]
        first, second = buckets
        assert first.count == 2
        assert first.flagged_count == 1
        assert first.rate == 50.0
        # c-2's zero engagement and null resolution are left out
        assert first.averages == {"engagement_score": 8.0, "resolution_score": 7.0}
        assert second.count == 1
        assert second.rate == 0.0
        assert second.averages == {"engagement_score": 6.0, "resolution_score": 5.0}

    def test_counts_sum_to_in_window_records(self, conversations) -> None:
        buckets = aggregate_by_date(conversations, 30, today=ANALYTICS_TODAY)
        # c-0 started in April, outside the window
        assert sum(b.count for b in buckets) == len(conversations) - 1

    def test_wide_window_covers_every_record(self, conversations) -> None:
        buckets = aggregate_by_date(conversations, 365, today=ANALYTICS_TODAY)
        assert sum(b.count for b in buckets) == len(conversations)

    def test_window_bounds_are_inclusive(self) -> None:
        today = date(2025, 6, 30)
        records = [
            {"started_at": (today - timedelta(days=7)).isoformat()},
            {"started_at": today.isoformat()},
            {"started_at": (today - timedelta(days=8)).isoformat()},
            {"started_at": (today + timedelta(days=1)).isoformat()},
        ]
        buckets = aggregate_by_date(records, 7, flag_field=None, score_fields=(), today=today)
        assert [b.date for b in buckets] == [today - timedelta(days=7), today]

    def test_records_without_date_are_skipped(self) -> None:
        records = [{"started_at": None}, {"started_at": "garbage"}]
        assert aggregate_by_date(records, 30, today=ANALYTICS_TODAY) == []

    def test_bucket_without_scores_averages_zero(self) -> None:
        records = [{"started_at": "2025-06-30T10:00:00", "engagement_score": None}]
        buckets = aggregate_by_date(records, 1, score_fields=("engagement_score",), today=ANALYTICS_TODAY)
        assert buckets == [
            TimeBucket(
                date=date(2025, 6, 30),
                count=1,
                flagged_count=0,
                averages={"engagement_score": 0.0},
                rate=0.0,
            )
        ]


class TestAggregateByCategory:

    @pytest.mark.scenario
    def test_priority_buckets(self, enriched) -> None:
        summaries = aggregate_by_category(enriched, "priority_bucket")
        assert {s.value: s.count for s in summaries} == {"high": 1, "medium": 1, "low": 1}

    def test_sorted_by_count_then_first_seen(self, conversations) -> None:
        summaries = aggregate_by_category(conversations, "visitor_intent", flag_field="lead_captured")
        assert [(s.value, s.count, s.flagged_count) for s in summaries] == [
            ("pricing", 3, 2),
            ("support", 1, 0),
        ]

    def test_null_values_skipped(self, conversations) -> None:
        summaries = aggregate_by_category(
            conversations,
            "industry_segment",
            score_fields=("engagement_score", "lead_quality_score"),
        )
        assert [s.value for s in summaries] == ["Bakery", "Dairy"]
        dairy = summaries[1]
        assert dairy.averages == {"engagement_score": 8.0, "lead_quality_score": 9.0}
        bakery = summaries[0]
        assert bakery.averages == {"engagement_score": 0.0, "lead_quality_score": 4.0}

    def test_blank_strings_skipped(self) -> None:
        records = [{"k": "  "}, {"k": ""}, {"k": "x"}]
        assert [s.value for s in aggregate_by_category(records, "k")] == ["x"]


class TestHeadlineStats:

    def test_report_stats(self, enriched) -> None:
        stats = compute_report_stats(enriched)
        assert stats.total == 3
        assert stats.high_priority == 1
        assert stats.avg_similarity == pytest.approx(44.0)
        assert stats.mention_count == 1

    def test_report_stats_threshold(self, enriched) -> None:
        assert compute_report_stats(enriched, high_priority_threshold=3).high_priority == 2

    def test_report_stats_empty(self) -> None:
        stats = compute_report_stats([])
        assert stats.total == 0
        assert stats.avg_similarity == 0.0

    def test_chatbot_stats(self, conversations) -> None:
        stats = compute_chatbot_stats(conversations)
        assert stats.total_conversations == 4
        assert stats.leads_captured == 2
        assert stats.lead_capture_rate == 50.0
        assert stats.avg_engagement_score == 7.0
        assert stats.avg_resolution_score == 6.0
        assert stats.high_potential_leads == 2
        assert stats.conversations_analyzed == 2
        assert stats.pending_analysis == 1

    def test_chatbot_stats_empty(self) -> None:
        stats = compute_chatbot_stats([])
        assert stats.total_conversations == 0
        assert stats.lead_capture_rate == 0.0

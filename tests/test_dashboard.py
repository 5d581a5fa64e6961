"""Tests for dashboard: summary, distribution, highlights, filters and trends."""

from datetime import datetime, timezone

import plotly.graph_objects as go
import pytest

from dashboard import (
    active_filter_count,
    apply_filters,
    compute_summary,
    empty_filters,
    highlights_frame,
    policy_highlights,
    status_counts,
    status_distribution,
    status_distribution_figure,
    status_pie_figure,
    trend_figure,
    trend_frame,
    trend_window,
)
from mock_data import MockDataProvider

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def provider():
    return MockDataProvider(now=NOW)


@pytest.fixture
def items(provider):
    return provider.items()


def item_ids(items):
    return [i["id"] for i in items]


class TestSummary:
    def test_counts(self, items):
        summary = compute_summary(items)
        assert summary == {
            "totalResources": 5,
            "compliantResources": 2,
            "nonCompliantResources": 2,
            "compliancePercentage": 40,
            "nonCompliancePercentage": 40,
        }

    def test_rounds_half_up(self):
        items = [{"status": "Compliant"}] * 5 + [{"status": "NonCompliant"}] * 3
        assert compute_summary(items)["compliancePercentage"] == 63

    def test_empty(self):
        summary = compute_summary([])
        assert summary["totalResources"] == 0
        assert summary["compliancePercentage"] is None
        assert summary["nonCompliancePercentage"] is None


class TestDistribution:
    def test_groups_in_first_seen_order(self, items):
        df = status_distribution(items)
        assert list(df["name"]) == [
            "Azure Security Benchmark v3", "HIPAA HITRUST Blueprint", "Unassigned", "NIST SP 800-53 Rev. 5",
        ]

    def test_counts_per_initiative(self, items):
        rows = status_distribution(items).set_index("name")
        assert rows.loc["Azure Security Benchmark v3"].tolist() == [1, 1, 0]
        assert rows.loc["Unassigned"].tolist() == [0, 0, 1]

    def test_empty(self):
        df = status_distribution([])
        assert df.empty
        assert list(df.columns) == ["name", "compliant", "nonCompliant", "pending"]

    def test_figure_truncates_tick_labels(self, items):
        fig = status_distribution_figure(status_distribution(items))
        assert isinstance(fig, go.Figure)
        assert fig.layout.xaxis.ticktext[0] == "Azure Security Be..."
        assert fig.layout.xaxis.tickvals[0] == "Azure Security Benchmark v3"
        assert [t.name for t in fig.data] == ["Compliant", "Non-Compliant", "Pending"]

    def test_status_counts(self, items):
        counts = dict(zip(status_counts(items)["Status"], status_counts(items)["Count"]))
        assert counts == {"Compliant": 2, "Non-Compliant": 2, "Pending": 1}

    def test_pie_figure(self, items):
        assert isinstance(status_pie_figure(items), go.Figure)


class TestHighlights:
    def test_newest_first(self, items):
        assert item_ids(policy_highlights(items)) == ["item-001", "item-004", "item-002", "item-003", "item-005"]

    def test_limit(self, items):
        assert len(policy_highlights(items, limit=2)) == 2

    def test_input_not_mutated(self, items):
        before = item_ids(items)
        policy_highlights(items)
        assert item_ids(items) == before

    def test_frame(self, items):
        df = highlights_frame(policy_highlights(items), now=NOW)
        first = df.iloc[0]
        assert first["Resource"] == "vm-prod-01"
        assert first["Last Evaluated"] == "less than a minute ago"
        unassigned = df[df["Policy"] == "Require MFA for all admin accounts"].iloc[0]
        assert unassigned["Initiative"] == "N/A"
        assert unassigned["Status"] == "🕒 Pending"


class TestFilters:
    def test_no_filters(self, items, provider):
        filters = empty_filters()
        assert active_filter_count(filters) == 0
        assert apply_filters(items, filters, provider) == items

    def test_subscription(self, items, provider):
        filters = dict(empty_filters(), subscriptionId="sub-001")
        assert item_ids(apply_filters(items, filters, provider)) == ["item-001", "item-002", "item-004"]

    def test_initiative_id_resolved_to_name(self, items, provider):
        filters = dict(empty_filters(), policyInitiativeId="init-002")
        assert item_ids(apply_filters(items, filters, provider)) == ["item-003"]

    def test_policy_definition(self, items, provider):
        filters = dict(empty_filters(), policyDefinitionId="policy-005")
        assert item_ids(apply_filters(items, filters, provider)) == ["item-005"]

    def test_tag_key_only(self, items, provider):
        filters = dict(empty_filters(), tagKey="app")
        assert item_ids(apply_filters(items, filters, provider)) == ["item-001", "item-002", "item-003", "item-005"]

    def test_tag_key_and_value(self, items, provider):
        filters = dict(empty_filters(), tagKey="environment", tagValue="staging")
        assert item_ids(apply_filters(items, filters, provider)) == ["item-005"]

    def test_tag_value_without_key_ignored(self, items, provider):
        filters = dict(empty_filters(), tagValue="staging")
        assert apply_filters(items, filters, provider) == items

    def test_combined(self, items, provider):
        filters = dict(empty_filters(), subscriptionId="sub-001", tagKey="app", tagValue="inventory")
        assert active_filter_count(filters) == 3
        assert item_ids(apply_filters(items, filters, provider)) == ["item-002"]


class TestTrends:
    def test_window(self, provider):
        points = provider.trend()
        assert [p["date"] for p in trend_window(points, "last-3-months")] == ["Apr", "May", "Jun"]
        assert [p["date"] for p in trend_window(points, "last-30-days")] == ["Jun"]
        assert len(trend_window(points, "last-12-months")) == 6

    def test_unknown_range(self, provider):
        with pytest.raises(KeyError):
            trend_window(provider.trend(), "last-decade")

    def test_frame_percentages(self, provider):
        df = trend_frame(provider.trend())
        assert list(df["compliancePercentage"]) == [70, 75, 80, 78, 82, 85]

    def test_frame_zero_total(self):
        df = trend_frame([{"date": "Jan", "compliant": 0, "nonCompliant": 0, "total": 0}])
        assert df["compliancePercentage"].iloc[0] is None

    def test_figure(self, provider):
        fig = trend_figure(trend_frame(provider.trend()))
        assert isinstance(fig, go.Figure)
        assert [t.name for t in fig.data] == ["Compliant", "Non-Compliant"]

# dashboard.py - compliance aggregation and chart building for the dashboard views
from typing import Any, Dict, List, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from mock_data import ComplianceDataProvider
from utils import format_relative_time, parse_timestamp, percentage_of, truncate_label

HIGHLIGHTS_LIMIT = 7

STATUS_LABELS = {
    "Compliant": "Compliant",
    "NonCompliant": "Non-Compliant",
    "NotStarted": "Not Started",
    "Pending": "Pending",
    "Exempt": "Exempt",
}

STATUS_COLORS = {
    "Compliant": "#27ae60",
    "NonCompliant": "#e74c3c",
    "Pending": "#f39c12",
    "NotStarted": "#95a5a6",
    "Exempt": "#3498db",
}

STATUS_ICONS = {
    "Compliant": "✅",
    "NonCompliant": "⚠️",
    "Pending": "🕒",
}

# stacked bar series: column -> status it counts
DISTRIBUTION_SERIES = {
    "compliant": "Compliant",
    "nonCompliant": "NonCompliant",
    "pending": "Pending",
}

TIME_RANGES = {
    "last-30-days": ("Last 30 days", 1),
    "last-3-months": ("Last 3 months", 3),
    "last-6-months": ("Last 6 months", 6),
    "last-12-months": ("Last 12 months", 12),
}

FILTER_KEYS = ("subscriptionId", "policyInitiativeId", "policyDefinitionId", "tagKey", "tagValue")


# ============================================================
# Summary cards
# ============================================================
def compute_summary(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Counts for the summary cards.

    Percentages are None for an empty collection rather than dividing by zero.
    """
    total = len(items)
    compliant = sum(1 for i in items if i["status"] == "Compliant")
    non_compliant = sum(1 for i in items if i["status"] == "NonCompliant")
    return {
        "totalResources": total,
        "compliantResources": compliant,
        "nonCompliantResources": non_compliant,
        "compliancePercentage": percentage_of(compliant, total),
        "nonCompliancePercentage": percentage_of(non_compliant, total),
    }


# ============================================================
# Status distribution (stacked bar per initiative)
# ============================================================
def status_distribution(items: List[Dict[str, Any]]) -> pd.DataFrame:
    """Per-initiative compliant / non-compliant / pending counts, in first-seen order."""
    rows: Dict[str, Dict[str, Any]] = {}
    for item in items:
        name = item.get("policySetDefinitionName") or "Unassigned"
        row = rows.setdefault(name, {"name": name, "compliant": 0, "nonCompliant": 0, "pending": 0})
        for column, status in DISTRIBUTION_SERIES.items():
            if item["status"] == status:
                row[column] += 1
    return pd.DataFrame(list(rows.values()), columns=["name", *DISTRIBUTION_SERIES])


def status_distribution_figure(df: pd.DataFrame) -> go.Figure:
    fig = px.bar(
        df,
        x="name",
        y=list(DISTRIBUTION_SERIES),
        title="Compliance Status Distribution",
        color_discrete_map={col: STATUS_COLORS[status] for col, status in DISTRIBUTION_SERIES.items()},
    )
    fig.for_each_trace(lambda t: t.update(name=STATUS_LABELS[DISTRIBUTION_SERIES[t.name]]))
    fig.update_layout(barmode="stack", xaxis_title=None, yaxis_title="Resources", legend_title=None)
    fig.update_xaxes(
        tickmode="array",
        tickvals=list(df["name"]),
        ticktext=[truncate_label(n) for n in df["name"]],
        tickangle=-30,
    )
    return fig


def status_counts(items: List[Dict[str, Any]]) -> pd.DataFrame:
    counts = pd.Series([i["status"] for i in items], dtype="object").value_counts()
    return pd.DataFrame({"Status": [STATUS_LABELS.get(s, s) for s in counts.index], "Count": counts.values})


def status_pie_figure(items: List[Dict[str, Any]], title: str = "Compliance Status") -> go.Figure:
    df = status_counts(items)
    label_colors = {STATUS_LABELS[s]: c for s, c in STATUS_COLORS.items()}
    return px.pie(df, values="Count", names="Status", title=title, color="Status", color_discrete_map=label_colors)


# ============================================================
# Recent activity table
# ============================================================
def policy_highlights(items: List[Dict[str, Any]], limit: int = HIGHLIGHTS_LIMIT) -> List[Dict[str, Any]]:
    """Most recently evaluated items first; the input list is left untouched."""
    return sorted(items, key=lambda i: parse_timestamp(i["timestamp"]), reverse=True)[:limit]


def highlights_frame(items: List[Dict[str, Any]], now=None) -> pd.DataFrame:
    rows = []
    for item in items:
        status = item["status"]
        rows.append({
            "Status": f"{STATUS_ICONS.get(status, '')} {STATUS_LABELS.get(status, status)}".strip(),
            "Policy": item["policyName"],
            "Initiative": item.get("policySetDefinitionName") or "N/A",
            "Resource": item["resourceId"].rsplit("/", 1)[-1],
            "Resource Type": item["resourceType"],
            "Subscription": item["subscriptionId"],
            "Last Evaluated": format_relative_time(item["timestamp"], now=now),
            "Details": item.get("nonComplianceDetails", ""),
        })
    return pd.DataFrame(rows, columns=[
        "Status", "Policy", "Initiative", "Resource", "Resource Type", "Subscription", "Last Evaluated", "Details",
    ])


# ============================================================
# Filters
# ============================================================
def empty_filters() -> Dict[str, str]:
    return {key: "" for key in FILTER_KEYS}


def active_filter_count(filters: Dict[str, str]) -> int:
    return sum(1 for key in FILTER_KEYS if filters.get(key))


def apply_filters(items: List[Dict[str, Any]], filters: Dict[str, str],
                  provider: ComplianceDataProvider) -> List[Dict[str, Any]]:
    """
    Narrow items by subscription, initiative, policy definition and tag.

    Items carry initiative display names only, so the initiative id is resolved
    through the provider. A tag value is ignored unless a tag key is set.
    """
    subscription = filters.get("subscriptionId")
    definition = filters.get("policyDefinitionId")
    tag_key = (filters.get("tagKey") or "").strip()
    tag_value = (filters.get("tagValue") or "").strip()

    initiative_name = None
    if filters.get("policyInitiativeId"):
        names = {i["id"]: i["displayName"] for i in provider.initiatives()}
        initiative_name = names.get(filters["policyInitiativeId"], filters["policyInitiativeId"])

    result = []
    for item in items:
        if subscription and item["subscriptionId"] != subscription:
            continue
        if initiative_name and item.get("policySetDefinitionName") != initiative_name:
            continue
        if definition and item["policyDefinitionId"] != definition:
            continue
        if tag_key:
            tags = item.get("tags") or {}
            if tag_key not in tags:
                continue
            if tag_value and tags[tag_key] != tag_value:
                continue
        result.append(item)
    return result


# ============================================================
# Trends
# ============================================================
def trend_window(points: List[Dict[str, Any]], range_key: str) -> List[Dict[str, Any]]:
    """Keep the most recent monthly points covered by the selected time range."""
    _, months = TIME_RANGES[range_key]
    return points[-months:]


def trend_frame(points: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(points, columns=["date", "compliant", "nonCompliant", "total"])
    df["compliancePercentage"] = [
        percentage_of(c, t) if pd.notna(t) else None for c, t in zip(df["compliant"], df["total"])
    ]
    return df


def trend_figure(df: pd.DataFrame, title: Optional[str] = "Compliance Trend Over Time") -> go.Figure:
    fig = px.line(
        df,
        x="date",
        y=["compliant", "nonCompliant"],
        markers=True,
        title=title,
        color_discrete_map={"compliant": STATUS_COLORS["Compliant"], "nonCompliant": STATUS_COLORS["NonCompliant"]},
    )
    fig.for_each_trace(lambda t: t.update(name={"compliant": "Compliant", "nonCompliant": "Non-Compliant"}[t.name]))
    fig.update_layout(xaxis_title=None, yaxis_title=None, legend_title=None)
    fig.update_yaxes(ticksuffix="%")
    return fig

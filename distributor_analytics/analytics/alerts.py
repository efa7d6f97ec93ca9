"""Rule-based follow-up alerts for a customer account."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .reorder import STATUS_DUE_SOON, STATUS_OVERDUE


@dataclass
class DecisionAlert:
    """Represents an actionable alert presented to the sales rep."""

    title: str
    message: str
    severity: str
    recommendations: List[str]
    category: str


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def reorder_alerts(predictions: pd.DataFrame, *, limit: int = 10) -> List[DecisionAlert]:
    if predictions.empty:
        return []

    alerts: List[DecisionAlert] = []
    overdue = predictions.loc[predictions["status"] == STATUS_OVERDUE]
    if not overdue.empty:
        lines = [
            f"{row['name']} ({row['sku']}): every {row['avg_interval_days']} days, "
            f"last ordered {row['days_since_last']} days ago"
            for _, row in overdue.head(limit).iterrows()
        ]
        alerts.append(
            DecisionAlert(
                title="Reorders overdue",
                message=(
                    f"{_plural(len(overdue), 'product')} passed the usual reorder interval."
                    " Check stock with the account on the next visit."
                ),
                severity="danger",
                recommendations=lines,
                category="reorder",
            )
        )

    due_soon = predictions.loc[predictions["status"] == STATUS_DUE_SOON]
    if not due_soon.empty:
        lines = [
            f"{row['name']} ({row['sku']}): expected in {row['days_until_reorder']} days"
            for _, row in due_soon.head(limit).iterrows()
        ]
        alerts.append(
            DecisionAlert(
                title="Reorders coming up",
                message=f"{_plural(len(due_soon), 'product')} should be reordered soon.",
                severity="warning",
                recommendations=lines,
                category="reorder",
            )
        )
    return alerts


def dropoff_alerts(dropoffs: pd.DataFrame, *, limit: int = 10) -> List[DecisionAlert]:
    if dropoffs.empty:
        return []
    lines = [
        f"{row['name']} ({row['sku']}): {row['quantity']} ordered before, none since"
        for _, row in dropoffs.head(limit).iterrows()
    ]
    return [
        DecisionAlert(
            title="Products dropped off",
            message=(
                f"{_plural(len(dropoffs), 'product')} ordered repeatedly earlier"
                " have not been reordered."
            ),
            severity="warning",
            recommendations=lines,
            category="dropoff",
        )
    ]


def usage_alerts(gaps: pd.DataFrame) -> List[DecisionAlert]:
    if gaps.empty:
        return []
    alerts: List[DecisionAlert] = []
    buckets = list(dict.fromkeys(gaps["bucket"]))
    # longest gap first
    for bucket in sorted(buckets, key=lambda label: int(label.split("-")[0].rstrip("+")), reverse=True):
        subset = gaps.loc[gaps["bucket"] == bucket]
        severity = "danger" if bucket.endswith("+") else "info"
        alerts.append(
            DecisionAlert(
                title=f"Not ordered in {bucket} days",
                message=f"{_plural(len(subset), 'product')} may need attention or promotion.",
                severity=severity,
                recommendations=[
                    f"{row['name']} ({row['sku']}): {row['days_ago']} days ago"
                    for _, row in subset.iterrows()
                ],
                category="usage",
            )
        )
    return alerts


def collect_alerts(
    predictions: Optional[pd.DataFrame] = None,
    dropoffs: Optional[pd.DataFrame] = None,
    gaps: Optional[pd.DataFrame] = None,
) -> List[DecisionAlert]:
    alerts: List[DecisionAlert] = []
    if predictions is not None:
        alerts.extend(reorder_alerts(predictions))
    if dropoffs is not None:
        alerts.extend(dropoff_alerts(dropoffs))
    if gaps is not None:
        alerts.extend(usage_alerts(gaps))
    return alerts


__all__ = [
    "DecisionAlert",
    "collect_alerts",
    "dropoff_alerts",
    "reorder_alerts",
    "usage_alerts",
]

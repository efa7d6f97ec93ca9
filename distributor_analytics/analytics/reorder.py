"""Reorder timing predictions from a customer's order history."""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from ..models import Order
from ..settings import DEFAULT_DUE_SOON_DAYS, DEFAULT_USAGE_GAP_DAYS
from ..transformers import lines_to_frame

STATUS_OVERDUE = "overdue"
STATUS_DUE_SOON = "due-soon"
STATUS_ON_SCHEDULE = "on-schedule"

STATUS_ORDER = {STATUS_OVERDUE: 0, STATUS_DUE_SOON: 1, STATUS_ON_SCHEDULE: 2}

PREDICTION_COLUMNS = [
    "sku",
    "name",
    "avg_interval_days",
    "days_since_last",
    "days_until_reorder",
    "status",
    "order_count",
    "last_order_date",
]
USAGE_GAP_COLUMNS = ["sku", "name", "last_order_date", "days_ago", "bucket"]


def _round_half_up(values: pd.Series) -> pd.Series:
    return np.floor(values.astype(float) + 0.5).astype("int64")


def _sku_visits(orders: Iterable[Order]) -> pd.DataFrame:
    """One row per (SKU, order) pair, keeping the first product name per SKU."""
    lines = lines_to_frame(orders)
    if lines.empty:
        return lines
    lines["name"] = lines.groupby("sku", sort=False)["product_name"].transform("first")
    return lines.drop_duplicates(subset=["sku", "order_index"])


def predict_reorders(
    orders: Sequence[Order],
    *,
    now: date,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """Predict when each SKU in a single customer's history is due again.

    A SKU needs at least two orders. The reorder interval is the mean gap
    between consecutive order dates; a SKU is ``overdue`` once the days since
    its last order exceed that interval, ``due-soon`` when the expected date
    is ``due_soon_days`` away or less, and ``on-schedule`` otherwise.

    Rows are sorted overdue first, then due-soon, then on-schedule, each
    bucket by ascending days until reorder. ``limit`` truncates after sorting.
    """
    visits = _sku_visits(orders)
    if visits.empty:
        return pd.DataFrame(columns=PREDICTION_COLUMNS)

    grouped = (
        visits.groupby("sku", sort=False)
        .agg(
            name=("name", "first"),
            order_count=("date", "size"),
            first_date=("date", "min"),
            last_date=("date", "max"),
        )
        .reset_index()
    )
    grouped = grouped.loc[grouped["order_count"] >= 2].copy()
    if grouped.empty:
        return pd.DataFrame(columns=PREDICTION_COLUMNS)

    today = pd.Timestamp(now).normalize()
    span_days = (grouped["last_date"] - grouped["first_date"]).dt.days
    # consecutive gaps telescope, so their mean is the span over gap count
    avg_interval = span_days / (grouped["order_count"] - 1)
    days_since = (today - grouped["last_date"]).dt.days.astype(float)
    days_until = avg_interval - days_since

    grouped["status"] = np.select(
        [days_since > avg_interval, days_until <= due_soon_days],
        [STATUS_OVERDUE, STATUS_DUE_SOON],
        default=STATUS_ON_SCHEDULE,
    )
    grouped["avg_interval_days"] = _round_half_up(avg_interval)
    grouped["days_since_last"] = _round_half_up(days_since)
    grouped["days_until_reorder"] = _round_half_up(days_until)
    grouped["_status_rank"] = grouped["status"].map(STATUS_ORDER)
    grouped["_days_until"] = days_until
    grouped["last_order_date"] = grouped["last_date"].dt.date

    result = grouped.sort_values(
        ["_status_rank", "_days_until", "sku"], kind="mergesort"
    ).reset_index(drop=True)
    if limit is not None:
        result = result.head(limit)
    return result[PREDICTION_COLUMNS]


def usage_gaps(
    orders: Sequence[Order],
    *,
    now: date,
    thresholds: Sequence[int] = DEFAULT_USAGE_GAP_DAYS,
) -> pd.DataFrame:
    """Bucket SKUs by how long ago the customer last ordered them.

    With the default thresholds the buckets are ``"30-60"``, ``"60-90"`` and
    ``"90+"`` days. SKUs ordered within the first threshold are omitted.
    Rows are sorted oldest last order first.
    """
    visits = _sku_visits(orders)
    if visits.empty:
        return pd.DataFrame(columns=USAGE_GAP_COLUMNS)

    latest = (
        visits.groupby("sku", sort=False)
        .agg(name=("name", "first"), last_date=("date", "max"))
        .reset_index()
    )
    today = pd.Timestamp(now).normalize()
    latest["days_ago"] = (today - latest["last_date"]).dt.days

    bounds = list(thresholds)
    labels = [f"{low}-{high}" for low, high in zip(bounds, bounds[1:])] + [f"{bounds[-1]}+"]
    latest["bucket"] = pd.cut(
        latest["days_ago"],
        bins=bounds + [np.inf],
        labels=labels,
        right=True,
    ).astype(object)
    latest = latest.dropna(subset=["bucket"]).copy()
    latest["last_order_date"] = latest["last_date"].dt.date
    latest = latest.sort_values(["last_date", "sku"], kind="mergesort").reset_index(drop=True)
    return latest[USAGE_GAP_COLUMNS]


__all__ = [
    "PREDICTION_COLUMNS",
    "STATUS_DUE_SOON",
    "STATUS_ON_SCHEDULE",
    "STATUS_OVERDUE",
    "USAGE_GAP_COLUMNS",
    "predict_reorders",
    "usage_gaps",
]

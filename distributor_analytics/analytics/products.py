"""Product level analytics: SKU aggregation and quantity ranking."""
from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from ..models import Order
from ..settings import DEFAULT_TOP_N
from ..transformers import is_promotional, lines_to_frame

AGGREGATE_COLUMNS = ["sku", "name", "quantity", "revenue"]
RANKED_COLUMNS = ["rank", "sku", "name", "quantity", "revenue", "percentage"]


def aggregate_lines(lines: pd.DataFrame) -> pd.DataFrame:
    """Sum quantity and revenue per SKU from a line frame.

    The product name is taken from the first line seen for each SKU.
    """
    if lines.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS).astype(
            {"quantity": "int64", "revenue": float}
        )
    grouped = (
        lines.groupby("sku", sort=False)
        .agg(
            name=("product_name", "first"),
            quantity=("quantity", "sum"),
            revenue=("line_total", "sum"),
        )
        .reset_index()
    )
    return grouped[AGGREGATE_COLUMNS]


def aggregate_by_sku(orders: Iterable[Order]) -> pd.DataFrame:
    """Return quantity and revenue totals per SKU for ``orders``."""
    return aggregate_lines(lines_to_frame(orders))


def top_n(aggregate: pd.DataFrame, n: Optional[int] = DEFAULT_TOP_N) -> pd.DataFrame:
    """Rank an SKU aggregate by quantity.

    Ties on quantity are ordered by SKU ascending. ``percentage`` is each
    SKU's share of the whole aggregate, not only of the rows returned, rounded
    to one decimal. Pass ``n=None`` for the full ranking.
    """
    if aggregate.empty:
        return pd.DataFrame(columns=RANKED_COLUMNS)

    ranked = aggregate.sort_values(
        ["quantity", "sku"], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)
    total_quantity = float(ranked["quantity"].sum())
    if total_quantity:
        ranked["percentage"] = (ranked["quantity"] / total_quantity * 100).round(1)
    else:
        ranked["percentage"] = 0.0
    ranked.insert(0, "rank", range(1, len(ranked) + 1))
    if n is not None:
        ranked = ranked.head(n)
    return ranked[RANKED_COLUMNS]


def top_products(orders: Iterable[Order], n: Optional[int] = DEFAULT_TOP_N) -> pd.DataFrame:
    """Shortcut for ``top_n(aggregate_by_sku(orders), n)``."""
    return top_n(aggregate_by_sku(orders), n)


def bar_chart_data(ranked: pd.DataFrame) -> pd.DataFrame:
    """Add a ``bar_width`` column scaled to the best seller (100)."""
    if ranked.empty:
        return ranked.assign(bar_width=pd.Series(dtype=float))
    leader = float(ranked["quantity"].max())
    data = ranked.copy()
    data["bar_width"] = data["quantity"] / leader * 100 if leader else 0.0
    return data


__all__ = [
    "AGGREGATE_COLUMNS",
    "RANKED_COLUMNS",
    "aggregate_by_sku",
    "aggregate_lines",
    "bar_chart_data",
    "is_promotional",
    "top_n",
    "top_products",
]

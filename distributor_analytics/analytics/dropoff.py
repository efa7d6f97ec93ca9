"""Detect products a customer stopped ordering."""
from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

import pandas as pd

from ..models import Order
from ..settings import DEFAULT_DROPOFF_MIN_QUANTITY
from ..transformers import lines_to_frame

logger = logging.getLogger(__name__)

DROPOFF_COLUMNS = ["sku", "name", "quantity"]


def detect_dropoffs(
    orders: Sequence[Order],
    split_date: date,
    *,
    min_quantity: int = DEFAULT_DROPOFF_MIN_QUANTITY,
) -> pd.DataFrame:
    """Return SKUs ordered before ``split_date`` but never on or after it.

    Only SKUs with a before-split quantity of at least ``min_quantity`` are
    reported; one-off purchases are not a buying pattern. Rows are sorted by
    quantity descending, then SKU.
    """
    lines = lines_to_frame(orders)
    if lines.empty:
        return pd.DataFrame(columns=DROPOFF_COLUMNS)

    boundary = pd.Timestamp(split_date)
    before = lines.loc[lines["date"] < boundary]
    if before.empty:
        return pd.DataFrame(columns=DROPOFF_COLUMNS)
    after_skus = set(lines.loc[lines["date"] >= boundary, "sku"])

    totals = (
        before.groupby("sku", sort=False)
        .agg(name=("product_name", "first"), quantity=("quantity", "sum"))
        .reset_index()
    )
    dropped = totals.loc[
        ~totals["sku"].isin(after_skus) & (totals["quantity"] >= min_quantity)
    ]
    dropped = dropped.sort_values(
        ["quantity", "sku"], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)
    logger.debug("Found %d dropoffs before %s", len(dropped), split_date)
    return dropped[DROPOFF_COLUMNS]


def default_split_date(orders: Sequence[Order], now: date) -> date:
    """July 1 of the most recent complete calendar year covered by ``orders``.

    Falls back to July 1 of the previous year when no order falls in a
    completed year.
    """
    completed = [order.date.year for order in orders if order.date.year < now.year]
    year = max(completed) if completed else now.year - 1
    return date(year, 7, 1)


__all__ = ["DROPOFF_COLUMNS", "default_split_date", "detect_dropoffs"]

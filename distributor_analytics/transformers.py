"""Data transformation helpers shared across the analytics modules."""
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .models import Customer, Order, ProductLine

PROMOTIONAL_PREFIX = "MFPR"
PROMOTIONAL_SKUS = frozenset({"MFPETR"})

ORDER_COLUMNS = ["order_id", "customer_name", "date", "total", "po_number"]
LINE_COLUMNS = [
    "order_index",
    "order_id",
    "customer_name",
    "date",
    "sku",
    "product_name",
    "quantity",
    "line_total",
]


def is_promotional(sku: str) -> bool:
    """Return ``True`` for giveaway SKUs that never count toward sales analytics."""
    return sku.startswith(PROMOTIONAL_PREFIX) or sku in PROMOTIONAL_SKUS


def counted_lines(order: Order) -> List[ProductLine]:
    """Product lines of ``order`` that take part in analytics."""
    return [line for line in order.product_lines if not is_promotional(line.sku)]


def counted_total(order: Order) -> float:
    """Order total less the value of its promotional lines."""
    promotional = sum(line.total for line in order.product_lines if is_promotional(line.sku))
    return max(float(order.total) - promotional, 0.0)


def orders_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    """One row per order with its header fields.

    ``total`` excludes the value of promotional lines.
    """
    records = [
        {
            "order_id": order.id,
            "customer_name": order.customer_name,
            "date": order.date,
            "total": counted_total(order),
            "po_number": order.po_number,
        }
        for order in orders
    ]
    frame = pd.DataFrame(records, columns=ORDER_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    frame["total"] = frame["total"].astype(float)
    return frame


def lines_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    """Flatten ``orders`` into one row per counted product line.

    Notes and promotional lines are dropped here, so every analytic that
    works from this frame inherits the exclusion. ``order_index`` is the
    position of the order in ``orders``; ids from separately loaded
    collections may repeat.
    """
    records = [
        {
            "order_index": position,
            "order_id": order.id,
            "customer_name": order.customer_name,
            "date": order.date,
            "sku": line.sku,
            "product_name": line.product_name,
            "quantity": line.quantity,
            "line_total": float(line.total),
        }
        for position, order in enumerate(orders)
        for line in counted_lines(order)
    ]
    frame = pd.DataFrame(records, columns=LINE_COLUMNS)
    frame["date"] = pd.to_datetime(frame["date"])
    frame["quantity"] = frame["quantity"].astype("int64")
    frame["line_total"] = frame["line_total"].astype(float)
    return frame


def customer_index(customers: Iterable[Customer]) -> Dict[str, Customer]:
    """Index customers by name. The first record wins on duplicate names."""
    index: Dict[str, Customer] = {}
    for customer in customers:
        index.setdefault(customer.name, customer)
    return index


def filter_by_customer(orders: Iterable[Order], customer_name: str) -> List[Order]:
    return [order for order in orders if order.customer_name == customer_name]


def filter_since(orders: Iterable[Order], start: date) -> List[Order]:
    return [order for order in orders if order.date >= start]


def filter_year(orders: Iterable[Order], year: int) -> List[Order]:
    return [order for order in orders if order.date.year == year]


def filter_by_attribute(
    orders: Iterable[Order],
    index: Dict[str, Customer],
    attribute: str,
    value: Optional[str],
) -> List[Order]:
    """Orders whose customer record carries ``attribute == value``.

    Orders from customers missing from ``index`` never match.
    """
    if not value:
        return []
    selected = []
    for order in orders:
        customer = index.get(order.customer_name)
        if customer is not None and getattr(customer, attribute) == value:
            selected.append(order)
    return selected


def months_before(moment: date, months: int) -> date:
    """Return the calendar day ``months`` months before ``moment``."""
    return (pd.Timestamp(moment) - pd.DateOffset(months=months)).date()


def merge_order_sources(live: Sequence[Order], historical: Sequence[Order]) -> List[Order]:
    """Combine live orders with historical ones not already present.

    A historical order is treated as a duplicate when an order already kept
    shares its PO number and date. Orders without a PO number are always kept,
    even when another no-PO order falls on the same date.
    """
    merged = list(live)
    seen = {(order.po_number, order.date) for order in merged if order.po_number}
    for order in historical:
        key = (order.po_number, order.date)
        if order.po_number and key in seen:
            continue
        if order.po_number:
            seen.add(key)
        merged.append(order)
    return merged


__all__ = [
    "LINE_COLUMNS",
    "ORDER_COLUMNS",
    "counted_lines",
    "counted_total",
    "customer_index",
    "filter_by_attribute",
    "filter_by_customer",
    "filter_since",
    "filter_year",
    "is_promotional",
    "lines_to_frame",
    "merge_order_sources",
    "months_before",
    "orders_to_frame",
]

"""Record types shared by the loaders and the analytics modules."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class ProductLine:
    """A product line on an order."""

    sku: str
    product_name: str
    quantity: int
    total: float


@dataclass(frozen=True)
class NoteLine:
    """Free-text annotation attached to an order. Never counted in analytics."""

    text: str


LineItem = Union[ProductLine, NoteLine]


@dataclass(frozen=True)
class Order:
    id: object
    customer_name: str
    date: date
    total: float
    items: Tuple[LineItem, ...] = ()
    po_number: Optional[str] = None
    customer_contact: Optional[str] = None

    @property
    def product_lines(self) -> Tuple[ProductLine, ...]:
        return tuple(item for item in self.items if isinstance(item, ProductLine))


@dataclass(frozen=True)
class Customer:
    name: str
    ship_state: Optional[str] = None
    ship_city: Optional[str] = None


@dataclass(frozen=True)
class StateTotals:
    """Prior-year figures for a single state as supplied by the YoY dataset."""

    sales_current: float
    sales_prior: float
    change: float
    pct_change: float


@dataclass(frozen=True)
class YoYDataset:
    """Precomputed comparison of two completed years.

    ``current_year`` is the later of the two years embedded in the dataset
    (for example 2025 in a 2024/2025 comparison) and ``prior_year`` the
    earlier one.
    """

    current_year: int
    prior_year: int
    territory_total_current: float
    territory_total_prior: float
    territory_change: float
    territory_pct_change: float
    state_totals: Dict[str, StateTotals] = field(default_factory=dict)
    comparison_period: str = ""


__all__ = [
    "Customer",
    "LineItem",
    "NoteLine",
    "Order",
    "ProductLine",
    "StateTotals",
    "YoYDataset",
]

"""Top-N SKU tables for the territory, state, metro and account scopes."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Optional, Sequence

import pandas as pd

from ..models import Customer, Order
from ..settings import AnalyticsSettings
from ..transformers import (
    customer_index,
    filter_by_attribute,
    filter_by_customer,
    filter_since,
    filter_year,
    months_before,
)
from .products import aggregate_by_sku, top_n

logger = logging.getLogger(__name__)


SCOPE_LABELS = {
    "territory": "Territory Top {n} SKUs (All-Time)",
    "state": "{state} Top {n} SKUs (All-Time)",
    "metro": "{city} Metro Top {n} SKUs (All-Time)",
    "account": "{customer} - Top {n} SKUs (All-Time)",
    "recent": "{customer} - Top {n} SKUs (Last {months} Months)",
    "year": "{customer} - Top {n} SKUs ({year})",
}


@dataclass
class ScopeRankings:
    """Ranked SKU tables for one searched customer.

    ``state`` and ``metro`` are ``None`` when the customer has no state or
    city on file; an empty frame means the scope exists but has no sales.
    """

    customer_name: str
    customer_state: Optional[str]
    customer_city: Optional[str]
    territory: pd.DataFrame
    state: Optional[pd.DataFrame]
    metro: Optional[pd.DataFrame]
    account: pd.DataFrame
    recent: pd.DataFrame
    recent_since: date
    recent_months: int
    year_tables: Dict[int, pd.DataFrame] = field(default_factory=dict)

    def tables(self) -> Dict[str, pd.DataFrame]:
        """Return the non-empty tables in display order keyed by scope."""
        ordered = {
            "territory": self.territory,
            "state": self.state,
            "metro": self.metro,
            "account": self.account,
        }
        for year, table in sorted(self.year_tables.items()):
            ordered[f"year_{year}"] = table
        ordered["recent"] = self.recent
        return {key: table for key, table in ordered.items() if table is not None and not table.empty}

    def title(self, scope: str, n: int) -> str:
        if scope.startswith("year_"):
            return SCOPE_LABELS["year"].format(n=n, customer=self.customer_name, year=scope[5:])
        return SCOPE_LABELS[scope].format(
            n=n,
            state=self.customer_state or "",
            city=self.customer_city or "",
            customer=self.customer_name,
            months=self.recent_months,
        )


def scope_table(orders: Iterable[Order], n: Optional[int]) -> pd.DataFrame:
    return top_n(aggregate_by_sku(orders), n)


def account_year_top_n(orders: Iterable[Order], year: int, n: Optional[int]) -> pd.DataFrame:
    """Top-N for one customer's orders placed in calendar ``year``."""
    return scope_table(filter_year(orders, year), n)


def rank_scopes(
    historical_orders: Sequence[Order],
    customers: Iterable[Customer],
    customer_name: str,
    *,
    now: date,
    settings: Optional[AnalyticsSettings] = None,
    years: Sequence[int] = (),
) -> ScopeRankings:
    """Build the ranked SKU tables for ``customer_name``.

    Args:
        historical_orders: every historical order in the territory.
        customers: customer records used to resolve ship state and city.
        customer_name: exact name of the searched account.
        now: reference day for the recent window.
        settings: cut-off and window lengths; defaults apply when omitted.
        years: calendar years for which an account-level table is added.
    """
    settings = settings or AnalyticsSettings()
    n = settings.top_n
    index = customer_index(customers)
    customer = index.get(customer_name)
    state = customer.ship_state if customer else None
    city = customer.ship_city if customer else None

    account_orders = filter_by_customer(historical_orders, customer_name)
    recent_since = months_before(now, settings.recent_months)

    state_table = None
    if state:
        state_table = scope_table(filter_by_attribute(historical_orders, index, "ship_state", state), n)
    metro_table = None
    if city:
        metro_table = scope_table(filter_by_attribute(historical_orders, index, "ship_city", city), n)

    logger.debug(
        "Ranking scopes for %s: %d territory orders, %d account orders",
        customer_name,
        len(historical_orders),
        len(account_orders),
    )
    return ScopeRankings(
        customer_name=customer_name,
        customer_state=state,
        customer_city=city,
        territory=scope_table(historical_orders, n),
        state=state_table,
        metro=metro_table,
        account=scope_table(account_orders, n),
        recent=scope_table(filter_since(account_orders, recent_since), n),
        recent_since=recent_since,
        recent_months=settings.recent_months,
        year_tables={year: account_year_top_n(account_orders, year, n) for year in years},
    )


__all__ = [
    "SCOPE_LABELS",
    "ScopeRankings",
    "account_year_top_n",
    "rank_scopes",
    "scope_table",
]

"""Customer history search and the analyses shown alongside it."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .analytics.alerts import DecisionAlert, collect_alerts
from .analytics.dropoff import DROPOFF_COLUMNS, default_split_date, detect_dropoffs
from .analytics.ranking import ScopeRankings, rank_scopes
from .analytics.reorder import PREDICTION_COLUMNS, USAGE_GAP_COLUMNS, predict_reorders, usage_gaps
from .analytics.sales import year_summary
from .data_loader import OrderDataError
from .models import Customer, Order
from .settings import AnalyticsSettings
from .transformers import merge_order_sources

logger = logging.getLogger(__name__)


@dataclass
class CustomerHistoryReport:
    """Everything the history screen shows for one search."""

    search_term: str
    customer_name: Optional[str]
    orders: List[Order]
    split_date: Optional[date] = None
    dropoffs: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=DROPOFF_COLUMNS))
    predictions: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=PREDICTION_COLUMNS))
    usage_gaps: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=USAGE_GAP_COLUMNS))
    rankings: Optional[ScopeRankings] = None
    year_summaries: Dict[int, Dict[str, object]] = field(default_factory=dict)
    alerts: List[DecisionAlert] = field(default_factory=list)
    display_limit: int = 10

    @property
    def found(self) -> bool:
        return bool(self.orders)

    @property
    def top_predictions(self) -> pd.DataFrame:
        return self.predictions.head(self.display_limit)


def search_orders(orders: Iterable[Order], term: str) -> List[Order]:
    """Orders whose customer name contains ``term``, oldest first.

    Matching is a case-insensitive substring test.
    """
    needle = (term or "").strip().lower()
    if not needle:
        raise OrderDataError("Please enter a customer name to search")
    matches = [order for order in orders if needle in order.customer_name.lower()]
    return sorted(matches, key=lambda order: order.date)


def analyze_customer_history(
    live_orders: Sequence[Order],
    historical_orders: Sequence[Order],
    customers: Iterable[Customer],
    term: str,
    *,
    now: date,
    settings: Optional[AnalyticsSettings] = None,
) -> CustomerHistoryReport:
    """Search the combined order history and run every per-customer analysis.

    Dropoffs, reorder predictions and usage gaps run over all matching
    orders. Ranked SKU tables use the historical orders and the name on the
    oldest matching order.
    """
    settings = settings or AnalyticsSettings()
    all_orders = merge_order_sources(live_orders, historical_orders)
    matches = search_orders(all_orders, term)
    if not matches:
        logger.info("No orders found for %r", term)
        return CustomerHistoryReport(
            search_term=term,
            customer_name=None,
            orders=[],
            display_limit=settings.reorder_display_limit,
        )

    customer_name = matches[0].customer_name
    split_date = settings.dropoff_split_date or default_split_date(all_orders, now)
    dropoffs = detect_dropoffs(matches, split_date, min_quantity=settings.dropoff_min_quantity)
    predictions = predict_reorders(matches, now=now, due_soon_days=settings.due_soon_days)
    gaps = usage_gaps(matches, now=now, thresholds=settings.usage_gap_days)
    rankings = rank_scopes(
        historical_orders,
        customers,
        customer_name,
        now=now,
        settings=settings,
        years=(now.year - 1, now.year),
    )
    summaries = {year: year_summary(matches, year) for year in (now.year, now.year - 1)}

    logger.debug(
        "History for %s: %d orders, %d predictions, %d dropoffs",
        customer_name,
        len(matches),
        len(predictions),
        len(dropoffs),
    )
    return CustomerHistoryReport(
        search_term=term,
        customer_name=customer_name,
        orders=matches,
        split_date=split_date,
        dropoffs=dropoffs,
        predictions=predictions,
        usage_gaps=gaps,
        rankings=rankings,
        year_summaries=summaries,
        alerts=collect_alerts(predictions, dropoffs, gaps),
        display_limit=settings.reorder_display_limit,
    )


__all__ = ["CustomerHistoryReport", "analyze_customer_history", "search_orders"]

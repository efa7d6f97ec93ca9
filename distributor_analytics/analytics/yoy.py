"""Year-over-year sales comparison by state and territory."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Sequence

import pandas as pd

from ..geography import Classifier, state_classifier
from ..models import Order, YoYDataset
from ..settings import AnalyticsSettings
from ..transformers import orders_to_frame

logger = logging.getLogger(__name__)

STATE_COLUMNS = [
    "state",
    "sales_target",
    "sales_prior_to_date",
    "sales_current",
    "sales_prior",
    "change",
    "pct_change",
]


@dataclass
class YoYReport:
    """Current-year figures alongside a precomputed prior-year comparison.

    ``target_year`` is the year computed from orders (usually year to date).
    ``current_year`` and ``prior_year`` are the two completed years embedded
    in the dataset; ``change`` and ``pct_change`` compare those two only.
    No delta is computed between the target year and the dataset years.
    """

    target_year: int
    current_year: int
    prior_year: int
    territory_target: float
    territory_prior_to_date: Optional[float]
    territory_current: float
    territory_prior: float
    territory_change: float
    territory_pct_change: float
    unmatched_target: float
    states: pd.DataFrame
    comparison_period: str
    as_of: Optional[date] = None

    def state_row(self, state: str) -> Dict[str, object]:
        match = self.states.loc[self.states["state"] == state]
        if match.empty:
            raise KeyError(state)
        return match.iloc[0].to_dict()


def _state_sales(frame: pd.DataFrame, classifier: Classifier) -> pd.Series:
    if frame.empty:
        return pd.Series(dtype=float)
    states = frame["customer_name"].map(classifier)
    return frame.assign(state=states).dropna(subset=["state"]).groupby("state")["total"].sum()


def compute_yoy(
    orders: Sequence[Order],
    prior_dataset: YoYDataset,
    target_year: int,
    *,
    classifier: Optional[Classifier] = None,
    as_of: Optional[date] = None,
    settings: Optional[AnalyticsSettings] = None,
) -> YoYReport:
    """Combine ``target_year`` totals from orders with a prior-year dataset.

    Args:
        orders: live and historical orders, already de-duplicated.
        prior_dataset: the precomputed comparison of two completed years.
        target_year: calendar year to total from ``orders``.
        classifier: maps a customer name to a state code or ``None``. Orders
            it cannot place count toward the territory only.
        as_of: when given, also total the same span of the previous year
            (January 1 through the same month and day) from ``orders``.
        settings: supplies the tracked states when no ``classifier`` is
            given.
    """
    if classifier is None:
        classifier = state_classifier((settings or AnalyticsSettings()).tracked_states)
    frame = orders_to_frame(orders)
    years = frame["date"].dt.year
    target = frame.loc[years == target_year]
    target_by_state = _state_sales(target, classifier)

    prior_to_date_by_state: Optional[pd.Series] = None
    territory_prior_to_date: Optional[float] = None
    if as_of is not None:
        cutoff = pd.Timestamp(as_of) - pd.DateOffset(years=1)
        window = frame.loc[(years == target_year - 1) & (frame["date"] <= cutoff)]
        prior_to_date_by_state = _state_sales(window, classifier)
        territory_prior_to_date = float(window["total"].sum())

    states = sorted(set(prior_dataset.state_totals) | set(target_by_state.index))
    rows = []
    for state in states:
        totals = prior_dataset.state_totals.get(state)
        rows.append(
            {
                "state": state,
                "sales_target": float(target_by_state.get(state, 0.0)),
                "sales_prior_to_date": (
                    float(prior_to_date_by_state.get(state, 0.0))
                    if prior_to_date_by_state is not None
                    else pd.NA
                ),
                "sales_current": totals.sales_current if totals else 0.0,
                "sales_prior": totals.sales_prior if totals else 0.0,
                "change": totals.change if totals else 0.0,
                "pct_change": totals.pct_change if totals else 0.0,
            }
        )

    territory_target = float(target["total"].sum())
    unmatched = round(territory_target - float(target_by_state.sum()), 2)
    if unmatched:
        logger.debug("%.2f of %d sales could not be placed in a state", unmatched, target_year)

    return YoYReport(
        target_year=target_year,
        current_year=prior_dataset.current_year,
        prior_year=prior_dataset.prior_year,
        territory_target=territory_target,
        territory_prior_to_date=territory_prior_to_date,
        territory_current=prior_dataset.territory_total_current,
        territory_prior=prior_dataset.territory_total_prior,
        territory_change=prior_dataset.territory_change,
        territory_pct_change=prior_dataset.territory_pct_change,
        unmatched_target=unmatched,
        states=pd.DataFrame(rows, columns=STATE_COLUMNS),
        comparison_period=prior_dataset.comparison_period,
        as_of=as_of,
    )


__all__ = ["STATE_COLUMNS", "YoYReport", "compute_yoy"]

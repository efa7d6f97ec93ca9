"""Sales summaries for the reports and customer history screens."""
from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Sequence

import pandas as pd

from ..models import Order, YoYDataset
from ..transformers import orders_to_frame

MONTHLY_COLUMNS = ["month", "sales", "above_average"]
YEARLY_COLUMNS = ["year", "sales", "orders"]


def year_summary(orders: Sequence[Order], year: int) -> Dict[str, object]:
    """Headline KPIs for the orders placed in ``year``."""
    frame = orders_to_frame(orders)
    frame = frame.loc[frame["date"].dt.year == year].sort_values("date", kind="mergesort")
    order_count = int(len(frame))
    revenue = float(frame["total"].sum())
    return {
        "year": year,
        "orders": order_count,
        "revenue": revenue,
        "avg_order": revenue / order_count if order_count else 0.0,
        "first_order": frame["date"].iloc[0].date() if order_count else None,
        "last_order": frame["date"].iloc[-1].date() if order_count else None,
    }


def yearly_totals(orders: Sequence[Order]) -> pd.DataFrame:
    frame = orders_to_frame(orders)
    if frame.empty:
        return pd.DataFrame(columns=YEARLY_COLUMNS)
    grouped = (
        frame.assign(year=frame["date"].dt.year)
        .groupby("year")
        .agg(sales=("total", "sum"), orders=("total", "size"))
        .reset_index()
        .sort_values("year")
    )
    return grouped[YEARLY_COLUMNS].reset_index(drop=True)


def year_sales(
    orders: Sequence[Order],
    year: int,
    *,
    yoy_dataset: Optional[YoYDataset] = None,
) -> Dict[str, float]:
    """Sales and order count for ``year``.

    When the YoY dataset covers ``year`` its territory total is used for the
    sales figure so the reports screen agrees with the YoY comparison; the
    order count always comes from ``orders``.
    """
    frame = orders_to_frame(orders)
    in_year = frame.loc[frame["date"].dt.year == year]
    sales = float(in_year["total"].sum())
    if yoy_dataset is not None:
        if year == yoy_dataset.current_year and yoy_dataset.territory_total_current:
            sales = float(yoy_dataset.territory_total_current)
        elif year == yoy_dataset.prior_year and yoy_dataset.territory_total_prior:
            sales = float(yoy_dataset.territory_total_prior)
    return {"sales": sales, "orders": int(len(in_year))}


def period_sales(orders: Sequence[Order], *, now: date) -> Dict[str, Dict[str, float]]:
    """Today, week-to-date and month-to-date sales.

    Weeks start on Sunday.
    """
    frame = orders_to_frame(orders)
    today = pd.Timestamp(now).normalize()
    week_start = today - pd.Timedelta(days=(today.dayofweek + 1) % 7)
    month_start = today.replace(day=1)

    def _window(mask: pd.Series) -> Dict[str, float]:
        subset = frame.loc[mask]
        return {"sales": float(subset["total"].sum()), "orders": int(len(subset))}

    return {
        "today": _window(frame["date"] == today),
        "week": _window(frame["date"] >= week_start),
        "month": _window(frame["date"] >= month_start),
    }


def monthly_sales(orders: Sequence[Order]) -> Dict[str, object]:
    """Sales per ``YYYY-MM`` with total, monthly average and peak month."""
    frame = orders_to_frame(orders)
    if frame.empty:
        return {
            "months": pd.DataFrame(columns=MONTHLY_COLUMNS),
            "total": 0.0,
            "average": 0.0,
            "peak": 0.0,
        }
    months = (
        frame.assign(month=frame["date"].dt.strftime("%Y-%m"))
        .groupby("month")["total"]
        .sum()
        .reset_index()
        .rename(columns={"total": "sales"})
        .sort_values("month")
        .reset_index(drop=True)
    )
    total = float(months["sales"].sum())
    average = total / len(months)
    months["above_average"] = months["sales"] > average
    return {
        "months": months[MONTHLY_COLUMNS],
        "total": total,
        "average": average,
        "peak": float(months["sales"].max()),
    }


def top_customer(orders: Sequence[Order]) -> Optional[str]:
    """Customer with the highest total sales, ties broken by name."""
    frame = orders_to_frame(orders)
    if frame.empty:
        return None
    totals = frame.groupby("customer_name")["total"].sum().reset_index()
    totals = totals.sort_values(
        ["total", "customer_name"], ascending=[False, True], kind="mergesort"
    )
    return str(totals["customer_name"].iloc[0])


def import_summary(orders: Sequence[Order]) -> Dict[str, float]:
    """Counts shown after a historical import."""
    frame = orders_to_frame(orders)
    return {
        "orders": int(len(frame)),
        "customers": int(frame["customer_name"].nunique()),
        "revenue": float(frame["total"].sum()),
    }


__all__ = [
    "import_summary",
    "monthly_sales",
    "period_sales",
    "top_customer",
    "year_sales",
    "year_summary",
    "yearly_totals",
]

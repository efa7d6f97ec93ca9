from datetime import date
from pathlib import Path
import sys

import pandas as pd
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from distributor_analytics.analytics.yoy import STATE_COLUMNS, compute_yoy
from distributor_analytics.data_loader import load_orders, load_yoy_dataset
from distributor_analytics.settings import AnalyticsSettings
from conftest import order_record


@pytest.fixture
def dataset():
    return load_yoy_dataset(
        {
            "territory_total_2024": 1000,
            "territory_total_2025": 1200,
            "comparison_period": "Jan 1 - Dec 31",
            "state_totals": {
                "AL": {"sales_2024": 600, "sales_2025": 700},
                "ga": {"sales_2024": 400, "sales_2025": 500, "change": 100, "pct_change": 25},
            },
        }
    )


@pytest.fixture
def orders(make_orders):
    return make_orders(
        [
            ("Smoke Shop - AL", "2025-02-01", [("A", 1, 40.0)]),
            ("Smoke Shop - AL", "2025-06-01", [("A", 1, 60.0)]),
            ("Smoke Shop - AL", "2026-01-10", [("A", 1, 100.0)]),
            ("Lounge AL Hoover", "2026-01-12", [("A", 1, 50.0)]),
            ("Cigar Bar - GA", "2026-02-01", [("A", 1, 80.0)]),
            ("Nashville Cigars - TN", "2026-02-15", [("A", 1, 30.0)]),
            ("Mystery Shop", "2026-03-01", [("A", 1, 20.0)]),
        ]
    )


def test_target_year_sales_are_grouped_by_classified_state(orders, dataset):
    report = compute_yoy(orders, dataset, 2026)

    assert report.target_year == 2026
    assert (report.prior_year, report.current_year) == (2024, 2025)
    assert report.territory_target == 280.0
    assert report.unmatched_target == 20.0
    assert report.states["state"].tolist() == ["AL", "GA", "TN"]
    assert report.states.set_index("state")["sales_target"].to_dict() == {
        "AL": 150.0,
        "GA": 80.0,
        "TN": 30.0,
    }
    assert list(report.states.columns) == STATE_COLUMNS


def test_dataset_figures_pass_through_unchanged(orders, dataset):
    report = compute_yoy(orders, dataset, 2026)

    assert report.territory_current == 1200.0
    assert report.territory_prior == 1000.0
    assert report.territory_change == 200.0
    assert report.territory_pct_change == pytest.approx(20.0)
    assert report.comparison_period == "Jan 1 - Dec 31"

    alabama = report.state_row("AL")
    assert alabama["sales_current"] == 700.0
    assert alabama["sales_prior"] == 600.0
    assert alabama["change"] == 100.0
    assert alabama["pct_change"] == pytest.approx(16.6667, abs=1e-4)
    assert report.state_row("GA")["pct_change"] == 25.0

    tennessee = report.state_row("TN")
    assert tennessee["sales_current"] == 0.0
    assert tennessee["pct_change"] == 0.0


def test_prior_year_to_date_only_with_as_of(orders, dataset):
    without = compute_yoy(orders, dataset, 2026)
    with_cutoff = compute_yoy(orders, dataset, 2026, as_of=date(2026, 3, 15))

    assert without.territory_prior_to_date is None
    assert pd.isna(without.state_row("AL")["sales_prior_to_date"])
    assert with_cutoff.territory_prior_to_date == 40.0
    assert with_cutoff.state_row("AL")["sales_prior_to_date"] == 40.0
    assert with_cutoff.state_row("GA")["sales_prior_to_date"] == 0.0
    assert with_cutoff.as_of == date(2026, 3, 15)


def test_classifier_can_be_swapped(orders, dataset):
    report = compute_yoy(
        orders,
        dataset,
        2026,
        classifier=lambda name: "AL" if "Shop" in name else None,
    )

    assert report.states["state"].tolist() == ["AL", "GA"]
    assert report.state_row("AL")["sales_target"] == 120.0
    assert report.state_row("GA")["sales_target"] == 0.0
    assert report.unmatched_target == 160.0


def test_empty_orders_and_unknown_state(dataset):
    report = compute_yoy([], dataset, 2026)

    assert report.territory_target == 0.0
    assert report.unmatched_target == 0.0
    assert report.states["state"].tolist() == ["AL", "GA"]
    with pytest.raises(KeyError):
        report.state_row("KY")


def test_tracked_states_come_from_settings(orders, dataset):
    report = compute_yoy(orders, dataset, 2026, settings=AnalyticsSettings(tracked_states=("AL",)))

    assert report.states["state"].tolist() == ["AL", "GA"]
    assert report.state_row("GA")["sales_target"] == 0.0
    assert report.unmatched_target == 130.0


def test_promotional_line_value_is_left_out_of_sales(dataset):
    orders = load_orders(
        [order_record("Smoke Shop - AL", "2026-02-01", [("A", 1, 100.0), ("MFPR1", 1, 10.0)], total=110.0)]
    )

    report = compute_yoy(orders, dataset, 2026)

    assert report.territory_target == 100.0
    assert report.state_row("AL")["sales_target"] == 100.0
    assert report.unmatched_target == 0.0

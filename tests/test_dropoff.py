from datetime import date
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from distributor_analytics.analytics.dropoff import (
    DROPOFF_COLUMNS,
    default_split_date,
    detect_dropoffs,
)


def test_sku_missing_after_split_is_reported_with_total_quantity(make_orders):
    orders = make_orders(
        [
            ("Shop", "2025-03-01", [("A", 3, 30.0)]),
            ("Shop", "2025-04-01", [("A", 2, 20.0)]),
        ]
    )

    dropoffs = detect_dropoffs(orders, date(2025, 7, 1))

    assert dropoffs.to_dict("records") == [{"sku": "A", "name": "Cigar A", "quantity": 5}]


def test_minimum_quantity_threshold(make_orders):
    orders = make_orders([("Shop", "2025-03-01", [("ONEOFF", 1, 10.0), ("PAIR", 2, 20.0)])])

    default = detect_dropoffs(orders, date(2025, 7, 1))
    relaxed = detect_dropoffs(orders, date(2025, 7, 1), min_quantity=1)

    assert default["sku"].tolist() == ["PAIR"]
    assert relaxed["sku"].tolist() == ["PAIR", "ONEOFF"]


def test_order_on_split_date_counts_as_after(make_orders):
    orders = make_orders(
        [
            ("Shop", "2025-03-01", [("A", 4, 40.0), ("B", 3, 30.0)]),
            ("Shop", "2025-07-01", [("A", 1, 10.0)]),
        ]
    )

    dropoffs = detect_dropoffs(orders, date(2025, 7, 1))

    assert dropoffs["sku"].tolist() == ["B"]


def test_sorted_by_quantity_then_sku(make_orders):
    orders = make_orders(
        [
            ("Shop", "2025-01-15", [("C", 3, 1.0), ("B", 6, 1.0), ("A", 3, 1.0), ("KEEP", 9, 1.0)]),
            ("Shop", "2025-08-01", [("KEEP", 1, 1.0)]),
        ]
    )

    dropoffs = detect_dropoffs(orders, date(2025, 7, 1))

    assert dropoffs["sku"].tolist() == ["B", "A", "C"]
    assert dropoffs["quantity"].tolist() == [6, 3, 3]


def test_promotional_skus_never_drop_off(make_orders):
    orders = make_orders([("Shop", "2025-02-01", [("MFPR9", 12, 0.0), ("MFPETR", 4, 0.0)])])

    assert detect_dropoffs(orders, date(2025, 7, 1)).empty


def test_empty_inputs_return_empty_frame(make_orders):
    only_after = make_orders([("Shop", "2025-09-01", [("A", 5, 10.0)])])

    for orders in ([], only_after):
        dropoffs = detect_dropoffs(orders, date(2025, 7, 1))
        assert dropoffs.empty
        assert list(dropoffs.columns) == DROPOFF_COLUMNS


def test_default_split_date_uses_latest_completed_year(make_orders):
    orders = make_orders(
        [
            ("Shop", "2023-05-01", [("A", 1, 1.0)]),
            ("Shop", "2024-11-20", [("A", 1, 1.0)]),
            ("Shop", "2026-02-01", [("A", 1, 1.0)]),
        ]
    )

    assert default_split_date(orders, date(2026, 3, 1)) == date(2024, 7, 1)
    assert default_split_date([], date(2026, 3, 1)) == date(2025, 7, 1)

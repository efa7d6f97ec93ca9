from datetime import date
import json
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from distributor_analytics import data_loader
from distributor_analytics.models import NoteLine, ProductLine


def _raw_order(**overrides):
    record = {
        "id": "ord-1",
        "customerName": "Smoke Shop - AL",
        "date": "2025-05-04T18:22:10.000Z",
        "total": 42.5,
        "poNumber": "PO-77",
        "items": [
            {"sku": "A", "productName": "Cigar A", "quantity": 2, "total": 30.0},
            {"sku": "B", "quantity": 1, "total": 12.5},
            {"isNote": True, "productName": "Leave at back door"},
        ],
    }
    record.update(overrides)
    return record


def test_load_orders_parses_items_and_truncates_dates():
    (order,) = data_loader.load_orders([_raw_order()])

    assert order.id == "ord-1"
    assert order.date == date(2025, 5, 4)
    assert order.po_number == "PO-77"
    assert order.items[0] == ProductLine("A", "Cigar A", 2, 30.0)
    assert order.items[1].product_name == "B"
    assert order.items[2] == NoteLine("Leave at back door")
    assert [line.sku for line in order.product_lines] == ["A", "B"]


def test_load_orders_accepts_paths_and_json_text(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps([_raw_order(), _raw_order(id="ord-2", orderNumber="X", poNumber=None)]))

    from_path = data_loader.load_orders(path)
    from_text = data_loader.load_orders(path.read_text())
    from_str_path = data_loader.load_orders(str(path))

    assert [order.id for order in from_path] == ["ord-1", "ord-2"]
    assert from_path[1].po_number == "X"
    assert from_text == from_path
    assert from_str_path == from_path


def test_collection_must_be_an_array():
    with pytest.raises(data_loader.OrderDataError, match="Expected an array of orders"):
        data_loader.load_orders({"orders": []})
    with pytest.raises(data_loader.OrderDataError, match="Invalid JSON"):
        data_loader.load_orders("[not json")


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"customerName": ""}, "customerName"),
        ({"date": "05/04/2025"}, "date"),
        ({"total": -1}, "total"),
        ({"items": "A"}, "items"),
        ({"items": [{"sku": "A", "quantity": 1.5, "total": 1}]}, "items[0].quantity"),
        ({"items": [{"sku": "A", "quantity": 1}]}, "items[0].total"),
    ],
)
def test_invalid_records_report_index_and_field(overrides, field):
    records = [_raw_order(), _raw_order(**overrides)]

    with pytest.raises(data_loader.OrderDataError) as excinfo:
        data_loader.load_orders(records)

    assert excinfo.value.index == 1
    assert excinfo.value.field == field
    assert str(excinfo.value).startswith(f"record 1 field '{field}'")


def test_load_customers_normalises_state():
    customers = data_loader.load_customers(
        [
            {"name": "Smoke Shop - AL", "shipState": " al ", "shipCity": "Hoover"},
            {"name": "Walk In", "shipState": ""},
        ]
    )

    assert customers[0].ship_state == "AL"
    assert customers[0].ship_city == "Hoover"
    assert customers[1].ship_state is None
    assert customers[1].ship_city is None


def test_load_yoy_dataset_detects_years_and_derives_changes():
    dataset = data_loader.load_yoy_dataset(
        json.dumps(
            {
                "territory_total_2023": 1,
                "territory_total_2024": 800,
                "territory_total_2025": 1000,
                "territory_change": 200,
                "state_totals": {"tn": {"sales_2024": 0, "sales_2025": 50}},
            }
        )
    )

    assert (dataset.prior_year, dataset.current_year) == (2024, 2025)
    assert dataset.territory_change == 200.0
    assert dataset.territory_pct_change == 25.0
    assert dataset.state_totals["TN"].change == 50.0
    assert dataset.state_totals["TN"].pct_change == 0.0


def test_load_yoy_dataset_needs_two_years():
    with pytest.raises(data_loader.OrderDataError, match="two years"):
        data_loader.load_yoy_dataset({"territory_total_2025": 10})

from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from distributor_analytics.data_loader import load_orders


def order_record(customer, day, lines, *, order_id=None, po_number=None, total=None):
    """Raw order dict; ``lines`` holds ``(sku, quantity, line_total)`` tuples."""
    return {
        "id": order_id,
        "customerName": customer,
        "date": day,
        "total": total if total is not None else sum(line[2] for line in lines),
        "poNumber": po_number,
        "items": [
            {"sku": sku, "productName": f"Cigar {sku}", "quantity": qty, "total": amount}
            for sku, qty, amount in lines
        ],
    }


@pytest.fixture
def make_orders():
    """Build validated orders from ``(customer, date, lines)`` tuples."""

    def _build(records):
        return load_orders(
            [
                order_record(customer, day, lines, order_id=index)
                for index, (customer, day, lines) in enumerate(records)
            ]
        )

    return _build

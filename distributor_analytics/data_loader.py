"""Load and validate order, customer and YoY datasets supplied by the application."""
from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .models import Customer, LineItem, NoteLine, Order, ProductLine, StateTotals, YoYDataset

logger = logging.getLogger(__name__)


NOTE_SKU = "NOTE"

REQUIRED_ORDER_FIELDS = ("customerName", "date", "total", "items")
REQUIRED_ITEM_FIELDS = ("sku", "quantity", "total")

JsonSource = Union[str, Path, IO[str], IO[bytes], bytes, bytearray, Sequence[Any], Mapping[str, Any]]

_TERRITORY_KEY = re.compile(r"^territory_total_(\d{4})$")


class OrderDataError(ValueError):
    """Raised when an input collection does not match the expected record shape."""

    def __init__(self, message: str, *, index: Optional[int] = None, field: Optional[str] = None):
        self.index = index
        self.field = field
        location = []
        if index is not None:
            location.append(f"record {index}")
        if field:
            location.append(f"field '{field}'")
        if location:
            message = f"{' '.join(location)}: {message}"
        super().__init__(message)


def _read_json(source: JsonSource) -> Any:
    """Return parsed JSON from a path, raw text, bytes or an already parsed value."""
    if isinstance(source, (list, tuple, dict)):
        return source
    if isinstance(source, (bytes, bytearray)):
        text = bytes(source).decode("utf-8-sig")
    elif isinstance(source, Path):
        text = source.read_text(encoding="utf-8-sig")
    elif isinstance(source, str):
        stripped = source.lstrip()
        if stripped.startswith(("[", "{")):
            text = stripped
        else:
            text = Path(source).read_text(encoding="utf-8-sig")
    elif hasattr(source, "read"):
        raw = source.read()
        text = raw.decode("utf-8-sig") if isinstance(raw, (bytes, bytearray)) else raw
    else:
        raise OrderDataError(f"Unsupported source type: {type(source).__name__}")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise OrderDataError(f"Invalid JSON: {exc}") from exc


def parse_date(value: object, *, index: Optional[int] = None, field: str = "date") -> date:
    """Return the calendar day of ``value``.

    Strings are truncated to their ``YYYY-MM-DD`` prefix so bare dates and
    date-times can be mixed in a single dataset.
    """
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            raise OrderDataError("date is missing", index=index, field=field)
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise OrderDataError(f"expected an ISO date, got {value!r}", index=index, field=field)
    parsed = pd.to_datetime(value.strip()[:10], format="%Y-%m-%d", errors="coerce")
    if pd.isna(parsed):
        raise OrderDataError(f"expected an ISO date, got {value!r}", index=index, field=field)
    return parsed.date()


def _parse_amount(value: object, *, index: Optional[int], field: str) -> float:
    if isinstance(value, bool):
        raise OrderDataError("expected a number", index=index, field=field)
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise OrderDataError(f"expected a number, got {value!r}", index=index, field=field) from None
    if pd.isna(amount):
        raise OrderDataError("amount is missing", index=index, field=field)
    if amount < 0:
        raise OrderDataError("amount must not be negative", index=index, field=field)
    return amount


def _parse_quantity(value: object, *, index: int, field: str) -> int:
    amount = _parse_amount(value, index=index, field=field)
    if amount != int(amount) or amount <= 0:
        raise OrderDataError(f"expected a positive whole quantity, got {value!r}", index=index, field=field)
    return int(amount)


def _optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_line_item(raw: Mapping[str, Any], *, index: int, position: int) -> LineItem:
    """Convert a raw item dict into a :class:`ProductLine` or :class:`NoteLine`."""
    if not isinstance(raw, Mapping):
        raise OrderDataError("line item must be an object", index=index, field=f"items[{position}]")
    if raw.get("isNote") or raw.get("sku") == NOTE_SKU:
        return NoteLine(text=str(raw.get("productName") or raw.get("text") or ""))

    for name in REQUIRED_ITEM_FIELDS:
        if raw.get(name) is None:
            raise OrderDataError("is required", index=index, field=f"items[{position}].{name}")
    sku = str(raw["sku"]).strip()
    if not sku:
        raise OrderDataError("must not be empty", index=index, field=f"items[{position}].sku")
    return ProductLine(
        sku=sku,
        product_name=str(raw.get("productName") or sku),
        quantity=_parse_quantity(raw["quantity"], index=index, field=f"items[{position}].quantity"),
        total=_parse_amount(raw["total"], index=index, field=f"items[{position}].total"),
    )


def parse_order(raw: Mapping[str, Any], *, index: int) -> Order:
    if isinstance(raw, Order):
        return raw
    if not isinstance(raw, Mapping):
        raise OrderDataError("order must be an object", index=index)
    for name in REQUIRED_ORDER_FIELDS:
        if raw.get(name) is None:
            raise OrderDataError("is required", index=index, field=name)
    customer_name = raw["customerName"]
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise OrderDataError("must be a non-empty string", index=index, field="customerName")
    items = raw["items"]
    if not isinstance(items, (list, tuple)):
        raise OrderDataError("must be a list", index=index, field="items")

    return Order(
        id=raw.get("id", index),
        customer_name=customer_name,
        date=parse_date(raw["date"], index=index),
        total=_parse_amount(raw["total"], index=index, field="total"),
        items=tuple(
            parse_line_item(item, index=index, position=position)
            for position, item in enumerate(items)
        ),
        po_number=_optional_text(raw.get("poNumber") or raw.get("orderNumber")),
        customer_contact=_optional_text(raw.get("customerContact") or raw.get("contactName")),
    )


def _require_list(data: Any, label: str) -> List[Any]:
    if not isinstance(data, (list, tuple)):
        raise OrderDataError(f"Invalid {label} data. Expected an array of {label}.")
    return list(data)


def load_orders(source: JsonSource) -> List[Order]:
    """Load an order collection.

    Args:
        source: a list of order dicts (or :class:`Order` records), JSON text,
            bytes, a file-like object or a path to a JSON file.

    Returns:
        Validated :class:`Order` records in input order.

    Raises:
        OrderDataError: when the collection or any record is malformed.
    """
    records = _require_list(_read_json(source), "orders")
    orders = [parse_order(raw, index=index) for index, raw in enumerate(records)]
    logger.debug("Loaded %d orders", len(orders))
    return orders


def load_customers(source: JsonSource) -> List[Customer]:
    """Load the customer list used for state and metro joins."""
    records = _require_list(_read_json(source), "customers")
    customers: List[Customer] = []
    for index, raw in enumerate(records):
        if isinstance(raw, Customer):
            customers.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise OrderDataError("customer must be an object", index=index)
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise OrderDataError("must be a non-empty string", index=index, field="name")
        state = _optional_text(raw.get("shipState"))
        customers.append(
            Customer(
                name=name,
                ship_state=state.upper() if state else None,
                ship_city=_optional_text(raw.get("shipCity")),
            )
        )
    logger.debug("Loaded %d customers", len(customers))
    return customers


def _year_keys(data: Mapping[str, Any]) -> List[int]:
    years = []
    for key in data:
        match = _TERRITORY_KEY.match(str(key))
        if match:
            years.append(int(match.group(1)))
    return sorted(years)


def _change(current: float, prior: float) -> float:
    return current - prior


def _pct_change(current: float, prior: float) -> float:
    return (current - prior) / prior * 100 if prior else 0.0


def load_yoy_dataset(source: JsonSource) -> YoYDataset:
    """Load the precomputed year-over-year comparison document.

    Year suffixes are detected from ``territory_total_YYYY`` keys; the two
    most recent years are used. Missing change columns are derived from the
    totals.
    """
    data = _read_json(source)
    if not isinstance(data, Mapping):
        raise OrderDataError("Invalid YoY data. Expected an object.")
    years = _year_keys(data)
    if len(years) < 2:
        raise OrderDataError("YoY data must contain territory totals for two years")
    prior_year, current_year = years[-2], years[-1]

    territory_current = _parse_amount(
        data[f"territory_total_{current_year}"], index=None, field=f"territory_total_{current_year}"
    )
    territory_prior = _parse_amount(
        data[f"territory_total_{prior_year}"], index=None, field=f"territory_total_{prior_year}"
    )

    state_totals: Dict[str, StateTotals] = {}
    raw_states = data.get("state_totals") or {}
    if not isinstance(raw_states, Mapping):
        raise OrderDataError("must be an object", field="state_totals")
    for state, values in raw_states.items():
        if not isinstance(values, Mapping):
            raise OrderDataError("must be an object", field=f"state_totals.{state}")
        current = _signed_number(values.get(f"sales_{current_year}", 0), f"state_totals.{state}")
        prior = _signed_number(values.get(f"sales_{prior_year}", 0), f"state_totals.{state}")
        state_totals[str(state).upper()] = StateTotals(
            sales_current=current,
            sales_prior=prior,
            change=_signed_number(values.get("change", _change(current, prior)), f"state_totals.{state}.change"),
            pct_change=_signed_number(
                values.get("pct_change", _pct_change(current, prior)), f"state_totals.{state}.pct_change"
            ),
        )

    return YoYDataset(
        current_year=current_year,
        prior_year=prior_year,
        territory_total_current=territory_current,
        territory_total_prior=territory_prior,
        territory_change=_signed_number(
            data.get("territory_change", _change(territory_current, territory_prior)), "territory_change"
        ),
        territory_pct_change=_signed_number(
            data.get("territory_pct_change", _pct_change(territory_current, territory_prior)),
            "territory_pct_change",
        ),
        state_totals=state_totals,
        comparison_period=str(data.get("comparison_period") or ""),
    )


def _signed_number(value: object, field: str) -> float:
    if isinstance(value, bool):
        raise OrderDataError("expected a number", field=field)
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise OrderDataError(f"expected a number, got {value!r}", field=field) from None


__all__ = [
    "OrderDataError",
    "load_customers",
    "load_orders",
    "load_yoy_dataset",
    "parse_date",
    "parse_line_item",
    "parse_order",
]

"""Analytics namespace exports."""

from . import alerts, dropoff, products, ranking, reorder, sales, yoy

__all__ = [
    "alerts",
    "dropoff",
    "products",
    "ranking",
    "reorder",
    "sales",
    "yoy",
]

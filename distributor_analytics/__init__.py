"""Historical sales analytics for a cigar distributor's order history."""

from .analytics.dropoff import default_split_date, detect_dropoffs
from .analytics.products import aggregate_by_sku, is_promotional, top_n
from .analytics.ranking import ScopeRankings, rank_scopes
from .analytics.reorder import predict_reorders, usage_gaps
from .analytics.yoy import YoYReport, compute_yoy
from .data_loader import OrderDataError, load_customers, load_orders, load_yoy_dataset
from .history import CustomerHistoryReport, analyze_customer_history, search_orders
from .models import Customer, NoteLine, Order, ProductLine, YoYDataset
from .settings import AnalyticsSettings, SettingsError

__all__ = [
    "AnalyticsSettings",
    "Customer",
    "CustomerHistoryReport",
    "NoteLine",
    "Order",
    "OrderDataError",
    "ProductLine",
    "ScopeRankings",
    "SettingsError",
    "YoYDataset",
    "YoYReport",
    "aggregate_by_sku",
    "analyze_customer_history",
    "compute_yoy",
    "default_split_date",
    "detect_dropoffs",
    "is_promotional",
    "load_customers",
    "load_orders",
    "load_yoy_dataset",
    "predict_reorders",
    "rank_scopes",
    "search_orders",
    "top_n",
    "usage_gaps",
]

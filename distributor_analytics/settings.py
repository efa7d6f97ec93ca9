"""Deployment level settings for the analytics engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Mapping, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


DEFAULT_TOP_N = 10
DEFAULT_RECENT_MONTHS = 6
DEFAULT_DUE_SOON_DAYS = 14
DEFAULT_DROPOFF_MIN_QUANTITY = 2
DEFAULT_REORDER_DISPLAY_LIMIT = 10
DEFAULT_USAGE_GAP_DAYS = (30, 60, 90)
DEFAULT_TRACKED_STATES = ("AL", "GA", "MS", "TN")


class SettingsError(ValueError):
    """Raised when a settings mapping contains an unusable value."""


@dataclass(frozen=True)
class AnalyticsSettings:
    top_n: int = DEFAULT_TOP_N
    recent_months: int = DEFAULT_RECENT_MONTHS
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS
    dropoff_min_quantity: int = DEFAULT_DROPOFF_MIN_QUANTITY
    dropoff_split_date: Optional[date] = None
    reorder_display_limit: int = DEFAULT_REORDER_DISPLAY_LIMIT
    usage_gap_days: Tuple[int, ...] = DEFAULT_USAGE_GAP_DAYS
    tracked_states: Tuple[str, ...] = DEFAULT_TRACKED_STATES

    def __post_init__(self) -> None:
        for name in ("top_n", "recent_months", "dropoff_min_quantity", "reorder_display_limit"):
            if getattr(self, name) < 1:
                raise SettingsError(f"{name} must be a positive integer")
        if self.due_soon_days < 0:
            raise SettingsError("due_soon_days must not be negative")
        gaps = self.usage_gap_days
        if len(gaps) < 2 or any(a >= b for a, b in zip(gaps, gaps[1:])):
            raise SettingsError("usage_gap_days must contain at least two ascending values")

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "AnalyticsSettings":
        """Build settings from a plain mapping such as a parsed JSON document.

        Unknown keys are ignored with a warning so that a settings file can be
        shared with the surrounding application.
        """

        known = {item.name for item in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known:
                logger.warning("Ignoring unknown analytics setting '%s'", key)
                continue
            kwargs[key] = _coerce_setting(key, value)
        return cls(**kwargs)

    def with_overrides(self, **overrides: object) -> "AnalyticsSettings":
        return replace(self, **overrides)


def _coerce_setting(key: str, value: object) -> object:
    try:
        if key == "dropoff_split_date":
            if value is None or value == "":
                return None
            parsed = pd.Timestamp(value)
            if pd.isna(parsed):
                raise ValueError(value)
            return parsed.date()
        if key == "usage_gap_days":
            return tuple(int(item) for item in _as_sequence(value))
        if key == "tracked_states":
            return tuple(str(item).upper() for item in _as_sequence(value))
        if isinstance(value, bool):
            raise ValueError(value)
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"Invalid value for {key}: {value!r}") from exc


def _as_sequence(value: object) -> Sequence[object]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return value
    raise TypeError(value)


__all__ = [
    "AnalyticsSettings",
    "SettingsError",
    "DEFAULT_TOP_N",
    "DEFAULT_RECENT_MONTHS",
    "DEFAULT_DUE_SOON_DAYS",
    "DEFAULT_DROPOFF_MIN_QUANTITY",
    "DEFAULT_REORDER_DISPLAY_LIMIT",
    "DEFAULT_USAGE_GAP_DAYS",
    "DEFAULT_TRACKED_STATES",
]

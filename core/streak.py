"""
RegionPulse – Quiet Streak Detection
====================================
Checks whether the trailing window of a region's timeseries shows zero new
events for the selected statistic ("No new confirmed cases in the past
five days").
"""

from __future__ import annotations

from typing import Mapping, Optional

import pandas as pd

from core.state import StatisticMode
from data_engine import get_statistic, region_timeseries

COLLAPSED_LOOKBACK = 6
EXPANDED_LOOKBACK = 10

# Modes where "nothing new" is a meaningful, affirmative claim
STREAK_MODES = (StatisticMode.CONFIRMED, StatisticMode.DECEASED)


def lookback_for(expanded: bool) -> int:
    return EXPANDED_LOOKBACK if expanded else COLLAPSED_LOOKBACK


def trailing_deltas(
    timeseries: Optional[Mapping],
    parent_region: str,
    mode,
    window_size: int,
) -> pd.Series:
    """Delta of ``mode`` for the last ``window_size`` dates, indexed by date."""
    mode = StatisticMode(mode)
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")

    points = region_timeseries(timeseries, parent_region)
    dates = list(points)[-window_size:]
    return pd.Series(
        [get_statistic(points[date], "delta", mode) for date in dates],
        index=pd.Index(dates, name="date"),
        dtype=float,
    )


def is_quiet_streak(
    timeseries: Optional[Mapping],
    parent_region: str,
    mode,
    window_size: int,
) -> bool:
    """
    True iff every date in the trailing window has a zero delta.

    A region with fewer dates than ``window_size`` is judged on what is
    there; a region with no dates at all is not a streak.
    """
    deltas = trailing_deltas(timeseries, parent_region, mode, window_size)
    if deltas.empty:
        return False
    return bool((deltas == 0).all())


def streak_applies(mode) -> bool:
    return StatisticMode(mode) in STREAK_MODES


def streak_message(mode) -> str:
    return f"No new {StatisticMode(mode).value} cases in the past five days"


def streak_tone(mode) -> str:
    return "is-green" if StatisticMode(mode) is StatisticMode.CONFIRMED else ""

"""
RegionPulse – District Ranking
==============================
Top-N districts of a parent region for the selected statistic.

Districts are sorted by their cumulative total (descending, stable so that
ties keep feed order). The "Unknown" bucket holds unattributed cases and
is never ranked or counted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

import pandas as pd

from core.state import StatisticMode
from data_engine import UNKNOWN_DISTRICT, district_nodes, get_statistic

logger = logging.getLogger(__name__)

TOP_DISTRICT_LIMIT = 5
RANKING_COLUMNS = ["district", "total", "delta"]


@dataclass(frozen=True)
class RankedDistrict:
    district: str
    total: float
    delta: float


def _plain(value) -> float:
    value = float(value)
    return int(value) if value.is_integer() else value


def ranked_district_names(snapshot: Optional[Mapping], parent_region: str) -> List[str]:
    """District names of the region in feed order, "Unknown" dropped."""
    return [
        name
        for name in district_nodes(snapshot, parent_region)
        if name != UNKNOWN_DISTRICT
    ]


def district_count(snapshot: Optional[Mapping], parent_region: str) -> int:
    return len(ranked_district_names(snapshot, parent_region))


def ranking_frame(
    snapshot: Optional[Mapping],
    parent_region: str,
    mode,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """
    Rank the districts of ``parent_region``.

    Returns
    -------
    pd.DataFrame with columns [district, total, delta], best first. Empty
    (with the same columns) when the region or its districts are not
    loaded.
    """
    mode = StatisticMode(mode)
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    districts = district_nodes(snapshot, parent_region)
    names = ranked_district_names(snapshot, parent_region)
    if not names:
        return pd.DataFrame(columns=RANKING_COLUMNS)

    df = pd.DataFrame(
        {
            "district": names,
            "total": [get_statistic(districts[name], "total", mode) for name in names],
            "delta": [get_statistic(districts[name], "delta", mode) for name in names],
        }
    )
    df = df.sort_values("total", ascending=False, kind="stable").reset_index(drop=True)
    if limit is not None:
        df = df.head(limit)

    logger.debug("Ranked %d/%d districts of %s by %s", len(df), len(names), parent_region, mode)
    return df


def rank_districts(
    snapshot: Optional[Mapping],
    parent_region: str,
    mode,
    limit: Optional[int] = TOP_DISTRICT_LIMIT,
) -> List[RankedDistrict]:
    """Ranked districts as value objects; ``limit=None`` gives the full list."""
    df = ranking_frame(snapshot, parent_region, mode, limit)
    return [
        RankedDistrict(district=row.district, total=_plain(row.total), delta=_plain(row.delta))
        for row in df.itertuples(index=False)
    ]


def can_expand(snapshot: Optional[Mapping], parent_region: str) -> bool:
    """The "View all" toggle is offered once a region has more districts than the top list."""
    return len(district_nodes(snapshot, parent_region)) > TOP_DISTRICT_LIMIT


def show_delta_indicator(mode) -> bool:
    # Active is a caseload, not an event count
    return StatisticMode(mode) is not StatisticMode.ACTIVE


def format_number(value) -> str:
    """Indian digit grouping: 1234567 -> "12,34,567"."""
    if value is None or pd.isna(value):
        return "-"
    value = _plain(value)
    sign = "-" if value < 0 else ""
    if isinstance(value, float):
        whole, _, frac = f"{abs(value):.1f}".partition(".")
        frac = "" if frac == "0" else f".{frac}"
    else:
        whole, frac = str(abs(value)), ""
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}{frac}"


def format_delta(delta) -> str:
    return f"↑{format_number(delta)}" if delta and delta > 0 else ""

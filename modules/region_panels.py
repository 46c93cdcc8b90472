"""
RegionPulse – Region Panels
===========================
View models for the smaller panels of a region page:
  1. Header and page title
  2. Level strip – the four statistics with their daily change
  3. Region meta – per-million and ratio figures (the deferred panel)
  4. Delta bar graph – daily deltas over the lookback window
  5. Minigraphs – one daily-delta sparkline per statistic under the level strip

Every function takes the raw snapshot / timeseries mappings and recomputes
from them; nothing here holds on to source data.
"""

import logging
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from core.ranking import format_number
from core.state import StatisticMode
from core.streak import trailing_deltas
from data_engine import REGION_NAMES, get_statistic, region_node, region_timeseries

logger = logging.getLogger(__name__)

STATISTIC_CONFIG = {
    StatisticMode.CONFIRMED: {"label": "Confirmed", "color": "#ff073a"},
    StatisticMode.ACTIVE: {"label": "Active", "color": "#007bff"},
    StatisticMode.RECOVERED: {"label": "Recovered", "color": "#28a745"},
    StatisticMode.DECEASED: {"label": "Deceased", "color": "#6c757d"},
}

GROWTH_WINDOW_DAYS = 7
MINIGRAPH_DAYS = 20
SITE_NAME = "covid19india.org"


# ── Header ───────────────────────────────────────────────────────────────────
def region_name(region: str) -> str:
    return REGION_NAMES.get(region, region)


def page_title(region: str) -> str:
    return f"Coronavirus Outbreak in {region_name(region)} - {SITE_NAME}"


def page_description(region: str) -> str:
    return f"Coronavirus Outbreak in {region_name(region)}: Latest Map and Case Count"


# ── Level Strip ──────────────────────────────────────────────────────────────
def level_summary(snapshot: Optional[Mapping], region: str) -> pd.DataFrame:
    """
    Totals and deltas of all four statistics for ``region``.

    Returns
    -------
    pd.DataFrame with columns: [statistic, label, total, delta]
    """
    node = region_node(snapshot, region)
    rows = []
    for mode, cfg in STATISTIC_CONFIG.items():
        rows.append(
            {
                "statistic": mode.value,
                "label": cfg["label"],
                "total": get_statistic(node, "total", mode),
                "delta": get_statistic(node, "delta", mode),
            }
        )
    return pd.DataFrame(rows, columns=["statistic", "label", "total", "delta"])


# ── Region Meta ──────────────────────────────────────────────────────────────
def _ratio(numerator: float, denominator: float, scale: float = 100.0) -> Optional[float]:
    if not denominator:
        return None
    return round(numerator / denominator * scale, 2)


def _weekly_growth_pct(timeseries: Optional[Mapping], region: str) -> Optional[float]:
    points = region_timeseries(timeseries, region)
    if len(points) <= GROWTH_WINDOW_DAYS:
        return None
    confirmed = pd.Series(
        [get_statistic(point, "total", StatisticMode.CONFIRMED) for point in points.values()],
        index=list(points),
        dtype=float,
    )
    previous = confirmed.iloc[-1 - GROWTH_WINDOW_DAYS]
    return _ratio(confirmed.iloc[-1] - previous, previous)


def region_meta(
    snapshot: Optional[Mapping],
    timeseries: Optional[Mapping],
    region: str,
) -> Dict[str, Optional[float]]:
    """
    Per-million and ratio figures for the region meta panel.

    Any figure whose inputs are missing (no population, zero confirmed,
    short timeseries) is None.
    """
    node = region_node(snapshot, region) or {}
    meta = node.get("meta") or {}
    population = meta.get("population")

    confirmed = get_statistic(node, "total", StatisticMode.CONFIRMED)
    active = get_statistic(node, "total", StatisticMode.ACTIVE)
    recovered = get_statistic(node, "total", StatisticMode.RECOVERED)
    deceased = get_statistic(node, "total", StatisticMode.DECEASED)
    tested = get_statistic(node, "total", "tested")
    if not population:
        logger.info("No population for %s, per-million figures skipped", region)

    return {
        "population": population,
        "confirmed_per_million": _ratio(confirmed, population, 1e6),
        "tests_per_million": _ratio(tested, population, 1e6),
        "active_ratio": _ratio(active, confirmed),
        "recovery_ratio": _ratio(recovered, confirmed),
        "case_fatality_ratio": _ratio(deceased, confirmed),
        "weekly_growth_pct": _weekly_growth_pct(timeseries, region),
        "last_updated": meta.get("last_updated"),
    }


# ── Delta Bar Graph ──────────────────────────────────────────────────────────
def delta_bar_series(
    timeseries: Optional[Mapping],
    region: str,
    mode,
    lookback: int,
) -> pd.DataFrame:
    """
    Daily deltas for the last ``lookback`` dates.

    Returns
    -------
    pd.DataFrame with columns: [date, delta, pct_change]; pct_change is NaN
    where the previous day had no events.
    """
    # One extra date so the first bar has a predecessor
    deltas = trailing_deltas(timeseries, region, mode, lookback + 1)
    if deltas.empty:
        return pd.DataFrame(columns=["date", "delta", "pct_change"])

    previous = deltas.shift(1)
    pct = np.where(
        previous.fillna(0).to_numpy() != 0,
        (deltas - previous) / previous.abs() * 100,
        np.nan,
    )
    df = pd.DataFrame(
        {"date": deltas.index, "delta": deltas.to_numpy(), "pct_change": np.round(pct, 1)}
    )
    return df.tail(lookback).reset_index(drop=True)


def build_delta_bar_figure(series: pd.DataFrame, mode) -> go.Figure:
    """Plotly bar chart of ``delta_bar_series`` output."""
    mode = StatisticMode(mode)
    color = STATISTIC_CONFIG[mode]["color"]
    fig = go.Figure()
    if series.empty:
        return fig

    labels = [format_number(v) for v in series["delta"]]
    hover = [
        "" if pd.isna(p) else f"{p:+.1f}%"
        for p in series["pct_change"]
    ]
    fig.add_trace(go.Bar(
        x=series["date"],
        y=series["delta"],
        text=labels,
        textposition="outside",
        marker=dict(color=color, opacity=0.85),
        customdata=hover,
        hovertemplate="%{x}: %{y:,.0f} %{customdata}<extra></extra>",
    ))
    fig.update_layout(
        template="plotly_white",
        height=240,
        margin=dict(l=0, r=0, t=10, b=0),
        showlegend=False,
    )
    fig.update_yaxes(visible=False)
    return fig


# ── Minigraphs ───────────────────────────────────────────────────────────────
def minigraph_series(
    timeseries: Optional[Mapping],
    region: str,
    days: int = MINIGRAPH_DAYS,
) -> pd.DataFrame:
    """
    Daily deltas of every statistic for the last ``days`` dates.

    Returns
    -------
    pd.DataFrame with columns: [date, confirmed, active, recovered, deceased]
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")

    columns = ["date"] + [mode.value for mode in STATISTIC_CONFIG]
    points = region_timeseries(timeseries, region)
    dates = list(points)[-days:]
    if not dates:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame({"date": dates})
    for mode in STATISTIC_CONFIG:
        df[mode.value] = [get_statistic(points[date], "delta", mode) for date in dates]
    return df[columns]


def build_minigraph_figure(series: pd.DataFrame, mode) -> go.Figure:
    """Axis-less sparkline of one statistic from ``minigraph_series`` output."""
    mode = StatisticMode(mode)
    color = STATISTIC_CONFIG[mode]["color"]
    fig = go.Figure()
    if series.empty:
        return fig

    fig.add_trace(go.Scatter(
        x=series["date"],
        y=series[mode.value],
        mode="lines+markers",
        line=dict(color=color, width=2),
        marker=dict(size=3, color=color),
        hovertemplate="%{x}: %{y:,.0f}<extra></extra>",
    ))
    fig.update_layout(
        template="plotly_white",
        height=80,
        margin=dict(l=0, r=0, t=0, b=0),
        showlegend=False,
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    return fig

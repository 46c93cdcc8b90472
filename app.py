"""
RegionPulse – Streamlit Region Page
===================================
Region dashboard: statistic switcher, level strip, district map/list,
top districts, quiet-streak banner, delta bar graph, time explorer and the
deferred region meta panel.

Open with ``?region=MH`` to select the parent region.
"""

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from core.ranking import format_delta, format_number, ranking_frame
from core.state import StatisticMode
from core.streak import streak_message, streak_tone
from core.view_model import RegionView
from data_engine import (
    fetch_snapshot,
    fetch_timeseries,
    get_statistic,
    normalize_region_code,
    region_timeseries,
)
from modules.region_panels import (
    STATISTIC_CONFIG,
    build_delta_bar_figure,
    build_minigraph_figure,
    delta_bar_series,
    level_summary,
    minigraph_series,
    page_title,
    region_meta,
)

region = normalize_region_code(st.query_params.get("region"))

# ── Page Config ──────────────────────────────────────────────────────────────
st.set_page_config(
    page_title=page_title(region),
    page_icon="🦠",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown(
    """
    <style>
    .district-total { font-size: 1.25rem; font-weight: 700; margin: 0; }
    .district-name { color: #6c757d; font-size: 0.8rem; margin: 0; }
    .district-delta { font-size: 0.7rem; font-weight: 600; }
    .district-highlight { border-left: 3px solid #f77f00; padding-left: 0.4rem; }
    </style>
    """,
    unsafe_allow_html=True,
)

VIEWPORT_WIDTHS = {"Wide": 1024, "Narrow": 400}
HIGHLIGHT_WIDGETS = ("map_highlight", "explorer_highlight")


def _sync_highlight_widgets(highlight) -> None:
    for key in HIGHLIGHT_WIDGETS:
        st.session_state[key] = highlight.district


def _highlight_select(label: str, options: list, key: str) -> None:
    """District picker that writes through the shared highlight coordinator."""
    district = view.highlight.get().district
    st.session_state[key] = district if district in options else None
    st.selectbox(
        label,
        options,
        format_func=lambda v: "None" if v is None else v,
        key=key,
        on_change=lambda: view.set_highlight(st.session_state[key]),
    )


# ── View Instance ────────────────────────────────────────────────────────────
first_mount = "region_view" not in st.session_state
if first_mount:
    st.session_state.region_view = RegionView(region, storage=st.session_state)
    st.session_state.region_view.highlight.subscribe(_sync_highlight_widgets)
view: RegionView = st.session_state.region_view
view.route(region)

snapshot = fetch_snapshot(mount=first_mount)
timeseries = fetch_timeseries(mount=first_mount)

with st.sidebar:
    viewport = st.radio("Viewport", list(VIEWPORT_WIDTHS), horizontal=True, key="viewport")
    if st.button("Refresh data"):
        snapshot = fetch_snapshot(mount=True)

# Anchor state is read before building so the model carries the current latch
view.observe_meta_anchor(st.session_state.get("meta_anchor", False))
model = view.build(snapshot, timeseries, VIEWPORT_WIDTHS[viewport])
mode = model.mode
color = STATISTIC_CONFIG[mode]["color"]

# ── Header ───────────────────────────────────────────────────────────────────
st.title(model.region_name)
if not snapshot:
    st.caption("Waiting for data …")

st.radio(
    "Statistic",
    [m.value for m in StatisticMode],
    index=[m for m in StatisticMode].index(mode),
    format_func=lambda v: STATISTIC_CONFIG[StatisticMode(v)]["label"],
    horizontal=True,
    key="statistic_switch",
    on_change=lambda: view.set_statistic(st.session_state.statistic_switch),
)
level_cols = st.columns(4)
for col, row in zip(level_cols, level_summary(snapshot, model.region).itertuples(index=False)):
    with col:
        delta = format_delta(row.delta) if row.statistic != StatisticMode.ACTIVE.value else None
        st.metric(row.label, format_number(row.total), delta or None)

minigraphs = minigraph_series(timeseries, model.region)
if not minigraphs.empty:
    for col, stat in zip(st.columns(4), StatisticMode):
        with col:
            st.plotly_chart(build_minigraph_figure(minigraphs, stat), width="stretch", key=f"minigraph_{stat.value}")

left, right = st.columns([3, 2], gap="large")

# ── Map Explorer ─────────────────────────────────────────────────────────────
with left:
    st.caption(f"District map · {STATISTIC_CONFIG[mode]['label']}")
    full = ranking_frame(snapshot, model.region, mode)
    if full.empty:
        st.caption("No district data available.")
    else:
        bar_colors = [
            "#f77f00" if model.highlight.matches(name) else color
            for name in full["district"]
        ]
        fig_map = go.Figure(go.Bar(
            x=full["total"],
            y=full["district"],
            orientation="h",
            marker=dict(color=bar_colors, opacity=0.85),
            hovertemplate="<b>%{y}</b><br>%{x:,.0f}<extra></extra>",
        ))
        fig_map.update_layout(
            template="plotly_white",
            height=max(240, 22 * len(full)),
            margin=dict(l=0, r=0, t=10, b=0),
            yaxis=dict(autorange="reversed"),
            showlegend=False,
        )
        st.plotly_chart(fig_map, width="stretch", key="map")

        _highlight_select("Highlight district", [None] + list(full["district"]), "map_highlight")

    # ── Region Meta (deferred) ───────────────────────────────────────────────
    st.toggle("Show region details", value=False, key="meta_anchor")
    if model.meta_ready:
        meta = region_meta(snapshot, timeseries, model.region)
        m1, m2, m3 = st.columns(3)
        m1.metric("Confirmed / million", format_number(meta["confirmed_per_million"]))
        m2.metric("Tests / million", format_number(meta["tests_per_million"]))
        m3.metric("Weekly growth", "-" if meta["weekly_growth_pct"] is None else f"{meta['weekly_growth_pct']:+.1f}%")
        m4, m5, m6 = st.columns(3)
        m4.metric("Active ratio", "-" if meta["active_ratio"] is None else f"{meta['active_ratio']:.1f}%")
        m5.metric("Recovery ratio", "-" if meta["recovery_ratio"] is None else f"{meta['recovery_ratio']:.1f}%")
        m6.metric("Case fatality ratio", "-" if meta["case_fatality_ratio"] is None else f"{meta['case_fatality_ratio']:.2f}%")
        if meta["last_updated"]:
            st.caption(f"Last updated {meta['last_updated']}")

# ── District Bar ─────────────────────────────────────────────────────────────
with right:
    st.subheader("Top districts")
    if model.is_empty:
        st.caption("No districts to rank yet.")
    else:
        # Expanded list fills the grid column by column, row_count entries each
        columns = model.grid.column_count if model.expanded else 1
        rows = max(model.grid.row_count, 1) if model.expanded else len(model.districts)
        grid = st.columns(columns)
        for i, entry in enumerate(model.districts):
            css = "district-highlight" if model.highlight.matches(entry.district) else ""
            delta_html = (
                f'<span class="district-delta" style="color:{color}">{format_delta(entry.delta)}</span>'
                if model.show_delta
                else ""
            )
            grid[min(i // rows, columns - 1)].markdown(
                f'<div class="{css}"><p class="district-total">{format_number(entry.total)}</p>'
                f'<p class="district-name">{entry.district}</p>{delta_html}</div>',
                unsafe_allow_html=True,
            )

    if model.can_expand:
        if st.button("View less" if model.expanded else "View all", key="toggle_districts"):
            view.toggle_expanded()
            st.rerun()

    if model.quiet_streak:
        if streak_tone(mode):
            st.success(f"🙂 {streak_message(mode)}")
        else:
            st.info(f"🙂 {streak_message(mode)}")

    bars = delta_bar_series(timeseries, model.region, mode, model.lookback)
    st.plotly_chart(build_delta_bar_figure(bars, mode), width="stretch", key="delta_bars")

# ── Time Explorer ────────────────────────────────────────────────────────────
st.subheader("Spread trends")
points = region_timeseries(timeseries, model.region)
if points:
    trend = pd.DataFrame(
        {
            "date": pd.to_datetime(list(points)),
            "total": [get_statistic(p, "total", mode) for p in points.values()],
        }
    )
    fig_ts = go.Figure(go.Scatter(
        x=trend["date"],
        y=trend["total"],
        line=dict(color=color, width=2),
        hovertemplate="%{x|%d %b}: %{y:,.0f}<extra></extra>",
    ))
    fig_ts.update_layout(
        template="plotly_white",
        height=280,
        margin=dict(l=0, r=0, t=5, b=0),
        showlegend=False,
        hovermode="x unified",
    )
    st.plotly_chart(fig_ts, width="stretch", key="timeseries")
    explorer_options = [None] + list(full["district"])
    _highlight_select("Compare district", explorer_options, "explorer_highlight")
    highlighted = model.highlight.district or model.region_name
    st.caption(f"Highlighted: {highlighted}")
    st.button("Clear highlight", key="clear_highlight", on_click=view.highlight.reset)
else:
    st.caption("Timeseries not available.")

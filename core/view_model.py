"""
RegionPulse – Region View
=========================
Per-view composition of the shared state and the derivations.

One ``RegionView`` lives per dashboard view instance (kept in
``st.session_state`` by the app). Each render pass calls ``route()`` with
the routed region and ``build()`` with whatever snapshot / timeseries the
caches currently hold; ``build()`` recomputes everything from those
inputs and returns an immutable ``RegionViewModel`` for the panels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, MutableMapping, Optional

from core.layout import GridPlan, VisibilityLatch, plan_grid
from core.ranking import (
    TOP_DISTRICT_LIMIT,
    RankedDistrict,
    can_expand,
    district_count,
    rank_districts,
    show_delta_indicator,
)
from core.state import (
    RegionHighlight,
    RegionHighlightCoordinator,
    StatisticMode,
    StatisticSelector,
)
from core.streak import is_quiet_streak, lookback_for, streak_applies
from data_engine import REGION_NAMES, normalize_region_code


@dataclass(frozen=True)
class RegionViewModel:
    region: str
    region_name: str
    mode: StatisticMode
    highlight: RegionHighlight
    expanded: bool
    districts: List[RankedDistrict]
    show_delta: bool
    can_expand: bool
    grid: GridPlan
    lookback: int
    quiet_streak: bool
    meta_activated: bool
    meta_ready: bool

    @property
    def is_empty(self) -> bool:
        return not self.districts


@dataclass
class RegionView:
    region: str
    storage: MutableMapping = field(default_factory=dict)
    expanded: bool = False

    selector: StatisticSelector = field(init=False)
    highlight: RegionHighlightCoordinator = field(init=False)
    meta_latch: VisibilityLatch = field(init=False)

    def __post_init__(self) -> None:
        self.region = normalize_region_code(self.region)
        self.selector = StatisticSelector(self.storage)
        self.highlight = RegionHighlightCoordinator(self.region)
        self.meta_latch = VisibilityLatch("region-meta")

    # ── Events ───────────────────────────────────────────────────────────────
    def route(self, region: Optional[str]) -> None:
        """Reactive effect: keep the highlight's parent region on the routed one."""
        self.region = normalize_region_code(region)
        self.highlight.on_parent_region_context_change(self.region)

    def set_statistic(self, mode) -> None:
        self.selector.set(mode)

    def set_highlight(self, district: Optional[str]) -> None:
        self.highlight.set_highlight(district)

    def toggle_expanded(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded

    def observe_meta_anchor(self, visible: bool) -> bool:
        return self.meta_latch.observe(visible)

    # ── Derivation ───────────────────────────────────────────────────────────
    def build(
        self,
        snapshot: Optional[Mapping],
        timeseries: Optional[Mapping],
        viewport_width: float,
    ) -> RegionViewModel:
        mode = self.selector.get()
        lookback = lookback_for(self.expanded)
        limit = None if self.expanded else TOP_DISTRICT_LIMIT
        quiet = streak_applies(mode) and is_quiet_streak(timeseries, self.region, mode, lookback)

        return RegionViewModel(
            region=self.region,
            region_name=REGION_NAMES.get(self.region, self.region),
            mode=mode,
            highlight=self.highlight.get(),
            expanded=self.expanded,
            districts=rank_districts(snapshot, self.region, mode, limit),
            show_delta=show_delta_indicator(mode),
            can_expand=can_expand(snapshot, self.region),
            grid=plan_grid(district_count(snapshot, self.region), viewport_width),
            lookback=lookback,
            quiet_streak=quiet,
            meta_activated=self.meta_latch.is_activated(),
            meta_ready=self.meta_latch.should_mount(bool(snapshot) and bool(timeseries)),
        )

"""
RegionPulse – Layout Helpers
============================
Grid sizing for the expanded district list and the one-shot visibility
latch that defers mounting of heavy panels.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

WIDE_VIEWPORT_BREAKPOINT = 540
WIDE_COLUMN_COUNT = 3
NARROW_COLUMN_COUNT = 2


@dataclass(frozen=True)
class GridPlan:
    column_count: int
    row_count: int


def column_count_for(viewport_width: float) -> int:
    return WIDE_COLUMN_COUNT if viewport_width >= WIDE_VIEWPORT_BREAKPOINT else NARROW_COLUMN_COUNT


def plan_grid(item_count: int, viewport_width: float) -> GridPlan:
    if item_count < 0:
        raise ValueError(f"item_count must be >= 0, got {item_count}")
    columns = column_count_for(viewport_width)
    return GridPlan(column_count=columns, row_count=math.ceil(item_count / columns))


def plan_rows(item_count: int, viewport_width: float) -> int:
    """Rows needed to lay out ``item_count`` items (11 items, 600 wide -> 4)."""
    return plan_grid(item_count, viewport_width).row_count


class VisibilityLatch:
    """
    One-way switch flipped by the first "anchor is visible" observation.

    The presentation layer reports visibility through ``observe``. After the
    first positive report the observer is detached: later reports, visible
    or not, are ignored and the latch stays activated for the lifetime of
    the instance.
    """

    def __init__(self, name: str = "anchor") -> None:
        self.name = name
        self._activated = False
        self._listeners: List[Callable[[], None]] = []

    def is_activated(self) -> bool:
        return self._activated

    @property
    def observing(self) -> bool:
        return not self._activated

    def on_activate(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once on activation (immediately if already active)."""
        if self._activated:
            callback()
        else:
            self._listeners.append(callback)

    def observe(self, visible: bool) -> bool:
        """Feed one visibility observation; returns the latch state."""
        if self._activated or not visible:
            return self._activated
        self._activated = True
        logger.info("Visibility latch '%s' activated", self.name)
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            callback()
        return True

    def should_mount(self, ready: Optional[bool] = True) -> bool:
        """Deferred view mounts once activated and its data dependency has resolved."""
        return self._activated and bool(ready)

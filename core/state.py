"""
RegionPulse – Shared View State
===============================
The two pieces of user-chosen state every panel of a region page reads:

* the statistic mode (confirmed / active / recovered / deceased)
* the highlighted region (parent region + optional district)

Each is owned by exactly one holder per dashboard view. Panels get the
holder by reference, read through ``get()``, write through its mutator and
may ``subscribe()`` to be told about changes. No panel keeps a copy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, MutableMapping, Optional

logger = logging.getLogger(__name__)

STATISTIC_STORAGE_KEY = "mapStatistic"


class StatisticMode(str, Enum):
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    RECOVERED = "recovered"
    DECEASED = "deceased"

    def __str__(self) -> str:
        return self.value


DEFAULT_STATISTIC = StatisticMode.ACTIVE


class _Subscribers:
    def __init__(self) -> None:
        self._callbacks: List[Callable] = []

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        """Register ``callback``; returns a function that removes it again."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _notify(self, value) -> None:
        """Deliver ``value`` to every subscriber, then re-raise the first failure."""
        error = None
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception as exc:
                logger.warning("Subscriber %r failed: %s", callback, exc)
                if error is None:
                    error = exc
        if error is not None:
            raise error


class StatisticSelector(_Subscribers):
    """
    Holds the chosen statistic mode and mirrors it into session storage.

    ``storage`` is any mutable mapping scoped to the browsing session
    (``st.session_state`` in the app). A value already stored under
    ``key`` wins over ``initial``, which is how a returning view restores
    the last choice.
    """

    def __init__(
        self,
        storage: Optional[MutableMapping] = None,
        key: str = STATISTIC_STORAGE_KEY,
        initial: StatisticMode = DEFAULT_STATISTIC,
    ) -> None:
        super().__init__()
        self.storage = storage if storage is not None else {}
        self.key = key
        stored = self.storage.get(key)
        self._mode = StatisticMode(stored) if stored is not None else StatisticMode(initial)
        self.storage[key] = self._mode.value

    def get(self) -> StatisticMode:
        return self._mode

    def set(self, mode) -> None:
        mode = StatisticMode(mode)
        self.storage[self.key] = mode.value
        if mode is self._mode:
            return
        self._mode = mode
        self._notify(mode)


@dataclass(frozen=True)
class RegionHighlight:
    parent_region: str
    district: Optional[str] = None

    def matches(self, district: Optional[str]) -> bool:
        return self.district is not None and self.district == district


class RegionHighlightCoordinator(_Subscribers):
    """
    Owner of the highlighted region for one dashboard view.

    The parent region always follows the routed region: call
    ``on_parent_region_context_change`` on every render pass. The district
    is kept across a parent change and only cleared by ``set_highlight(None)``
    or ``reset()``.
    """

    def __init__(self, parent_region: str) -> None:
        super().__init__()
        self._value = RegionHighlight(parent_region=parent_region, district=None)

    def get(self) -> RegionHighlight:
        return self._value

    def _replace(self, value: RegionHighlight) -> None:
        if value == self._value:
            return
        self._value = value
        self._notify(value)

    def on_parent_region_context_change(self, parent_region: str) -> None:
        if parent_region == self._value.parent_region:
            return
        logger.info(
            "Highlight parent region %s -> %s (district kept: %s)",
            self._value.parent_region,
            parent_region,
            self._value.district,
        )
        self._replace(replace(self._value, parent_region=parent_region))

    def set_highlight(self, district: Optional[str]) -> None:
        self._replace(replace(self._value, district=district))

    def reset(self) -> None:
        self.set_highlight(None)

    def is_highlighted(self, district: Optional[str]) -> bool:
        """True when ``district`` is the highlighted one; unknown ids never match."""
        return self._value.matches(district)

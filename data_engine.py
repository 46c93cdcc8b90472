"""
RegionPulse – Data Engine
=========================
Snapshot and timeseries ingestion for the region dashboard.

Both datasets are served through a read-through cache keyed by URL:
  Snapshot    – refreshed every ~100 s, revalidated when a view mounts
  Timeseries  – fetched once per session unless explicitly invalidated

Cached values are handed out as read-only mappings so that panels can
never modify a snapshot another panel is reading.
"""

import logging
import os
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

import requests

logger = logging.getLogger(__name__)


# ── Configuration ────────────────────────────────────────────────────────────
def _env_value(name: str, fallback: str) -> str:
    return os.getenv(name, fallback).strip()


@dataclass
class DataSettings:
    snapshot_url: str = "https://api.covid19india.org/v3/min/data.min.json"
    timeseries_url: str = "https://api.covid19india.org/v3/min/timeseries.min.json"
    request_timeout: int = 12
    snapshot_refresh_seconds: int = 100
    default_region: str = "TT"


def _build_settings() -> DataSettings:
    defaults = DataSettings()
    return DataSettings(
        snapshot_url=_env_value("REGIONPULSE_SNAPSHOT_URL", defaults.snapshot_url),
        timeseries_url=_env_value("REGIONPULSE_TIMESERIES_URL", defaults.timeseries_url),
        request_timeout=int(_env_value("REGIONPULSE_REQUEST_TIMEOUT", str(defaults.request_timeout))),
        snapshot_refresh_seconds=int(
            _env_value("REGIONPULSE_SNAPSHOT_REFRESH", str(defaults.snapshot_refresh_seconds))
        ),
        default_region=_env_value("REGIONPULSE_DEFAULT_REGION", defaults.default_region).upper(),
    )


SETTINGS = _build_settings()

# ── Constants ────────────────────────────────────────────────────────────────
UNKNOWN_DISTRICT = "Unknown"
STATISTIC_KINDS = ("total", "delta")
# Raw keys present in the feed; "active" is derived from them
RAW_STATISTICS = ("confirmed", "recovered", "deceased", "other", "tested")

REGION_NAMES: Dict[str, str] = {
    "AN": "Andaman and Nicobar Islands",
    "AP": "Andhra Pradesh",
    "AR": "Arunachal Pradesh",
    "AS": "Assam",
    "BR": "Bihar",
    "CH": "Chandigarh",
    "CT": "Chhattisgarh",
    "DL": "Delhi",
    "DN": "Dadra and Nagar Haveli and Daman and Diu",
    "GA": "Goa",
    "GJ": "Gujarat",
    "HP": "Himachal Pradesh",
    "HR": "Haryana",
    "JH": "Jharkhand",
    "JK": "Jammu and Kashmir",
    "KA": "Karnataka",
    "KL": "Kerala",
    "LA": "Ladakh",
    "LD": "Lakshadweep",
    "MH": "Maharashtra",
    "ML": "Meghalaya",
    "MN": "Manipur",
    "MP": "Madhya Pradesh",
    "MZ": "Mizoram",
    "NL": "Nagaland",
    "OR": "Odisha",
    "PB": "Punjab",
    "PY": "Puducherry",
    "RJ": "Rajasthan",
    "SK": "Sikkim",
    "TG": "Telangana",
    "TN": "Tamil Nadu",
    "TR": "Tripura",
    "TT": "India",
    "UP": "Uttar Pradesh",
    "UT": "Uttarakhand",
    "WB": "West Bengal",
}


def normalize_region_code(value: Optional[str]) -> str:
    """Normalize a routed region parameter (``" mh "`` -> ``"MH"``)."""
    if value is None:
        return SETTINGS.default_region
    text = str(value).strip().upper()
    return text or SETTINGS.default_region


# ── Statistic Access ─────────────────────────────────────────────────────────
def _count(node: Optional[Mapping], kind: str, key: str) -> float:
    if not node:
        return 0
    bucket = node.get(kind) or {}
    value = bucket.get(key)
    if value is None:
        return 0
    try:
        return value if isinstance(value, (int, float)) else float(value)
    except (TypeError, ValueError):
        return 0


def get_statistic(node: Optional[Mapping], kind: str, statistic: str) -> float:
    """
    Read one statistic from a snapshot or timeseries node.

    Parameters
    ----------
    node : mapping with ``total``/``delta`` buckets (may be None)
    kind : "total" or "delta"
    statistic : raw key or "active"

    Missing nodes and keys read as 0. Unknown ``kind`` or ``statistic``
    values are caller bugs and raise ``ValueError``.
    """
    if kind not in STATISTIC_KINDS:
        raise ValueError(f"Unknown statistic kind: {kind}")
    statistic = str(getattr(statistic, "value", statistic))
    if statistic == "active":
        return (
            _count(node, kind, "confirmed")
            - _count(node, kind, "recovered")
            - _count(node, kind, "deceased")
            - _count(node, kind, "other")
        )
    if statistic not in RAW_STATISTICS:
        raise ValueError(f"Unknown statistic: {statistic}")
    return _count(node, kind, statistic)


def region_node(snapshot: Optional[Mapping], region: str) -> Optional[Mapping]:
    if not snapshot:
        return None
    return snapshot.get(region)


def district_nodes(snapshot: Optional[Mapping], region: str) -> Mapping:
    """District name -> node for a region, empty when not loaded."""
    node = region_node(snapshot, region)
    if not node:
        return {}
    return node.get("districts") or {}


def region_timeseries(timeseries: Optional[Mapping], region: str) -> Mapping:
    """Date -> point mapping for a region, in feed (ascending date) order."""
    if not timeseries:
        return {}
    node = timeseries.get(region) or {}
    if "dates" in node and isinstance(node["dates"], Mapping):
        return node["dates"]
    return node


# ── Read-Through Cache ───────────────────────────────────────────────────────
def _freeze(value):
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


EMPTY = MappingProxyType({})


def fetch_json(url: str) -> dict:
    """Download and parse one JSON document."""
    logger.info("Fetching %s …", url)
    resp = requests.get(url, timeout=SETTINGS.request_timeout)
    resp.raise_for_status()
    return resp.json()


class ReadThroughCache:
    """
    URL-keyed cache that fetches on first read and revalidates on a policy.

    ``refresh_interval`` (seconds) makes entries stale after that age; None
    means an entry is kept until ``invalidate()``. With
    ``revalidate_on_mount`` every ``mount()`` refetches. Window focus never
    triggers a refetch; there is no such hook.
    """

    def __init__(
        self,
        fetch: Callable[[str], dict] = fetch_json,
        refresh_interval: Optional[float] = None,
        revalidate_on_mount: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fetch = fetch
        self.refresh_interval = refresh_interval
        self.revalidate_on_mount = revalidate_on_mount
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Mapping]] = {}

    def _is_stale(self, fetched_at: float) -> bool:
        if self.refresh_interval is None:
            return False
        return self.clock() - fetched_at >= self.refresh_interval

    def _revalidate(self, url: str) -> Mapping:
        try:
            fresh = _freeze(self.fetch(url))
        except Exception as exc:
            logger.warning("Fetch for %s failed (%s). Serving cached data.", url, exc)
            cached = self._entries.get(url)
            return cached[1] if cached is not None else EMPTY
        self._entries[url] = (self.clock(), fresh)
        return fresh

    def mount(self, url: str) -> Mapping:
        """Read for a freshly mounted view."""
        if self.revalidate_on_mount or url not in self._entries:
            return self._revalidate(url)
        return self.get(url)

    def get(self, url: str) -> Mapping:
        cached = self._entries.get(url)
        if cached is None or self._is_stale(cached[0]):
            return self._revalidate(url)
        return cached[1]

    def peek(self, url: str) -> Mapping:
        """Cached value without triggering a fetch."""
        cached = self._entries.get(url)
        return cached[1] if cached is not None else EMPTY

    def invalidate(self, url: Optional[str] = None) -> None:
        if url is None:
            self._entries.clear()
        else:
            self._entries.pop(url, None)


SNAPSHOT_CACHE = ReadThroughCache(
    refresh_interval=SETTINGS.snapshot_refresh_seconds,
    revalidate_on_mount=True,
)
TIMESERIES_CACHE = ReadThroughCache()


def fetch_snapshot(mount: bool = False) -> Mapping:
    """Current per-region snapshot (region code -> node)."""
    if mount:
        return SNAPSHOT_CACHE.mount(SETTINGS.snapshot_url)
    return SNAPSHOT_CACHE.get(SETTINGS.snapshot_url)


def fetch_timeseries(mount: bool = False) -> Mapping:
    """Per-region daily timeseries (region code -> date -> point)."""
    if mount:
        return TIMESERIES_CACHE.mount(SETTINGS.timeseries_url)
    return TIMESERIES_CACHE.get(SETTINGS.timeseries_url)

"""
Transit stop index.

Loaded once from a GeoJSON FeatureCollection of Point features and immutable
afterwards. Nearest-stop answers are memoized per instance under a
6-decimal coordinate key; the stop set never changes, so entries never go
stale and are never evicted.
"""
from __future__ import annotations

import json
import logging
import math
import os
import threading
from typing import Any, Iterable

import numpy as np
from cachetools import Cache

from ..core.metrics import STOP_CACHE
from ..core.utils import is_finite_number
from ..data.base import TransitMatch, TransitStop

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6_371_000.0

NAME_KEYS = ("name", "stop_name", "title", "station_name")
MODE_KEYS = ("mode", "route_type", "transport", "public_transport")


class StopIndexLoadError(RuntimeError):
    """The stop dataset is missing, unreadable or not a FeatureCollection."""


def haversine_m(lat: float, lon: float, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Great-circle distance in metres from one point to many (degrees in)."""
    lat1 = math.radians(lat)
    lat2 = np.radians(lats)
    d_lat = lat2 - lat1
    d_lon = np.radians(lons) - math.radians(lon)
    a = np.sin(d_lat / 2) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(a))


def cache_key(lat: float, lon: float) -> str:
    # ~0.11 m at 6 decimals
    return f"{lat:.6f},{lon:.6f}"


def _first_truthy(props: dict, keys: Iterable[str]) -> Any | None:
    for k in keys:
        v = props.get(k)
        if v:
            return v
    return None


def stops_from_features(features: list) -> list[TransitStop]:
    """
    Point features only. Positions (for placeholder names and ids) count
    Point features, including ones later dropped for bad coordinates.
    """
    points = [
        f for f in features
        if isinstance(f, dict)
        and isinstance(f.get("geometry"), dict)
        and f["geometry"].get("type") == "Point"
    ]
    stops: list[TransitStop] = []
    for idx, feat in enumerate(points):
        coords = feat["geometry"].get("coordinates") or []
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            continue
        lon, lat = coords[0], coords[1]
        if not (is_finite_number(lat) and is_finite_number(lon)):
            continue
        props = feat.get("properties") or {}
        name = _first_truthy(props, NAME_KEYS) or f"Stop #{idx + 1}"
        mode = _first_truthy(props, MODE_KEYS) or "other"
        stop_id = props.get("stop_id") or idx
        stops.append(TransitStop(
            id=str(stop_id), name=str(name), mode=str(mode),
            lat=float(lat), lon=float(lon),
        ))
    return stops


class StopIndex:
    def __init__(self, stops: list[TransitStop]):
        self.stops: tuple[TransitStop, ...] = tuple(stops)
        self._lats = np.array([s.lat for s in self.stops], dtype="float64")
        self._lons = np.array([s.lon for s in self.stops], dtype="float64")
        # Unbounded on purpose: keys come from the small set of group centroids
        self._cache: Cache = Cache(maxsize=math.inf)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.stops)

    @classmethod
    def from_geojson(cls, path: str) -> "StopIndex":
        """Load the stop dataset; any failure is fatal to startup."""
        abs_path = path if os.path.isabs(path) else os.path.join(os.getcwd(), path)
        try:
            with open(abs_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            raise StopIndexLoadError(f"cannot read transit stops from {abs_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise StopIndexLoadError(f"{abs_path}: expected a GeoJSON object")
        features = raw.get("features")
        if features is None:
            features = []
        if not isinstance(features, list):
            raise StopIndexLoadError(f"{abs_path}: 'features' must be a list")

        index = cls(stops_from_features(features))
        logger.info("Loaded %d transit stops from %s", len(index), abs_path)
        return index

    def nearest(self, lat: float, lon: float) -> TransitMatch | None:
        """
        Closest stop by haversine distance; first in load order on ties.
        None when there are no stops or the coordinate is not finite.
        """
        if not self.stops:
            return None
        if not (is_finite_number(lat) and is_finite_number(lon)):
            return None
        key = cache_key(lat, lon)
        with self._lock:
            hit = self._cache.get(key)
        if hit is not None:
            STOP_CACHE.labels(result="hit").inc()
            return hit

        STOP_CACHE.labels(result="miss").inc()
        distances = haversine_m(lat, lon, self._lats, self._lons)
        best = int(np.argmin(distances))  # argmin returns the first minimum
        match = TransitMatch(
            stop=self.stops[best],
            distance_m=float(math.floor(float(distances[best]) + 0.5)),
        )
        with self._lock:
            # A concurrent writer for the same key computed the same value
            return self._cache.setdefault(key, match)

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

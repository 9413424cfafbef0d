from typing import Protocol, List, Optional, Sequence, Any
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..core.utils import clean_postcode, to24h

# ----- Data shapes (thin & explicit) -----

@dataclass(frozen=True)
class FilterCriteria:
    """Normalized request filters. None disables the matching predicate."""
    day: Optional[str] = None
    time_label: Optional[str] = None
    postcode: Optional[str] = None   # comma-stripped

    @classmethod
    def build(cls, day: Optional[str] = None, time: Optional[str] = None,
              postcode: Optional[str | int] = None) -> "FilterCriteria":
        return cls(
            day=day or None,
            time_label=time or None,
            postcode=clean_postcode(postcode),
        )

    @property
    def hour(self) -> Optional[int]:
        return to24h(self.time_label)

@dataclass(frozen=True)
class TransitStop:
    id: str
    name: str
    mode: str          # e.g. "tram", "bus", "3"; "other" when unknown
    lat: float
    lon: float

@dataclass(frozen=True)
class TransitMatch:
    stop: TransitStop
    distance_m: float  # rounded to the metre

class ProximityLabel(str, Enum):
    NEAR = "Near"
    MODERATE = "Moderate"
    FAR = "Far"
    UNKNOWN = "Unknown"

    @property
    def color(self) -> str:
        return _LABEL_COLORS[self]

_LABEL_COLORS = {
    ProximityLabel.NEAR: "green",
    ProximityLabel.MODERATE: "yellow",
    ProximityLabel.FAR: "red",
    ProximityLabel.UNKNOWN: "grey",
}

@dataclass(frozen=True)
class RecommendationRow:
    address: str
    postcode: Optional[str]
    suburb: Optional[str]
    free_rate: float            # 0..1
    total_samples: int          # >= 1
    latest_timestamp: Optional[datetime]
    lat: Optional[float]
    lon: Optional[float]
    nearest_stop: Optional[TransitMatch] = None
    proximity: ProximityLabel = ProximityLabel.UNKNOWN

# ----- Protocols (interfaces) -----

class ObservationReader(Protocol):
    async def fetch_all(self, statement: Any) -> Sequence[Any]: ...
    async def ping(self) -> None: ...

class RecommendationTier(Protocol):
    name: str
    async def fetch(self, criteria: FilterCriteria) -> List[RecommendationRow]: ...

class NearestStopLookup(Protocol):
    def nearest(self, lat: float, lon: float) -> Optional[TransitMatch]: ...

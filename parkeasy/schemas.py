from datetime import datetime
from pydantic import BaseModel, Field

from .data.base import RecommendationRow

class RecommendRequest(BaseModel):
    day: str | None = Field(default=None, description='Day of week as stored, e.g. "Monday"')
    time: str | None = Field(default=None, description='12-hour label, e.g. "3 PM" or "9:30 AM"')
    postcode: str | int | None = None

class TransitStopOut(BaseModel):
    id: str
    name: str
    mode: str
    lat: float
    lon: float
    distance_m: float

class Proximity(BaseModel):
    label: str      # Near | Moderate | Far | Unknown
    color: str      # green | yellow | red | grey

class RecommendationOut(BaseModel):
    address: str
    postcode: str | None = None
    suburb: str | None = None
    free_rate: float = Field(ge=0, le=1)
    total_samples: int = Field(ge=1)
    latest_timestamp: datetime | None = None
    lat: float | None = None
    lon: float | None = None
    nearest_stop: TransitStopOut | None = None
    proximity: Proximity

    @classmethod
    def from_row(cls, row: RecommendationRow) -> "RecommendationOut":
        stop = None
        if row.nearest_stop is not None:
            s = row.nearest_stop.stop
            stop = TransitStopOut(
                id=s.id, name=s.name, mode=s.mode, lat=s.lat, lon=s.lon,
                distance_m=row.nearest_stop.distance_m,
            )
        return cls(
            address=row.address,
            postcode=row.postcode,
            suburb=row.suburb,
            free_rate=row.free_rate,
            total_samples=row.total_samples,
            latest_timestamp=row.latest_timestamp,
            lat=row.lat,
            lon=row.lon,
            nearest_stop=stop,
            proximity=Proximity(label=row.proximity.value, color=row.proximity.color),
        )

class RecommendResponse(BaseModel):
    results: list[RecommendationOut]

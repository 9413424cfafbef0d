import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence

from ..core.config import Settings
from ..core.metrics import RECOMMEND_TIER
from ..data.base import (
    FilterCriteria,
    NearestStopLookup,
    ProximityLabel,
    RecommendationRow,
    RecommendationTier,
)
from ..data.observations import ObservationStore
from ..geo.proximity import classify
from .tiers import FallbackSelector, OccupancyAggregator

logger = logging.getLogger(__name__)

def _has_coords(row: RecommendationRow) -> bool:
    return (
        row.lat is not None and row.lon is not None
        and math.isfinite(row.lat) and math.isfinite(row.lon)
    )

def enrich_row(row: RecommendationRow, stops: NearestStopLookup) -> RecommendationRow:
    """Annotate one row with its nearest stop and proximity label (new row)."""
    if not _has_coords(row):
        return replace(row, nearest_stop=None, proximity=ProximityLabel.UNKNOWN)
    match = stops.nearest(row.lat, row.lon)
    if match is None:
        return replace(row, nearest_stop=None, proximity=ProximityLabel.UNKNOWN)
    return replace(row, nearest_stop=match, proximity=classify(match.distance_m))

class RecommendationService:
    """
    Orchestrates:
      criteria → first tier with rows (aggregate, then fallback) → transit enrichment
    Tier order is the ranking; enrichment annotates rows and never reorders them.
    """
    def __init__(self, tiers: Sequence[RecommendationTier], stops: NearestStopLookup):
        self.tiers = tuple(tiers)
        self.stops = stops

    @classmethod
    def from_store(cls, store: ObservationStore, stops: NearestStopLookup,
                   settings: Settings) -> "RecommendationService":
        return cls(
            tiers=(
                OccupancyAggregator(store, store.table,
                                    min_samples=settings.MIN_SAMPLES,
                                    limit=settings.MAX_RESULTS),
                FallbackSelector(store, store.table, limit=settings.MAX_RESULTS),
            ),
            stops=stops,
        )

    async def _first_nonempty(self, criteria: FilterCriteria) -> tuple[Optional[str], List[RecommendationRow]]:
        for tier in self.tiers:
            rows = await tier.fetch(criteria)
            if rows:
                return tier.name, rows
        return None, []

    async def recommend(self, criteria: FilterCriteria) -> List[RecommendationRow]:
        tier_name, rows = await self._first_nonempty(criteria)
        RECOMMEND_TIER.labels(tier=tier_name or "empty").inc()
        logger.info(
            "recommend day=%s hour=%s postcode=%s tier=%s rows=%d",
            criteria.day, criteria.hour, criteria.postcode, tier_name, len(rows),
        )
        return [enrich_row(r, self.stops) for r in rows]

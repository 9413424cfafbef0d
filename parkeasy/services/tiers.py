"""
The two row sources behind a recommendation, tried in order:

1. OccupancyAggregator: per-location occupancy statistics, best free rate first.
2. FallbackSelector: most recent individual unoccupied readings, used only
   when the aggregate finds nothing.
"""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import Table, case, extract, func, select
from sqlalchemy.sql.elements import ColumnElement

from ..core.utils import hour_window
from ..data.base import FilterCriteria, ObservationReader, RecommendationRow
from ..data.observations import UNOCCUPIED, clean_postcode_expr

logger = logging.getLogger(__name__)

MAX_RESULTS = 3


def day_postcode_filters(table: Table, criteria: FilterCriteria) -> list[ColumnElement]:
    """Predicates shared by both tiers; absent criteria add nothing."""
    clauses: list[ColumnElement] = []
    if criteria.day is not None:
        clauses.append(table.c.day_of_week == criteria.day)
    if criteria.postcode is not None:
        clauses.append(clean_postcode_expr(table.c.postcode) == criteria.postcode)
    return clauses


def _opt_float(v) -> float | None:
    return None if v is None else float(v)


class OccupancyAggregator:
    name = "aggregate"

    def __init__(self, store: ObservationReader, table: Table,
                 min_samples: int = 1, limit: int = MAX_RESULTS):
        self.store = store
        self.table = table
        self.min_samples = min_samples
        self.limit = limit

    def statement(self, criteria: FilterCriteria):
        t = self.table
        postcode = clean_postcode_expr(t.c.postcode)
        free_rate = func.avg(
            case((t.c.status_description == UNOCCUPIED, 1.0), else_=0.0)
        ).label("free_rate")
        total = func.count().label("total_samples")
        latest = func.max(t.c.status_timestamp).label("latest_ts")

        clauses = day_postcode_filters(t, criteria)
        hour = criteria.hour
        if hour is not None:
            start, end = hour_window(hour)
            clauses.append(extract("hour", t.c.status_timestamp).between(start, end))
        elif criteria.time_label:
            logger.debug("Ignoring unparseable time label %r", criteria.time_label)

        return (
            select(
                t.c.address,
                postcode.label("postcode"),
                t.c.suburb,
                free_rate,
                total,
                latest,
                func.avg(t.c.lat).label("lat"),
                func.avg(t.c.lon).label("lon"),
            )
            .where(*clauses)
            .group_by(t.c.address, postcode, t.c.suburb)
            .having(func.count() >= self.min_samples)
            .order_by(free_rate.desc(), latest.desc())
            .limit(self.limit)
        )

    async def fetch(self, criteria: FilterCriteria) -> List[RecommendationRow]:
        rows = await self.store.fetch_all(self.statement(criteria))
        return [
            RecommendationRow(
                address=r.address,
                postcode=r.postcode,
                suburb=r.suburb,
                free_rate=float(r.free_rate),
                total_samples=int(r.total_samples),
                latest_timestamp=r.latest_ts,
                lat=_opt_float(r.lat),
                lon=_opt_float(r.lon),
            )
            for r in rows
        ]


class FallbackSelector:
    """
    Latest unoccupied readings matching day and postcode. The hour window is
    not applied here. Each reading stands alone: free rate 1.0, one sample.
    """
    name = "fallback"

    def __init__(self, store: ObservationReader, table: Table, limit: int = MAX_RESULTS):
        self.store = store
        self.table = table
        self.limit = limit

    def statement(self, criteria: FilterCriteria):
        t = self.table
        return (
            select(
                t.c.address,
                clean_postcode_expr(t.c.postcode).label("postcode"),
                t.c.suburb,
                t.c.status_timestamp.label("latest_ts"),
                t.c.lat,
                t.c.lon,
            )
            .where(*day_postcode_filters(t, criteria), t.c.status_description == UNOCCUPIED)
            .order_by(t.c.status_timestamp.desc())
            .limit(self.limit)
        )

    async def fetch(self, criteria: FilterCriteria) -> List[RecommendationRow]:
        rows = await self.store.fetch_all(self.statement(criteria))
        return [
            RecommendationRow(
                address=r.address,
                postcode=r.postcode,
                suburb=r.suburb,
                free_rate=1.0,
                total_samples=1,
                latest_timestamp=r.latest_ts,
                lat=_opt_float(r.lat),
                lon=_opt_float(r.lon),
            )
            for r in rows
        ]

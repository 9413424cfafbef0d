import math
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from parkeasy.core.config import Settings
from parkeasy.data.base import FilterCriteria, ProximityLabel, RecommendationRow, TransitMatch, TransitStop
from parkeasy.data.observations import ObservationStoreError
from parkeasy.services.recommendation_service import RecommendationService, enrich_row

from tests.factories import obs


def _row(address, lat=-37.8136, lon=144.9631, free_rate=0.5):
    return RecommendationRow(
        address=address, postcode="3000", suburb="Melbourne",
        free_rate=free_rate, total_samples=4,
        latest_timestamp=datetime(2024, 5, 6, 10), lat=lat, lon=lon,
    )


def _tier(name, rows):
    tier = AsyncMock()
    tier.name = name
    tier.fetch = AsyncMock(return_value=rows)
    return tier


class FixedStops:
    def __init__(self, distance_m):
        self.calls = []
        self.match = TransitMatch(
            stop=TransitStop(id="1", name="Flinders St", mode="train", lat=-37.818, lon=144.967),
            distance_m=distance_m,
        )

    def nearest(self, lat, lon):
        self.calls.append((lat, lon))
        return self.match


class NoStops:
    def nearest(self, lat, lon):
        return None


def test_enrich_row_attaches_match_and_label():
    stops = FixedStops(420.0)
    original = _row("A")
    enriched = enrich_row(original, stops)

    assert enriched.nearest_stop is stops.match
    assert enriched.proximity is ProximityLabel.MODERATE
    # Pure: the input row is untouched
    assert original.nearest_stop is None
    assert original.proximity is ProximityLabel.UNKNOWN


@pytest.mark.parametrize("lat, lon", [(None, 144.96), (-37.81, None), (math.nan, 144.96), (-37.81, math.inf)])
def test_enrich_row_without_coordinates_is_unknown(lat, lon):
    stops = FixedStops(10.0)
    enriched = enrich_row(_row("A", lat=lat, lon=lon), stops)
    assert enriched.nearest_stop is None
    assert enriched.proximity is ProximityLabel.UNKNOWN
    assert stops.calls == []


def test_enrich_row_with_empty_index_is_unknown():
    enriched = enrich_row(_row("A"), NoStops())
    assert (enriched.nearest_stop, enriched.proximity) == (None, ProximityLabel.UNKNOWN)


async def test_first_tier_wins_and_fallback_is_not_called():
    rows = [_row("A", free_rate=0.9), _row("B", free_rate=0.4, lat=None)]
    agg, fb = _tier("aggregate", rows), _tier("fallback", [_row("Z")])
    svc = RecommendationService([agg, fb], FixedStops(30.0))

    out = await svc.recommend(FilterCriteria.build(day="Monday", postcode="3000"))

    assert [r.address for r in out] == ["A", "B"]
    assert out[0].proximity is ProximityLabel.NEAR
    # Rows without coordinates are kept, not dropped
    assert out[1].proximity is ProximityLabel.UNKNOWN
    fb.fetch.assert_not_called()


async def test_fallback_runs_only_when_aggregate_is_empty():
    criteria = FilterCriteria.build(day="Monday", postcode="3000")
    agg, fb = _tier("aggregate", []), _tier("fallback", [_row("Z", free_rate=1.0)])
    svc = RecommendationService([agg, fb], FixedStops(900.0))

    out = await svc.recommend(criteria)

    agg.fetch.assert_awaited_once_with(criteria)
    fb.fetch.assert_awaited_once_with(criteria)
    assert [r.address for r in out] == ["Z"]
    assert out[0].proximity is ProximityLabel.FAR


async def test_both_tiers_empty_returns_empty_list():
    svc = RecommendationService([_tier("aggregate", []), _tier("fallback", [])], FixedStops(1.0))
    assert await svc.recommend(FilterCriteria.build(day="Monday", postcode="9999")) == []


async def test_store_failure_propagates():
    agg = _tier("aggregate", [])
    agg.fetch.side_effect = ObservationStoreError("down")
    svc = RecommendationService([agg, _tier("fallback", [])], FixedStops(1.0))
    with pytest.raises(ObservationStoreError):
        await svc.recommend(FilterCriteria())


# --- end to end over a real (SQLite) store ---

async def test_end_to_end_half_free_location(seed, store, stop_index):
    seed([obs("A", status="Unoccupied") for _ in range(5)] + [obs("A", status="Occupied") for _ in range(5)])
    svc = RecommendationService.from_store(store, stop_index, Settings())

    out = await svc.recommend(FilterCriteria.build(day="Monday", postcode="3000"))

    assert len(out) == 1
    row = out[0]
    assert row.address == "A"
    assert row.free_rate == pytest.approx(0.5)
    assert row.total_samples == 10
    assert row.nearest_stop.stop.id == "1001"
    assert row.nearest_stop.distance_m == 0.0
    assert row.proximity is ProximityLabel.NEAR


async def test_end_to_end_unknown_postcode_is_empty(seed, store, stop_index):
    seed([obs("A")])
    svc = RecommendationService.from_store(store, stop_index, Settings())
    assert await svc.recommend(FilterCriteria.build(day="Monday", postcode="9999")) == []


async def test_end_to_end_falls_back_outside_hour_window(seed, store, stop_index):
    seed([
        obs("A", ts=datetime(2024, 5, 6, 8), status="Unoccupied"),
        obs("B", ts=datetime(2024, 5, 6, 9), status="Unoccupied"),
        obs("C", ts=datetime(2024, 5, 6, 20), status="Occupied"),
    ])
    svc = RecommendationService.from_store(store, stop_index, Settings())

    out = await svc.recommend(FilterCriteria.build(day="Monday", time="3 PM", postcode="3000"))

    assert [r.address for r in out] == ["B", "A"]
    assert all(r.free_rate == 1.0 and r.total_samples == 1 for r in out)

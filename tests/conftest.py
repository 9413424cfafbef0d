"""
Shared fixtures.

The observation store is a SQLite file: seeded through a plain synchronous
engine, read back through the async store exactly as production reads MySQL.
"""
import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine

from parkeasy.core.config import Settings
from parkeasy.data.observations import ObservationStore, metadata, observations_table
from parkeasy.geo.stops import StopIndex

from tests.factories import STOP_FEATURES


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "observations.db"


@pytest.fixture
def seed(db_path):
    """Call seed([obs(...), ...]) to create the table and insert rows."""
    table = observations_table()

    def _seed(rows):
        engine = create_engine(f"sqlite:///{db_path}")
        metadata.create_all(engine)
        if rows:
            with engine.begin() as conn:
                conn.execute(table.insert(), rows)
        engine.dispose()

    return _seed


@pytest.fixture
def settings(db_path, stops_file) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{db_path}",
        STOPS_GEOJSON_PATH=str(stops_file),
        PROMETHEUS_ENABLED=True,
        RATE_LIMIT_RPM=1000,
    )


@pytest.fixture
async def store(settings, seed):
    seed([])  # table exists even when a test seeds nothing
    s = ObservationStore.from_settings(settings)
    yield s
    await s.dispose()


@pytest.fixture
def stops_file(tmp_path) -> Path:
    path = tmp_path / "stops.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": STOP_FEATURES}))
    return path


@pytest.fixture
def stop_index(stops_file) -> StopIndex:
    return StopIndex.from_geojson(str(stops_file))

"""
Read-only access to the raw occupancy observations.

The table is owned by the ingestion side; this module only describes the
columns it reads and runs statements built by the recommendation tiers.
"""
import logging
from typing import Any, Sequence

from sqlalchemy import Column, DateTime, Float, MetaData, String, Table, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..core.config import Settings

logger = logging.getLogger(__name__)

UNOCCUPIED = "Unoccupied"
OCCUPIED = "Occupied"

metadata = MetaData()

def observations_table(name: str = "ReadyData", meta: MetaData = metadata) -> Table:
    """
    Column layout of the sensor export. Attribute keys are snake_case;
    the physical names match the export.
    """
    if name in meta.tables:
        return meta.tables[name]
    return Table(
        name, meta,
        Column("address", String(255)),
        Column("postcode", String(16)),
        Column("suburb", String(128)),
        Column("lat", Float),
        Column("lon", Float),
        Column("day_of_week", String(16)),
        Column("Status_Timestamp", DateTime, key="status_timestamp"),
        Column("Status_Description", String(32), key="status_description"),
    )

def clean_postcode_expr(column):
    """SQL-side comma stripping so "3,000" groups and matches as "3000"."""
    return func.replace(column, ",", "")

class ObservationStoreError(RuntimeError):
    """The observation store could not be reached or read."""

class ObservationStore:
    """
    Owns the async engine. Every driver failure surfaces as
    ObservationStoreError; nothing is retried here.
    """
    def __init__(self, engine: AsyncEngine, table: Table):
        self.engine = engine
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObservationStore":
        url = settings.database_url()
        kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if not str(url).startswith("sqlite"):
            kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine = create_async_engine(url, **kwargs)
        logger.info("Observation store at %s", engine.url.render_as_string(hide_password=True))
        return cls(engine, observations_table(settings.OBSERVATIONS_TABLE))

    async def fetch_all(self, statement) -> Sequence[Any]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(statement)
                return result.all()
        except (SQLAlchemyError, OSError) as exc:
            raise ObservationStoreError(f"observation query failed: {exc}") from exc

    async def ping(self) -> None:
        await self.fetch_all(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()

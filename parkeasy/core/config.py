import os
from pydantic import BaseModel
from sqlalchemy.engine import URL

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Observation store. DATABASE_URL wins; otherwise built from the DB_* parts.
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "3306"))
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASSWORD: str | None = os.getenv("DB_PASSWORD")
    DB_NAME: str | None = os.getenv("DB_NAME")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    OBSERVATIONS_TABLE: str = os.getenv("OBSERVATIONS_TABLE", "ReadyData")

    # Transit stops (GeoJSON FeatureCollection of Points), loaded once at startup
    STOPS_GEOJSON_PATH: str = os.getenv("STOPS_GEOJSON_PATH", "data/transit_stops.geojson")

    # Recommendation policy
    MIN_SAMPLES: int = int(os.getenv("MIN_SAMPLES", "1"))
    MAX_RESULTS: int = int(os.getenv("MAX_RESULTS", "3"))

    # Rate limiting
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "60"))
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "120"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Cache
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

    def database_url(self) -> str | URL:
        """
        Explicit DATABASE_URL, or a MySQL (aiomysql) URL assembled from DB_* vars.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return URL.create(
            "mysql+aiomysql",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )

settings = Settings()

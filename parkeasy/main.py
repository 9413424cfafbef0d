import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from .routers.recommend import router as recommend_router

# Core modules
from .core.cache import Cache
from .core.config import Settings, settings as default_settings
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint

# Domain
from .data.observations import ObservationStore
from .geo.stops import StopIndex
from .services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

def create_app(
    settings: Settings | None = None,
    stop_index: StopIndex | None = None,
    store: ObservationStore | None = None,
) -> FastAPI:
    """
    App factory so tests and ASGI servers can instantiate cleanly.
    Components not passed in are built from settings at startup.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)  # Set up JSON logs + request-id stamping

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Stop index load is blocking and fatal: no requests before it succeeds
        index = stop_index if stop_index is not None else StopIndex.from_geojson(settings.STOPS_GEOJSON_PATH)
        obs = store if store is not None else ObservationStore.from_settings(settings)
        app.state.settings = settings
        app.state.rate_cache = Cache.from_settings(settings)
        app.state.stop_index = index
        app.state.store = obs
        app.state.recommender = RecommendationService.from_store(obs, index, settings)
        logger.info("ParkEasy ready (%d stops)", len(index))
        try:
            yield
        finally:
            if store is None:
                await obs.dispose()

    app = FastAPI(
        title="ParkEasy Recommendation API",
        version="1.0.0",
        description="Parking recommendations from historical occupancy, with nearest transit stop.",
        lifespan=lifespan,
    )

    # CORS: allow the front-end to call the API.
    allow_origins = [o.strip() for o in settings.ALLOW_ORIGINS.split(",")] if settings.ALLOW_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    # Observability middlewares
    app.add_middleware(CorrelationIdMiddleware)  # Adds/propagates X-Request-Id
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)       # Records req/latency metrics

    # Meta routes
    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    if settings.PROMETHEUS_ENABLED:
        # Standard Prometheus scrape endpoint
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    # Business routes (+ store-backed health check)
    app.include_router(recommend_router, prefix="/v1", tags=["recommend"])

    return app

app = create_app()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ecocoach import __version__
from ecocoach.api.v1.router import api_router
from ecocoach.config import settings
from ecocoach.logging_config import setup_logging
from ecocoach.services import cache
from ecocoach.services.errors import InvalidTripData, MissingFeatureInput, TripNotFound, UserNotFound

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=settings.log_level)
    logger.info(f"EcoCoach API v{__version__} starting")
    await cache.connect_cache(settings.redis_url)

    yield

    await cache.close_cache()
    logger.info("EcoCoach API shut down")


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses without leaking internal details."""

    @app.exception_handler(InvalidTripData)
    async def invalid_trip_data_handler(request: Request, exc: InvalidTripData):
        logger.warning(f"Rejected trip data on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=422,
            content={"detail": "Trip data is incomplete or inconsistent and cannot be processed"},
        )

    @app.exception_handler(MissingFeatureInput)
    async def missing_feature_input_handler(request: Request, exc: MissingFeatureInput):
        logger.warning(f"Trip cannot be scored on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=422,
            content={"detail": f"Trip is missing data required for analysis: {exc.field}"},
        )

    @app.exception_handler(TripNotFound)
    async def trip_not_found_handler(request: Request, exc: TripNotFound):
        return JSONResponse(status_code=404, content={"detail": "Trip not found"})

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(request: Request, exc: UserNotFound):
        return JSONResponse(status_code=404, content={"detail": "User not found"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="EcoCoach API",
        description="Driving telemetry aggregation, eco scoring and coaching recommendations",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "version": __version__,
            "cache": "enabled" if cache.get_cache_client() is not None else "disabled",
        }

    return app


app = create_app()

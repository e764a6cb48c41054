"""
RTP Picks & Strategy API.

Serves ESPN slates, per-game projections and picks, parlay suggestions
and bankroll strategies. Run locally with ``python -m app.main``.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

# .env must be loaded before settings are read
from dotenv import load_dotenv
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from slowapi import _rate_limit_exceeded_handler  # noqa: E402
from slowapi.errors import RateLimitExceeded  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.logging import configure_logging, get_logger  # noqa: E402
from app.core.middleware import CorrelationIdMiddleware  # noqa: E402
from app.core.rate_limit import GENERAL_LIMIT, limiter  # noqa: E402
from app.api.routes import games, parlays, picks, strategy  # noqa: E402
from app.api.routes.admin import cache as admin_cache  # noqa: E402
from app.services.core.circuit_breaker import get_breaker_state  # noqa: E402
from app.services.core.espn_service import LEAGUES, get_espn_service  # noqa: E402

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)

PUBLIC_ROUTERS = (games.router, picks.router, parlays.router, strategy.router)

ENDPOINTS = {
    "sports": "/api/v1/games/sports",
    "games": "/api/v1/games",
    "picks": "/api/v1/picks",
    "parlays": "/api/v1/parlays",
    "custom_parlay": "/api/v1/parlays/custom",
    "strategy": "/api/v1/strategy",
    "cache_invalidate": "/api/admin/cache/invalidate",
    "circuit_breaker": "/api/admin/circuit-breaker",
    "health": "/health",
    "docs": "/docs",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    logger.info(
        f"{settings.APP_NAME} {settings.APP_VERSION} up",
        extra={"environment": settings.ENVIRONMENT, "batch_size": settings.ANALYSIS_BATCH_SIZE},
    )
    yield
    # The shared ESPN client owns an httpx connection pool
    await get_espn_service().close()
    logger.info("ESPN client closed, shutting down")


async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    detail = "Unexpected error" if settings.is_production() else str(exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "detail": detail})


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Game projections, parlay suggestions and bankroll strategies from ESPN data",
        lifespan=lifespan,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(Exception, unhandled_exception)

    # Added first so it wraps inside CORS and still sees every request
    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID", "X-Response-Time-Ms"],
    )

    for router in PUBLIC_ROUTERS:
        application.include_router(router, prefix="/api/v1")
    application.include_router(admin_cache.router, prefix="/api/admin")
    return application


app = create_app()


@app.get("/")
@limiter.limit(GENERAL_LIMIT)
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "api_version": "v1",
        "sports": list(LEAGUES),
        "endpoints": ENDPOINTS,
    }


@app.get("/health")
@limiter.limit("120/minute")
async def health_check(request: Request):
    """Degraded while the ESPN circuit breaker is open; picks then fall back to defaults."""
    breaker_state = get_breaker_state()
    return {
        "status": "degraded" if breaker_state == "open" else "healthy",
        "version": settings.APP_VERSION,
        "components": {
            "espn_api": {"circuit_breaker": breaker_state},
            "cache": {"entries": len(get_espn_service().cache)},
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)

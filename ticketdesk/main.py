"""
Ticket Desk - FastAPI application

Wires the ticket API, the request middleware chain, the domain error
handlers and the auto-close scheduler into one ASGI app.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, TenantMiddleware, register_error_handlers
from .api.middleware.correlation import CORRELATION_HEADER
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .scheduler.auto_close_scheduler import start_scheduler, stop_scheduler
from .utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def _startup() -> None:
    try:
        create_indexes()
    except Exception as e:
        # The API still serves reads against an existing database
        logger.error(f"Index creation failed: {e}")

    if not settings.auto_close_enabled:
        logger.info("Auto-close disabled, scheduler not started")
        return
    try:
        start_scheduler()
    except Exception as e:
        logger.error(f"Auto-close scheduler failed to start: {e}")


def _shutdown() -> None:
    stop_scheduler()
    close_connection()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Index creation and the auto-close scheduler around the app's lifetime"""
    logger.info(f"{settings.app_name} {settings.app_version} starting ({settings.environment})")
    _startup()
    yield
    logger.info(f"{settings.app_name} stopping")
    _shutdown()


def _add_middleware(app: FastAPI) -> None:
    # Added last runs first: correlation id, then tenant slug, then CORS
    any_origin = settings.allows_any_origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if any_origin else settings.cors_origins_list,
        # Browsers reject credentials with a wildcard origin
        allow_credentials=not any_origin,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_middleware(TenantMiddleware)
    app.add_middleware(CorrelationIdMiddleware)


def _add_routes(app: FastAPI) -> None:
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health():
        """Liveness plus a MongoDB ping; `degraded` when the ping fails."""
        mongo = health_check()
        return {
            "status": "healthy" if mongo.get("status") == "healthy" else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "mongo": mongo,
        }

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/api/docs" if settings.docs_enabled else None,
        }


def create_app() -> FastAPI:
    docs = settings.docs_enabled
    application = FastAPI(
        title=settings.app_name,
        description="Multi-tenant support ticket tracker",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if docs else None,
        redoc_url="/api/redoc" if docs else None,
        openapi_url="/api/openapi.json" if docs else None,
    )
    _add_middleware(application)
    register_error_handlers(application)
    _add_routes(application)
    return application


app = create_app()

"""FastAPI application entry point.

Creates and configures the DataVault REST API with authentication,
rate limiting, domain error mapping and Prometheus metrics.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from datavault.api.dependencies.rate_limit import RateLimiter
from datavault.api.errors import register_exception_handlers
from datavault.api.routers import audit, auth, consents, data, vault
from datavault.api.schemas import DatabaseComponentHealth, HealthComponents, HealthResponse
from datavault.api.services.credentials import CredentialStore
from datavault.database import Database
from datavault.monitoring.middleware import PrometheusMiddleware, mount_metrics
from datavault.services import ServiceContainer
from datavault.settings import settings
from datavault.utils.logger import setup_logger

logger = setup_logger("api.main")

# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the store handle from settings unless one was injected at
    creation, and disposes only what it opened.

    Args:
        app: FastAPI application instance.

    Yields:
        None after startup tasks complete.
    """
    owned = getattr(app.state, "database", None) is None
    if owned:
        database = Database.from_settings()
        database.create_all()
        _attach_database(app, database)
    logger.info(f"API started (environment={settings.environment})")
    yield
    if owned:
        app.state.database.dispose()


def _attach_database(app: FastAPI, database: Database) -> None:
    """Wire the services around a store handle.

    Args:
        app: FastAPI application instance.
        database: Store handle.
    """
    app.state.database = database
    app.state.services = ServiceContainer.build(database)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app(database: Database | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        database: Store handle to use. When omitted, one is opened from
            settings at startup.

    Returns:
        Configured FastAPI instance.
    """
    app = FastAPI(
        title=settings.api.title,
        version=settings.api.version,
        description="REST API for personal data, consent and audit lifecycle",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.database = None
    if database is not None:
        _attach_database(app, database)

    app.state.credentials = CredentialStore()
    app.state.credentials.seed(settings.security.demo_users)
    app.state.rate_limiter = RateLimiter(settings.security.rate_limit_per_minute)

    _configure_cors(app)
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)
    register_exception_handlers(app)
    _register_routers(app)
    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Disposition", "Retry-After"],
    )


def _register_routers(app: FastAPI) -> None:
    """Register API routers and root endpoints.

    Args:
        app: FastAPI application instance.
    """
    for module in (auth, data, consents, audit, vault):
        app.include_router(module.router, prefix="/api/v1")

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="Verify API is running and the store is reachable.",
    )
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint (no authentication required)."""
        database: Database | None = request.app.state.database
        component = DatabaseComponentHealth()
        if database is not None:
            component = DatabaseComponentHealth(
                connected=database.check_connection(),
                backend=database.engine.dialect.name,
            )
        return HealthResponse(
            status="healthy" if component.connected else "degraded",
            version=settings.api.version,
            components=HealthComponents(database=component),
        )


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "datavault.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )

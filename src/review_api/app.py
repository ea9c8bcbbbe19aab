"""
Application factory for the review API.

Wires the store client into the app lifecycle, mounts the /api routes and adds
the root greeting, health check and metrics endpoints.
"""

from collections.abc import AsyncIterator
import contextlib
import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest

from . import __version__
from .api import router as api_router
from .config import ApiSettings, get_settings
from .enums import ServiceEndpoint
from .responses import OrjsonResponse
from .schemas import ErrorResponse, HealthResponse
from .store import StoreClient, StoreError
from .telemetry import instrument_fastapi_app, instrument_store_client


logger = logging.getLogger(__name__)

GREETING = "Hello World from FastAPI!"


def create_store_client(settings: ApiSettings) -> StoreClient:
    """Build the store client described by settings."""
    if not settings.store_configured:
        logger.warning("SUPABASE_URL or SUPABASE_ANON_KEY is not set; store calls will fail")
    store = StoreClient(
        rest_url=settings.rest_url,
        api_key=settings.store_key,
        schema=settings.store_schema,
        timeout_seconds=settings.store_timeout_seconds,
    )
    if settings.enable_tracing:
        instrument_store_client(store.http_client)
    return store


def _error_response(message: str) -> OrjsonResponse:
    return OrjsonResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


async def _store_error_handler(_request: Request, exc: Exception) -> OrjsonResponse:
    """Errors raised outside a route's own handling, e.g. in dependencies."""
    message = exc.message if isinstance(exc, StoreError) else str(exc)
    logger.warning("Request failed before reaching the store: %s", message)
    return _error_response(message)


def validation_error_message(exc: RequestValidationError) -> str:
    """Flatten request parsing errors into one line."""
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    ]
    return "Invalid request: " + "; ".join(problems) if problems else "Invalid request"


async def _validation_error_handler(request: Request, exc: Exception) -> OrjsonResponse:
    """Malformed bodies get the same 500 shape as store failures."""
    if isinstance(exc, RequestValidationError):
        message = validation_error_message(exc)
    else:
        message = str(exc)
    logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    return _error_response(message)


def _register_endpoints(app: FastAPI, settings: ApiSettings) -> None:
    """Register the greeting, health check and metrics endpoints."""

    @app.get(ServiceEndpoint.ROOT.value, response_class=PlainTextResponse)
    async def root() -> str:
        return GREETING

    @app.get(ServiceEndpoint.HEALTH.value)
    async def health() -> HealthResponse:
        """Liveness probe. Does not contact the store."""
        return HealthResponse(status="healthy", store_configured=settings.store_configured)

    @app.get(ServiceEndpoint.METRICS.value, response_class=Response)
    @app.head(ServiceEndpoint.METRICS.value, response_class=Response)
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )


def create_app(
    settings: ApiSettings | None = None,
    store: StoreClient | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Configuration, defaults to the global settings
        store: Pre-built store client. When omitted one is created at startup
            from settings and closed at shutdown.

    Returns:
        FastAPI: The configured application
    """
    settings = settings or get_settings()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_store = store is None
        app.state.store = create_store_client(settings) if owns_store else store
        logger.info("Application startup")

        yield

        logger.info("Application shutdown")
        if owns_store:
            await app.state.store.close()

    app = FastAPI(
        title="Review API",
        description="REST façade over the video review store",
        version=__version__,
        lifespan=lifespan,
        default_response_class=OrjsonResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    if settings.enable_tracing:
        instrument_fastapi_app(app)

    app.include_router(api_router)
    _register_endpoints(app, settings)

    return app

"""FastAPI application for the Stripe payment failure monitor.

Endpoints:
- POST /webhook: Stripe events (signature verified)
- GET /: status summary
- GET /health: Stripe, Airtable and Gmail connectivity
- GET /logs: recent activity
- POST /test: synthetic run through the notification sinks
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum
from starlette.concurrency import run_in_threadpool

from payment_monitor import __version__
from payment_monitor.api.dependencies import get_activity_log, get_airtable_service
from payment_monitor.api.exceptions import register_exception_handlers
from payment_monitor.api.middleware.correlation import CorrelationIdMiddleware
from payment_monitor.api.routes import manual_test_router, status_router, webhooks_router
from payment_monitor.config import get_settings
from payment_monitor.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def run_startup_checks(app: FastAPI) -> None:
    """Log startup and run the advisory Airtable table check.

    Blocking; never raises because ``ensure_table`` never raises.
    """
    settings = get_settings()
    activity_log = app.dependency_overrides.get(get_activity_log, get_activity_log)()
    airtable = app.dependency_overrides.get(get_airtable_service, get_airtable_service)()

    activity_log.info(f"Stripe Payment Monitor started on port {settings.port}")
    airtable.ensure_table()
    activity_log.info("Ready to monitor payment failures")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await run_in_threadpool(run_startup_checks, app)
    yield


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    configure_logging(get_settings().log_level)

    app = FastAPI(
        title="Stripe Payment Monitor",
        description="Relays failed Stripe payments to Gmail alerts and Airtable",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(status_router)
    app.include_router(webhooks_router)
    app.include_router(manual_test_router)

    return app


app = create_app()

# Mangum would run the lifespan on every invocation, so it stays off
_asgi_handler = Mangum(app, lifespan="off")


@lru_cache(maxsize=1)
def _cold_start() -> None:
    run_startup_checks(app)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """AWS Lambda entry point (API Gateway).

    The startup checks run once per container, on its first invocation.
    """
    _cold_start()
    return _asgi_handler(event, context)


def run_server(host: str = "0.0.0.0", port: int | None = None, reload: bool = False) -> None:
    """Run the API with uvicorn.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: PORT env var, else 3000)
        reload: Enable hot reload for development
    """
    import uvicorn

    port = port or get_settings().port
    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("payment_monitor.api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()

"""
BreachWatch - Standalone Server

Runs the breach API as a standalone service (port 8003 by default).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from breachwatch import __version__
from breachwatch.api.routes import categories_router, router as breach_router
from breachwatch.breach.monitor import get_deadline_monitor
from breachwatch.core.config import BreachWatchConfig, get_breachwatch_config
from breachwatch.monitoring.logging import LoggingContextMiddleware, configure_logging

logger = structlog.get_logger(__name__)


def create_app(config: BreachWatchConfig | None = None) -> FastAPI:
    """Build the FastAPI application."""
    config = config or get_breachwatch_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(
            level=config.log_level,
            json_output=config.log_json,
            sanitize_logs=config.log_sanitize,
        )
        monitor = get_deadline_monitor()
        logger.info(
            "breachwatch_started",
            version=__version__,
            incidents=len(monitor.store.incidents),
            attention_threshold_hours=config.attention_threshold_hours,
        )
        yield
        logger.info("breachwatch_stopped")

    app = FastAPI(
        title="BreachWatch",
        description="Personal-data breach intake, classification and notification deadline tracking",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingContextMiddleware)

    app.include_router(breach_router, prefix=config.api_prefix)
    app.include_router(categories_router, prefix=config.api_prefix)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "breachwatch", "version": __version__}

    return app


app = create_app()


def main() -> None:
    config = get_breachwatch_config()
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()

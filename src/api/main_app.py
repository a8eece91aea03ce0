"""Main FastAPI application for the API layer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.api.infrastructure.container import get_container, init_container
from src.api.infrastructure.logging import configure_structured_logging
from src.api.routers import alerts, feed, logs, schedules, telemetry
from src.config import AppConfig


def create_app(config: AppConfig | None = None, run_timers: bool = True) -> FastAPI:
    """Build the application; `config` defaults to environment settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        app_config = config or AppConfig()
        configure_structured_logging(app_config.logging)

        logger.info("🚀 Starting Coop Monitor API...")
        init_container(app_config)
        container = get_container()

        db = container.database()
        await db.create_all()
        logger.info("✓ Database initialized")

        engine = container.engine()
        await engine.start(run_timers=run_timers)
        logger.info("✓ API ready")

        yield

        logger.info("🛑 Shutting down API...")
        await engine.stop()
        await db.close()

    app = FastAPI(
        title="Coop Monitor API",
        description="Telemetry ingest, alerting, activity log and feeding schedules for the coop dashboard",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure as needed
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(telemetry.router)
    app.include_router(alerts.router)
    app.include_router(logs.router)
    app.include_router(schedules.router)
    app.include_router(feed.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Coop Monitor API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "engine_running": get_container().engine().running}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

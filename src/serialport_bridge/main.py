"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from serialport_bridge import __version__, session
from serialport_bridge.api.dependencies import app_state
from serialport_bridge.api.routes import router as api_router
from serialport_bridge.core.config import Settings, setup_logging
from serialport_bridge.core.models import HealthResponse
from serialport_bridge.driver import create_local_backend

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info("Starting serialport bridge v%s", __version__)

    backend = create_local_backend()
    app_state.channel = backend.channel
    app_state.registry = backend.registry

    # Sessions created in this process talk to the same driver.
    session.configure(backend.channel, backend.feed)

    yield

    logger.info("Shutting down...")
    session.configure(None, None)
    if app_state.registry is not None:
        await app_state.registry.shutdown()


app = FastAPI(
    title="Serialport Bridge",
    description="Serial port driver with session-independent port management",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Serialport Bridge",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    registry = app_state.registry
    if registry is None:
        return HealthResponse(status="unhealthy", open_ports=0, reading_ports=0)

    return HealthResponse(
        status="healthy",
        open_ports=len(registry.open_ports),
        reading_ports=len(registry.reading_ports),
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()

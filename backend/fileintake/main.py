"""File Intake Backend Application.

This is the main entry point for the file intake service. The service hosts
per-client file selections for the admin front end: files chosen in a picker
or dropped on the page are validated, deduplicated and held (with image
previews) until the upload workflow picks them up.

Modules:
    - intake: selection store, validation, previews, drag-and-drop, sessions
    - config: YAML-backed settings
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fileintake.config import get_config
from fileintake.intake.router import router as intake_router
from fileintake.intake.session import IntakeSessionRegistry

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Silence verbose third-party loggers.
for _noisy in (
    "multipart",
    "python_multipart",
    "httpx",
    "httpcore",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in intake.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    IntakeSessionRegistry.set_instance(
        IntakeSessionRegistry(
            default_config=config.intake,
            max_sessions=config.sessions.max_sessions,
        )
    )
    logger.info(
        "Intake ready on http://%s:%s (max_files=%d, max_size=%d bytes)",
        config.server.host,
        config.server.port,
        config.intake.max_files,
        config.intake.max_size,
    )

    yield  # Application runs here

    # Shutdown: release every preview still held by an open session
    IntakeSessionRegistry.reset_instance()
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="File Intake API",
    description="Multi-file intake for the admin front end: validation, deduplication and previews",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(intake_router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}

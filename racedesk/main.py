"""FastAPI application entry point for RaceDesk."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware

from racedesk.api import analysis, races
from racedesk.config import settings
from racedesk.desk import get_desk
from racedesk.models.database import init_db

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    logger.info("Starting RaceDesk...")
    await init_db()
    logger.info(f"Provider precedence: {' > '.join(settings.provider_precedence)}")

    yield

    logger.info("Shutting down RaceDesk...")
    await get_desk().close()


# Create FastAPI app
app = FastAPI(
    title="RaceDesk",
    description="Cross-provider race reconciliation, value scoring and backtesting",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(races.router, prefix="/api", tags=["races"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "racedesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )

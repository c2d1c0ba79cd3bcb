"""
FastAPI application entry point for the report engine API.

Configures logging, CORS and the API routers, and manages the record store
connection pool across the application lifespan.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from report_engine import __version__
from report_engine.api import api_router
from report_engine.core.database import close_db, init_db
from report_engine.core.exceptions import UpstreamFetchFailure

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the connection pool on startup and close it on shutdown.

    A store that is unconfigured or unreachable does not stop startup; the
    report endpoints answer 502 until it becomes available.
    """
    logger.info("Report engine API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except UpstreamFetchFailure as e:
        logger.warning(f"Record store unavailable: {e.message}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Report engine API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Report Engine API",
    version=__version__,
    description=(
        "Content gap reports and chatbot analytics: correlated records, "
        "timelines, category breakdowns, mined insights and exports."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Report Engine API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "report_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from folio.api.catalog_routes import router as catalog_router
from folio.api.recommendation_routes import router as recommendation_router
from folio.api.routes import router as books_router
from folio.core.config import settings
from folio.infrastructure.database.connection import init_db

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Folio application")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Folio application")


app = FastAPI(
    title="Folio",
    description="Book catalog ingestion, review statistics and recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(books_router)
app.include_router(catalog_router)
app.include_router(recommendation_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

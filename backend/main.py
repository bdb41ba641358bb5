"""
DM Recipes API
==============

Entry point for the recipe publishing service.

Features:
- recipe_publish tool endpoint (normalize -> compile -> create record -> taxonomies)
- Schema.org microdata + JSON-LD embedded in the record body
- Dynamic render of stored recipe blocks with current ratings
- In-memory or WordPress REST content store
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dm_recipes.api.routes import router as api_router
from dm_recipes.core.config import get_settings
from dm_recipes.store import build_store

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    owns_store = getattr(app.state, "store", None) is None
    if owns_store:
        app.state.store = build_store(settings)
    logger.info(f"Content store: {type(app.state.store).__name__}")

    yield

    store = app.state.store
    if owns_store:
        if hasattr(store, "close"):
            store.close()
        app.state.store = None
    logger.info(f"Shutting down {settings.app_name}.")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Publish recipes with Schema.org structured data",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url=None,
)
app.state.store = None

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "version": settings.app_version,
        "store": settings.store_backend,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )

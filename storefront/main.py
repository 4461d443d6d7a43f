"""Storefront FastAPI backend: application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront import config
from storefront.db import connection, migrations
from storefront.observability import initialize as initialize_observability, shutdown as shutdown_observability
from storefront.routers.catalog import catalog_router
from storefront.routers.categories import categories_router
from storefront.routers.feedback import feedback_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Storefront backend starting up")
    initialize_observability(app)

    db = await connection.get_connection()
    await migrations.run_migrations(db)

    yield

    logger.info("Storefront backend shutting down")
    shutdown_observability(app)
    await connection.close_connection()


app = FastAPI(
    title="Storefront API",
    description="Catalog read API: category trees, faceted listings and product pages",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(categories_router)
app.include_router(catalog_router)
app.include_router(feedback_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "db": "connected" if connection._connection else "disconnected",
        "backend": config.DB_BACKEND,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host=config.HOST, port=config.PORT)

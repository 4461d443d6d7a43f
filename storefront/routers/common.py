"""Shared router plumbing: service construction and error translation."""
from __future__ import annotations

import logging

from fastapi import HTTPException

from storefront.catalog.service import CatalogService
from storefront.db import connection
from storefront.errors import InternalError, NotFoundError, QueryCancelledError, StorefrontError

logger = logging.getLogger("storefront.api")


async def get_service() -> CatalogService:
    db = await connection.get_connection()
    return CatalogService(db)


def to_http_error(exc: StorefrontError) -> HTTPException:
    """Map a storefront error to an HTTPException; internal detail stays in the log."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, QueryCancelledError):
        logger.error("Query cancelled: %s", exc.message)
        return HTTPException(status_code=503, detail="Query timed out")
    if isinstance(exc, InternalError):
        logger.error("Internal error: %s (%s)", exc.message, exc.details, exc_info=exc)
        return HTTPException(status_code=500, detail="Internal server error")
    logger.error("Unhandled storefront error: %s", exc.message, exc_info=exc)
    return HTTPException(status_code=exc.status_code, detail="Internal server error")

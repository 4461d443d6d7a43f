"""Feedback API router."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from storefront.errors import StorefrontError
from storefront.models import Feedback, ModelFeedbackResponse
from storefront.routers.common import get_service, to_http_error

feedback_router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@feedback_router.get("/model/{model_id}", response_model=ModelFeedbackResponse)
async def get_model_feedback(model_id: int, order: str = Query("DESC")):
    """Visible feedback for one product model with its average rate."""
    if order.upper() not in {"ASC", "DESC"}:
        raise HTTPException(status_code=400, detail="order must be ASC or DESC")
    service = await get_service()
    try:
        return await service.get_model_feedback(model_id, order.upper())
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@feedback_router.get("", response_model=list[Feedback])
async def list_feedback(includeHidden: bool = Query(True)):
    service = await get_service()
    try:
        return await service.get_all_feedback(include_hidden=includeHidden)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc

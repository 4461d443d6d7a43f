"""PostgreSQL implementation of FeedbackRepository."""
from __future__ import annotations

import logging
from typing import Any

import asyncpg

from storefront.catalog.builders import build_feedback_list, build_model_feedback
from storefront.catalog.composer import PLACEHOLDER_NUMERIC
from storefront.db.repositories import sql
from storefront.errors import InternalError
from storefront.models import Feedback, ModelFeedbackResponse

logger = logging.getLogger("storefront.db")


class PostgresFeedbackRepository:
    style = PLACEHOLDER_NUMERIC

    def __init__(self, db: asyncpg.Connection):
        self.db = db

    async def _fetch(self, query: str, values: list[Any]) -> list[asyncpg.Record]:
        try:
            return await self.db.fetch(query, *values)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OverflowError) as exc:
            logger.exception("Feedback query failed")
            raise InternalError.wrap("Feedback query failed", exc) from exc

    async def get_model_feedback(self, model_id: int, order: str = "DESC") -> ModelFeedbackResponse:
        rows = await self._fetch(*sql.model_feedback(model_id, order, self.style))
        return build_model_feedback(rows)

    async def get_all_feedback(self, include_hidden: bool = True) -> list[Feedback]:
        rows = await self._fetch(*sql.all_feedback(self.style, include_hidden=include_hidden))
        return build_feedback_list(rows)

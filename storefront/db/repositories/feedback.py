"""SQLite implementation of FeedbackRepository."""
from __future__ import annotations

import logging
from typing import Any

import aiosqlite

from storefront.catalog.builders import build_feedback_list, build_model_feedback
from storefront.catalog.composer import PLACEHOLDER_QMARK
from storefront.db.repositories import sql
from storefront.errors import InternalError
from storefront.models import Feedback, ModelFeedbackResponse

logger = logging.getLogger("storefront.db")


class SqliteFeedbackRepository:
    """Model feedback reads over aiosqlite."""

    style = PLACEHOLDER_QMARK

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def _fetch(self, query: str, values: list[Any]) -> list[aiosqlite.Row]:
        try:
            async with self.db.execute(query, values) as cur:
                return list(await cur.fetchall())
        except (aiosqlite.Error, OverflowError) as exc:
            logger.exception("Feedback query failed")
            raise InternalError.wrap("Feedback query failed", exc) from exc

    async def get_model_feedback(self, model_id: int, order: str = "DESC") -> ModelFeedbackResponse:
        rows = await self._fetch(*sql.model_feedback(model_id, order, self.style))
        return build_model_feedback(rows)

    async def get_all_feedback(self, include_hidden: bool = True) -> list[Feedback]:
        rows = await self._fetch(*sql.all_feedback(self.style, include_hidden=include_hidden))
        return build_feedback_list(rows)

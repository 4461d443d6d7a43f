"""SQLite implementation of CategoryRepository (hierarchy traversal)."""
from __future__ import annotations

import logging
from typing import Any

import aiosqlite

from storefront.catalog.builders import (
    build_catalog_tree,
    build_categories,
    build_category,
    build_category_forest,
    build_category_path,
    build_category_tree,
)
from storefront.catalog.composer import PLACEHOLDER_QMARK
from storefront.db.repositories import sql
from storefront.errors import InternalError, NotFoundError
from storefront.models import CatalogCategoryNode, CategoryModel, CategoryNode

logger = logging.getLogger("storefront.db")


def _column(field: str) -> str:
    column = sql.category_column(field)
    if column is None:
        raise InternalError(f"Unsupported category lookup field: {field}")
    return column


class SqliteCategoryRepository:
    """Recursive-CTE category traversal over aiosqlite."""

    style = PLACEHOLDER_QMARK

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def _fetch(self, query: str, values: list[Any]) -> list[aiosqlite.Row]:
        try:
            async with self.db.execute(query, values) as cur:
                return list(await cur.fetchall())
        except (aiosqlite.Error, OverflowError) as exc:
            logger.exception("Category query failed")
            raise InternalError.wrap("Category query failed", exc) from exc

    async def get_subtree(self, field: str, value: Any) -> CategoryNode:
        rows = await self._fetch(*sql.subtree(_column(field), value, self.style))
        return build_category_tree(rows)

    async def get_all(self) -> list[CategoryNode]:
        rows = await self._fetch(*sql.forest(self.style))
        if not rows:
            return []
        return build_category_forest(rows)

    async def get_catalog_tree(self, root_id: int, active_slug: str) -> CatalogCategoryNode:
        rows = await self._fetch(*sql.subtree("category_id", root_id, self.style))
        return build_catalog_tree(rows, active_slug)

    async def get_ancestors(self, category_id: int) -> list[CategoryNode]:
        rows = await self._fetch(*sql.ancestors(category_id, self.style))
        if not rows:
            raise NotFoundError("Category not found")
        return build_category_path(rows)

    async def get_top_level_ancestor(self, category_id: int) -> CategoryModel:
        rows = await self._fetch(*sql.ancestors(category_id, self.style, top_only=True))
        if not rows:
            raise NotFoundError("Category not found")
        return build_category(rows[0])

    async def get_ancestor_at_level(self, category_id: int, level: int) -> CategoryModel:
        rows = await self._fetch(*sql.ancestors(category_id, self.style, level=level))
        if not rows:
            raise NotFoundError("Category not found")
        return build_category(rows[0])

    async def find_by_field(self, field: str, value: Any) -> CategoryModel:
        rows = await self._fetch(*sql.find_category(_column(field), value, self.style))
        if not rows:
            raise NotFoundError("Category not found")
        return build_category(rows[0])

    async def get_top_levels(self) -> list[CategoryModel]:
        rows = await self._fetch(*sql.top_levels(self.style))
        return build_categories(rows)

    async def get_children_count(self, category_id: int) -> int:
        rows = await self._fetch(*sql.children_count(category_id, self.style))
        return int(rows[0][0]) if rows else 0

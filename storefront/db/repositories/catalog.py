"""SQLite implementation of CatalogRepository."""
from __future__ import annotations

import logging
from typing import Any

import aiosqlite

from storefront.catalog.builders import (
    build_admin_products,
    build_catalog_filters,
    build_catalog_models,
    build_model_colors,
    build_product_page,
)
from storefront.catalog.composer import PLACEHOLDER_QMARK
from storefront.catalog.facets import FacetFilterSet
from storefront.db.repositories import sql
from storefront.errors import InternalError, NotFoundError
from storefront.models import (
    AdminProduct,
    CatalogFilters,
    CatalogProductModel,
    ModelColor,
    ProductPage,
)

logger = logging.getLogger("storefront.db")


class SqliteCatalogRepository:
    """Catalog listing, filters and product pages over aiosqlite."""

    style = PLACEHOLDER_QMARK

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def _fetch(self, query: str, values: list[Any]) -> list[aiosqlite.Row]:
        try:
            async with self.db.execute(query, values) as cur:
                return list(await cur.fetchall())
        except (aiosqlite.Error, OverflowError) as exc:
            logger.exception("Catalog query failed")
            raise InternalError.wrap("Catalog query failed", exc) from exc

    async def _scalar(self, query: str, values: list[Any]) -> int:
        rows = await self._fetch(query, values)
        return int(rows[0][0] or 0) if rows else 0

    async def _require_category(self, slug: str) -> None:
        rows = await self._fetch(*sql.find_category("slug", slug, self.style))
        if not rows:
            raise NotFoundError("Category not found")

    async def get_catalog_models(
        self, category_slug: str, facets: FacetFilterSet
    ) -> tuple[list[CatalogProductModel], int, int, int]:
        """Return (models, total, page, page size) for one catalog page."""
        await self._require_category(category_slug)

        query, page_sql, count_sql = sql.catalog_page_ids(category_slug, facets, self.style)
        total = await self._scalar(count_sql, query.filter_params)
        id_rows = await self._fetch(page_sql, query.params)
        model_ids = [r[0] for r in id_rows]
        if not model_ids:
            return [], total, facets.page, query.limit

        rows = await self._fetch(*sql.catalog_models(model_ids, self.style))
        return build_catalog_models(rows, model_ids), total, facets.page, query.limit

    async def get_catalog_filters(self, category_slug: str) -> CatalogFilters:
        await self._require_category(category_slug)
        rows = await self._fetch(*sql.catalog_filters(category_slug, self.style))
        return build_catalog_filters(rows)

    async def get_product_page(self, model_slug: str) -> ProductPage:
        rows = await self._fetch(*sql.product_page(model_slug, self.style))
        return build_product_page(rows)

    async def find_models_colored(self, product_id: int) -> list[ModelColor]:
        rows = await self._fetch(*sql.models_colored(product_id, self.style))
        return build_model_colors(rows)

    async def admin_get_products(
        self,
        page: int,
        category_id: int | None = None,
        brand_id: int | None = None,
    ) -> tuple[list[AdminProduct], int]:
        page_sql, page_values, count_sql, count_values = sql.admin_page_ids(
            page, self.style, category_id=category_id, brand_id=brand_id
        )
        total = await self._scalar(count_sql, count_values)
        product_ids = [r[0] for r in await self._fetch(page_sql, page_values)]
        if not product_ids:
            return [], total
        rows = await self._fetch(*sql.admin_products(product_ids, self.style))
        return build_admin_products(rows, product_ids), total

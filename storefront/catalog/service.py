"""Catalog assembly: composes repositories into the storefront's read operations.

Every operation runs inside a tracing span, is timed into the query metrics
and is bounded by ``config.QUERY_TIMEOUT_SECONDS``. A task cancelled by its
caller propagates ``asyncio.CancelledError`` untouched; only the deadline is
converted, into ``QueryCancelledError``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Mapping, TypeVar

from storefront import config
from storefront.catalog.facets import FacetFilterSet, parse_facets
from storefront.db import factory
from storefront.errors import NotFoundError, QueryCancelledError
from storefront.models import (
    AdminProduct,
    CatalogCategoryResponse,
    CatalogFilters,
    CatalogResponse,
    CategoryModel,
    CategoryNode,
    Feedback,
    ModelColor,
    ModelFeedbackResponse,
    PaginatedResponse,
    ProductPage,
)
from storefront.observability import record_page, record_query, start_span

logger = logging.getLogger("storefront.catalog")

T = TypeVar("T")


async def _run(operation: str, awaitable: Awaitable[T], attributes: dict[str, Any] | None = None) -> T:
    t0 = time.monotonic()
    result = "ok"
    try:
        with start_span(f"catalog.{operation}", attributes):
            return await asyncio.wait_for(awaitable, timeout=config.QUERY_TIMEOUT_SECONDS)
    except asyncio.TimeoutError as exc:
        result = "timeout"
        logger.warning("%s exceeded %.1fs deadline", operation, config.QUERY_TIMEOUT_SECONDS)
        raise QueryCancelledError(
            f"{operation} timed out", details={"timeout": config.QUERY_TIMEOUT_SECONDS}
        ) from exc
    except asyncio.CancelledError:
        result = "cancelled"
        raise
    except NotFoundError:
        result = "not_found"
        raise
    except Exception:
        result = "error"
        raise
    finally:
        record_query(operation, result, (time.monotonic() - t0) * 1000)


class CatalogService:
    """Read side of the storefront catalog over one database connection."""

    def __init__(self, db: Any):
        self.db = db
        self.categories = factory.get_category_repository(db)
        self.catalog = factory.get_catalog_repository(db)
        self.feedback = factory.get_feedback_repository(db)

    # ── Categories ──────────────────────────────────────────────────

    async def get_category_tree(self, field: str, value: Any) -> CategoryNode:
        return await _run(
            "category_tree",
            self.categories.get_subtree(field, value),
            {"category.field": field, "category.value": str(value)},
        )

    async def get_all_categories(self) -> list[CategoryNode]:
        return await _run("category_forest", self.categories.get_all())

    async def get_top_level_categories(self) -> list[CategoryModel]:
        return await _run("category_top_levels", self.categories.get_top_levels())

    async def get_category_ancestors(self, category_id: int) -> list[CategoryNode]:
        return await _run("category_ancestors", self.categories.get_ancestors(category_id), {"category.id": category_id})

    async def get_top_level_ancestor(self, category_id: int) -> CategoryModel:
        return await _run(
            "category_top_ancestor",
            self.categories.get_top_level_ancestor(category_id),
            {"category.id": category_id},
        )

    async def get_ancestor_at_level(self, category_id: int, level: int) -> CategoryModel:
        return await _run(
            "category_ancestor_at_level",
            self.categories.get_ancestor_at_level(category_id, level),
            {"category.id": category_id, "category.level": level},
        )

    async def get_children_count(self, category_id: int) -> int:
        return await _run(
            "category_children_count",
            self.categories.get_children_count(category_id),
            {"category.id": category_id},
        )

    async def get_catalog_categories(self, slug: str) -> CatalogCategoryResponse:
        """Tree of the slug's top-level ancestor with the path to ``slug`` marked active."""

        async def assemble() -> CatalogCategoryResponse:
            current = await self.categories.find_by_field("slug", slug)
            root_id = current.id
            if current.parentId is not None:
                root_id = (await self.categories.get_top_level_ancestor(current.id)).id
            tree = await self.categories.get_catalog_tree(root_id, slug)
            return CatalogCategoryResponse(catalogCategories=tree, current=current)

        return await _run("catalog_categories", assemble(), {"category.slug": slug})

    # ── Catalog ─────────────────────────────────────────────────────

    async def get_catalog_models(
        self,
        category_slug: str,
        facets: FacetFilterSet | Mapping[str, Any],
    ) -> CatalogResponse:
        if not isinstance(facets, FacetFilterSet):
            facets = parse_facets(facets)
        models, total, page, page_size = await _run(
            "catalog_models",
            self.catalog.get_catalog_models(category_slug, facets),
            {"category.slug": category_slug, "catalog.page": facets.page, "catalog.sort": facets.sort_key},
        )
        record_page("catalog_models", total, len(models))
        logger.debug("catalog %s page %s: %d of %d models", category_slug, page, len(models), total)
        return CatalogResponse(models=models, totalCount=total, page=page, pageSize=page_size)

    async def get_catalog_filters(self, category_slug: str) -> CatalogFilters:
        return await _run(
            "catalog_filters",
            self.catalog.get_catalog_filters(category_slug),
            {"category.slug": category_slug},
        )

    async def get_product_page(self, model_slug: str) -> ProductPage:
        return await _run("product_page", self.catalog.get_product_page(model_slug), {"model.slug": model_slug})

    async def find_models_colored(self, product_id: int) -> list[ModelColor]:
        return await _run("models_colored", self.catalog.find_models_colored(product_id), {"product.id": product_id})

    async def admin_get_products(
        self,
        page: int = 1,
        category_id: int | None = None,
        brand_id: int | None = None,
    ) -> PaginatedResponse[AdminProduct]:
        page = page if page >= 1 else 1
        items, total = await _run(
            "admin_products",
            self.catalog.admin_get_products(page, category_id=category_id, brand_id=brand_id),
            {"admin.page": page, "category.id": category_id, "brand.id": brand_id},
        )
        return PaginatedResponse[AdminProduct](
            items=items, total=total, page=page, pageSize=config.ADMIN_PAGE_SIZE
        )

    # ── Feedback ────────────────────────────────────────────────────

    async def get_model_feedback(self, model_id: int, order: str = "DESC") -> ModelFeedbackResponse:
        return await _run(
            "model_feedback",
            self.feedback.get_model_feedback(model_id, order),
            {"model.id": model_id},
        )

    async def get_all_feedback(self, include_hidden: bool = True) -> list[Feedback]:
        return await _run("all_feedback", self.feedback.get_all_feedback(include_hidden))

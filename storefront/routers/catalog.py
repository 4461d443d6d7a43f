"""Product catalog API router."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request

from storefront.catalog.facets import parse_facets
from storefront.errors import StorefrontError
from storefront.models import (
    AdminProduct,
    CatalogFilters,
    CatalogResponse,
    ModelColor,
    PaginatedResponse,
    ProductPage,
)
from storefront.routers.common import get_service, to_http_error

catalog_router = APIRouter(prefix="/api/product", tags=["catalog"])


@catalog_router.get("/catalog/{slug}", response_model=CatalogResponse)
async def get_catalog(slug: str, request: Request):
    """Catalog page for a category subtree.

    Query keys ``size``, ``brands``, ``sort``, ``is_sale``, ``price`` and
    ``page`` have fixed meanings; any other key is an option facet whose
    value is a comma separated list of option value ids.
    """
    facets = parse_facets(dict(request.query_params))
    service = await get_service()
    try:
        return await service.get_catalog_models(slug, facets)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@catalog_router.get("/catalog/{slug}/filters", response_model=CatalogFilters)
async def get_catalog_filters(slug: str):
    service = await get_service()
    try:
        return await service.get_catalog_filters(slug)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@catalog_router.get("/model/page/{slug}", response_model=ProductPage)
async def get_product_page(slug: str):
    service = await get_service()
    try:
        return await service.get_product_page(slug)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@catalog_router.get("/admin", response_model=PaginatedResponse[AdminProduct])
async def admin_list_products(
    page: int = Query(1),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    brand_id: Optional[int] = Query(None, alias="brandId"),
):
    service = await get_service()
    try:
        return await service.admin_get_products(page, category_id=category_id, brand_id=brand_id)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@catalog_router.get("/{product_id}/colors", response_model=list[ModelColor])
async def get_model_colors(product_id: int):
    service = await get_service()
    try:
        return await service.find_models_colored(product_id)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc

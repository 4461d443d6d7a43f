"""Category hierarchy API router."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException

from storefront.errors import StorefrontError
from storefront.models import CatalogCategoryResponse, CategoryModel, CategoryNode
from storefront.routers.common import get_service, to_http_error

categories_router = APIRouter(prefix="/api/category", tags=["categories"])


@categories_router.get("", response_model=list[CategoryNode])
async def list_categories():
    """Every root category with its full subtree."""
    service = await get_service()
    try:
        return await service.get_all_categories()
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/top", response_model=list[CategoryModel])
async def list_top_levels():
    service = await get_service()
    try:
        return await service.get_top_level_categories()
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/catalog/{slug}", response_model=CatalogCategoryResponse)
async def get_catalog_categories(slug: str):
    """Navigation tree for a catalog page, with the path to ``slug`` active."""
    service = await get_service()
    try:
        return await service.get_catalog_categories(slug)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/tree/{field}/{value}", response_model=CategoryNode)
async def get_category_tree(field: str, value: str):
    if field not in {"id", "slug"}:
        raise HTTPException(status_code=400, detail=f"Unsupported category field: {field}")
    lookup: str | int = value
    if field == "id":
        try:
            lookup = int(value)
        except ValueError:
            raise HTTPException(status_code=400, detail="Category id must be an integer")
    service = await get_service()
    try:
        return await service.get_category_tree(field, lookup)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/{category_id}/ancestors", response_model=list[CategoryNode])
async def get_ancestors(category_id: int):
    service = await get_service()
    try:
        return await service.get_category_ancestors(category_id)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/{category_id}/top-parent", response_model=CategoryModel)
async def get_top_parent(category_id: int):
    service = await get_service()
    try:
        return await service.get_top_level_ancestor(category_id)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/{category_id}/parent/{level}", response_model=CategoryModel)
async def get_parent_at_level(category_id: int, level: int):
    if level < 1:
        raise HTTPException(status_code=400, detail="Level must be >= 1")
    service = await get_service()
    try:
        return await service.get_ancestor_at_level(category_id, level)
    except StorefrontError as exc:
        raise to_http_error(exc) from exc


@categories_router.get("/{category_id}/children-count")
async def get_children_count(category_id: int):
    service = await get_service()
    try:
        return {"categoryId": category_id, "count": await service.get_children_count(category_id)}
    except StorefrontError as exc:
        raise to_http_error(exc) from exc

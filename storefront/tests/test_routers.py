import types
import unittest
from unittest.mock import AsyncMock, patch

from fastapi import HTTPException

from storefront.errors import InternalError, NotFoundError, QueryCancelledError
from storefront.models import CatalogResponse
from storefront.routers import catalog as catalog_router
from storefront.routers import categories as categories_router
from storefront.routers import feedback as feedback_router


class _FakeService:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def get_catalog_models(self, slug, facets):
        self.calls.append(("catalog", slug, facets))
        if self.error:
            raise self.error
        return CatalogResponse(models=[], totalCount=0, page=facets.page, pageSize=16)

    async def get_product_page(self, slug):
        raise self.error

    async def get_category_tree(self, field, value):
        self.calls.append(("tree", field, value))
        return {"field": field, "value": value}

    async def get_model_feedback(self, model_id, order):
        self.calls.append(("feedback", model_id, order))
        return {"feedback": []}


class CatalogRouterTests(unittest.IsolatedAsyncioTestCase):
    async def test_query_string_is_parsed_into_facets(self) -> None:
        fake = _FakeService()
        request = types.SimpleNamespace(
            query_params={"size": "42,44", "brands": "7", "sort": "price_asc", "page": "2", "color": "1"}
        )
        with patch.object(catalog_router, "get_service", AsyncMock(return_value=fake)):
            response = await catalog_router.get_catalog("shoes", request)

        self.assertEqual(response.page, 2)
        _, slug, facets = fake.calls[0]
        self.assertEqual(slug, "shoes")
        self.assertEqual(facets.sizes, frozenset({"42", "44"}))
        self.assertEqual(facets.options, {"color": frozenset({1})})

    async def test_not_found_maps_to_404(self) -> None:
        fake = _FakeService(error=NotFoundError("Category not found"))
        request = types.SimpleNamespace(query_params={})
        with patch.object(catalog_router, "get_service", AsyncMock(return_value=fake)):
            with self.assertRaises(HTTPException) as ctx:
                await catalog_router.get_catalog("hats", request)
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.detail, "Category not found")

    async def test_internal_error_is_opaque(self) -> None:
        fake = _FakeService(error=InternalError("Failed to decode model row: secret detail"))
        with patch.object(catalog_router, "get_service", AsyncMock(return_value=fake)):
            with self.assertLogs("storefront.api", level="ERROR"):
                with self.assertRaises(HTTPException) as ctx:
                    await catalog_router.get_product_page("model-1")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertNotIn("secret", ctx.exception.detail)

    async def test_timeout_maps_to_503(self) -> None:
        fake = _FakeService(error=QueryCancelledError("product_page timed out"))
        with patch.object(catalog_router, "get_service", AsyncMock(return_value=fake)):
            with self.assertLogs("storefront.api", level="ERROR"):
                with self.assertRaises(HTTPException) as ctx:
                    await catalog_router.get_product_page("model-1")
        self.assertEqual(ctx.exception.status_code, 503)


class CategoryRouterTests(unittest.IsolatedAsyncioTestCase):
    async def test_tree_by_id_coerces_integer(self) -> None:
        fake = _FakeService()
        with patch.object(categories_router, "get_service", AsyncMock(return_value=fake)):
            await categories_router.get_category_tree("id", "3")
        self.assertEqual(fake.calls, [("tree", "id", 3)])

    async def test_tree_rejects_unknown_field(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await categories_router.get_category_tree("title", "x")
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_tree_rejects_non_numeric_id(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await categories_router.get_category_tree("id", "abc")
        self.assertEqual(ctx.exception.status_code, 400)


class FeedbackRouterTests(unittest.IsolatedAsyncioTestCase):
    async def test_order_is_normalized(self) -> None:
        fake = _FakeService()
        with patch.object(feedback_router, "get_service", AsyncMock(return_value=fake)):
            await feedback_router.get_model_feedback(1, order="asc")
        self.assertEqual(fake.calls, [("feedback", 1, "ASC")])

    async def test_invalid_order_is_rejected(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await feedback_router.get_model_feedback(1, order="random")
        self.assertEqual(ctx.exception.status_code, 400)


if __name__ == "__main__":
    unittest.main()

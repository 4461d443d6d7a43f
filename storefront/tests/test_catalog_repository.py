import unittest

import aiosqlite

from storefront.catalog.facets import parse_facets
from storefront.db.repositories.catalog import SqliteCatalogRepository
from storefront.db.sqlite_migrations import run_migrations
from storefront.errors import InternalError, NotFoundError
from storefront.tests.seed_data import model_price, seed_catalog

STANDARD = {"size": "42,44", "brands": "7", "sort": "price_asc"}


class CatalogRepositoryTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        await seed_catalog(self.db)
        self.repo = SqliteCatalogRepository(self.db)

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def _page(self, slug: str, **params: str):
        return await self.repo.get_catalog_models(slug, parse_facets(params))

    async def test_second_page_of_thirty_matches(self) -> None:
        models, total, page, page_size = await self._page("shoes", page="2", **STANDARD)

        expected = sorted(range(1, 31), key=model_price)[16:]
        self.assertEqual(total, 30)
        self.assertEqual((page, page_size), (2, 16))
        self.assertEqual(len(models), 14)
        self.assertEqual([m.modelId for m in models], expected)
        prices = [m.price for m in models]
        self.assertEqual(prices, sorted(prices))

    async def test_page_models_are_fully_reconstructed(self) -> None:
        models, _, _, _ = await self._page("shoes", **STANDARD)

        first = models[0]
        self.assertEqual(first.modelId, 30)
        self.assertEqual(first.price, 1000)
        self.assertIsNone(first.discount)
        self.assertEqual(first.brand.title, "Acme")
        self.assertEqual(first.category.slug, "trail")
        self.assertEqual([i.id for i in first.images], [59, 60])
        self.assertEqual([s.value for s in first.sizes], ["42", "44"])

        odd = next(m for m in models if m.modelId == 1)
        # stored as 42 then 38; returned numerically
        self.assertEqual([s.value for s in odd.sizes], ["38", "42"])
        self.assertEqual([s.literal for s in odd.sizes], ["M", "L"])

    async def test_page_past_the_end_reports_the_total(self) -> None:
        models, total, _, _ = await self._page("shoes", page="5", **STANDARD)
        self.assertEqual(models, [])
        self.assertEqual(total, 30)

    async def test_category_scope_includes_descendants_only(self) -> None:
        _, total, _, _ = await self._page("running", **STANDARD)
        self.assertEqual(total, 20)

        _, total, _, _ = await self._page("shoes")
        self.assertEqual(total, 33)

        _, total, _, _ = await self._page("bags")
        self.assertEqual(total, 2)

    async def test_models_without_images_or_sizes_are_not_listed(self) -> None:
        models, total, _, _ = await self._page("sneakers", page="2")
        self.assertEqual(total, 30)
        self.assertEqual([m.id for m in models], list(range(17, 31)))

        models, total, _, _ = await self._page("trail")
        self.assertEqual(total, 10)
        self.assertEqual([m.id for m in models], list(range(21, 31)))

    async def test_oversized_ids_and_page_are_ignored(self) -> None:
        huge = "99999999999999999999"
        models, total, page, _ = await self._page("shoes", page=huge, **STANDARD)
        self.assertEqual((len(models), total, page), (16, 30, 1))

        _, total, _, _ = await self._page("shoes", size="42,44", brands=huge)
        self.assertEqual(total, 33)

        _, total, _, _ = await self._page("shoes", color=huge, **STANDARD)
        self.assertEqual(total, 30)

    async def test_unbindable_product_id_is_internal(self) -> None:
        with self.assertLogs("storefront", level="ERROR"):
            with self.assertRaises(InternalError):
                await self.repo.find_models_colored(10**20)

    async def test_option_facets_and_within_or_across(self) -> None:
        _, total, _, _ = await self._page("shoes", color="1", **STANDARD)
        self.assertEqual(total, 10)

        _, total, _, _ = await self._page("shoes", color="1,2", **STANDARD)
        self.assertEqual(total, 30)

        models, total, _, _ = await self._page("shoes", color="1", material="3", **STANDARD)
        self.assertEqual(total, 1)
        self.assertEqual([m.modelId for m in models], [3])

    async def test_price_and_discount_filters(self) -> None:
        _, total, _, _ = await self._page("shoes", price="1000,1090", **STANDARD)
        self.assertEqual(total, 10)

        models, total, _, _ = await self._page("shoes", is_sale="1", size="42,44", brands="7", sort="discount")
        self.assertEqual(total, 7)
        self.assertEqual([m.modelId for m in models], [4, 8, 12, 16, 20, 24, 28])

    async def test_unknown_category_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            await self._page("hats", **STANDARD)

    async def test_catalog_filters_for_subtree(self) -> None:
        filters = await self.repo.get_catalog_filters("shoes")

        self.assertEqual([o.slug for o in filters.options], ["color"])
        self.assertEqual([v.value for v in filters.options[0].values], ["red", "blue"])
        self.assertEqual([s.value for s in filters.sizes], ["38", "42", "44"])
        self.assertEqual({b.id for b in filters.brands}, {7, 8})
        self.assertEqual((filters.price.min, filters.price.max), (500, 5000))

    async def test_product_page(self) -> None:
        page = await self.repo.get_product_page("model-1")

        self.assertEqual(page.title, "Street Runner")
        self.assertEqual(page.category.slug, "sneakers")
        self.assertEqual(page.brand.slug, "acme")
        self.assertEqual(page.model.id, 1)
        self.assertEqual([i.id for i in page.model.images], [1, 2])
        self.assertEqual(
            [(o.slug, [v.value for v in o.values]) for o in page.model.options],
            [("color", ["blue"]), ("material", ["leather"])],
        )
        self.assertEqual([s.value for s in page.model.sizes], ["38", "42"])

    async def test_product_page_missing_model(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.repo.get_product_page("model-999")

    async def test_models_colored(self) -> None:
        colors = await self.repo.find_models_colored(1)
        self.assertEqual([c.id for c in colors], list(range(1, 11)))
        self.assertEqual(colors[2].color, "red")
        self.assertEqual(colors[0].color, "blue")
        self.assertEqual(await self.repo.find_models_colored(4), [])

    async def test_admin_products(self) -> None:
        items, total = await self.repo.admin_get_products(1)
        self.assertEqual(total, 5)
        self.assertEqual([p.id for p in items], [1, 2, 3, 4, 5])
        self.assertEqual([m.id for m in items[0].models], list(range(1, 11)) + [36])

        items, total = await self.repo.admin_get_products(1, category_id=1)
        self.assertEqual((total, [p.id for p in items]), (4, [1, 2, 3, 4]))

        items, total = await self.repo.admin_get_products(1, brand_id=8)
        self.assertEqual((total, [p.id for p in items]), (1, [4]))

        items, total = await self.repo.admin_get_products(2)
        self.assertEqual((items, total), ([], 5))


if __name__ == "__main__":
    unittest.main()

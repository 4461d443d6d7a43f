import unittest
from unittest.mock import patch

import aiosqlite

from storefront import config
from storefront.db.repositories.categories import SqliteCategoryRepository
from storefront.db.sqlite_migrations import run_migrations
from storefront.errors import InternalError, NotFoundError
from storefront.tests.seed_data import seed_categories


def _flatten(node, out=None):
    out = [] if out is None else out
    out.append((node.slug, node.level))
    for child in node.subcategories:
        _flatten(child, out)
    return out


class CategoryRepositoryTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.db = await aiosqlite.connect(":memory:")
        self.db.row_factory = aiosqlite.Row
        await run_migrations(self.db)
        await seed_categories(self.db)
        self.repo = SqliteCategoryRepository(self.db)

    async def asyncTearDown(self) -> None:
        await self.db.close()

    async def test_subtree_by_slug_is_leveled_from_the_root(self) -> None:
        tree = await self.repo.get_subtree("slug", "shoes")

        self.assertEqual(
            _flatten(tree),
            [("shoes", 1), ("men", 2), ("sneakers", 3), ("running", 4), ("trail", 5), ("women", 2)],
        )

    async def test_subtree_by_id_levels_are_relative(self) -> None:
        tree = await self.repo.get_subtree("id", 3)
        self.assertEqual(_flatten(tree), [("sneakers", 1), ("running", 2), ("trail", 3)])

    async def test_missing_root_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.repo.get_subtree("slug", "hats")

    async def test_unknown_field_is_rejected(self) -> None:
        with self.assertRaises(InternalError):
            await self.repo.get_subtree("title; DROP TABLE category", "x")

    async def test_depth_cap_bounds_the_traversal(self) -> None:
        with patch.object(config, "HIERARCHY_MAX_DEPTH", 3):
            tree = await self.repo.get_subtree("slug", "shoes")
        self.assertEqual(max(level for _, level in _flatten(tree)), 3)

    async def test_forest_has_every_root(self) -> None:
        roots = await self.repo.get_all()
        self.assertEqual([r.slug for r in roots], ["shoes", "bags"])
        self.assertEqual(roots[1].subcategories, [])

    async def test_catalog_tree_marks_active_path(self) -> None:
        tree = await self.repo.get_catalog_tree(1, "running")

        men, women = tree.subcategories
        sneakers = men.subcategories[0]
        running = sneakers.subcategories[0]
        trail = running.subcategories[0]
        self.assertTrue(all(n.active for n in (tree, men, sneakers, running)))
        self.assertFalse(women.active)
        self.assertFalse(trail.active)

    async def test_ancestors_walk_up_from_the_start_node(self) -> None:
        chain = await self.repo.get_ancestors(5)
        self.assertEqual(
            [(c.slug, c.level) for c in chain],
            [("trail", 1), ("running", 2), ("sneakers", 3), ("men", 4), ("shoes", 5)],
        )

    async def test_top_level_and_leveled_ancestors(self) -> None:
        self.assertEqual((await self.repo.get_top_level_ancestor(5)).slug, "shoes")
        self.assertEqual((await self.repo.get_top_level_ancestor(1)).slug, "shoes")
        self.assertEqual((await self.repo.get_ancestor_at_level(5, 3)).slug, "sneakers")
        with self.assertRaises(NotFoundError):
            await self.repo.get_ancestor_at_level(2, 4)

    async def test_lookups_and_counts(self) -> None:
        found = await self.repo.find_by_field("slug", "running")
        self.assertEqual((found.id, found.parentId), (4, 3))
        self.assertEqual([c.slug for c in await self.repo.get_top_levels()], ["shoes", "bags"])
        self.assertEqual(await self.repo.get_children_count(1), 2)
        self.assertEqual(await self.repo.get_children_count(5), 0)
        with self.assertRaises(NotFoundError):
            await self.repo.find_by_field("id", 404)


if __name__ == "__main__":
    unittest.main()

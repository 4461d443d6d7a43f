import unittest

from storefront.catalog.composer import (
    PLACEHOLDER_NUMERIC,
    SqlParams,
    compose_catalog_query,
)
from storefront.catalog.facets import FacetFilterSet, parse_facets


class ComposeCatalogQueryTests(unittest.TestCase):
    def test_one_join_triple_and_predicate_per_option_facet(self) -> None:
        facets = FacetFilterSet(
            options={
                "color": frozenset({3, 1}),
                "material": frozenset({7}),
                "season": frozenset({2}),
            }
        )

        query = compose_catalog_query(facets, SqlParams(), page_size=16)

        self.assertEqual(len(query.joins), 3)
        self.assertEqual(len(query.predicates), 3)
        for idx in (1, 2, 3):
            self.assertIn(f"AS pmop{idx}", query.joins[idx - 1])
            self.assertIn(f"AS op{idx}", query.joins[idx - 1])
            self.assertIn(f"AS v{idx}", query.joins[idx - 1])
        self.assertEqual(query.predicates[0], "op1.slug = ? AND v1.option_value_id IN (?, ?)")
        self.assertEqual(query.filter_params, ["color", 1, 3, "material", 7, "season", 2])

    def test_fixed_predicate_order_and_bound_values(self) -> None:
        facets = FacetFilterSet(
            options={"color": frozenset({1})},
            sizes=frozenset({"44", "42"}),
            brands=frozenset({7}),
            price_range=(100.0, 500.0),
            discount_only=True,
            sort_key="price_asc",
            page=2,
        )

        query = compose_catalog_query(facets, SqlParams(), page_size=16)

        self.assertEqual(
            query.predicates,
            [
                "op1.slug = ? AND v1.option_value_id IN (?)",
                "sz.size_value IN (?, ?)",
                "b.brand_id IN (?)",
                "pm.price BETWEEN CAST(? AS REAL) AND CAST(? AS REAL)",
                "pm.discount IS NOT NULL",
            ],
        )
        self.assertEqual(query.filter_params, ["color", 1, "42", "44", 7, 100.0, 500.0])
        self.assertEqual(query.params, query.filter_params + [16, 16])
        self.assertEqual(query.sort_clause, "ORDER BY pm.price ASC, pm.product_model_id")
        self.assertEqual(query.pagination_clause, "LIMIT ? OFFSET ?")
        self.assertTrue(query.joins_and_where.endswith("WHERE " + "\nAND ".join(query.predicates)))

    def test_no_facets_yields_no_where_clause(self) -> None:
        query = compose_catalog_query(FacetFilterSet(), SqlParams(), page_size=16)

        self.assertEqual(query.joins_and_where, "")
        self.assertEqual(query.sort_clause, "")
        self.assertEqual(query.params, [16, 0])

    def test_invalid_page_falls_back_to_offset_zero(self) -> None:
        for raw in ("0", "-3", "abc", None):
            facets = parse_facets({"page": raw} if raw is not None else {})
            query = compose_catalog_query(facets, SqlParams(), page_size=16)
            self.assertEqual(query.offset, 0, raw)
            self.assertEqual(query.limit, 16, raw)

    def test_out_of_range_ids_and_page_are_not_bound(self) -> None:
        facets = FacetFilterSet(
            options={"color": frozenset({2**63})},
            brands=frozenset({7, 2**64}),
            page=10**20,
        )
        query = compose_catalog_query(facets, SqlParams(), page_size=16)

        self.assertEqual(query.joins, [])
        self.assertEqual(query.filter_params, [7])
        self.assertEqual(query.offset, 0)

    def test_page_three_offsets_by_two_pages(self) -> None:
        query = compose_catalog_query(FacetFilterSet(page=3), SqlParams(), page_size=8)
        self.assertEqual(query.offset, 16)
        self.assertEqual(query.limit, 8)

    def test_malformed_price_adds_no_predicate_and_is_idempotent(self) -> None:
        for raw in ("100", "abc,200", "1,2,3", "", "nan,10"):
            facets = parse_facets({"price": raw, "brands": "7"})
            first = compose_catalog_query(facets, SqlParams(), page_size=16)
            second = compose_catalog_query(facets, SqlParams(), page_size=16)

            self.assertFalse(any("pm.price" in p for p in first.predicates), raw)
            self.assertEqual(first.joins_and_where, second.joins_and_where)
            self.assertEqual(first.params, second.params)

    def test_option_facet_without_valid_ids_contributes_nothing(self) -> None:
        facets = parse_facets({"color": "red,blue", "material": "3"})
        query = compose_catalog_query(facets, SqlParams(), page_size=16)

        self.assertEqual(len(query.joins), 1)
        self.assertEqual(query.filter_params, ["material", 3])

    def test_numeric_placeholders_continue_after_caller_prefix(self) -> None:
        params = SqlParams(PLACEHOLDER_NUMERIC, ["shoes", 64])
        facets = FacetFilterSet(options={"color": frozenset({1, 2})}, brands=frozenset({7}), page=2)

        query = compose_catalog_query(facets, params, page_size=16)

        self.assertEqual(query.predicates[0], "op1.slug = $3 AND v1.option_value_id IN ($4, $5)")
        self.assertEqual(query.predicates[1], "b.brand_id IN ($6)")
        self.assertEqual(query.pagination_clause, "LIMIT $7 OFFSET $8")
        self.assertEqual(query.filter_params, ["shoes", 64, "color", 1, 2, 7])
        self.assertEqual(query.params[-2:], [16, 16])

    def test_hostile_values_are_bound_not_interpolated(self) -> None:
        facets = parse_facets({"size": "42'); DROP TABLE product; --", "x' OR 1=1 --": "1"})
        query = compose_catalog_query(facets, SqlParams(), page_size=16)

        self.assertNotIn("DROP", query.joins_and_where)
        self.assertNotIn("OR 1=1", query.joins_and_where)
        self.assertIn("42'); DROP TABLE product; --", query.filter_params)

    def test_discount_sort_puts_nulls_last(self) -> None:
        query = compose_catalog_query(FacetFilterSet(sort_key="discount"), SqlParams(), page_size=16)
        self.assertEqual(query.sort_clause, "ORDER BY pm.discount IS NULL, pm.discount DESC, pm.product_model_id")


if __name__ == "__main__":
    unittest.main()

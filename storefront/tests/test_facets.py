import unittest

from storefront.catalog.facets import FacetFilterSet, parse_facets, parse_price_range


class ParseFacetsTests(unittest.TestCase):
    def test_reserved_keys_and_option_facets(self) -> None:
        facets = parse_facets(
            {
                "size": "42, 44",
                "brands": "7,x,8",
                "sort": "PRICE_DESC",
                "is_sale": "1",
                "price": "100,2500.5",
                "page": "3",
                "color": "1,2",
                "material": "",
            }
        )

        self.assertEqual(facets.sizes, frozenset({"42", "44"}))
        self.assertEqual(facets.brands, frozenset({7, 8}))
        self.assertEqual(facets.sort_key, "price_desc")
        self.assertTrue(facets.discount_only)
        self.assertEqual(facets.price_range, (100.0, 2500.5))
        self.assertEqual(facets.page, 3)
        self.assertEqual(facets.options, {"color": frozenset({1, 2})})

    def test_malformed_input_never_raises(self) -> None:
        facets = parse_facets({"sort": "cheapest", "page": "two", "price": "cheap", "is_sale": "yes"})

        self.assertEqual(facets.sort_key, "none")
        self.assertEqual(facets.page, 1)
        self.assertIsNone(facets.price_range)
        self.assertFalse(facets.discount_only)

    def test_price_range_requires_exactly_two_finite_numbers(self) -> None:
        self.assertEqual(parse_price_range("0,10"), (0.0, 10.0))
        self.assertIsNone(parse_price_range("10"))
        self.assertIsNone(parse_price_range("1,2,3"))
        self.assertIsNone(parse_price_range("inf,10"))
        self.assertIsNone(parse_price_range(None))

    def test_filter_set_normalizes_page_and_sort(self) -> None:
        facets = FacetFilterSet(sort_key="random", page=-4)
        self.assertEqual(facets.sort_key, "none")
        self.assertEqual(facets.page, 1)

    def test_ids_and_pages_outside_integer_range_are_dropped(self) -> None:
        huge = "99999999999999999999"
        facets = parse_facets({"brands": f"7,{huge}", "color": huge, "page": huge})

        self.assertEqual(facets.brands, frozenset({7}))
        self.assertEqual(facets.options, {})
        self.assertEqual(facets.page, 1)
        self.assertEqual(parse_facets({"brands": "-9223372036854775808"}).brands, frozenset({-(2**63)}))


if __name__ == "__main__":
    unittest.main()

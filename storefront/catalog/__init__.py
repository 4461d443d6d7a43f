"""Catalog query composition and row-to-tree reconstruction."""

from storefront.catalog.composer import CatalogQuery, SqlParams, compose_catalog_query
from storefront.catalog.facets import FacetFilterSet, parse_facets
from storefront.catalog.tree import Level, OrderedIndex, RowReconstructor, assemble_hierarchy, sort_sizes

__all__ = [
    "CatalogQuery",
    "SqlParams",
    "compose_catalog_query",
    "FacetFilterSet",
    "parse_facets",
    "Level",
    "OrderedIndex",
    "RowReconstructor",
    "assemble_hierarchy",
    "sort_sizes",
]

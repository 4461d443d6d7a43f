"""Dynamic catalog query composer.

Turns a FacetFilterSet into SQL fragments that slot into a catalog SELECT:

    <base select> <joins_and_where> <sort_clause> <pagination_clause>

Every dynamic value, including each member of an IN-list, is bound through
``SqlParams`` rather than formatted into the query text, so the fragments are
safe to concatenate. Composition is a pure function of its input and is
deterministic: the same facets always yield the same SQL and parameters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from storefront import config
from storefront.catalog.facets import (
    SORT_DISCOUNT,
    SORT_PRICE_ASC,
    SORT_PRICE_DESC,
    MAX_PAGE,
    FacetFilterSet,
    is_bindable_id,
)

PLACEHOLDER_QMARK = "qmark"  # sqlite3 / aiosqlite
PLACEHOLDER_NUMERIC = "numeric"  # asyncpg

_SORT_CLAUSES = {
    SORT_PRICE_ASC: "ORDER BY pm.price ASC, pm.product_model_id",
    SORT_PRICE_DESC: "ORDER BY pm.price DESC, pm.product_model_id",
    SORT_DISCOUNT: "ORDER BY pm.discount IS NULL, pm.discount DESC, pm.product_model_id",
}

_OPTION_JOIN = (
    "INNER JOIN product_model_option AS pmop{i} ON pmop{i}.product_model_id = pm.product_model_id\n"
    "INNER JOIN option AS op{i} ON op{i}.option_id = pmop{i}.option_id\n"
    "INNER JOIN option_value AS v{i} ON v{i}.option_value_id = pmop{i}.option_value_id"
)


class SqlParams:
    """Growing positional parameter list that hands out driver placeholders."""

    def __init__(self, style: str = PLACEHOLDER_QMARK, values: Iterable[Any] = ()):
        self.style = style
        self.values: list[Any] = list(values)

    def bind(self, value: Any) -> str:
        self.values.append(value)
        if self.style == PLACEHOLDER_NUMERIC:
            return f"${len(self.values)}"
        return "?"

    def bind_many(self, values: Iterable[Any]) -> str:
        return ", ".join(self.bind(value) for value in values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class CatalogQuery:
    joins: list[str] = field(default_factory=list)
    predicates: list[str] = field(default_factory=list)
    sort_clause: str = ""
    pagination_clause: str = ""
    limit: int = 0
    offset: int = 0
    # Parameters referenced by joins_and_where (plus any caller prefix).
    filter_params: list[Any] = field(default_factory=list)
    # filter_params followed by the LIMIT/OFFSET parameters.
    params: list[Any] = field(default_factory=list)

    @property
    def joins_and_where(self) -> str:
        parts = list(self.joins)
        if self.predicates:
            parts.append("WHERE " + "\nAND ".join(self.predicates))
        return "\n".join(parts)


def compose_filters(facets: FacetFilterSet, params: SqlParams) -> tuple[list[str], list[str]]:
    """Return (joins, predicates) for the facets, binding values into params.

    Evaluation order is fixed: options, sizes, brands, price, discount-only.
    """
    joins: list[str] = []
    predicates: list[str] = []

    idx = 1
    for slug in sorted(facets.options):
        value_ids = sorted(v for v in facets.options[slug] if is_bindable_id(v))
        if not value_ids:
            continue
        joins.append(_OPTION_JOIN.format(i=idx))
        predicates.append(
            f"op{idx}.slug = {params.bind(slug)} AND v{idx}.option_value_id IN ({params.bind_many(value_ids)})"
        )
        idx += 1

    if facets.sizes:
        predicates.append(f"sz.size_value IN ({params.bind_many(sorted(facets.sizes))})")

    brand_ids = sorted(b for b in facets.brands if is_bindable_id(b))
    if brand_ids:
        predicates.append(f"b.brand_id IN ({params.bind_many(brand_ids)})")

    if facets.price_range is not None:
        low, high = facets.price_range
        predicates.append(
            f"pm.price BETWEEN CAST({params.bind(low)} AS REAL) AND CAST({params.bind(high)} AS REAL)"
        )

    if facets.discount_only:
        predicates.append("pm.discount IS NOT NULL")

    return joins, predicates


def compose_sort(sort_key: str) -> str:
    return _SORT_CLAUSES.get(sort_key, "")


def compose_pagination(page: int, page_size: int, params: SqlParams) -> tuple[str, int, int]:
    page = page if isinstance(page, int) and 1 <= page <= MAX_PAGE else 1
    limit = max(1, int(page_size))
    offset = (page - 1) * limit
    clause = f"LIMIT {params.bind(limit)} OFFSET {params.bind(offset)}"
    return clause, limit, offset


def compose_catalog_query(
    facets: FacetFilterSet,
    params: SqlParams | None = None,
    page_size: int | None = None,
) -> CatalogQuery:
    """Compose the dynamic part of a catalog listing query.

    ``params`` may already hold values bound by the caller's base query (the
    category slug, for instance); new placeholders continue after them.
    """
    params = params if params is not None else SqlParams()
    joins, predicates = compose_filters(facets, params)
    filter_params = list(params.values)
    pagination_clause, limit, offset = compose_pagination(
        facets.page, page_size or config.CATALOG_PAGE_SIZE, params
    )
    return CatalogQuery(
        joins=joins,
        predicates=predicates,
        sort_clause=compose_sort(facets.sort_key),
        pagination_clause=pagination_clause,
        limit=limit,
        offset=offset,
        filter_params=filter_params,
        params=list(params.values),
    )

"""SQL text shared by the SQLite and PostgreSQL repositories.

Each builder binds its values into a ``SqlParams`` so the same text works
with either driver's placeholder style; the backend repositories only differ
in how they execute the returned ``(query, values)`` pair. Row aliases match
the builders in ``storefront.catalog.builders``.
"""
from __future__ import annotations

from typing import Any, Sequence

from storefront import config
from storefront.catalog.composer import CatalogQuery, SqlParams, compose_catalog_query, compose_pagination
from storefront.catalog.facets import FacetFilterSet

Query = tuple[str, list[Any]]

# Caller-facing lookup field -> column. Anything else is rejected.
CATEGORY_FIELDS = {"id": "category_id", "slug": "slug"}

_CATEGORY_COLUMNS = "category_id, title, slug, short_title, img_path, parent_category_id"


def category_column(field: str) -> str | None:
    return CATEGORY_FIELDS.get(field)


def _descendants_cte(seed_where: str, params: SqlParams) -> str:
    cap = params.bind(config.HIERARCHY_MAX_DEPTH)
    return f"""
        WITH RECURSIVE category_tree AS (
            SELECT {_CATEGORY_COLUMNS}, 1 AS level
            FROM category
            WHERE {seed_where}
            UNION ALL
            SELECT c.category_id, c.title, c.slug, c.short_title, c.img_path, c.parent_category_id,
                   ct.level + 1
            FROM category c
            JOIN category_tree ct ON c.parent_category_id = ct.category_id
            WHERE ct.level < {cap}
        )
    """


def _ancestors_cte(category_id: int, params: SqlParams) -> str:
    seed = params.bind(category_id)
    cap = params.bind(config.HIERARCHY_MAX_DEPTH)
    return f"""
        WITH RECURSIVE ancestors AS (
            SELECT {_CATEGORY_COLUMNS}, 1 AS level
            FROM category
            WHERE category_id = {seed}
            UNION ALL
            SELECT c.category_id, c.title, c.slug, c.short_title, c.img_path, c.parent_category_id,
                   a.level + 1
            FROM category c
            JOIN ancestors a ON c.category_id = a.parent_category_id
            WHERE a.level < {cap}
        )
    """


# ── Hierarchy traversal ─────────────────────────────────────────────

def subtree(column: str, value: Any, style: str) -> Query:
    params = SqlParams(style)
    seed = f"{column} = {params.bind(value)}"
    cte = _descendants_cte(seed, params)
    return cte + "SELECT * FROM category_tree ORDER BY level, category_id", params.values


def forest(style: str) -> Query:
    params = SqlParams(style)
    cte = _descendants_cte("parent_category_id IS NULL", params)
    return cte + "SELECT * FROM category_tree ORDER BY level, category_id", params.values


def ancestors(category_id: int, style: str, level: int | None = None, top_only: bool = False) -> Query:
    params = SqlParams(style)
    cte = _ancestors_cte(category_id, params)
    where = ""
    if level is not None:
        where = f"WHERE level = {params.bind(level)}"
    elif top_only:
        where = "WHERE parent_category_id IS NULL"
    return cte + f"SELECT * FROM ancestors {where} ORDER BY level", params.values


def find_category(column: str, value: Any, style: str) -> Query:
    params = SqlParams(style)
    return (
        f"SELECT {_CATEGORY_COLUMNS} FROM category WHERE {column} = {params.bind(value)}",
        params.values,
    )


def top_levels(style: str) -> Query:
    return (
        f"SELECT {_CATEGORY_COLUMNS} FROM category WHERE parent_category_id IS NULL ORDER BY category_id",
        [],
    )


def children_count(category_id: int, style: str) -> Query:
    params = SqlParams(style)
    return (
        f"SELECT COUNT(*) FROM category WHERE parent_category_id = {params.bind(category_id)}",
        params.values,
    )


# ── Catalog listing ─────────────────────────────────────────────────

_CATALOG_FROM = """
    FROM product p
    JOIN category_tree ct ON ct.category_id = p.category_id
    JOIN brand b ON b.brand_id = p.brand_id
    JOIN product_model pm ON pm.product_id = p.product_id
    JOIN model_sizes ms ON ms.product_model_id = pm.product_model_id
    JOIN sizes sz ON sz.size_id = ms.size_id
    JOIN product_model_img pimg ON pimg.product_model_id = pm.product_model_id
"""


def catalog_page_ids(category_slug: str, facets: FacetFilterSet, style: str) -> tuple[CatalogQuery, str, str]:
    """Pass one: (composed query, page-ids SQL, total-count SQL).

    Both statements share the category CTE and the composed WHERE clause; the
    count statement binds ``query.filter_params`` and the page statement
    binds ``query.params``.
    """
    params = SqlParams(style)
    seed = f"slug = {params.bind(category_slug)}"
    cte = _descendants_cte(seed, params)
    query = compose_catalog_query(facets, params, config.CATALOG_PAGE_SIZE)
    sort_clause = query.sort_clause or "ORDER BY pm.product_model_id"

    page_sql = f"""{cte}
        SELECT pm.product_model_id
        {_CATALOG_FROM}
        {query.joins_and_where}
        GROUP BY pm.product_model_id
        {sort_clause}
        {query.pagination_clause}
    """
    count_sql = f"""{cte}
        SELECT COUNT(DISTINCT pm.product_model_id)
        {_CATALOG_FROM}
        {query.joins_and_where}
    """
    return query, page_sql, count_sql


def catalog_models(model_ids: Sequence[int], style: str) -> Query:
    params = SqlParams(style)
    placeholders = params.bind_many(model_ids)
    return f"""
        SELECT pm.product_model_id AS model_id, p.product_id, pm.slug AS model_slug,
               pm.article, pm.price, pm.discount, pm.main_image_path,
               p.title AS product_title,
               b.brand_id, b.title AS brand_title, b.slug AS brand_slug,
               c.category_id, c.title AS category_title, c.slug AS category_slug,
               img.product_img_id AS img_id, img.img_path, img.product_model_id AS img_model_id,
               ms.model_size_id AS size_model_id, ms.product_model_id AS size_owner_id,
               ms.literal_size, ms.in_stock, sz.size_id, sz.size_value
        FROM product_model pm
        JOIN product p ON p.product_id = pm.product_id
        JOIN brand b ON b.brand_id = p.brand_id
        JOIN category c ON c.category_id = p.category_id
        LEFT JOIN product_model_img img ON img.product_model_id = pm.product_model_id
        LEFT JOIN model_sizes ms ON ms.product_model_id = pm.product_model_id
        LEFT JOIN sizes sz ON sz.size_id = ms.size_id
        WHERE pm.product_model_id IN ({placeholders})
        ORDER BY pm.product_model_id, img.product_img_id, ms.model_size_id
    """, params.values


def catalog_filters(category_slug: str, style: str) -> Query:
    params = SqlParams(style)
    cte = _descendants_cte(f"slug = {params.bind(category_slug)}", params)
    return cte + """
        SELECT op.option_id, op.title AS option_title, op.slug AS option_slug,
               v.option_value_id AS value_id, v.value AS option_value, v.option_id AS value_option_id,
               sz.size_id, sz.size_value,
               b.brand_id, b.title AS brand_title,
               MIN(pm.price) OVER () AS min_price,
               MAX(pm.price) OVER () AS max_price
        FROM product p
        JOIN category_tree ct ON ct.category_id = p.category_id
        JOIN brand b ON b.brand_id = p.brand_id
        JOIN product_model pm ON pm.product_id = p.product_id
        LEFT JOIN model_sizes ms ON ms.product_model_id = pm.product_model_id
        LEFT JOIN sizes sz ON sz.size_id = ms.size_id
        LEFT JOIN product_model_option pmo ON pmo.product_model_id = pm.product_model_id
        LEFT JOIN option op ON op.option_id = pmo.option_id AND op.for_catalog
        LEFT JOIN option_value v ON v.option_value_id = pmo.option_value_id AND op.option_id IS NOT NULL
        ORDER BY op.option_id, v.option_value_id, b.title, b.brand_id, sz.size_id
    """, params.values


# ── Product page ────────────────────────────────────────────────────

def product_page(model_slug: str, style: str) -> Query:
    params = SqlParams(style)
    slug = params.bind(model_slug)
    return f"""
        SELECT p.product_id, p.title AS product_title, p.description AS product_description,
               c.category_id, c.slug AS category_slug, c.title AS category_title,
               c.short_title AS category_short_title, c.img_path AS category_img_path,
               c.parent_category_id AS category_parent_id,
               b.brand_id, b.title AS brand_title, b.slug AS brand_slug,
               b.img_path AS brand_img_path, b.description AS brand_description,
               pm.product_model_id AS model_id, pm.slug AS model_slug, pm.article,
               pm.price, pm.discount, pm.main_image_path,
               img.product_img_id AS img_id, img.img_path, img.product_model_id AS img_model_id,
               op.option_id, op.title AS option_title, op.slug AS option_slug,
               pmo.product_model_id AS option_model_id,
               v.option_value_id AS value_id, v.value AS option_value, v.info AS value_info,
               v.option_id AS value_option_id,
               ms.model_size_id AS size_model_id, ms.product_model_id AS size_owner_id,
               ms.literal_size, ms.in_stock, sz.size_id, sz.size_value
        FROM product_model pm
        JOIN product p ON p.product_id = pm.product_id
        JOIN category c ON c.category_id = p.category_id
        JOIN brand b ON b.brand_id = p.brand_id
        LEFT JOIN product_model_img img ON img.product_model_id = pm.product_model_id
        LEFT JOIN product_model_option pmo ON pmo.product_model_id = pm.product_model_id
        LEFT JOIN option op ON op.option_id = pmo.option_id
        LEFT JOIN option_value v ON v.option_value_id = pmo.option_value_id
        LEFT JOIN model_sizes ms ON ms.product_model_id = pm.product_model_id
        LEFT JOIN sizes sz ON sz.size_id = ms.size_id
        WHERE pm.slug = {slug}
        ORDER BY img.product_img_id, op.option_id, v.option_value_id, ms.model_size_id
    """, params.values


def models_colored(product_id: int, style: str) -> Query:
    params = SqlParams(style)
    pid = params.bind(product_id)
    color = params.bind("color")
    return f"""
        SELECT pm.product_model_id AS model_id, pm.slug AS model_slug,
               pm.main_image_path, v.value AS color
        FROM product_model pm
        JOIN product_model_option pmo ON pmo.product_model_id = pm.product_model_id
        JOIN option op ON op.option_id = pmo.option_id
        JOIN option_value v ON v.option_value_id = pmo.option_value_id
        WHERE pm.product_id = {pid} AND op.slug = {color}
        ORDER BY pm.product_model_id
    """, params.values


# ── Admin listing ───────────────────────────────────────────────────

def admin_page_ids(
    page: int,
    style: str,
    category_id: int | None = None,
    brand_id: int | None = None,
) -> tuple[str, list[Any], str, list[Any]]:
    """Return (page SQL, page values, count SQL, count values)."""
    params = SqlParams(style)
    cte = ""
    join = ""
    if category_id is not None:
        cte = _descendants_cte(f"category_id = {params.bind(category_id)}", params)
        join = "JOIN category_tree ct ON ct.category_id = p.category_id"

    where = ""
    if brand_id is not None:
        where = f"WHERE p.brand_id = {params.bind(brand_id)}"

    count_values = list(params.values)
    pagination, _, _ = compose_pagination(page, config.ADMIN_PAGE_SIZE, params)

    page_sql = f"{cte} SELECT p.product_id FROM product p {join} {where} ORDER BY p.product_id {pagination}"
    count_sql = f"{cte} SELECT COUNT(DISTINCT p.product_id) FROM product p {join} {where}"
    return page_sql, params.values, count_sql, count_values


def admin_products(product_ids: Sequence[int], style: str) -> Query:
    params = SqlParams(style)
    placeholders = params.bind_many(product_ids)
    return f"""
        SELECT p.product_id, p.title AS product_title, p.description AS product_description,
               c.category_id, c.slug AS category_slug, c.title AS category_title,
               c.short_title AS category_short_title, c.img_path AS category_img_path,
               c.parent_category_id AS category_parent_id,
               b.brand_id, b.title AS brand_title, b.slug AS brand_slug,
               b.img_path AS brand_img_path, b.description AS brand_description,
               pm.product_model_id AS model_id, pm.product_id AS model_product_id,
               pm.slug AS model_slug, pm.article, pm.price, pm.discount, pm.main_image_path
        FROM product p
        JOIN category c ON c.category_id = p.category_id
        JOIN brand b ON b.brand_id = p.brand_id
        LEFT JOIN product_model pm ON pm.product_id = p.product_id
        WHERE p.product_id IN ({placeholders})
        ORDER BY p.product_id, pm.product_model_id
    """, params.values


# ── Feedback ────────────────────────────────────────────────────────

_FEEDBACK_COLUMNS = """
    f.feedback_id, f.feedback_text, f.rate, f.created_at, f.updated_at,
    f.product_model_id, f.is_hidden,
    u.user_id, u.email, u.avatar_path, u.first_name, u.last_name
"""


def model_feedback(model_id: int, order: str, style: str) -> Query:
    direction = "ASC" if order.upper() == "ASC" else "DESC"
    params = SqlParams(style)
    mid = params.bind(model_id)
    return f"""
        SELECT {_FEEDBACK_COLUMNS},
               AVG(f.rate) OVER () AS avg_rate,
               COUNT(*) OVER () AS rate_count
        FROM feedback f
        JOIN users u ON u.user_id = f.user_id
        WHERE f.product_model_id = {mid} AND NOT f.is_hidden
        ORDER BY f.created_at {direction}, f.feedback_id {direction}
    """, params.values


def all_feedback(style: str, include_hidden: bool = True) -> Query:
    where = "" if include_hidden else "WHERE NOT f.is_hidden"
    return f"""
        SELECT {_FEEDBACK_COLUMNS}
        FROM feedback f
        JOIN users u ON u.user_id = f.user_id
        {where}
        ORDER BY f.created_at DESC, f.feedback_id DESC
    """, []

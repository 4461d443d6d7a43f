"""Row builders and level layouts for the catalog's flat join queries.

The SQLite and PostgreSQL repositories select the same column aliases, so
both hand their rows to the functions here.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence, TypeVar

from storefront.catalog.tree import DECODE_ERRORS, Level, RowReconstructor, assemble_hierarchy, sort_sizes
from storefront.errors import InternalError
from storefront.models import (
    AdminProduct,
    AdminProductModel,
    Brand,
    BrandRef,
    CatalogBrand,
    CatalogCategoryNode,
    CatalogFilters,
    CatalogOption,
    CatalogOptionValue,
    CatalogPriceRange,
    CatalogProductModel,
    CatalogSize,
    CategoryModel,
    CategoryNode,
    CategoryRef,
    Feedback,
    FeedbackAuthor,
    ModelColor,
    ModelFeedbackResponse,
    ProductModelDetail,
    ProductModelImage,
    ProductModelOption,
    ProductModelOptionValue,
    ProductModelSize,
    ProductPage,
)

Row = Mapping[str, Any]
T = TypeVar("T")


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _decode(what: str, build: Callable[[Row], T], row: Row) -> T:
    try:
        return build(row)
    except DECODE_ERRORS as exc:
        raise InternalError.wrap(f"Failed to decode {what} row", exc) from exc


# ── Categories ──────────────────────────────────────────────────────

def category_from_row(row: Row) -> CategoryModel:
    return CategoryModel(
        id=row["category_id"],
        slug=row["slug"],
        title=row["title"],
        shortTitle=_text(row["short_title"]),
        imgPath=row["img_path"],
        parentId=row["parent_category_id"],
    )


def category_node_from_row(row: Row) -> CategoryNode:
    return CategoryNode(**category_from_row(row).model_dump(), level=row["level"])


def catalog_node_from_row(row: Row) -> CatalogCategoryNode:
    return CatalogCategoryNode(**category_from_row(row).model_dump(), level=row["level"])


def build_category(row: Row) -> CategoryModel:
    return _decode("category", category_from_row, row)


def build_categories(rows: Sequence[Row]) -> list[CategoryModel]:
    return [build_category(r) for r in rows]


def build_category_path(rows: Sequence[Row]) -> list[CategoryNode]:
    """Ancestor rows, start node first, as flat leveled nodes."""
    return [_decode("category", category_node_from_row, r) for r in rows]


def build_category_tree(rows: Sequence[Row]) -> CategoryNode:
    return assemble_hierarchy(rows, category_node_from_row)[0]


def build_category_forest(rows: Sequence[Row]) -> list[CategoryNode]:
    return assemble_hierarchy(rows, category_node_from_row)


def build_catalog_tree(rows: Sequence[Row], active_slug: str) -> CatalogCategoryNode:
    return assemble_hierarchy(rows, catalog_node_from_row, active_slug=active_slug)[0]


# ── Shared children ─────────────────────────────────────────────────

def _image_from_row(row: Row) -> ProductModelImage:
    return ProductModelImage(
        id=row["img_id"],
        imgPath=row["img_path"],
        productModelId=row["img_model_id"],
    )


def _size_from_row(row: Row) -> ProductModelSize:
    return ProductModelSize(
        sizeId=row["size_id"],
        value=_text(row["size_value"]),
        literal=_text(row["literal_size"]),
        inStock=row["in_stock"] or 0,
        modelId=row["size_owner_id"],
        sizeModelId=row["size_model_id"],
    )


def _image_level(parent: str) -> Level:
    return Level("image", "img_id", _image_from_row, parent=parent, parent_key="img_model_id", attach="images")


def _size_level(parent: str) -> Level:
    return Level("size", "size_model_id", _size_from_row, parent=parent, parent_key="size_owner_id", attach="sizes")


# ── Catalog listing ─────────────────────────────────────────────────

def _catalog_model_from_row(row: Row) -> CatalogProductModel:
    return CatalogProductModel(
        modelId=row["model_id"],
        productId=row["product_id"],
        slug=row["model_slug"],
        article=row["article"],
        price=row["price"],
        discount=row["discount"],
        title=row["product_title"],
        brand=BrandRef(id=row["brand_id"], title=row["brand_title"], slug=_text(row["brand_slug"])),
        category=CategoryRef(id=row["category_id"], title=row["category_title"], slug=row["category_slug"]),
        mainImagePath=_text(row["main_image_path"]),
    )


CATALOG_MODEL_LEVELS = RowReconstructor([
    Level("model", "model_id", _catalog_model_from_row),
    _image_level("model"),
    _size_level("model"),
])


def build_catalog_models(rows: Sequence[Row], order: Sequence[int]) -> list[CatalogProductModel]:
    """Reconstruct catalog models, returned in ``order`` (the page's id order)."""
    if not rows:
        return []
    models = CATALOG_MODEL_LEVELS.reconstruct(rows)["model"]
    result = []
    for model_id in order:
        m = models.get(model_id)
        if m is None:
            continue
        m.sizes = sort_sizes(m.sizes)
        result.append(m)
    return result


# ── Catalog filters ─────────────────────────────────────────────────

CATALOG_FILTER_LEVELS = RowReconstructor([
    Level("option", "option_id", lambda r: CatalogOption(id=r["option_id"], title=r["option_title"], slug=r["option_slug"])),
    Level(
        "value",
        "value_id",
        lambda r: CatalogOptionValue(id=r["value_id"], value=r["option_value"], optionId=r["value_option_id"]),
        parent="option",
        parent_key="value_option_id",
        attach="values",
    ),
    Level("size", "size_id", lambda r: CatalogSize(id=r["size_id"], value=_text(r["size_value"]))),
    Level("brand", "brand_id", lambda r: CatalogBrand(id=r["brand_id"], title=r["brand_title"])),
])


def _price_range_from_row(row: Row) -> CatalogPriceRange:
    return CatalogPriceRange(min=int(row["min_price"] or 0), max=int(row["max_price"] or 0))


def build_catalog_filters(rows: Sequence[Row]) -> CatalogFilters:
    if not rows:
        return CatalogFilters()
    indexes = CATALOG_FILTER_LEVELS.reconstruct(rows)
    return CatalogFilters(
        options=indexes["option"].values(),
        sizes=sort_sizes(indexes["size"].values()),
        brands=indexes["brand"].values(),
        price=_decode("price range", _price_range_from_row, rows[0]),
    )


# ── Product page ────────────────────────────────────────────────────

def _model_detail_from_row(row: Row) -> ProductModelDetail:
    return ProductModelDetail(
        id=row["model_id"],
        slug=row["model_slug"],
        article=row["article"],
        price=row["price"],
        discount=row["discount"],
        productId=row["product_id"],
        imagePath=_text(row["main_image_path"]),
    )


def _product_category_from_row(row: Row) -> CategoryModel:
    return CategoryModel(
        id=row["category_id"],
        slug=row["category_slug"],
        title=row["category_title"],
        shortTitle=_text(row["category_short_title"]),
        imgPath=row["category_img_path"],
        parentId=row["category_parent_id"],
    )


def _product_brand_from_row(row: Row) -> Brand:
    return Brand(
        id=row["brand_id"],
        title=row["brand_title"],
        slug=_text(row["brand_slug"]),
        imgPath=row["brand_img_path"],
        description=row["brand_description"],
    )


PRODUCT_PAGE_LEVELS = RowReconstructor([
    Level("model", "model_id", _model_detail_from_row),
    _image_level("model"),
    Level(
        "option",
        "option_id",
        lambda r: ProductModelOption(id=r["option_id"], title=r["option_title"], slug=r["option_slug"]),
        parent="model",
        parent_key="option_model_id",
        attach="options",
    ),
    Level(
        "value",
        "value_id",
        lambda r: ProductModelOptionValue(
            id=r["value_id"], value=r["option_value"], info=r["value_info"], optionId=r["value_option_id"],
        ),
        parent="option",
        parent_key="value_option_id",
        attach="values",
    ),
    _size_level("model"),
])


def build_product_page(rows: Sequence[Row]) -> ProductPage:
    models = PRODUCT_PAGE_LEVELS.reconstruct(rows, not_found="Product not found")["model"]
    first = rows[0]
    model = models.values()[0]
    model.sizes = sort_sizes(model.sizes)

    def page_from_row(row: Row) -> ProductPage:
        return ProductPage(
            id=row["product_id"],
            title=row["product_title"],
            description=row["product_description"],
            category=_product_category_from_row(row),
            brand=_product_brand_from_row(row),
            model=model,
        )

    return _decode("product", page_from_row, first)


def _color_from_row(row: Row) -> ModelColor:
    return ModelColor(id=row["model_id"], slug=row["model_slug"], imagePath=_text(row["main_image_path"]), color=row["color"])


def build_model_colors(rows: Sequence[Row]) -> list[ModelColor]:
    return [_decode("model color", _color_from_row, r) for r in rows]


# ── Admin listing ───────────────────────────────────────────────────

def _admin_product_from_row(row: Row) -> AdminProduct:
    return AdminProduct(
        id=row["product_id"],
        title=row["product_title"],
        description=row["product_description"],
        category=_product_category_from_row(row),
        brand=_product_brand_from_row(row),
    )


ADMIN_PRODUCT_LEVELS = RowReconstructor([
    Level("product", "product_id", _admin_product_from_row),
    Level(
        "model",
        "model_id",
        lambda r: AdminProductModel(
            id=r["model_id"],
            price=r["price"],
            discount=r["discount"],
            slug=r["model_slug"],
            article=r["article"],
            imagePath=r["main_image_path"],
            productId=r["model_product_id"],
        ),
        parent="product",
        parent_key="model_product_id",
        attach="models",
    ),
])


def build_admin_products(rows: Sequence[Row], order: Sequence[int]) -> list[AdminProduct]:
    if not rows:
        return []
    products = ADMIN_PRODUCT_LEVELS.reconstruct(rows)["product"]
    return [products.get(pid) for pid in order if pid in products]


# ── Feedback ────────────────────────────────────────────────────────

def _feedback_from_row(row: Row) -> Feedback:
    return Feedback(
        id=row["feedback_id"],
        text=_text(row["feedback_text"]),
        rate=row["rate"],
        createdAt=_text(row["created_at"]),
        updatedAt=_text(row["updated_at"]),
        modelId=row["product_model_id"],
        hidden=bool(row["is_hidden"]),
        user=FeedbackAuthor(
            id=row["user_id"],
            email=row["email"],
            avatarPath=row["avatar_path"],
            firstName=row["first_name"],
            lastName=row["last_name"],
        ),
    )


FEEDBACK_LEVELS = RowReconstructor([Level("feedback", "feedback_id", _feedback_from_row)])


def build_feedback_list(rows: Sequence[Row]) -> list[Feedback]:
    if not rows:
        return []
    return FEEDBACK_LEVELS.reconstruct(rows)["feedback"].values()


def build_model_feedback(rows: Sequence[Row]) -> ModelFeedbackResponse:
    feedback = FEEDBACK_LEVELS.reconstruct(rows, not_found="Feedback not found")["feedback"].values()
    return _decode(
        "feedback summary",
        lambda r: ModelFeedbackResponse(
            feedback=feedback,
            avgRate=float(r["avg_rate"] or 0.0),
            rateCount=int(r["rate_count"] or 0),
        ),
        rows[0],
    )

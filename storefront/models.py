"""Pydantic models matching the storefront frontend types."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Generic, TypeVar

T = TypeVar("T")

class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    pageSize: int
# ── Category-related models ─────────────────────────────────────────

class CategoryModel(BaseModel):
    id: int
    slug: str
    title: str
    shortTitle: str = ""
    imgPath: Optional[str] = None
    parentId: Optional[int] = None


class CategoryNode(CategoryModel):
    level: int = 1  # relative to the traversal root
    subcategories: list[CategoryNode] = Field(default_factory=list)


class CatalogCategoryNode(CategoryModel):
    level: int = 1
    active: bool = False
    subcategories: list[CatalogCategoryNode] = Field(default_factory=list)


class CatalogCategoryResponse(BaseModel):
    catalogCategories: CatalogCategoryNode
    current: CategoryModel


class CategoryRef(BaseModel):
    id: int
    title: str
    slug: str


# ── Brand-related models ────────────────────────────────────────────

class BrandRef(BaseModel):
    id: int
    title: str
    slug: str = ""


class Brand(BrandRef):
    imgPath: Optional[str] = None
    description: Optional[str] = None


# ── Product model building blocks ───────────────────────────────────

class ProductModelImage(BaseModel):
    id: int
    imgPath: str
    productModelId: int


class ProductModelSize(BaseModel):
    sizeId: int
    value: str  # label, e.g. "42"
    literal: str = ""  # display string, e.g. "M"
    inStock: int = 0
    modelId: int
    sizeModelId: int  # unique per model+size pairing


class ProductModelOptionValue(BaseModel):
    id: int
    value: str
    info: Optional[str] = None
    optionId: int


class ProductModelOption(BaseModel):
    id: int
    title: str
    slug: str
    values: list[ProductModelOptionValue] = Field(default_factory=list)


# ── Catalog listing ─────────────────────────────────────────────────

class CatalogProductModel(BaseModel):
    modelId: int
    productId: int
    slug: str
    article: str
    price: int
    discount: Optional[int] = None
    title: str
    brand: BrandRef
    category: CategoryRef
    mainImagePath: str = ""
    images: list[ProductModelImage] = Field(default_factory=list)
    sizes: list[ProductModelSize] = Field(default_factory=list)


class CatalogResponse(BaseModel):
    models: list[CatalogProductModel] = Field(default_factory=list)
    totalCount: int = 0
    page: int = 1
    pageSize: int = 16


class CatalogOptionValue(BaseModel):
    id: int
    value: str
    optionId: int


class CatalogOption(BaseModel):
    id: int
    title: str
    slug: str
    values: list[CatalogOptionValue] = Field(default_factory=list)


class CatalogSize(BaseModel):
    id: int
    value: str


class CatalogBrand(BaseModel):
    id: int
    title: str


class CatalogPriceRange(BaseModel):
    min: int = 0
    max: int = 0


class CatalogFilters(BaseModel):
    options: list[CatalogOption] = Field(default_factory=list)
    sizes: list[CatalogSize] = Field(default_factory=list)
    brands: list[CatalogBrand] = Field(default_factory=list)
    price: CatalogPriceRange = Field(default_factory=CatalogPriceRange)


# ── Product page ────────────────────────────────────────────────────

class ProductModelDetail(BaseModel):
    id: int
    slug: str
    article: str
    price: int
    discount: Optional[int] = None
    productId: int
    imagePath: str = ""
    images: list[ProductModelImage] = Field(default_factory=list)
    options: list[ProductModelOption] = Field(default_factory=list)
    sizes: list[ProductModelSize] = Field(default_factory=list)


class ProductPage(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: CategoryModel
    brand: Brand
    model: ProductModelDetail


class ModelColor(BaseModel):
    id: int
    slug: str
    imagePath: str = ""
    color: Optional[str] = None


# ── Admin listing ───────────────────────────────────────────────────

class AdminProductModel(BaseModel):
    id: int
    price: int
    discount: Optional[int] = None
    slug: str
    article: str
    imagePath: Optional[str] = None
    productId: int


class AdminProduct(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: CategoryModel
    brand: Brand
    models: list[AdminProductModel] = Field(default_factory=list)


# ── Feedback ────────────────────────────────────────────────────────

class FeedbackAuthor(BaseModel):
    id: int
    email: str
    avatarPath: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None


class Feedback(BaseModel):
    id: int
    text: str = ""
    rate: int
    createdAt: str = ""
    updatedAt: str = ""
    modelId: int
    hidden: bool = False
    user: FeedbackAuthor


class ModelFeedbackResponse(BaseModel):
    feedback: list[Feedback] = Field(default_factory=list)
    avgRate: float = 0.0
    rateCount: int = 0

"""Catalog facet filter set and the query-string adapter that builds it.

Malformed input never raises: a bad page becomes page 1, a bad price range
or a non-numeric or out-of-range id is dropped and the query behaves as if it was absent.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

SORT_NONE = "none"
SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_DISCOUNT = "discount"
SORT_KEYS = {SORT_NONE, SORT_PRICE_ASC, SORT_PRICE_DESC, SORT_DISCOUNT}

# Query-string keys with a fixed meaning; every other key is an option facet.
RESERVED_KEYS = {"size", "brands", "sort", "is_sale", "price", "page", "categorySlug"}

# Id columns are signed 64-bit; anything outside cannot be bound.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1
# Keeps (page - 1) * page_size inside a 64-bit OFFSET.
MAX_PAGE = 2**31 - 1


@dataclass(frozen=True)
class FacetFilterSet:
    options: dict[str, frozenset[int]] = field(default_factory=dict)
    sizes: frozenset[str] = frozenset()
    brands: frozenset[int] = frozenset()
    price_range: tuple[float, float] | None = None
    discount_only: bool = False
    sort_key: str = SORT_NONE
    page: int = 1

    def __post_init__(self) -> None:
        if self.sort_key not in SORT_KEYS:
            object.__setattr__(self, "sort_key", SORT_NONE)
        if not isinstance(self.page, int) or not 1 <= self.page <= MAX_PAGE:
            object.__setattr__(self, "page", 1)


def is_bindable_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and ID_MIN <= value <= ID_MAX


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [token.strip() for token in str(raw).split(",") if token.strip()]


def _parse_ids(raw: str | None) -> frozenset[int]:
    ids: set[int] = set()
    for token in _split(raw):
        try:
            value = int(token)
        except ValueError:
            continue
        if is_bindable_id(value):
            ids.add(value)
    return frozenset(ids)


def parse_page(raw: str | int | None) -> int:
    try:
        page = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    return page if 1 <= page <= MAX_PAGE else 1


def parse_price_range(raw: str | None) -> tuple[float, float] | None:
    limits = str(raw or "").split(",")
    if len(limits) != 2:
        return None
    try:
        low = float(limits[0])
        high = float(limits[1])
    except ValueError:
        return None
    if not (math.isfinite(low) and math.isfinite(high)):
        return None
    return (low, high)


def parse_facets(params: Mapping[str, str]) -> FacetFilterSet:
    """Build a FacetFilterSet from flat query-string parameters."""
    options: dict[str, frozenset[int]] = {}
    for key, raw in params.items():
        if key in RESERVED_KEYS:
            continue
        slug = key.strip()
        value_ids = _parse_ids(raw)
        if slug and value_ids:
            options[slug] = value_ids

    sort_key = str(params.get("sort") or SORT_NONE).strip().lower()

    return FacetFilterSet(
        options=options,
        sizes=frozenset(_split(params.get("size"))),
        brands=_parse_ids(params.get("brands")),
        price_range=parse_price_range(params.get("price")),
        discount_only=str(params.get("is_sale") or "").strip() == "1",
        sort_key=sort_key if sort_key in SORT_KEYS else SORT_NONE,
        page=parse_page(params.get("page")),
    )

"""Row-to-tree reconstruction for flat, repeated-join result sets.

A join such as product ⋈ model ⋈ image ⋈ size repeats every parent once per
child combination. ``RowReconstructor`` walks such a row stream once, keeps
one entity per distinct key at each declared level, then attaches children
to their parents bottom-up, in the order each child was first seen.

``assemble_hierarchy`` does the same for self-referencing rows produced by a
recursive CTE, where the level is a column of the row rather than a fixed
position in the join.

Both raise ``NotFoundError`` for an empty row stream and ``InternalError``
for any decode failure or dangling parent reference. Neither returns a
partially built tree.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, Generic, Hashable, Iterable, Iterator, Mapping, Sequence, TypeVar

from storefront.errors import InternalError, NotFoundError


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

# Failures raised while reading a column or building an entity from a row.
# pydantic.ValidationError is a ValueError subclass.
DECODE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError)


class OrderedIndex(Generic[K, V]):
    """Insertion-ordered id -> entity map where the first write wins."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: dict[K, V] = {}

    def add(self, key: K, value: V) -> V:
        if key in self._items:
            return self._items[key]
        self._items[key] = value
        return value

    def setdefault(self, key: K, factory: Callable[[], V]) -> V:
        if key in self._items:
            return self._items[key]
        value = factory()
        self._items[key] = value
        return value

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._items.get(key, default)

    def keys(self) -> list[K]:
        return list(self._items.keys())

    def values(self) -> list[V]:
        return list(self._items.values())

    def items(self) -> list[tuple[K, V]]:
        return list(self._items.items())

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[V]:
        return iter(self._items.values())


@dataclass(frozen=True)
class Level:
    """One entity level of a flat join row.

    ``key`` is the row column holding this level's id; rows where it is NULL
    (outer joins) contribute nothing at this level. ``parent_key`` is the row
    column holding the parent's id and ``attach`` the parent attribute (a
    list) that receives the children.
    """

    name: str
    key: str
    build: Callable[[Mapping[str, Any]], Any]
    parent: str | None = None
    parent_key: str | None = None
    attach: str | None = None


class RowReconstructor:
    """Deduplicate and nest the entities of a flat join row stream."""

    def __init__(self, levels: Sequence[Level]):
        seen: set[str] = set()
        for level in levels:
            if level.parent is not None:
                if level.parent not in seen:
                    raise ValueError(f"Level {level.name!r} declared before its parent {level.parent!r}")
                if not level.parent_key or not level.attach:
                    raise ValueError(f"Level {level.name!r} needs parent_key and attach")
            seen.add(level.name)
        self.levels = list(levels)

    def reconstruct(
        self,
        rows: Iterable[Mapping[str, Any]],
        not_found: str = "Nothing found",
    ) -> dict[str, OrderedIndex]:
        indexes: dict[str, OrderedIndex] = {level.name: OrderedIndex() for level in self.levels}
        parent_refs: dict[str, dict[Any, Any]] = {level.name: {} for level in self.levels}
        found = False

        for row in rows:
            found = True
            for level in self.levels:
                try:
                    key = row[level.key]
                    if key is None or key in indexes[level.name]:
                        continue
                    indexes[level.name].add(key, level.build(row))
                    if level.parent is not None:
                        parent_refs[level.name][key] = row[level.parent_key]
                except DECODE_ERRORS as exc:
                    raise InternalError.wrap(f"Failed to decode {level.name} row", exc) from exc

        if not found:
            raise NotFoundError(not_found)

        # Deepest levels first so a parent's children are complete before the
        # parent itself is attached further up.
        for level in reversed(self.levels):
            if level.parent is None:
                continue
            parents = indexes[level.parent]
            refs = parent_refs[level.name]
            for key, child in indexes[level.name].items():
                parent = parents.get(refs[key])
                if parent is None:
                    raise InternalError(
                        f"{level.name} {key!r} references unknown {level.parent} {refs[key]!r}"
                    )
                getattr(parent, level.attach).append(child)

        return indexes


def assemble_hierarchy(
    rows: Iterable[Mapping[str, Any]],
    build: Callable[[Mapping[str, Any]], Any],
    *,
    active_slug: str | None = None,
    not_found: str = "Category not found",
) -> list[Any]:
    """Assemble leveled hierarchy rows into trees; returns the shallowest nodes.

    Nodes must expose ``id``, ``parentId``, ``level`` and a ``subcategories``
    list. When ``active_slug`` is given they must also expose ``active``: the
    node with that slug is flagged, and the flag climbs to every ancestor as
    each level is merged into the one above it.
    """
    levels: dict[int, OrderedIndex] = {}
    for row in rows:
        try:
            node = build(row)
        except DECODE_ERRORS as exc:
            raise InternalError.wrap("Failed to decode category row", exc) from exc
        if active_slug is not None:
            node.active = node.slug == active_slug
        levels.setdefault(node.level, OrderedIndex()).add(node.id, node)

    if not levels:
        raise NotFoundError(not_found)

    top = min(levels)
    for depth in sorted(levels, reverse=True):
        if depth == top:
            break
        parents = levels.get(depth - 1)
        for node in levels[depth]:
            parent = parents.get(node.parentId) if parents is not None else None
            if parent is None:
                raise InternalError(f"Category {node.id} at level {depth} has no parent at level {depth - 1}")
            parent.subcategories.append(node)
            if active_slug is not None and node.active:
                parent.active = True

    return levels[top].values()


def _compare_size_labels(left: Any, right: Any) -> int:
    # Labels that do not parse as integers compare equal to everything, so
    # the stable sort leaves them where the row stream put them.
    try:
        a = int(left.value)
        b = int(right.value)
    except (TypeError, ValueError):
        return 0
    return (a > b) - (a < b)


def sort_sizes(sizes: Iterable[Any]) -> list[Any]:
    return sorted(sizes, key=cmp_to_key(_compare_size_labels))

"""In-memory parent-pointer traversal.

Units are loaded once per operation and grouped by ``parent_id``; the helpers
below walk that adjacency map iteratively so tree depth never grows the
Python call stack.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from typing import Any, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


def group_by_parent(
    records: Iterable[T],
    key: Callable[[T], K],
    parent_key: Callable[[T], K | None],
) -> dict[K | None, list[T]]:
    """Group ``records`` by parent key, preserving input order within each group.

    Examples:
        >>> rows = [("a", None), ("b", "a"), ("c", "a")]
        >>> dict(group_by_parent(rows, lambda r: r[0], lambda r: r[1]))
        {None: [('a', None)], 'a': [('b', 'a'), ('c', 'a')]}
    """
    children: dict[K | None, list[T]] = defaultdict(list)
    for record in records:
        children[parent_key(record)].append(record)
    return children


def is_descendant(
    children_of: dict[Any, list[Any]],
    ancestor_id: Any,
    target_id: Any,
    key: Callable[[Any], Any],
) -> bool:
    """Return True if ``target_id`` is reachable from ``ancestor_id`` via child edges.

    Depth-first; stops at the first visit of ``target_id``. ``ancestor_id``
    itself is not counted as its own descendant. A ``seen`` set keeps the walk
    finite even if the stored data already contains a cycle.

    Examples:
        >>> tree = {"a": [("b",)], "b": [("c",)]}
        >>> is_descendant(tree, "a", "c", key=lambda r: r[0])
        True
        >>> is_descendant(tree, "c", "a", key=lambda r: r[0])
        False
    """
    stack = [key(child) for child in children_of.get(ancestor_id, [])]
    seen = {ancestor_id}
    while stack:
        node_id = stack.pop()
        if node_id == target_id:
            return True
        if node_id in seen:
            continue
        seen.add(node_id)
        stack.extend(key(child) for child in children_of.get(node_id, []))
    return False


def assemble_forest(
    children_of: dict[Any, list[T]],
    root_parent_id: Any,
    key: Callable[[T], Any],
    make_node: Callable[[T], dict[str, Any]],
) -> list[dict[str, Any]]:
    """Build nested ``{..., "children": [...]}`` dicts below ``root_parent_id``.

    ``make_node`` converts a record to a dict without its ``children``; the
    key is added here. Sibling order follows ``children_of``.

    Examples:
        >>> tree = {None: [("a",)], "a": [("b",)]}
        >>> assemble_forest(tree, None, lambda r: r[0], lambda r: {"id": r[0]})
        [{'id': 'a', 'children': [{'id': 'b', 'children': []}]}]
    """
    roots: list[dict[str, Any]] = []
    stack: list[tuple[Any, list[dict[str, Any]]]] = [(root_parent_id, roots)]
    seen: set[Any] = set()
    while stack:
        parent_id, siblings = stack.pop()
        for record in children_of.get(parent_id, []):
            record_id = key(record)
            if record_id in seen:
                continue
            seen.add(record_id)
            node = make_node(record)
            node["children"] = []
            siblings.append(node)
            stack.append((record_id, node["children"]))
    return roots


def count_nodes(forest: list[dict[str, Any]]) -> int:
    """Count every node in a forest produced by ``assemble_forest``."""
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node["children"])
    return total


_END = object()


def forest_to_json(forest: list[dict[str, Any]], children_key: str = "children") -> str:
    """Serialize an ``assemble_forest`` result to a JSON array.

    Each node's own fields go through ``json.dumps`` (UUIDs and other
    non-JSON values become strings); the ``children`` nesting is written by
    an explicit stack, so arbitrarily deep chains serialize without
    recursion.

    Examples:
        >>> forest_to_json([{"id": 1, "children": [{"id": 2, "children": []}]}])
        '[{"id": 1, "children": [{"id": 2, "children": []}]}]'
        >>> forest_to_json([])
        '[]'
    """
    parts = ["["]
    stack = [iter(forest)]
    first = [True]
    while stack:
        node = next(stack[-1], _END)
        if node is _END:
            stack.pop()
            first.pop()
            parts.append("]")
            if stack:
                parts.append("}")
            continue

        if not first[-1]:
            parts.append(", ")
        first[-1] = False

        fields = {k: v for k, v in node.items() if k != children_key}
        parts.append(json.dumps(fields, default=str)[:-1])
        if fields:
            parts.append(", ")
        parts.append(json.dumps(children_key) + ": [")
        stack.append(iter(node.get(children_key, ())))
        first.append(True)
    return "".join(parts)

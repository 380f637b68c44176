"""
Dotted path helpers for nested documents.

``set_path(doc, "power.voltage", 230.1)`` yields
``{"power": {"voltage": 230.1}}``. Every segment names a dict key,
numeric segments included, so ``"relay.1"`` produces ``{"relay": {"1": ...}}``.
An intermediate value that is not a dict is replaced by an empty dict.
"""
from typing import Any, Dict, List

SEPARATOR = "."

_MISSING = object()


def split_path(key: str) -> List[str]:
    """Split a dotted key into segments, rejecting empty segments."""
    segments = key.split(SEPARATOR)
    if not all(segments):
        raise ValueError(f"Invalid field path: '{key}'")
    return segments


def set_path(tree: Dict[str, Any], key: str, value: Any) -> Dict[str, Any]:
    """
    Store ``value`` at the dotted ``key`` inside ``tree``.

    Args:
        tree: Document to modify in place.
        key: Dotted path.
        value: Value to store.

    Returns:
        The same ``tree`` for chaining.
    """
    *parents, leaf = split_path(key)

    node = tree
    for segment in parents:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child

    node[leaf] = value
    return tree


def get_path(tree: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read the value at a dotted ``key``, or ``default`` when absent."""
    node: Any = tree
    for segment in split_path(key):
        if not isinstance(node, dict):
            return default
        node = node.get(segment, _MISSING)
        if node is _MISSING:
            return default
    return node

"""Deep merge of configuration trees."""

import json
from collections.abc import Iterable

from layerconf.exceptions import MergeConflictError
from layerconf.tree import NULL, Mapping, Node, Scalar, Sequence, to_native


def _render(node: Node) -> str:
    return json.dumps(to_native(node), default=str)


def _conflicts(base: Node, overlay: Node) -> bool:
    """Check whether a mapping meets a sequence or a non-null scalar."""
    if isinstance(base, Mapping):
        return isinstance(overlay, (Sequence, Scalar))
    if isinstance(overlay, Mapping):
        return isinstance(base, (Sequence, Scalar))
    return False


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def fold(base: Node, overlay: Node, *, strict: bool = True, path: str = "") -> Node:
    """Fold `overlay` onto `base`.

    Mappings are merged key by key, recursively. For all other node kinds
    (including sequences) the overlay replaces the base value entirely.

    Args:
        base: The tree to merge into.
        overlay: The tree whose values take precedence.
        strict: If True, a mapping meeting a sequence or a scalar at the same
            key raises. If False, the overlay wins.
        path: Dotted path of the nodes being folded, for error messages.

    Returns:
        A new tree with merged values. Neither input is modified.

    Raises:
        MergeConflictError: On a mapping/sequence or mapping/scalar clash
            below the top level when strict is True.

    Examples:
        {"a": {"x": 1}} folded with {"a": {"y": 2}} gives
        {"a": {"x": 1, "y": 2}}; {"a": [1, 2]} folded with {"a": [3]}
        gives {"a": [3]}.
    """
    if not (isinstance(base, Mapping) and isinstance(overlay, Mapping)):
        return overlay

    result = dict(base.entries)

    for key, overlay_value in overlay.items():
        if key not in result:
            result[key] = overlay_value
            continue

        base_value = result[key]
        key_path = _join(path, key)
        if isinstance(base_value, Mapping) and isinstance(overlay_value, Mapping):
            result[key] = fold(base_value, overlay_value, strict=strict, path=key_path)
        elif strict and _conflicts(base_value, overlay_value):
            raise MergeConflictError(
                key_path,
                overlay_value.shape,
                base_value.shape,
                _render(overlay_value),
                _render(base_value),
            )
        else:
            # Sequences are replaced, never concatenated
            result[key] = overlay_value

    return Mapping(result)


def fold_all(trees: Iterable[Node], *, strict: bool = True) -> Node:
    """Fold trees left to right; later trees have higher priority.

    Empty documents (`NULL` trees) contribute nothing.
    """
    merged: Node = NULL
    for tree in trees:
        if tree is NULL:
            continue
        merged = tree if merged is NULL else fold(merged, tree, strict=strict)
    return merged

"""Key resolution over merged trees.

Two addressing schemes share the same mappings:

1. Navigational: `a.b.c` descends through `a`, then `b`, then `c`. Decimal
   segments index into sequences.
2. Literal dotted keys: a mapping may contain a key that is itself dotted,
   such as `"a.b"` or `"."`. A literal key matching the whole path is a
   value for that path, and a literal key extending the path (`"a.b.i"`
   when resolving `a`) overrides the nested position it names.

When several literal keys reach the same position, the longest one is
applied last and wins.
"""

from layerconf.merge import fold
from layerconf.tree import NULL, Mapping, Node, Scalar, Sequence

ROOT = ""
SEPARATOR = "."


def join_path(prefix: str, key: str) -> str:
    """Join two dotted paths, treating ROOT as the identity."""
    if prefix == ROOT:
        return key
    if key == ROOT:
        return prefix
    return f"{prefix}{SEPARATOR}{key}"


def _is_index(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def resolve(tree: Node, path: str) -> tuple[Node, bool]:
    """Resolve the effective value at `path`.

    Args:
        tree: The merged tree.
        path: Dotted path, or ROOT for the whole tree.

    Returns:
        Tuple of (node, found). The node is NULL when nothing was found.
    """
    if path == ROOT:
        return tree, tree is not NULL
    return _find(tree, path)


def _find(node: Node, path: str) -> tuple[Node, bool]:
    if isinstance(node, Sequence):
        return _find_in_sequence(node, path)
    if not isinstance(node, Mapping):
        return NULL, False

    result: Node = NULL
    found = False

    candidates = [
        key for key in node if key == path or path.startswith(key + SEPARATOR)
    ]
    for key in sorted(candidates, key=lambda k: (len(k), k)):
        if key == path:
            value, ok = node[key], True
        else:
            value, ok = _find(node[key], path[len(key) + 1 :])
        if ok:
            result = fold(result, value, strict=False)
            found = True

    prefix = path + SEPARATOR
    overrides = [key for key in node if key.startswith(prefix)]
    for key in sorted(overrides, key=lambda k: (len(k), k)):
        result = _patch(result, key[len(prefix) :].split(SEPARATOR), node[key])
        found = True

    return result, found


def _find_in_sequence(node: Sequence, path: str) -> tuple[Node, bool]:
    head, sep, rest = path.partition(SEPARATOR)
    if not _is_index(head):
        return NULL, False

    index = int(head)
    if index >= len(node):
        return NULL, False

    child = node[index]
    if not sep:
        return child, True
    return _find(child, rest)


def _patch(node: Node, segments: list[str], value: Node) -> Node:
    """Overlay `value` at the nested position named by `segments`."""
    if not segments:
        return fold(node, value, strict=False)

    head, rest = segments[0], segments[1:]

    # A scalar has no children to override
    if isinstance(node, Scalar):
        return node

    if isinstance(node, Sequence) and _is_index(head):
        items = list(node.items)
        index = int(head)
        if index >= len(items):
            items.extend([NULL] * (index + 1 - len(items)))
        items[index] = _patch(items[index], rest, value)
        return Sequence(tuple(items))

    if isinstance(node, Mapping):
        entries = dict(node.entries)
        entries[head] = _patch(node.get(head), rest, value)
        return Mapping(entries)

    if node is NULL and _is_index(head):
        return _patch(Sequence(), segments, value)

    # NULL, or a sequence addressed by a non-index key: the literal key wins
    return _patch(Mapping(), segments, value)

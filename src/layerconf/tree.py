"""Tree representation shared by every source and provider.

Every document parses into a tree built from four node kinds:

- `Null`: no value (`key:` with nothing after it)
- `Scalar`: a single primitive value
- `Sequence`: an ordered tuple of nodes
- `Mapping`: string keys to nodes

Nodes are immutable. Downstream code switches on the node class and never
inspects raw Python containers.
"""

import dataclasses
import datetime
from collections.abc import Iterator
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

SCALAR_TYPES = (
    str,
    bool,
    int,
    float,
    bytes,
    datetime.date,
    datetime.datetime,
    datetime.time,
    datetime.timedelta,
)


class Node:
    """Base class for tree nodes."""

    __slots__ = ()

    shape = "node"


class Null(Node):
    """The absent value. Use the `NULL` singleton."""

    __slots__ = ()

    shape = "null"

    _instance: "Null | None" = None

    def __new__(cls) -> "Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"


NULL = Null()


@dataclasses.dataclass(frozen=True, slots=True)
class Scalar(Node):
    """A primitive value: text, number, bool, date or duration."""

    value: Any

    shape = "scalar"


@dataclasses.dataclass(frozen=True, slots=True)
class Sequence(Node):
    """An ordered list of nodes."""

    items: tuple[Node, ...] = ()

    shape = "sequence"

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Node:
        return self.items[index]


@dataclasses.dataclass(frozen=True, slots=True, init=False)
class Mapping(Node):
    """String keys to nodes."""

    entries: MappingProxyType

    shape = "mapping"

    def __init__(self, entries: dict[str, Node] | None = None) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(entries or {})))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> Node:
        return self.entries[key]

    def get(self, key: str, default: Node = NULL) -> Node:
        return self.entries.get(key, default)

    def keys(self):
        return self.entries.keys()

    def items(self):
        return self.entries.items()


def shape_name(node: Node) -> str:
    """Return the shape name of a node for error messages."""
    return node.shape


def key_text(key: Any) -> str:
    """Normalise a mapping key produced by a parser to text."""
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


def from_native(obj: Any) -> Node:
    """Build a tree from plain Python data.

    Dataclass instances and pydantic models are converted to dicts first.

    Args:
        obj: dicts, lists, tuples, scalars or None.

    Returns:
        The root node of the tree.

    Raises:
        TypeError: If obj contains an unsupported object.
    """
    if isinstance(obj, Node):
        return obj
    if obj is None:
        return NULL
    if isinstance(obj, SCALAR_TYPES):
        return Scalar(obj)
    if isinstance(obj, dict):
        return Mapping({key_text(k): from_native(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        return Sequence(tuple(from_native(item) for item in obj))
    if isinstance(obj, BaseModel):
        return from_native(obj.model_dump())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return from_native(dataclasses.asdict(obj))
    raise TypeError(f"unsupported configuration value of type {type(obj).__name__}")


def to_native(node: Node) -> Any:
    """Convert a tree back to plain dicts, lists and scalars."""
    if isinstance(node, Scalar):
        return node.value
    if isinstance(node, Sequence):
        return [to_native(item) for item in node.items]
    if isinstance(node, Mapping):
        return {key: to_native(value) for key, value in node.entries.items()}
    return None

"""Lazily evaluated configuration values.

A `Value` is what `Provider.get` returns: the resolved node at a key, a
found flag, an optional default and the time the data was loaded. It is
also the entry point for typed access (`as_int`, `decode`, `populate`).
"""

import datetime
from typing import TYPE_CHECKING, Any

from layerconf.convert import convert_scalar, format_scalar, type_name
from layerconf.exceptions import ConversionError
from layerconf.resolve import ROOT, join_path
from layerconf.tree import NULL, Mapping, Node, Scalar, Sequence, from_native, to_native

if TYPE_CHECKING:
    from layerconf.provider import Provider


class Value:
    """A configuration value bound to a provider and a key.

    `has_value()` is true when the key was found or a default is attached.
    `value()` returns the found value, else the default, else None.
    """

    def __init__(
        self,
        provider: "Provider | None",
        key: str,
        node: Node = NULL,
        found: bool = False,
        timestamp: datetime.datetime | None = None,
    ) -> None:
        self._provider = provider
        # Lookup chain for child keys; with_default layers a default under it
        self._root = provider
        self.key = key
        self._node = node
        self.found = found
        self._default: Any = None
        self.timestamp = timestamp or datetime.datetime.now(datetime.timezone.utc)

    @property
    def provider(self) -> "Provider | None":
        return self._provider

    @property
    def source(self) -> str:
        """Name of the provider this value came from."""
        if self._provider is None:
            return ""
        return self._provider.name

    @property
    def default(self) -> Any:
        return self._default

    @property
    def node(self) -> Node:
        """The effective tree: the found node, else the default, else NULL."""
        if self.found:
            return self._node
        if self._default is not None:
            return from_native(self._default)
        return NULL

    @property
    def last_updated(self) -> datetime.datetime | None:
        """When the value was last updated, None if it has no value."""
        if not self.has_value():
            return None
        return self.timestamp

    def is_default(self) -> bool:
        """Check whether value() returns the attached default."""
        return not self.found and self._default is not None

    def has_value(self) -> bool:
        return self.found or self.is_default()

    def value(self) -> Any:
        """Return the value as plain Python data."""
        if self.found:
            return to_native(self._node)
        return self._default

    def with_default(self, default: Any) -> "Value":
        """Return a copy that falls back to `default`.

        The default is layered as the lowest-priority provider under the
        existing chain, so it also applies to child keys that the real
        providers do not define.
        """
        from layerconf.group import ProviderGroup
        from layerconf.provider import StaticProvider

        data = default if self.key == ROOT else {self.key: default}
        providers = [StaticProvider(data)]
        if self._root is not None:
            providers.append(self._root)

        value = Value(self._provider, self.key, self._node, self.found, self.timestamp)
        value._default = default
        value._root = ProviderGroup("withDefault", *providers)
        return value

    def get(self, key: str) -> "Value":
        """Return the value at `key` relative to this value."""
        if self._root is None:
            return Value(None, join_path(self.key, key))

        from layerconf.group import ScopedProvider

        return ScopedProvider(self.key, self._root).get(key)

    def child_keys(self) -> list[str]:
        """Indices of a sequence or keys of a mapping."""
        node = self.node
        if isinstance(node, Sequence):
            return [str(i) for i in range(len(node))]
        if isinstance(node, Mapping):
            return list(node.keys())
        return []

    def _try_as(self, target: type, zero: Any) -> tuple[Any, bool]:
        node = self.node
        if not isinstance(node, Scalar):
            return zero, False
        try:
            return convert_scalar(node.value, target), True
        except ConversionError:
            return zero, False

    def try_as_str(self) -> tuple[str, bool]:
        return self._try_as(str, "")

    def try_as_int(self) -> tuple[int, bool]:
        return self._try_as(int, 0)

    def try_as_float(self) -> tuple[float, bool]:
        return self._try_as(float, 0.0)

    def try_as_bool(self) -> tuple[bool, bool]:
        return self._try_as(bool, False)

    def _as(self, target: type) -> Any:
        result, ok = self._try_as(target, None)
        if not ok:
            raise ConversionError(
                type_name(type(self.value())),
                type_name(target),
                f"value {self.value()!r} for key {self.key!r}",
            )
        return result

    def as_str(self) -> str:
        return self._as(str)

    def as_int(self) -> int:
        return self._as(int)

    def as_float(self) -> float:
        return self._as(float)

    def as_bool(self) -> bool:
        return self._as(bool)

    def decode(self, shape: Any, current: Any = None) -> Any:
        """Decode this value into the type described by `shape`.

        Args:
            shape: A type hint such as `int`, `list[str]`, `dict[int, Bag]`
                or a dataclass.
            current: The existing value to decode over.

        Returns:
            The decoded value.

        Raises:
            DecodeError: If the value does not fit the shape.
        """
        from layerconf.decoder import Decoder

        return Decoder(self).decode(shape, current)

    def populate(self, target: Any) -> Any:
        """Decode this value in place into a record or hook instance."""
        from layerconf.decoder import Decoder

        return Decoder(self).populate(target)

    def __str__(self) -> str:
        node = self.node
        if isinstance(node, Scalar):
            return format_scalar(node.value)
        if node is NULL:
            return ""
        return str(to_native(node))

    def __repr__(self) -> str:
        return (
            f"Value(key={self.key!r}, source={self.source!r}, "
            f"value={self.value()!r})"
        )

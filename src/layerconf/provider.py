"""Configuration providers.

A provider exposes one logical configuration tree through `get(key)`.
Leaf providers are backed by a merged tree; `layerconf.group` composes
them.
"""

import datetime
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from layerconf.exceptions import CallbackError
from layerconf.expand import Lookup, expand
from layerconf.loader import (
    discover_config_files,
    get_config_dir,
    is_secrets_file,
    load_file,
    load_source,
)
from layerconf.merge import fold_all
from layerconf.resolve import ROOT, resolve
from layerconf.tree import Mapping, Node, Scalar, Sequence, from_native
from layerconf.value import Value

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[str, str, Any], None]


class Provider(ABC):
    """Base class for configuration providers.

    Providers without dynamic capability accept callback registration as a
    successful no-op.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the provider."""

    @abstractmethod
    def get(self, key: str = ROOT) -> Value:
        """Return the value at `key`."""

    def register_change_callback(self, token: str, callback: ChangeCallback) -> None:
        """Register a callback for changes to the value at `token`."""

    def unregister_change_callback(self, token: str) -> None:
        """Remove the callback registered for `token`."""


class TreeProvider(Provider):
    """Provider backed by one immutable tree."""

    def __init__(self, tree: Node, name: str) -> None:
        self._tree = tree
        self._name = name
        self._loaded = datetime.datetime.now(datetime.timezone.utc)

    @property
    def name(self) -> str:
        return self._name

    @property
    def tree(self) -> Node:
        return self._tree

    def get(self, key: str = ROOT) -> Value:
        node, found = resolve(self._tree, key)
        return Value(self, key, node, found, self._loaded)


def _expand_strings(node: Node, lookup: Lookup) -> Node:
    if isinstance(node, Scalar) and isinstance(node.value, str):
        return Scalar(expand(node.value, lookup))
    if isinstance(node, Sequence):
        return Sequence(tuple(_expand_strings(item, lookup) for item in node))
    if isinstance(node, Mapping):
        return Mapping({k: _expand_strings(v, lookup) for k, v in node.items()})
    return node


class StaticProvider(TreeProvider):
    """Provider over plain Python data (dicts, lists, dataclasses, models)."""

    def __init__(self, data: Any) -> None:
        super().__init__(from_native(data), "static")

    @classmethod
    def with_expand(cls, data: Any, lookup: Lookup) -> "StaticProvider":
        """Build a static provider with `${...}` placeholders expanded.

        Raises:
            PlaceholderError: If a placeholder cannot be resolved.
        """
        provider = cls(None)
        provider._tree = _expand_strings(from_native(data), lookup)
        return provider


class ValueProvider(TreeProvider):
    """Provider exposing a single value at ROOT."""

    def __init__(self, value: Any) -> None:
        super().__init__(from_native(value), "value")


class YAMLProvider(TreeProvider):
    """Provider over YAML documents folded in order.

    Later documents have priority over earlier ones. TOML files are
    accepted by `from_files` based on their suffix.
    """

    def __init__(self, *trees: Node) -> None:
        super().__init__(fold_all(trees), "yaml")
        logger.debug(f"Merged {len(trees)} documents into yaml provider")

    @classmethod
    def from_bytes(
        cls, *sources: bytes | str | None, lookup: Lookup | None = None
    ) -> "YAMLProvider":
        """Build a provider from raw documents.

        Raises:
            ConstructionError: If a document is malformed, a placeholder is
                unresolved, or two documents conflict.
        """
        trees = []
        for source in sources:
            if source is None:
                continue
            text = source.decode("utf-8") if isinstance(source, bytes) else source
            trees.append(load_source(text, "yaml", "<bytes>", lookup))
        return cls(*trees)

    @classmethod
    def from_readers(
        cls, *streams: IO, lookup: Lookup | None = None
    ) -> "YAMLProvider":
        """Build a provider from open streams. Streams are not closed."""
        trees = []
        for stream in streams:
            content = stream.read()
            text = content.decode("utf-8") if isinstance(content, bytes) else content
            name = str(getattr(stream, "name", "<stream>"))
            trees.append(load_source(text, "yaml", name, lookup))
        return cls(*trees)

    @classmethod
    def from_files(
        cls, *paths: Path | str, lookup: Lookup | None = None
    ) -> "YAMLProvider":
        """Build a provider from files, lowest priority first.

        Raises:
            ConfigFileNotFoundError: If a file doesn't exist.
        """
        return cls(*(load_file(Path(path), lookup) for path in paths))

    @classmethod
    def from_directory(
        cls,
        config_dir: Path | None = None,
        environment: str = "development",
        lookup: Lookup | None = None,
    ) -> "YAMLProvider":
        """Build a provider from a layered config directory.

        Loads base, environment and secrets files in that order. Secrets are
        never placeholder-expanded.

        Raises:
            DuplicateConfigError: If conflicting config files exist.
        """
        if config_dir is None:
            config_dir = get_config_dir()

        files = discover_config_files(config_dir, environment)
        logger.info(
            f"Loading {len(files)} config files from {config_dir} "
            f"for environment {environment}"
        )
        return cls(
            *(
                load_file(path, None if is_secrets_file(path) else lookup)
                for path in files
            )
        )


class DynamicProvider(Provider):
    """Provider able to notify callbacks about changes.

    The token to callback registry belongs to the provider instance and is
    guarded by a lock that dispatch also holds.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, ChangeCallback] = {}
        self._callbacks_lock = threading.RLock()

    def register_change_callback(self, token: str, callback: ChangeCallback) -> None:
        """Register a callback for changes at `token` or below it.

        Raises:
            CallbackError: If a callback is already registered for token.
        """
        with self._callbacks_lock:
            if token in self._callbacks:
                raise CallbackError(f"callback already registered for token: {token}")
            self._callbacks[token] = callback
        logger.debug(f"Registered change callback for {token!r} on {self.name}")

    def unregister_change_callback(self, token: str) -> None:
        """Remove the callback registered for `token`.

        Raises:
            CallbackError: If no callback is registered for token.
        """
        with self._callbacks_lock:
            if token not in self._callbacks:
                raise CallbackError(
                    f"there is no registered callback for token: {token}"
                )
            del self._callbacks[token]
        logger.debug(f"Unregistered change callback for {token!r} on {self.name}")

    @staticmethod
    def _watches(token: str, key: str) -> bool:
        return token == ROOT or token == key or key.startswith(token + ".")

    def _notify(self, key: str, new_value: Any) -> None:
        """Call every callback watching `key`."""
        with self._callbacks_lock:
            # Callbacks may unregister themselves while being dispatched
            for token, callback in list(self._callbacks.items()):
                if self._watches(token, key):
                    callback(key, self.name, new_value)


class MemoryProvider(DynamicProvider):
    """Mutable in-memory provider that notifies callbacks on `set`."""

    def __init__(
        self, data: dict[str, Any] | None = None, name: str = "memory"
    ) -> None:
        super().__init__()
        self._name = name
        self._data: dict[str, Any] = dict(data or {})
        self._tree = from_native(self._data)
        self._updated = datetime.datetime.now(datetime.timezone.utc)

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: str = ROOT) -> Value:
        with self._callbacks_lock:
            tree, updated = self._tree, self._updated
        node, found = resolve(tree, key)
        return Value(self, key, node, found, updated)

    def set(self, key: str, value: Any) -> None:
        """Store `value` under the literal key `key` and notify callbacks.

        Raises:
            TypeError: If value holds an unsupported object. The provider is
                left unchanged.
        """
        with self._callbacks_lock:
            data = {**self._data, key: value}
            tree = from_native(data)
            self._data, self._tree = data, tree
            self._updated = datetime.datetime.now(datetime.timezone.utc)
            self._notify(key, value)

"""Provider composition: prioritized groups and key scoping."""

import logging

from layerconf.exceptions import CallbackError
from layerconf.merge import fold_all
from layerconf.provider import ChangeCallback, Provider
from layerconf.resolve import ROOT, join_path, resolve
from layerconf.tree import Node
from layerconf.value import Value

logger = logging.getLogger(__name__)


class ProviderGroup(Provider):
    """Presents several providers as one.

    Constituents are listed lowest priority first. Every `get` folds the
    current trees of all constituents and resolves the key in the result, so
    later providers override earlier ones key by key and literal dotted keys
    combine with the values they patch whichever provider holds them.
    """

    def __init__(self, name: str, *providers: Provider) -> None:
        self._name = name
        self._providers = list(providers)

    @property
    def name(self) -> str:
        return self._name

    @property
    def providers(self) -> list[Provider]:
        return list(self._providers)

    def get(self, key: str = ROOT) -> Value:
        trees: list[Node] = []
        timestamp = None

        for provider in self._providers:
            root = provider.get(ROOT)
            if not root.found:
                continue
            trees.append(root.node)
            if not resolve(root.node, key)[1]:
                continue
            if timestamp is None or root.timestamp > timestamp:
                timestamp = root.timestamp

        node, found = resolve(fold_all(trees, strict=False), key)
        return Value(self, key, node, found, timestamp)

    def register_change_callback(self, token: str, callback: ChangeCallback) -> None:
        """Register the callback with every constituent.

        Raises:
            CallbackError: The first error raised by a constituent, after all
                constituents were visited.
        """
        first_error: CallbackError | None = None
        for provider in self._providers:
            try:
                provider.register_change_callback(token, callback)
            except CallbackError as e:
                logger.debug(f"{provider.name} rejected callback for {token!r}: {e}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    def unregister_change_callback(self, token: str) -> None:
        """Unregister the callback from every constituent.

        Raises:
            CallbackError: The first error raised by a constituent, after all
                constituents were visited.
        """
        first_error: CallbackError | None = None
        for provider in self._providers:
            try:
                provider.unregister_change_callback(token)
            except CallbackError as e:
                logger.debug(f"{provider.name} rejected unregister of {token!r}: {e}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error


class ScopedProvider(Provider):
    """Exposes the subtree of `inner` under `prefix` as its own root."""

    def __init__(self, prefix: str, inner: Provider) -> None:
        self._prefix = prefix
        self._inner = inner

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def prefix(self) -> str:
        return self._prefix

    def get(self, key: str = ROOT) -> Value:
        return self._inner.get(join_path(self._prefix, key))

    def register_change_callback(self, token: str, callback: ChangeCallback) -> None:
        self._inner.register_change_callback(join_path(self._prefix, token), callback)

    def unregister_change_callback(self, token: str) -> None:
        self._inner.unregister_change_callback(join_path(self._prefix, token))

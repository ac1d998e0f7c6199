"""Custom pydantic-settings source backed by a layerconf provider.

This module provides a settings source that integrates with pydantic-settings'
`settings_customise_sources()` so that any provider (a layered YAML
directory, a provider group, a scoped view) can feed a settings class.
"""

import logging
from typing import Any

from pydantic_settings import BaseSettings
from pydantic_settings.sources import InitSettingsSource

from layerconf.exceptions import ConfigError
from layerconf.provider import Provider
from layerconf.resolve import ROOT

logger = logging.getLogger(__name__)


class ProviderSettingsSource(InitSettingsSource):
    """Settings source that reads the mapping at one key of a provider.

    The provider has already merged its layers, so this source only has to
    turn the value at `key` into plain data for pydantic.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        provider: Provider,
        key: str = ROOT,
    ) -> None:
        """Initialize the provider settings source.

        Args:
            settings_cls: The pydantic-settings class.
            provider: The provider to read from.
            key: Key of the mapping holding the settings. ROOT reads the
                whole tree.

        Raises:
            ConfigError: If the value at key is not a mapping.
        """
        self.provider = provider
        self.key = key

        super().__init__(settings_cls, self._load_data())

    def _load_data(self) -> dict[str, Any]:
        """Read the value at key as a dictionary.

        Returns:
            The settings data, empty when the key is not set.
        """
        value = self.provider.get(self.key)
        if not value.has_value():
            logger.debug(f"No settings at {self.key!r} in {self.provider.name}")
            return {}

        data = value.value()
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Settings at key {self.key!r} must be a mapping, "
                f"got {type(data).__name__}"
            )
        return data

"""Settings classes backed by layerconf providers.

Uses Pydantic v2 BaseSettings with custom source ordering so that a provider
sits below environment variables and constructor kwargs.
"""

from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from layerconf.provider import Provider
from layerconf.resolve import ROOT
from layerconf.sources import ProviderSettingsSource

if TYPE_CHECKING:
    from pydantic_settings.sources import PydanticBaseSettingsSource

# Provider binding for settings_customise_sources, set only during from_provider
_provider_context: ContextVar[tuple[Provider, str] | None] = ContextVar(
    "layerconf_provider_context", default=None
)


class ProviderSettings(BaseSettings):
    """Base class for settings loaded from a provider.

    Settings are loaded from multiple sources with the following priority
    (highest to lowest):
    1. Constructor kwargs (init_settings)
    2. Environment variables (env_settings)
    3. The provider passed to from_provider()
    4. Field defaults
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated keys in the provider tree
    )

    @classmethod
    def from_provider(cls, provider: Provider, key: str = ROOT, **values: Any) -> Self:
        """Create settings from a provider.

        Args:
            provider: The provider holding the settings.
            key: Key of the settings mapping within the provider.
            **values: Explicit values, overriding every other source.

        Returns:
            The settings instance.

        Raises:
            ConfigError: If the value at key is not a mapping.
        """
        token = _provider_context.set((provider, key))
        try:
            return cls(**values)
        finally:
            _provider_context.reset(token)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: "PydanticBaseSettingsSource",
        env_settings: "PydanticBaseSettingsSource",
        dotenv_settings: "PydanticBaseSettingsSource",
        file_secret_settings: "PydanticBaseSettingsSource",
    ) -> tuple["PydanticBaseSettingsSource", ...]:
        """Customize settings sources and their priority.

        Priority order (first = highest):
        1. init_settings - Constructor kwargs
        2. env_settings - Environment variables
        3. provider_source - The bound provider, if any
        """
        context = _provider_context.get()
        if context is None:
            return (init_settings, env_settings)

        provider, key = context
        provider_source = ProviderSettingsSource(settings_cls, provider, key)
        return (init_settings, env_settings, provider_source)


class LayerconfSettings(ProviderSettings):
    """Settings for the layerconf command line tool."""

    model_config = SettingsConfigDict(
        env_prefix="LAYERCONF_",
        case_sensitive=False,
        extra="ignore",
    )

    config_dir: Path = Field(
        default=Path("config"),
        description="Directory holding base, environment and secrets files",
    )

    environment: str = Field(
        default="development",
        description="Name of the environment layer to load",
    )

    expand_env: bool = Field(
        default=True,
        description="Expand ${NAME} placeholders from the process environment",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level of the command line tool",
    )

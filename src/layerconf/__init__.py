"""layerconf - Layered configuration providers with typed decoding."""

from layerconf.decoder import (
    ConfigUnmarshaler,
    Decoder,
    JSONUnmarshaler,
    TextUnmarshaler,
    config_field,
)
from layerconf.exceptions import (
    CallbackError,
    ConfigError,
    ConfigFileNotFoundError,
    ConstructionError,
    ConversionError,
    CycleError,
    DecodeError,
    DuplicateConfigError,
    MergeConflictError,
    PlaceholderError,
    SourceParseError,
)
from layerconf.expand import env_lookup, expand
from layerconf.group import ProviderGroup, ScopedProvider
from layerconf.loader import load_provider
from layerconf.provider import (
    DynamicProvider,
    MemoryProvider,
    Provider,
    StaticProvider,
    TreeProvider,
    ValueProvider,
    YAMLProvider,
)
from layerconf.resolve import ROOT
from layerconf.settings import LayerconfSettings, ProviderSettings
from layerconf.sources import ProviderSettingsSource
from layerconf.value import Value

__all__ = [
    "ROOT",
    # Providers
    "DynamicProvider",
    "MemoryProvider",
    "Provider",
    "ProviderGroup",
    "ScopedProvider",
    "StaticProvider",
    "TreeProvider",
    "ValueProvider",
    "YAMLProvider",
    "load_provider",
    # Values and decoding
    "ConfigUnmarshaler",
    "Decoder",
    "JSONUnmarshaler",
    "TextUnmarshaler",
    "Value",
    "config_field",
    # Placeholders
    "env_lookup",
    "expand",
    # Settings
    "LayerconfSettings",
    "ProviderSettings",
    "ProviderSettingsSource",
    # Exceptions
    "CallbackError",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConstructionError",
    "ConversionError",
    "CycleError",
    "DecodeError",
    "DuplicateConfigError",
    "MergeConflictError",
    "PlaceholderError",
    "SourceParseError",
]

"""Configuration document discovery and loading.

Parses YAML and TOML documents into trees, and discovers the files of a
layered config directory:

1. `base.yaml` (lowest priority)
2. `<environment>.yaml`
3. `secrets.yaml` (highest priority)
"""

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from layerconf.exceptions import (
    ConfigFileNotFoundError,
    DuplicateConfigError,
    SourceParseError,
)
from layerconf.expand import Lookup, expand
from layerconf.tree import Node, from_native

if TYPE_CHECKING:
    from layerconf.provider import YAMLProvider

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
SECRETS_LAYER = "secrets"


def get_config_dir() -> Path:
    """Get the config directory.

    Read from `LayerconfSettings`, so $LAYERCONF_CONFIG_DIR applies with the
    same rules as for the command line tool, falling back to ./config.

    Returns:
        Path to the config directory.
    """
    from layerconf.settings import LayerconfSettings

    return LayerconfSettings().config_dir


def _discover_layer(config_dir: Path, layer: str) -> Path | None:
    candidates = [config_dir / f"{layer}{suffix}" for suffix in YAML_SUFFIXES]
    existing = [path for path in candidates if path.is_file()]
    if len(existing) > 1:
        raise DuplicateConfigError([str(path) for path in existing])
    return existing[0] if existing else None


def discover_config_files(config_dir: Path, environment: str) -> list[Path]:
    """Discover the layered configuration files of a config directory.

    Looks for, in priority order (lowest first):
    - Base config: base.yaml OR base.yml (mutually exclusive)
    - Environment config: <environment>.yaml OR <environment>.yml
    - Secrets: secrets.yaml OR secrets.yml

    Args:
        config_dir: The directory to search in.
        environment: Name of the environment layer, e.g. "development".

    Returns:
        The existing files, lowest priority first.

    Raises:
        DuplicateConfigError: If both suffixes exist for the same layer.
    """
    files: list[Path] = []
    for layer in ("base", environment, SECRETS_LAYER):
        path = _discover_layer(config_dir, layer)
        if path is not None:
            files.append(path)
    return files


def is_secrets_file(path: Path) -> bool:
    """Check whether a path is the secrets layer of a config directory."""
    return path.stem == SECRETS_LAYER and path.suffix in YAML_SUFFIXES


def load_yaml_text(text: str, source: str = "<bytes>") -> Node:
    """Parse a YAML document into a tree.

    Raises:
        SourceParseError: If the document is not valid YAML.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SourceParseError(source, str(e)) from e

    try:
        return from_native(data)
    except TypeError as e:
        raise SourceParseError(source, str(e)) from e


def load_toml_text(text: str, source: str = "<bytes>") -> Node:
    """Parse a TOML document into a tree.

    Raises:
        SourceParseError: If the document is not valid TOML.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise SourceParseError(source, str(e)) from e

    return from_native(data)


def load_source(
    text: str,
    fmt: str = "yaml",
    source: str = "<bytes>",
    lookup: Lookup | None = None,
) -> Node:
    """Expand placeholders in a document and parse it.

    Args:
        text: The raw document.
        fmt: "yaml" or "toml".
        source: Name of the source for error messages.
        lookup: Placeholder lookup. If None, no expansion is done.

    Returns:
        The parsed tree. Empty documents give NULL.

    Raises:
        PlaceholderError: If a placeholder cannot be resolved.
        SourceParseError: If the document is malformed.
    """
    if lookup is not None:
        text = expand(text, lookup)

    if fmt == "yaml":
        return load_yaml_text(text, source)
    if fmt == "toml":
        return load_toml_text(text, source)
    raise ValueError(f"unsupported document format: {fmt}")


def load_file(path: Path, lookup: Lookup | None = None) -> Node:
    """Load a YAML or TOML file, chosen by suffix.

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist.
        SourceParseError: If the file is malformed.
    """
    if not path.is_file():
        raise ConfigFileNotFoundError(str(path))

    fmt = "toml" if path.suffix == ".toml" else "yaml"
    logger.debug(f"Loading {fmt} config from {path}")
    return load_source(path.read_text(encoding="utf-8"), fmt, str(path), lookup)


def load_provider(
    config_dir: Path | None = None,
    environment: str = "development",
    lookup: Lookup | None = None,
    explicit_files: tuple[Path, ...] = (),
) -> "YAMLProvider":
    """Build a provider from explicit files or a layered config directory.

    When explicit_files is provided, ONLY those files are used (no discovery).

    Args:
        config_dir: Directory to discover files in. Defaults to
            get_config_dir().
        environment: Name of the environment layer.
        lookup: Placeholder lookup, applied to every layer except secrets.
        explicit_files: Files to load instead of discovering them.

    Returns:
        The provider over the merged files.
    """
    from layerconf.provider import YAMLProvider

    if explicit_files:
        return YAMLProvider.from_files(*explicit_files, lookup=lookup)

    return YAMLProvider.from_directory(config_dir, environment, lookup)

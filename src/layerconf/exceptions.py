"""Configuration exceptions for layerconf."""


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConstructionError(ConfigError):
    """Raised when a provider cannot be built from its sources.

    Construction errors are fatal for the provider being built: no
    partially constructed provider is ever returned.
    """

    pass


class ConfigFileNotFoundError(ConstructionError):
    """Raised when an explicitly specified config file is not found."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Config file not found: {path}")


class DuplicateConfigError(ConstructionError):
    """Raised when conflicting config files exist for the same layer.

    For example, if both `base.yaml` and `base.yml` exist in the same
    config directory.
    """

    def __init__(self, files: list[str]) -> None:
        self.files = files
        super().__init__(
            f"Conflicting config files found: {', '.join(files)}. "
            "Only one should exist."
        )


class SourceParseError(ConstructionError):
    """Raised when a source document is malformed."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to parse {source}: {reason}")


class PlaceholderError(ConstructionError):
    """Raised when a `${NAME}` placeholder cannot be resolved."""

    def __init__(self, placeholder: str, reason: str) -> None:
        self.placeholder = placeholder
        super().__init__(f"Invalid placeholder {placeholder}: {reason}")


class MergeConflictError(ConstructionError):
    """Raised when a mapping is merged against a sequence or scalar."""

    def __init__(
        self,
        key: str,
        source_shape: str,
        destination_shape: str,
        source: str,
        destination: str,
    ) -> None:
        self.key = key
        super().__init__(
            f"can't merge {source_shape} and {destination_shape} for key "
            f'"{key}". Source: {source}. Destination: {destination}'
        )


class DecodeError(ConfigError):
    """Raised when a value cannot be decoded into its destination."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f'for key "{key}": {reason}')


class CycleError(DecodeError):
    """Raised when a destination graph re-enters itself while decoding."""

    def __init__(self, key: str) -> None:
        super().__init__(
            key,
            "cycles detected in destination, "
            "the object is already being populated on this path",
        )


class ConversionError(ConfigError):
    """Raised when a scalar cannot be converted to the requested type."""

    def __init__(self, source_type: str, target_type: str, detail: str = "") -> None:
        self.source_type = source_type
        self.target_type = target_type
        message = f'cannot convert "{source_type}" to "{target_type}"'
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CallbackError(ConfigError):
    """Raised for duplicate or unknown change-callback tokens."""

    pass

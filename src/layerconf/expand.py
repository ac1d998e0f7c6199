"""Placeholder expansion for raw configuration text.

Supported forms:

- `${NAME}`: replaced by the value of NAME; unresolved names are fatal.
- `${NAME:default}`: `default` is used verbatim (colons included) when NAME
  is unresolved.
- `${NAME:""}`: an explicitly empty default.

`${NAME:}` with nothing after the colon is rejected, so that an empty
default is always spelled out.
"""

import os
import re
from collections.abc import Callable

from layerconf.exceptions import PlaceholderError

Lookup = Callable[[str], str | None]

_PLACEHOLDER = re.compile(r"\$\{([^{}]*)\}")


def env_lookup(name: str) -> str | None:
    """Look up a placeholder in the process environment."""
    return os.environ.get(name)


def expand(text: str, lookup: Lookup) -> str:
    """Replace every `${...}` placeholder in `text`.

    Args:
        text: Raw document text.
        lookup: Returns the value for a name, or None when unresolved.

    Returns:
        The text with all placeholders replaced.

    Raises:
        PlaceholderError: If a placeholder without default is unresolved,
            has an empty name, or ends with a bare colon.
    """

    def replace(match: re.Match) -> str:
        placeholder = match.group(0)
        name, sep, default = match.group(1).partition(":")
        if not name:
            raise PlaceholderError(placeholder, "empty name")

        value = lookup(name)
        if value is not None:
            return value

        if not sep:
            raise PlaceholderError(placeholder, f"{name} is not set and has no default")
        if default == "":
            raise PlaceholderError(
                placeholder, 'default is empty, use "" for an empty string'
            )
        if default == '""':
            return ""
        return default

    return _PLACEHOLDER.sub(replace, text)

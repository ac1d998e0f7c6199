"""CLI for layerconf using Click.

Provides commands to inspect the merged configuration of a layered config
directory or of explicit files.
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml
from pydantic import ValidationError

from layerconf.exceptions import ConfigError
from layerconf.expand import env_lookup
from layerconf.loader import load_provider
from layerconf.provider import Provider
from layerconf.resolve import ROOT
from layerconf.settings import LayerconfSettings
from layerconf.tree import NULL, Scalar
from layerconf.value import Value


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _dump(data: object) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()


@click.group()
@click.option(
    "-d",
    "--dir",
    "config_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Config directory (default: $LAYERCONF_CONFIG_DIR or ./config)",
)
@click.option(
    "-e",
    "--env",
    "environment",
    default=None,
    help="Environment layer to load (default: development)",
)
@click.option(
    "-f",
    "--file",
    "files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Load this file (repeatable, skips discovery)",
)
@click.option(
    "--no-expand",
    is_flag=True,
    help="Do not expand ${NAME} placeholders",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Log loaded sources",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_dir: Path | None,
    environment: str | None,
    files: tuple[Path, ...],
    no_expand: bool,
    verbose: bool,
) -> None:
    """layerconf - Inspect layered YAML configuration."""
    # Ensure ctx.obj exists
    ctx.ensure_object(dict)

    # Flags override LAYERCONF_* environment variables
    overrides: dict[str, object] = {}
    if config_dir is not None:
        overrides["config_dir"] = config_dir
    if environment is not None:
        overrides["environment"] = environment
    if no_expand:
        overrides["expand_env"] = False
    if verbose:
        overrides["log_level"] = "DEBUG"

    try:
        settings = LayerconfSettings(**overrides)
    except ValidationError as e:
        _fail(str(e))

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        provider = load_provider(
            settings.config_dir,
            settings.environment,
            lookup=env_lookup if settings.expand_env else None,
            explicit_files=files,
        )
    except ConfigError as e:
        _fail(str(e))

    # Store in context for subcommands
    ctx.obj["settings"] = settings
    ctx.obj["provider"] = provider


def _lookup(ctx: click.Context, key: str) -> Value:
    provider: Provider = ctx.obj["provider"]
    value = provider.get(key)
    if not value.has_value() and key != ROOT:
        _fail(f"key not found: {key}")
    return value


@cli.command()
@click.argument("key")
@click.pass_context
def get(ctx: click.Context, key: str) -> None:
    """Print the value at KEY.

    Scalars are printed as text, containers as YAML.

    Examples:

        \b
        # Read a nested value
        layerconf get server.port

        \b
        # Read an element of a list
        layerconf -e production get hosts.0
    """
    value = _lookup(ctx, key)
    node = value.node

    if isinstance(node, Scalar):
        click.echo(str(value))
    elif node is NULL:
        click.echo("null")
    else:
        click.echo(_dump(value.value()))


@cli.command()
@click.argument("key", required=False, default=ROOT)
@click.pass_context
def keys(ctx: click.Context, key: str) -> None:
    """List the child keys at KEY (default: the root)."""
    for child in _lookup(ctx, key).child_keys():
        click.echo(child)


@cli.command()
@click.argument("key", required=False, default=ROOT)
@click.pass_context
def dump(ctx: click.Context, key: str) -> None:
    """Print the merged configuration at KEY as YAML."""
    value = _lookup(ctx, key)
    data = value.value()
    click.echo(_dump({} if data is None and key == ROOT else data))


if __name__ == "__main__":
    cli()

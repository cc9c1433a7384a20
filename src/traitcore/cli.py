"""TraitCore CLI - inspect trait closures and adoption graphs.

Commands:
    traitcore inspect MODULE:TRAIT   Show a trait's flattened replay order
    traitcore graph MODULE           Show the traits in a module and what they adopt
"""

from __future__ import annotations

import importlib
import json
import logging
import sys
from typing import Any

import click
import yaml

from traitcore import __version__
from traitcore.authoring import Trait
from traitcore.composition.errors import TraitError
from traitcore.config import configure_logging, get_config

FORMATS = click.Choice(["text", "json", "yaml"])


def _import_module(module_name: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        click.echo(f"Error: cannot import module '{module_name}': {exc}", err=True)
        sys.exit(1)


def _load_trait(target: str) -> Trait:
    """Resolve ``package.module:Name`` (dotted attribute paths allowed)."""
    if ":" not in target:
        click.echo(f"Error: expected MODULE:TRAIT, got '{target}'", err=True)
        sys.exit(1)
    module_name, attr_path = target.split(":", 1)
    obj: Any = _import_module(module_name)
    for part in attr_path.split("."):
        if not hasattr(obj, part):
            click.echo(f"Error: '{module_name}' has no attribute '{attr_path}'", err=True)
            sys.exit(1)
        obj = getattr(obj, part)
    if not isinstance(obj, Trait):
        click.echo(f"Error: '{target}' is not a trait", err=True)
        sys.exit(1)
    return obj


def _emit(data: dict, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(yaml.safe_dump(data, sort_keys=False).rstrip())


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Override TRAITCORE_LOG_LEVEL",
)
def main(log_level: str | None):
    """TraitCore - record-and-replay trait composition."""
    config = get_config(log_level=log_level) if log_level else get_config()
    configure_logging(config)
    # Composition events below warning are muted for CLI commands.
    logging.getLogger("traitcore.events").setLevel(logging.WARNING)


@main.command("inspect")
@click.argument("target")
@click.option("--format", "-f", "fmt", type=FORMATS, default="text", help="Output format")
def inspect_cmd(target: str, fmt: str):
    """Show the flattened closure of TARGET (``module:Trait``).

    Invocations are listed in the order they are dispatched on an adopting
    class; definitions in the order they are installed.

    Example:
        traitcore inspect myapp.traits:Addressable --format yaml
    """
    selected = _load_trait(target)
    try:
        composed = selected.closure()
    except TraitError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if fmt != "text":
        _emit(composed.to_dict(), fmt)
        return

    click.echo(f"Trait: {composed.trait_id}")
    click.echo(f"Traits: {', '.join(composed.traits)}")
    click.echo(f"Invocations ({len(composed.invocations)}):")
    for index, record in enumerate(composed.invocations, start=1):
        click.echo(f"  {index}. {record.describe()}  [{record.trait_id}]")
    click.echo(f"Definitions ({len(composed.definitions)}):")
    for record in composed.definitions:
        click.echo(f"  {record.name} ({record.kind})  [{record.trait_id}]")


@main.command("graph")
@click.argument("module_name")
@click.option("--format", "-f", "fmt", type=FORMATS, default="text", help="Output format")
def graph_cmd(module_name: str, fmt: str):
    """List traits defined in MODULE_NAME and the traits each adopts."""
    module = _import_module(module_name)
    traits = {
        attr: value for attr, value in vars(module).items() if isinstance(value, Trait)
    }
    if not traits:
        click.echo(f"No traits found in '{module_name}'", err=True)
        sys.exit(1)

    data = {
        "module": module_name,
        "traits": [
            {"name": attr, "id": value.trait_id, "adopts": list(value.adopted_traits)}
            for attr, value in traits.items()
        ],
    }
    if fmt != "text":
        _emit(data, fmt)
        return

    for entry in data["traits"]:
        adopts = ", ".join(entry["adopts"]) or "-"
        click.echo(f"{entry['id']} -> {adopts}")


if __name__ == "__main__":
    main()

"""
authctl - command line entry point for the provider.

Validates, plans and applies declared log streams and hooks, and manages
the local state file.
"""

import json
import logging
import sys
from typing import Any, Dict

import click
import requests
import yaml
from tabulate import tabulate

from config import ProviderConfig, get_config
from management.client import ManagementClient, ManagementError
from provider import ChangeAction, Provider, load_declarations
from resources.registry import get_registry, register_builtin_resources
from state import StateStore
from validation import ConfigurationError

logger = logging.getLogger(__name__)

SENSITIVE_PLACEHOLDER = "(sensitive)"

COMMAND_ERRORS = (
    ConfigurationError,
    ManagementError,
    ValueError,
    requests.RequestException,
)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _build_provider(with_client: bool = True) -> Provider:
    """Wire the provider from configuration."""
    if with_client:
        cfg = get_config()
        provider_config = cfg.provider
        client = ManagementClient.from_config(cfg.management)
    else:
        # Local-only commands do not need API credentials
        provider_config = ProviderConfig.from_env()
        client = None

    registry = register_builtin_resources(provider_config.enabled_resources)
    state = StateStore(provider_config.state_file).load()
    return Provider(client, registry=registry, state=state)


def _mask(attributes: Dict[str, Any], sensitive) -> Dict[str, Any]:
    """Replace sensitive attribute values, including inside nested blocks."""
    masked = {}
    for key, value in attributes.items():
        if key in sensitive:
            masked[key] = SENSITIVE_PLACEHOLDER
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            nested = {s.split(".", 1)[1] for s in sensitive if s.startswith(f"{key}.")}
            masked[key] = [_mask(element, nested) for element in value]
        else:
            masked[key] = value
    return masked


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _print_changes(changes) -> None:
    rows = [
        [change.address, change.action.value, change.reason]
        for change in changes
        if change.action is not ChangeAction.NOOP
    ]
    if not rows:
        click.echo("No changes. Resources are up to date.")
        return
    click.echo(tabulate(rows, headers=["Address", "Action", "Reason"], tablefmt="grid"))


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """authctl - manage log streams and hooks declaratively"""
    _setup_logging(log_level or ProviderConfig.from_env().log_level)


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
def validate(filename):
    """Validate a configuration file without contacting the API"""
    register_builtin_resources()
    try:
        declarations = load_declarations(filename)
    except ConfigurationError as e:
        _fail(str(e))
    errors = Provider(None, registry=get_registry()).validate(declarations)
    if errors:
        for error in errors:
            click.echo(error, err=True)
        sys.exit(1)
    click.echo(f"{len(declarations)} resource(s) valid")


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
def plan(filename):
    """Show the changes apply would make"""
    try:
        provider = _build_provider()
        _print_changes(provider.plan(load_declarations(filename)))
    except COMMAND_ERRORS as e:
        _fail(str(e))


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
def apply(filename):
    """Apply a configuration file"""
    try:
        provider = _build_provider()
        result = provider.apply(load_declarations(filename))
    except COMMAND_ERRORS as e:
        _fail(str(e))

    _print_changes(result.changes)
    if not result.success:
        for address, error in result.errors.items():
            click.echo(f"{address}: {error}", err=True)
        sys.exit(1)
    click.echo("Apply complete!")


@cli.command()
@click.confirmation_option(
    prompt="Are you sure you want to destroy all managed resources?"
)
def destroy():
    """Delete every resource tracked in state"""
    try:
        provider = _build_provider()
        result = provider.destroy()
    except COMMAND_ERRORS as e:
        _fail(str(e))

    click.echo(f"Destroyed {len(result.changes) - len(result.errors)} resource(s)")
    if not result.success:
        for address, error in result.errors.items():
            click.echo(f"{address}: {error}", err=True)
        sys.exit(1)


@cli.command(name="import")
@click.argument("type_name")
@click.argument("name")
@click.argument("resource_id")
def import_(type_name, name, resource_id):
    """Track an existing remote object as TYPE_NAME.NAME"""
    try:
        provider = _build_provider()
        entry = provider.import_resource(type_name, name, resource_id)
    except COMMAND_ERRORS as e:
        _fail(str(e))
    click.echo(f"Imported {entry.address} ({entry.id})")


@cli.command()
@click.option(
    "--output", "-o", type=click.Choice(["table", "json", "yaml"]), default="table"
)
def show(output):
    """Show resources tracked in state"""
    try:
        provider = _build_provider(with_client=False)
    except ValueError as e:
        _fail(str(e))

    entries = provider.state.entries()
    if output == "table":
        rows = [[e.address, e.type, e.id, "yes" if e.tainted else ""] for e in entries]
        click.echo(
            tabulate(rows, headers=["Address", "Type", "ID", "Tainted"], tablefmt="grid")
        )
        return

    data = {}
    for entry in entries:
        if provider.registry.has_resource(entry.type):
            sensitive = provider.registry.get_resource(entry.type).sensitive_attributes
        else:
            # Type not enabled; its sensitive attributes are unknown
            sensitive = set(entry.attributes)
        data[entry.address] = {
            "id": entry.id,
            "tainted": entry.tainted,
            "attributes": _mask(entry.attributes, sensitive),
        }
    if output == "yaml":
        click.echo(yaml.dump(data, default_flow_style=False))
    else:
        click.echo(json.dumps(data, indent=2))


@cli.command()
@click.argument("type_name")
@click.option(
    "--match", "-m", required=True, help="Delete objects whose name contains this"
)
@click.confirmation_option(
    prompt="Are you sure you want to delete matching remote objects?"
)
def sweep(type_name, match):
    """Delete remote objects by name, ignoring state (test clean-up)"""
    try:
        provider = _build_provider()
        deleted = provider.sweep(type_name, match)
    except COMMAND_ERRORS as e:
        _fail(str(e))
    click.echo(f"Deleted {len(deleted)} object(s)")


if __name__ == "__main__":
    cli()

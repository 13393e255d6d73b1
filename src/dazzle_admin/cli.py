"""
dazzle-admin CLI.

Inspect and manage a project's admin registry without running a server:

``dazzle-admin models``                  Registered models in display order.
``dazzle-admin fields MODEL``            A model's field descriptors.
``dazzle-admin records MODEL``           One page of formatted records.
``dazzle-admin show MODEL ID``           One record, every visible field.
``dazzle-admin order NAME [NAME ...]``   Persist a model display order.

The registry is loaded from ``--app module:attribute`` (or ``DAZZLE_ADMIN_APP``).
The attribute is a ``ModelRegistry`` or a callable returning one; a callable
with a ``settings`` parameter receives the configured SQLite settings store,
and the registry stores its display order under the configured ``order_key``.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dazzle_admin._version import get_version
from dazzle_admin.config import AdminConfig, ConfigError, load_config
from dazzle_admin.errors import AdminError
from dazzle_admin.formatting import CHECK_MARK, extract_field_value
from dazzle_admin.logging import get_logger, log_with_context, setup_logging
from dazzle_admin.pagination import PageRequest, load_page
from dazzle_admin.registry import DisplayOrder, ModelRegistry
from dazzle_admin.settings_store import SQLiteSettingsStore

logger = get_logger("cli")

app = typer.Typer(
    help="Inspect and manage the admin model registry",
    no_args_is_help=True,
)

console = Console()

# Module-level options set by the callback
_app_target: str | None = None
_manifest: Path | None = None


def version_callback(value: bool) -> None:
    if value:
        console.print(f"dazzle-admin {get_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    app_target: Annotated[
        str | None,
        typer.Option(
            "--app",
            "-a",
            envvar="DAZZLE_ADMIN_APP",
            help="Registry to load, as module:attribute",
        ),
    ] = None,
    manifest: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="dazzle.toml to read the [admin] table from"),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version",
        ),
    ] = None,
) -> None:
    """Inspect and manage the admin model registry."""
    global _app_target, _manifest
    _app_target = app_target
    _manifest = manifest


# =============================================================================
# Helpers
# =============================================================================


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{message}[/red]")
    return typer.Exit(1)


def _load_config() -> AdminConfig:
    try:
        config = load_config(_manifest)
    except ConfigError as e:
        raise _fail(e.message) from e
    setup_logging(config.log_dir, config.level)
    return config


def load_registry(
    target: str,
    settings: SQLiteSettingsStore | None = None,
    order_key: str | None = None,
) -> ModelRegistry:
    """
    Resolve a ``module:attribute`` registry target.

    A factory receives ``settings`` and ``order_key`` when its signature
    names them. Otherwise the loaded registry's display order is rebound to
    ``order_key``.

    Raises:
        ConfigError: The target cannot be imported or is not a registry
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ConfigError(f"Expected module:attribute, got '{target}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import {module_name}: {e}") from e

    obj = getattr(module, attribute, None)
    if obj is None:
        raise ConfigError(f"{module_name} has no attribute {attribute}")

    if callable(obj) and not isinstance(obj, ModelRegistry):
        parameters = inspect.signature(obj).parameters
        kwargs: dict[str, Any] = {}
        if settings is not None and "settings" in parameters:
            kwargs["settings"] = settings
        if order_key is not None and "order_key" in parameters:
            kwargs["order_key"] = order_key
        obj = obj(**kwargs)

    if not isinstance(obj, ModelRegistry):
        raise ConfigError(f"{target} did not produce a ModelRegistry")

    if order_key is not None and obj.display_order.key != order_key:
        obj.display_order = DisplayOrder(obj.display_order.store, order_key)
    return obj


def _get_registry(config: AdminConfig) -> ModelRegistry:
    """Load the registry named by --app."""
    if not _app_target:
        raise _fail("No registry given. Use --app module:attribute or set DAZZLE_ADMIN_APP.")
    try:
        return load_registry(
            _app_target,
            SQLiteSettingsStore(config.settings_db),
            order_key=config.order_key,
        )
    except ConfigError as e:
        raise _fail(e.message) from e


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except AdminError as e:
        raise _fail(e.message) from e


def _yes(value: bool) -> str:
    return CHECK_MARK if value else ""


# =============================================================================
# Commands
# =============================================================================


@app.command(name="models")
def models_command() -> None:
    """List registered models in display order."""
    registry = _get_registry(_load_config())
    configs = registry.list()

    if not configs:
        console.print("[dim]No models registered.[/dim]")
        return

    table = Table(title="Models")
    table.add_column("#", style="dim")
    table.add_column("Name")
    table.add_column("Plural")
    table.add_column("Icon")
    table.add_column("Fields", justify="right")

    for position, model in enumerate(configs, start=1):
        table.add_row(str(position), model.name, model.name_plural, model.icon, str(len(model.fields)))

    console.print(table)


@app.command(name="fields")
def fields_command(
    model: Annotated[str, typer.Argument(help="Model name (case-insensitive)")],
) -> None:
    """Show a model's field descriptors."""
    registry = _get_registry(_load_config())
    try:
        config = registry.get(model)
    except AdminError as e:
        raise _fail(e.message) from e

    table = Table(title=f"{config.name} fields")
    table.add_column("Name")
    table.add_column("Label")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Readonly")
    table.add_column("Hidden")

    for field in config.fields:
        name = f"{field.name} [dim](sensitive)[/dim]" if field.sensitive else field.name
        table.add_row(
            name,
            field.label,
            field.semantic_type.value,
            _yes(field.required),
            _yes(field.readonly),
            _yes(field.hidden),
        )

    console.print(table)


@app.command(name="records")
def records_command(
    model: Annotated[str, typer.Argument(help="Model name (case-insensitive)")],
    page: Annotated[int, typer.Option("--page", "-p", help="Page number")] = 1,
    per_page: Annotated[
        int | None, typer.Option("--per-page", "-n", help="Records per page")
    ] = None,
) -> None:
    """Show one page of a model's records."""
    admin_config = _load_config()
    registry = _get_registry(admin_config)
    try:
        config = registry.get(model)
    except AdminError as e:
        raise _fail(e.message) from e

    request = PageRequest.from_params(
        {"page": page, "per_page": per_page},
        default_per_page=admin_config.default_per_page,
        allowed_per_page=admin_config.allowed_per_page,
    )
    result = _run(load_page(config, None, request))

    if not result.records:
        console.print(f"[dim]No {config.name_plural.lower()} found.[/dim]")
        return

    columns = config.list_columns()
    table = Table(title=config.name_plural)
    for column in columns:
        table.add_column(column.label)
    for record in result.records:
        table.add_row(*(escape(extract_field_value(record, c.name) or "") for c in columns))

    console.print(table)
    console.print(
        f"\n[dim]Page {result.page} of {result.total_pages} "
        f"({result.total_count} {config.name_plural.lower()})[/dim]"
    )


@app.command(name="show")
def show_command(
    model: Annotated[str, typer.Argument(help="Model name (case-insensitive)")],
    record_id: Annotated[str, typer.Argument(help="Record ID")],
) -> None:
    """Show one record."""
    registry = _get_registry(_load_config())
    try:
        config = registry.get(model)
    except AdminError as e:
        raise _fail(e.message) from e

    record = _run(config.get(None, _parse_id(record_id)))

    console.print(f"[bold]{config.name} {record_id}[/bold]")
    for field in config.fields:
        if field.hidden or field.sensitive:
            continue
        value = extract_field_value(record, field.name)
        console.print(f"  {field.label + ':':<16} {escape(value or '')}")


def _parse_id(value: str) -> Any:
    """Integer ids stay integers; anything else (UUIDs, slugs) stays text."""
    try:
        return int(value)
    except ValueError:
        return value


@app.command(name="order")
def order_command(
    names: Annotated[list[str], typer.Argument(help="Model names in the desired order")],
) -> None:
    """Persist the model display order."""
    registry = _get_registry(_load_config())
    try:
        saved = registry.save_order(names)
    except AdminError as e:
        raise _fail(e.message) from e
    log_with_context(logger, logging.INFO, "Model order saved from CLI", models=saved)

    ignored = [n for n in names if n not in registry]
    if ignored:
        console.print(f"[yellow]Ignored unknown models: {', '.join(ignored)}[/yellow]")
    console.print(f"[green]✓[/green] Saved model order: {', '.join(saved)}")
    console.print(f"  Display order: {', '.join(registry.order)}")


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app(standalone_mode=True)


if __name__ == "__main__":
    main()

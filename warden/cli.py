"""CLI entry point for Warden."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from warden_core.config import AccessConfig, load_config
from warden_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from warden_core.engine import AccessEngine, create_engine

app = typer.Typer(
    name="warden",
    help="Role and attribute based access checks against a warden.yaml policy.",
)

config_app = typer.Typer(help="Manage Warden configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: AccessConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _configure_logging(cfg: AccessConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler])


def _get_config() -> AccessConfig:
    if _config is None:
        return load_config()
    return _config


def _get_engine() -> AccessEngine:
    return create_engine(_get_config())


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to warden.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(2)
    _configure_logging(_config)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False, sort_keys=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default warden.yaml in current directory."""
    target = Path("warden.yaml")
    if target.exists() and not force:
        rprint("[yellow]warden.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


@app.command()
def catalog(
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table or json")
    ] = "table",
) -> None:
    """List every concrete permission key (resource x action)."""
    engine = _get_engine()

    if format == "json":
        typer.echo(json.dumps([p.model_dump() for p in engine.permissions], indent=2))
        return

    if not engine.permissions:
        rprint("[yellow]No resources or actions configured.[/yellow]")
        return

    table = Table(title=f"Permission Catalog ({len(engine.permissions)} keys)")
    table.add_column("Key", style="cyan")
    table.add_column("Resource")
    table.add_column("Action")
    table.add_column("Description", style="dim")
    for p in engine.permissions:
        table.add_row(p.key, p.resource.name, p.action, p.resource.description or "-")
    rprint(table)


@app.command()
def permissions(
    role: str = typer.Argument(..., help="Role to inspect"),
) -> None:
    """Show the permission keys granted to a role."""
    engine = _get_engine()
    keys = engine.get_role_permissions(role)
    if not keys:
        rprint(f"[yellow]No permissions granted to {role!r}.[/yellow]")
        return
    for key in keys:
        rprint(f"  [cyan]{key}[/cyan]")


@app.command()
def check(
    roles: Annotated[list[str], typer.Argument(help="One or more roles")],
    permission: Annotated[str, typer.Option("--permission", "-p", help="Permission key to check")],
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Check whether any of the given roles may perform a permission."""
    engine = _get_engine()
    allowed = engine.can(roles, permission)

    if ci:
        typer.echo("ALLOW" if allowed else "DENY")
    elif allowed:
        rprint(f"[green]ALLOW[/green] {', '.join(roles)} -> {permission}")
    else:
        rprint(f"[red]DENY[/red] {', '.join(roles)} -> {permission}")

    if not allowed:
        raise typer.Exit(code=1)


@app.command()
def normalize(
    keys: Annotated[list[str], typer.Argument(help="Permission keys to validate")],
) -> None:
    """Print the keys that exist in the catalog, dropping the rest."""
    engine = _get_engine()
    valid = engine.normalize_permissions(keys)
    for key in valid:
        typer.echo(key)
    dropped = len(keys) - len(valid)
    if dropped:
        rprint(f"[dim]{dropped} key(s) not in catalog[/dim]")


if __name__ == "__main__":
    app()

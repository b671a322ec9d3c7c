"""Command-line interface for dotlink."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_CONFIG_FILENAME, ConfigError, load_config
from .deployer import Deployer, DeployError
from .file_state import FileState
from .manifest import ManifestError
from .models import DeployAction, DeployResult
from .templating import TemplateRenderError

app = typer.Typer(help="Deploy dotfiles as symlinks and rendered templates")
console = Console()


def _load_deployer(config: Path | None) -> Deployer:
    config_obj = load_config(config)
    return Deployer(config_obj)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        console.print("[red]Permission denied.[/red] Re-run the command with elevated privileges (e.g. `sudo`).")
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        message = str(exc)
        console.print(f"[red]{escape(message)}[/red]")
        if "does not exist" in message:
            console.print("[yellow]Use 'dotlink init --config <path>' to create a configuration file.[/yellow]")
        elif "Expected to find" in message:
            console.print(
                "[yellow]Make sure you pointed to the directory containing the config file, or to the file itself.[/yellow]"
            )
        raise typer.Exit(code=1)
    if isinstance(exc, ManifestError):
        console.print(f"[red]{escape(str(exc))}[/red]")
        console.print("[yellow]Remove the deployed-state file to start over from an empty state.[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, (DeployError, TemplateRenderError)):
        console.print(f"[red]{escape(str(exc))}[/red]")
        if "elevated privileges" in str(exc).lower():
            console.print("[yellow]Tip: try rerunning with `sudo` or drop the 'owner' setting.[/yellow]")
        raise typer.Exit(code=1)
    raise exc


def _format_results(results: Iterable[DeployResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Kind", no_wrap=True)
    table.add_column("Source", overflow="fold")
    table.add_column("Target", overflow="fold")
    table.add_column("Action", no_wrap=True)
    table.add_column("Details", overflow="fold")

    action_styles = {
        DeployAction.CREATED: "green",
        DeployAction.UPDATED: "cyan",
        DeployAction.UNCHANGED: "white",
        DeployAction.DELETED: "yellow",
        DeployAction.SKIPPED: "red",
    }

    for result in results:
        style = action_styles.get(result.action, "white")
        table.add_row(
            result.kind.value,
            result.source.as_posix(),
            str(result.target),
            f"[{style}]{result.action.value}[/{style}]",
            result.details or "",
        )

    console.print(table)


def _format_plan(state: FileState) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Kind", no_wrap=True)
    table.add_column("Source", overflow="fold")
    table.add_column("Target", overflow="fold")
    table.add_column("Plan", no_wrap=True)

    sections = (
        ("delete", "yellow", state.deleted_files()),
        ("create", "green", state.new_files()),
        ("keep", "white", state.old_files()),
    )
    for label, style, files in sections:
        for kind, descriptions in (("symlink", files.symlinks), ("template", files.templates)):
            for description in descriptions:
                table.add_row(
                    kind,
                    description.source.as_posix(),
                    str(description.target.target),
                    f"[{style}]{label}[/{style}]",
                )

    console.print(table)


def _discover_sources(config_dir: Path, config_name: str) -> list[str]:
    try:
        children = list(config_dir.iterdir())
    except FileNotFoundError:
        return []
    entries = [
        child.name
        for child in children
        if child.name != config_name and not child.name.startswith(".")
    ]
    return sorted(entries)


def _render_init_config(discovered: list[str]) -> str:
    if not discovered:
        return """# dotlink configuration

[settings]
cache_directory = ".dotlink/cache"
cache_file = ".dotlink/cache.toml"

[variables]
# name = "value"

[files]
# zshrc = "~/.zshrc"
# gitconfig = { target = "~/.gitconfig", type = "template" }
"""

    data = {
        "settings": {
            "cache_directory": ".dotlink/cache",
            "cache_file": ".dotlink/cache.toml",
        },
        "files": {name: f"~/.{name}" for name in discovered},
    }

    buffer = io.StringIO()
    buffer.write("# dotlink configuration\n\n")
    buffer.write(tomli_w.dumps(data))
    return buffer.getvalue()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every planned and applied change"),
) -> None:
    """Deploy dotfiles as symlinks and rendered templates."""

    _configure_logging(verbose)


@app.command()
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    discover: bool = typer.Option(
        False,
        "--discover/--no-discover",
        help="Add every file next to the config as a symlink to ~/.<name>",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter dotlink configuration file."""

    config_path = config
    if config_path.exists() and not force:
        console.print(f"[red]Configuration '{config_path}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    discovered = _discover_sources(config_path.parent, config_path.name) if discover else []

    config_path.write_text(_render_init_config(discovered))
    console.print(f"[green]Created '{config_path}'.[/green]")


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
) -> None:
    """Show which artifacts a deploy would delete, create, or keep."""

    try:
        deployer = _load_deployer(config)
        _format_plan(deployer.plan())
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def deploy(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
    force: bool = typer.Option(False, "--force", help="Replace targets that dotlink did not create"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without touching disk"),
) -> None:
    """Create, refresh, and remove symlinks and templates."""

    try:
        deployer = _load_deployer(config)
        results = deployer.deploy(force=force, dry_run=dry_run)
        _format_results(results)
        if any(result.action is DeployAction.SKIPPED for result in results):
            console.print("[yellow]Some entries were skipped. Review them or re-run with --force.[/yellow]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def undeploy(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to dotlink.toml"),
    force: bool = typer.Option(False, "--force", help="Remove targets even if they were modified"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without touching disk"),
) -> None:
    """Remove everything dotlink has deployed."""

    try:
        deployer = _load_deployer(config)
        results = deployer.undeploy(force=force, dry_run=dry_run)
        _format_results(results)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()

"""keepup CLI — run the supervisor, validate a config, show liveness."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from keepup.config import settings
from keepup.exceptions import ConfigLoadError, UnsupportedPlatformError

console = Console()

app = typer.Typer(
    name="keepup",
    help="keepup -- keep the processes in a config file running.",
    no_args_is_help=True,
)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _config_path(config: Optional[Path]) -> Path:
    return config if config is not None else settings.config_path


@app.command("run")
def run(
    config: Optional[Path] = typer.Argument(None, help="Config file (default: $KEEPUP_CONFIG_PATH or config.json)"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
):
    """Start missing processes and keep reapplying the config on change."""
    from keepup.serve import run as serve
    from keepup.watcher import WatchState

    _setup_logging(log_level or settings.log_level)
    run_settings = settings.model_copy(update={"config_path": _config_path(config)})

    try:
        state = asyncio.run(serve(run_settings))
    except UnsupportedPlatformError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(2)
    except KeyboardInterrupt:
        console.print("\n[dim]Supervisor stopped.[/dim]")
        return

    if state == WatchState.FAILED:
        raise typer.Exit(1)


@app.command("check")
def check(
    config: Path = typer.Argument(help="Config file to validate"),
):
    """Validate a config file and list its processes."""
    from keepup.loader import load_config

    try:
        cfg = load_config(config)
    except ConfigLoadError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{config.name}: {len(cfg.processes)} processes")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="white")
    table.add_column("Args", style="dim")
    for spec in cfg.processes:
        table.add_row(spec.name, spec.path, " ".join(spec.args))
    console.print(table)


@app.command("status")
def status(
    config: Optional[Path] = typer.Argument(None, help="Config file (default: $KEEPUP_CONFIG_PATH or config.json)"),
):
    """Show which configured processes the liveness probe sees."""
    from keepup.loader import load_config
    from keepup.processes.backend import create_backend, resolve_platform

    path = _config_path(config)
    try:
        cfg = load_config(path)
        backend = create_backend(resolve_platform(settings.platform), proc_root=settings.proc_root)
    except (ConfigLoadError, UnsupportedPlatformError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    async def _probe() -> list[tuple[bool, list[int]]]:
        try:
            return [
                (await backend.is_process_running(spec.name), await backend.running_pids(spec.name))
                for spec in cfg.processes
            ]
        finally:
            await backend.close()

    alive = asyncio.run(_probe())

    table = Table(title=f"Process status: {path.name}")
    table.add_column("Name", style="cyan")
    table.add_column("State")
    table.add_column("PIDs", style="magenta")
    table.add_column("Command", style="dim")
    for spec, (running, pids) in zip(cfg.processes, alive):
        table.add_row(
            spec.name,
            "[green]running[/green]" if running else "[red]not running[/red]",
            ", ".join(str(pid) for pid in sorted(pids)),
            " ".join(spec.argv),
        )
    console.print(table)


@app.command("version")
def version():
    """Show the keepup version."""
    from keepup import __version__
    console.print(f"keepup {__version__}")


def main() -> None:
    app()

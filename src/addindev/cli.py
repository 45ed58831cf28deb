"""Command-line interface for addin-dev."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from typer.core import TyperCommand, TyperOption

from . import __version__
from .config import (
    DEFAULT_CERTIFICATES_FOLDER,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_MANIFEST_FILENAME,
    DEFAULT_SHARE_NAME,
    SetupConfig,
    resolve_setup_config,
)
from .errors import AddinSetupError, ConfigError, ShellError
from .models import RemediationStep, SetupReport
from .pipeline import SetupPipeline
from .platforms import detect_platform
from .shell import ShellRunner

app = typer.Typer(help="Local development setup for Office Add-in projects")
setup_app = typer.Typer(help="Prepare this machine to sideload an Office Add-in")
console = Console()
err_console = Console(stderr=True, soft_wrap=True)


class OptionalCertificatesCommand(TyperCommand):
    """Command whose ``--certificates`` option may be given without a value."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        patched = False
        for param in self.params:
            if isinstance(param, TyperOption) and param.name == "certificates":
                # a bare -c takes the default folder, like an optional-value option
                param.is_flag = False
                param._flag_needs_value = True
                param.flag_value = DEFAULT_CERTIFICATES_FOLDER
                patched = True
        if not patched:
            raise RuntimeError(f"Command '{self.name}' has no --certificates option to make optional")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        lambda message: err_console.print(message, end="", markup=False, highlight=False),
        level=level,
        format="{level}: {message}",
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"addin-dev {__version__}")
        raise typer.Exit()


def _build_pipeline(config: SetupConfig) -> SetupPipeline:
    return SetupPipeline(
        config,
        detect_platform(),
        ShellRunner(timeout=config.shell_timeout),
        on_step=_print_step,
    )


def _print_step(index: int, total: int, title: str) -> None:
    console.print(f"[bold cyan][{index}/{total}][/bold cyan] {escape(title)}")


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, PermissionError):
        err_console.print(f"[red]Permission denied:[/red] {escape(str(exc))}")
        err_console.print("[yellow]Re-run the command from an elevated (administrator) prompt.[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    if isinstance(exc, AddinSetupError):
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        if isinstance(exc, ShellError) and "access is denied" in exc.output.lower():
            err_console.print("[yellow]Tip: sharing a folder requires an elevated (administrator) prompt.[/yellow]")
        raise typer.Exit(code=1)
    raise exc


def _print_report(report: SetupReport) -> None:
    for line in report.details:
        console.print(f"  {escape(line)}")
    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
    _print_remediation(report.notes)
    console.print("[green]Setup complete.[/green]")


def _print_remediation(notes: Iterable[RemediationStep]) -> None:
    notes = list(notes)
    if not notes:
        return
    console.print()
    console.print("[bold yellow]Some steps need to be finished manually:[/bold yellow]")
    for note in notes:
        console.print()
        console.print(f"[bold yellow]{escape(note.render())}[/bold yellow]")


def setup(
    manifests: list[Path] = typer.Argument(
        None,
        help="Manifest file(s) to link into the catalog (defaults to ./manifest.xml)",
        show_default=False,
    ),
    certificates: str | None = typer.Option(
        None,
        "--certificates",
        "-c",
        help="Generate development certificates into FOLDER (default: ./certificates)",
        metavar="[FOLDER]",
    ),
    config: Path | None = typer.Option(None, "--config", help="Path to addin-dev.toml"),
    force: bool = typer.Option(False, "--force", help="Regenerate certificates even if they already exist"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        hidden=True,
        help="Show the version and exit",
    ),
) -> None:
    """Create the add-in catalog, link manifests and optionally set up HTTPS certificates."""

    _configure_logging(log_level.upper())
    try:
        setup_config = resolve_setup_config(certificates, manifests or None, config_path=config, force=force)
        report = _build_pipeline(setup_config).run()
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return
    _print_report(report)


def _render_init_config(*, manifests: list[str], certificates: str | None) -> str:
    section: dict[str, object] = {"manifests": manifests}
    if certificates is not None:
        section["certificates"] = certificates
    section["share_name"] = DEFAULT_SHARE_NAME

    buffer = io.StringIO()
    buffer.write("# addin-dev configuration\n\n")
    buffer.write(tomli_w.dumps({"setup": section}))
    return buffer.getvalue()


@app.command(cls=OptionalCertificatesCommand)
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    manifest: list[str] = typer.Option(
        None,
        "--manifest",
        "-m",
        help="Manifest path to record (repeatable, default: manifest.xml)",
    ),
    certificates: str | None = typer.Option(
        None,
        "--certificates",
        "-c",
        help="Record a certificates folder so 'setup' always generates certificates",
        metavar="[FOLDER]",
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter addin-dev configuration file."""

    if config.exists() and not force:
        err_console.print(f"[red]Configuration '{escape(str(config))}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    config.parent.mkdir(parents=True, exist_ok=True)
    config.write_text(
        _render_init_config(manifests=manifest or [DEFAULT_MANIFEST_FILENAME], certificates=certificates),
        encoding="utf-8",
    )
    console.print(f"[green]Created '{escape(str(config))}'.[/green]")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Local development setup for Office Add-in projects."""


app.command(cls=OptionalCertificatesCommand)(setup)
setup_app.command(cls=OptionalCertificatesCommand)(setup)


def run() -> None:
    """Entry point used for the ``addin-dev`` console script."""

    app()


def run_setup() -> None:
    """Entry point used for the ``addin-setup`` console script."""

    setup_app()

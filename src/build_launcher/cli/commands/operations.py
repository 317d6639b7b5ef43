"""Commands that change the installed build."""

import asyncio

import typer
from loguru import logger

from build_launcher.cli.app import app
from build_launcher.cli.commands import command_utils
from build_launcher.cli.commands.command_utils import console, display_sync_summary, run_with_progress
from build_launcher.file_utils import FileError
from build_launcher.services import LauncherError

# Failures reported to the user as a message rather than a traceback
HANDLED_ERRORS = (LauncherError, FileError)


def _fail(action: str, error: Exception) -> None:
    logger.error(f"{action} failed: {error}")
    console.print(f"[red]✗ {action} failed: {error}[/red]")
    raise typer.Exit(1)


@app.command()
def install() -> None:
    """Download the published build, replacing any existing install."""
    try:
        report = asyncio.run(run_with_progress("Installing", lambda s, cb: s.install(cb)))
    except HANDLED_ERRORS as e:
        _fail("Install", e)
    else:
        display_sync_summary(report)


@app.command()
def verify() -> None:
    """Check every installed file and repair anything that differs."""
    try:
        report = asyncio.run(run_with_progress("Verifying", lambda s, cb: s.verify(cb)))
    except HANDLED_ERRORS as e:
        _fail("Verify", e)
    else:
        display_sync_summary(report)


@app.command()
def launch() -> None:
    """Update and check the build if needed, then start it."""
    try:
        asyncio.run(run_with_progress("Launching", lambda s, cb: s.launch(cb)))
    except HANDLED_ERRORS as e:
        _fail("Launch", e)
    else:
        console.print("[green]✓ Launched[/green]")


@app.command()
def delete(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Remove the installed build."""
    if not yes:
        typer.confirm("Delete the installed build?", abort=True)
    try:
        asyncio.run(run_with_progress("Deleting", lambda s, cb: s.delete(cb)))
    except HANDLED_ERRORS as e:
        _fail("Delete", e)
    else:
        console.print("[green]✓ Build deleted[/green]")


@app.command("open-folder")
def open_folder() -> None:
    """Open the install directory in the file browser."""

    async def _open():
        service = command_utils.create_launcher_service()
        try:
            return await service.open_install_folder()
        finally:
            await service.aclose()

    try:
        path = asyncio.run(_open())
    except (LauncherError, FileError, OSError) as e:
        _fail("Open folder", e)
    else:
        console.print(f"Opened {path}")

"""Status command for build-launcher CLI."""

import asyncio

import typer
from loguru import logger
from rich.panel import Panel
from rich.tree import Tree

from build_launcher.cli.app import app
from build_launcher.cli.commands import command_utils
from build_launcher.cli.commands.command_utils import console
from build_launcher.schemas import LauncherState
from build_launcher.sync import versions_match


def display_state(state: LauncherState, verbose: bool = False) -> None:
    """Display launcher state using Rich."""
    tree = Tree("[bold]Build[/bold]")

    if state.installed and state.local_version:
        tree.add(f"[green]Installed[/green] version {state.local_version.version}")
    else:
        tree.add("[yellow]Not installed[/yellow]")

    if state.remote_version:
        line = f"Published version {state.remote_version.version}"
        if state.installed and not versions_match(state.remote_version, state.local_version):
            line += " [yellow](update available)[/yellow]"
        tree.add(line)
    if state.remote_error:
        tree.add(f"[red]Remote unavailable:[/red] {state.remote_error}")

    tree.add(f"Size: {state.build_size_label}")
    tree.add(
        "Executable: [green]present[/green]"
        if state.executable_exists
        else "Executable: [red]missing[/red]"
    )
    if state.operation:
        tree.add(f"[cyan]Running: {state.operation.value}[/cyan]")

    if verbose:
        tree.add(f"Install directory: {state.install_dir}")
        tree.add(f"Manifest: {state.manifest_file}")
        if state.local_version:
            files = tree.add(f"Files ({state.local_version.total_files})")
            for entry in state.local_version.files:
                files.add(f"{entry.path} ({entry.content_hash[:8]})")

    console.print(Panel(tree, expand=False))


async def run_status(refresh: bool = False) -> LauncherState:
    service = command_utils.create_launcher_service()
    try:
        return await service.get_state(refresh=refresh)
    finally:
        await service.aclose()


@app.command()
def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed file information"),
    refresh: bool = typer.Option(False, "--refresh", help="Ignore the cached remote manifest"),
) -> None:
    """Show install state and the published version."""
    try:
        state = asyncio.run(run_status(refresh))
    except Exception as e:
        logger.error(f"Error checking status: {e}")
        typer.echo(f"Error checking status: {e}", err=True)
        raise typer.Exit(1)
    display_state(state, verbose)

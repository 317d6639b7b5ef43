"""utility functions for commands"""

from typing import Awaitable, Callable, TypeVar

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from build_launcher.config import get_config
from build_launcher.schemas import ProgressCallback, ProgressEvent
from build_launcher.services.launcher_service import LauncherService
from build_launcher.sync import SyncReport

console = Console()

T = TypeVar("T")


def create_launcher_service() -> LauncherService:
    """Build a launcher service from the environment's configuration."""
    return LauncherService.from_config(get_config())


async def run_with_progress(
    description: str,
    operation: Callable[[LauncherService, ProgressCallback], Awaitable[T]],
) -> T:
    """Run one launcher operation, rendering its progress events as a bar."""
    service = create_launcher_service()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task(description, total=100)

            def on_progress(event: ProgressEvent) -> None:
                progress.update(task, completed=event.percent, description=event.status or description)

            return await operation(service, on_progress)
    finally:
        await service.aclose()


def display_sync_summary(report: SyncReport) -> None:
    """Display a one-line summary of a sync."""
    if report.total_changes == 0:
        console.print(f"[green]Version {report.version}: everything up to date[/green]")
        return

    # Format as: "Version X: A downloaded, B removed, C unchanged"
    changes = []
    if report.downloaded:
        changes.append(f"[yellow]{len(report.downloaded)} downloaded[/yellow]")
    if report.removed:
        changes.append(f"[red]{len(report.removed)} removed[/red]")
    if report.checked:
        changes.append(f"[green]{len(report.checked)} unchanged[/green]")

    console.print(f"Version {report.version}: {', '.join(changes)}")

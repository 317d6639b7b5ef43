from typing import Optional

import typer

from build_launcher.config import get_config


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import build_launcher

        config = get_config()
        typer.echo(f"build-launcher version: {build_launcher.__version__}")
        typer.echo(f"Install path: {config.install_dir}")
        raise typer.Exit()


app = typer.Typer(name="build-launcher", no_args_is_help=True)


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """build-launcher - install, verify and launch the published build."""

"""Main CLI entry point for build-launcher."""  # pragma: no cover

from build_launcher.cli.app import app  # pragma: no cover
from build_launcher.config import get_config  # pragma: no cover
from build_launcher.utils import setup_logging  # pragma: no cover

# Register commands
from build_launcher.cli.commands import operations, status  # pragma: no cover

__all__ = ["operations", "status"]  # pragma: no cover


def main() -> None:  # pragma: no cover
    config = get_config()
    setup_logging(log_file=config.log_path, log_level=config.log_level, console=False)
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

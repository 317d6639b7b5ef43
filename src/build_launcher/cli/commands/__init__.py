"""CLI commands for build-launcher."""

from . import operations, status

__all__ = ["operations", "status"]

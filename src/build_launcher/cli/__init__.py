"""Command line interface for build-launcher."""

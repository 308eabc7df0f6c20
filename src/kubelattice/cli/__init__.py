"""Command line interface."""

from kubelattice.cli.main import cli

__all__ = ["cli"]

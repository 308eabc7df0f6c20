"""kubelattice - Build VPC Lattice resource models from Kubernetes Gateway API objects."""

from kubelattice.cli import cli

__version__ = "0.1.0"
__all__ = ["cli"]

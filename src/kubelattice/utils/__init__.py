"""Utility functions."""

from kubelattice.utils.config import ControllerConfig, load_config
from kubelattice.utils.logging import setup_logging

__all__ = ["ControllerConfig", "load_config", "setup_logging"]

"""Command line interface."""

from .main import app, run

__all__ = ["app", "run"]

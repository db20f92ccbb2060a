"""Console rendering for the translation preview."""

from .console import ConsoleManager

__all__ = ["ConsoleManager"]

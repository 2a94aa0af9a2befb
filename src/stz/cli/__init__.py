"""Command line interface for stz."""

from .dispatcher import main

__all__ = ["main"]

"""Utility helpers shared by the engine entry points."""

from .logging import configure_logging

__all__ = ["configure_logging"]

"""Diagnostics logger and shared console for plantilog."""

from .logger import console, logger

__all__ = ["console", "logger"]

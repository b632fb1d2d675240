"""Diagnostics logging for the plantilog library.

This module sets up a rich-formatted logger used by plantilog to report its
own internal events (origin resolution fallbacks, database connection and
insert failures). It is separate from the log lines plantilog produces for
its users: those are written by the sinks, the console sink printing through
the shared rich console defined here.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Shared console used by the console sink for user log lines
console = Console()

# Diagnostics go to stderr so they never mix with console sink output
diagnostics_console = Console(stderr=True)

# Create plantilog-specific logger instance with its own RichHandler
logger = logging.getLogger("plantilog")
logger.addHandler(
    RichHandler(console=diagnostics_console, rich_tracebacks=True, show_path=False)
)
logger.setLevel(logging.WARNING)
logger.propagate = False

__all__ = ["console", "logger"]

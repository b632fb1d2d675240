"""Configuration settings for plantilog.

This module holds the package-wide defaults used when a logger is built
without explicit arguments, and the global configuration functions for the
library's diagnostics logger and for the console sink's output stream.
"""

import logging

from plantilog.logging.logger import console
from plantilog.logging.logger import logger as diagnostics_logger

DEFAULT_FILE = "logger.log"
DEFAULT_DIRECTORY = "./"
DEFAULT_ENCODING = "utf-8"

# Existing targets with another extension are never appended to
LOG_EXTENSION = ".log"

DEFAULT_FORMAT = "(%{T})[%{D}-%{M}-%{Y}, %{H}:%{i}] - %{R}"
DEFAULT_ERROR_FORMAT = (
    "(%{T})[%{D}-%{M}-%{Y}, %{H}:%{i}]( %{N} {%{F},%{L}} [%{E}] - {%{A}}) - %{R}"
)


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure the level of plantilog's own diagnostics logger.

    Args:
        level: Logging level for plantilog diagnostics. Default: WARNING, which
               hides the DEBUG records emitted on origin resolution fallbacks
               and on database insert failures.

    Note:
        This only affects messages about plantilog itself, never the lines
        written by the console, file or database sinks.
    """
    diagnostics_logger.setLevel(level)


def configure_console(stderr: bool = False) -> None:
    """Select the stream the console sink prints to.

    Args:
        stderr: If True, console sink lines go to standard error instead of
                standard output.
    """
    console.stderr = stderr


def configure_plantilog(log_level: int = logging.WARNING, stderr: bool = False) -> None:
    """Configure all plantilog global settings in one call.

    Args:
        log_level: Logging level for plantilog diagnostics.
        stderr: Route console sink output to standard error.
    """
    configure_logging(log_level)
    configure_console(stderr)


# Apply default configuration when plantilog is imported
configure_plantilog()

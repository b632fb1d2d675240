"""plantilog: template-driven logging to the console, files and databases.

Log lines are described by format strings with ``%{X}`` placeholders
(timestamp parts, level, message, origin, error details and colours). Each
line is attributed to the code that emitted it, and can be written to the
console, appended to a log file, or handed to a user supplied database
insert callback.
"""

# Configure the diagnostics logger and console (must be done before other imports)
from . import config
from .api.errors import (
    ConfigInvalidError,
    ConnectionFailedError,
    FieldMissingError,
    LoggerError,
)
from .api.levels import LogLevel

# Expose the logger facades and their configuration types
from .api.loggers import Logger, LoggerDB
from .api.records import LogData
from .api.settings import LoggerConfig, LoggerDBConfig

# Expose template and origin utilities
from .api.origin import OriginInfo, capture_call_site, resolve_origin
from .api.templates import Renderer, TemplateCompiler, compile_template
from .utils.colors import ANSI_PALETTE, EMPTY_PALETTE, ColorPalette

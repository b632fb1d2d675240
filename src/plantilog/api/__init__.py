"""API module for plantilog loggers, templates and sinks."""

from .errors import (
    LoggerError,
    ConfigInvalidError,
    ConnectionFailedError,
    FieldMissingError,
)
from .levels import LogLevel
from .templates import TemplateCompiler, Renderer, compile_template
from .origin import OriginInfo, CallSite, capture_call_site, resolve_origin
from .classifier import is_logger_synthetic
from .records import LogData
from .settings import LoggerConfig, LoggerDBConfig, merge_config
from .loggers import Logger, LoggerDB

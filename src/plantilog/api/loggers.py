"""Logger facades exposing the leveled entry points.

Logger writes to the console and to a log file; LoggerDB adds a database
sink fed through injected callbacks. Each entry point is named after its
level and sink, e.g. ``info_consola``, ``aviso_archivo`` or
``error_base_datos``, and takes the same arguments:

- ``msg``: the message, any object with a string representation;
- ``config``: optional per-call override (LoggerConfig, LoggerDBConfig or a
  mapping of their fields);
- ``error``: optional exception to report. Without one, the logger captures
  the call site so the line is still attributed to the caller.

Formats use the placeholder mini-language documented in
:mod:`plantilog.api.templates`. A logger instance may be shared between
threads for logging, but reconfiguring it (templates, level, target file,
connection) while other threads emit is not synchronised and is up to the
caller to avoid.
"""

import re
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console

from plantilog.api.database import (
    CheckConnection,
    DatabaseSink,
    InsertErrorObserver,
    InsertLog,
    default_check_connection,
    default_insert,
)
from plantilog.api.levels import LogLevel
from plantilog.api.origin import LOGGER_FRAME_SIGNATURE, CapturedError
from plantilog.api.pipeline import EmissionPipeline
from plantilog.api.settings import LoggerSettings
from plantilog.api.sinks import ConsoleSink, FileSink, Override
from plantilog.api.templates import TemplateCompiler
from plantilog.config import (
    DEFAULT_DIRECTORY,
    DEFAULT_ENCODING,
    DEFAULT_ERROR_FORMAT,
    DEFAULT_FILE,
    DEFAULT_FORMAT,
)
from plantilog.utils.validation import PathLike


class Logger:
    """Leveled logging to the console and to a log file.

    Attributes:
        ruta: Directory of the log file. Assigning it moves the current file
              name into the new directory.
        fichero: Absolute path of the log file. Only the name of an assigned
                 path is kept; the file always lives in ``ruta``.
        formato: Format used for plain log calls.
        formato_error: Format used when a genuine error is logged.
        nivel: Threshold; calls below it are ignored.
        codificacion: Encoding of the log file.

    Examples:
        >>> logger = Logger(nivel=LogLevel.INFO)
        >>> logger.info_consola("hello")
        (INFO)[7-3-2025, 9:05] - hello
        >>> try:
        ...     open("missing.txt")
        ... except OSError as e:
        ...     logger.error_archivo("could not read input", error=e)
    """

    def __init__(
        self,
        fichero: PathLike = DEFAULT_FILE,
        ruta: PathLike = DEFAULT_DIRECTORY,
        nivel: Union[LogLevel, int, str] = LogLevel.ALL,
        formato: str = DEFAULT_FORMAT,
        formato_error: str = DEFAULT_ERROR_FORMAT,
        codificacion: str = DEFAULT_ENCODING,
        compiler: Optional[TemplateCompiler] = None,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize the logger, validating every setting.

        Args:
            fichero: Log file name. Default: "logger.log".
            ruta: Directory of the log file. Default: the working directory.
            nivel: Threshold level. Default: LogLevel.ALL.
            formato: Format for plain log calls.
            formato_error: Format for calls reporting a genuine error.
            codificacion: Encoding of the log file. Default: "utf-8".
            compiler: Template compiler to use instead of a default one.
            console: Rich console for the console sink instead of the shared
                     one.

        Raises:
            ConfigInvalidError: If the directory, file, level or encoding is
                                invalid.
        """
        self._settings = LoggerSettings(
            fichero=fichero,
            ruta=ruta,
            nivel=nivel,
            formato=formato,
            formato_error=formato_error,
            codificacion=codificacion,
            compiler=compiler,
        )
        self._pipeline = EmissionPipeline(self._settings)
        self._consola = ConsoleSink(self._pipeline, console)
        self._archivo = FileSink(self._pipeline)

    @property
    def ruta(self) -> Path:
        return self._settings.ruta

    @ruta.setter
    def ruta(self, ruta: PathLike) -> None:
        self._settings.ruta = ruta

    @property
    def fichero(self) -> Path:
        return self._settings.fichero

    @fichero.setter
    def fichero(self, fichero: PathLike) -> None:
        self._settings.fichero = fichero

    @property
    def formato(self) -> str:
        return self._settings.formato.template

    @formato.setter
    def formato(self, formato: str) -> None:
        self._settings.formato = formato

    @property
    def formato_error(self) -> str:
        return self._settings.formato_error.template

    @formato_error.setter
    def formato_error(self, formato_error: str) -> None:
        self._settings.formato_error = formato_error

    @property
    def nivel(self) -> LogLevel:
        return self._settings.nivel

    @nivel.setter
    def nivel(self, nivel: Union[LogLevel, int, str]) -> None:
        self._settings.nivel = nivel

    @property
    def codificacion(self) -> str:
        return self._settings.codificacion

    @codificacion.setter
    def codificacion(self, codificacion: str) -> None:
        self._settings.codificacion = codificacion

    @property
    def exp_logger(self) -> re.Pattern:
        """Pattern identifying the logger's own frames in a trace."""
        return LOGGER_FRAME_SIGNATURE

    @property
    def pipeline(self) -> EmissionPipeline:
        """Emission steps shared by this logger's sinks."""
        return self._pipeline

    # Console

    def log_consola(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print a LOG line to the console."""
        self._consola.emit(LogLevel.LOG, LogLevel.LOG.label, msg, config, error)

    def info_consola(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print an INFO line to the console."""
        self._consola.emit(LogLevel.INFO, LogLevel.INFO.label, msg, config, error)

    def aviso_consola(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print a warning (AVISO) line to the console."""
        self._consola.emit(LogLevel.WARN, LogLevel.WARN.label, msg, config, error)

    def error_consola(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print an ERROR line to the console."""
        self._consola.emit(LogLevel.ERROR, LogLevel.ERROR.label, msg, config, error)

    def fatal_consola(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print a FATAL line to the console."""
        self._consola.emit(LogLevel.FATAL, LogLevel.FATAL.label, msg, config, error)

    # File

    def log_archivo(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append a LOG line to the log file.

        Raises:
            ConfigInvalidError: If the override's file or encoding is invalid.
        """
        self._archivo.emit(LogLevel.LOG, LogLevel.LOG.label, msg, config, error)

    def info_archivo(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append an INFO line to the log file."""
        self._archivo.emit(LogLevel.INFO, LogLevel.INFO.label, msg, config, error)

    def aviso_archivo(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append a warning (AVISO) line to the log file."""
        self._archivo.emit(LogLevel.WARN, LogLevel.WARN.label, msg, config, error)

    def error_archivo(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append an ERROR line to the log file."""
        self._archivo.emit(LogLevel.ERROR, LogLevel.ERROR.label, msg, config, error)

    def fatal_archivo(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append a FATAL line to the log file."""
        self._archivo.emit(LogLevel.FATAL, LogLevel.FATAL.label, msg, config, error)


class LoggerDB(Logger):
    """Logger with an additional database sink.

    The database entry points are coroutines. Awaiting one waits for the
    level gate, the configuration merge and, when the override carries a new
    connection configuration, its connection check; the insert itself is
    started without being awaited.

    Build instances with :meth:`crear` to have the initial connection
    configuration checked; the constructor does not check it.

    Examples:
        >>> async def insert(line, config, data, logger):
        ...     await config["pool"].execute("INSERT INTO logs VALUES ($1)", line)
        >>> logger = await LoggerDB.crear({"pool": pool}, insert)
        >>> await logger.info_base_datos("stored")
    """

    def __init__(
        self,
        config_conexion: Any = None,
        funcion_insertar_log: InsertLog = default_insert,
        funcion_comprobar_conexion: CheckConnection = default_check_connection,
        fichero: PathLike = DEFAULT_FILE,
        ruta: PathLike = DEFAULT_DIRECTORY,
        nivel: Union[LogLevel, int, str] = LogLevel.ALL,
        formato: str = DEFAULT_FORMAT,
        formato_error: str = DEFAULT_ERROR_FORMAT,
        codificacion: str = DEFAULT_ENCODING,
        compiler: Optional[TemplateCompiler] = None,
        console: Optional[Console] = None,
        on_insert_error: Optional[InsertErrorObserver] = None,
    ) -> None:
        """Initialize the logger without checking the connection.

        Args:
            config_conexion: Connection configuration handed to the callbacks.
                             Default: an empty dict.
            funcion_insertar_log: ``insert(line, config, data, logger)``.
                                  Default: a callback storing nothing.
            funcion_comprobar_conexion: ``check(config, logger) -> bool``.
                                        Default: a check that always succeeds.
            on_insert_error: Optional ``observer(exc, data)`` told about
                             failed inserts.

        The remaining arguments are those of :class:`Logger`.

        Raises:
            ConfigInvalidError: If a setting is invalid or a callback has the
                                wrong signature.
        """
        super().__init__(
            fichero=fichero,
            ruta=ruta,
            nivel=nivel,
            formato=formato,
            formato_error=formato_error,
            codificacion=codificacion,
            compiler=compiler,
            console=console,
        )
        self._base_datos = DatabaseSink(
            self._pipeline,
            self,
            config_conexion=config_conexion,
            funcion_insertar=funcion_insertar_log,
            funcion_comprobar=funcion_comprobar_conexion,
            on_insert_error=on_insert_error,
        )

    @classmethod
    async def crear(
        cls,
        config_conexion: Any = None,
        funcion_insertar_log: InsertLog = default_insert,
        funcion_comprobar_conexion: CheckConnection = default_check_connection,
        **kwargs: Any,
    ) -> "LoggerDB":
        """Create a LoggerDB after checking its connection configuration.

        Takes the same arguments as the constructor.

        Raises:
            ConnectionFailedError: If the connection check fails.
        """
        logger = cls(
            config_conexion, funcion_insertar_log, funcion_comprobar_conexion, **kwargs
        )
        await logger._base_datos.check_connection(logger.config_conexion)
        return logger

    @property
    def config_conexion(self) -> Any:
        return self._base_datos.config_conexion

    async def establecer_config_conexion(self, config_conexion: Any) -> None:
        """Check and then adopt a new connection configuration.

        Raises:
            ConnectionFailedError: If the check fails; the previous
                                   configuration is kept.
        """
        await self._base_datos.set_connection_config(config_conexion)

    @property
    def funcion_insertar_log(self) -> InsertLog:
        return self._base_datos.funcion_insertar

    @funcion_insertar_log.setter
    def funcion_insertar_log(self, funcion: InsertLog) -> None:
        self._base_datos.funcion_insertar = funcion

    @property
    def funcion_comprobar_conexion(self) -> CheckConnection:
        return self._base_datos.funcion_comprobar

    @funcion_comprobar_conexion.setter
    def funcion_comprobar_conexion(self, funcion: CheckConnection) -> None:
        self._base_datos.funcion_comprobar = funcion

    @property
    def on_insert_error(self) -> Optional[InsertErrorObserver]:
        return self._base_datos.on_insert_error

    @on_insert_error.setter
    def on_insert_error(self, observer: Optional[InsertErrorObserver]) -> None:
        self._base_datos.on_insert_error = observer

    @property
    def pending_inserts(self) -> int:
        """Number of inserts started and not yet finished."""
        return self._base_datos.pending

    # Database

    async def log_base_datos(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Store a LOG entry in the database.

        Raises:
            ConfigInvalidError: If an override callback has a bad signature.
            ConnectionFailedError: If the override's connection config fails
                                   its check.
        """
        await self._base_datos.emit(
            LogLevel.LOG, LogLevel.LOG.label, msg, config, error
        )

    async def info_base_datos(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Store an INFO entry in the database."""
        await self._base_datos.emit(
            LogLevel.INFO, LogLevel.INFO.label, msg, config, error
        )

    async def aviso_base_datos(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Store a warning (AVISO) entry in the database."""
        await self._base_datos.emit(
            LogLevel.WARN, LogLevel.WARN.label, msg, config, error
        )

    async def error_base_datos(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Store an ERROR entry in the database."""
        await self._base_datos.emit(
            LogLevel.ERROR, LogLevel.ERROR.label, msg, config, error
        )

    async def fatal_base_datos(
        self,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Store a FATAL entry in the database."""
        await self._base_datos.emit(
            LogLevel.FATAL, LogLevel.FATAL.label, msg, config, error
        )

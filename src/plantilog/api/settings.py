"""Logger settings and per-call configuration merging.

A logger keeps validated defaults (directory, file, templates, threshold and
encoding) in a LoggerSettings instance. Every log call may pass an override;
merge_config combines the two into a fresh EffectiveConfig for that call
only, re-validating whatever the override replaces. The instance defaults are
never modified by a log call.
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Type, TypeVar, Union

from plantilog.api.errors import ConfigInvalidError
from plantilog.api.levels import LogLevel
from plantilog.api.templates import Renderer, TemplateCompiler
from plantilog.config import (
    DEFAULT_DIRECTORY,
    DEFAULT_ENCODING,
    DEFAULT_ERROR_FORMAT,
    DEFAULT_FILE,
    DEFAULT_FORMAT,
)
from plantilog.utils.colors import ColorPalette
from plantilog.utils.validation import (
    PathLike,
    check_directory,
    check_encoding,
    check_file,
)


@dataclass
class LoggerConfig:
    """Per-call override for the console and file sinks.

    Every field left as None falls back to the logger's default.

    Attributes:
        fichero: Target file name (file sink only).
        formato: Format string used instead of the logger's templates.
        colores: Colour palette (console sink only).
        codificacion: Text encoding (file sink only).
    """

    fichero: Optional[str] = None
    formato: Optional[str] = None
    colores: Optional[ColorPalette] = None
    codificacion: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.colores, Mapping):
            self.colores = ColorPalette(**self.colores)


@dataclass
class LoggerDBConfig(LoggerConfig):
    """Per-call override for the database sink.

    Attributes:
        config_conexion: Connection configuration, checked before use.
        funcion_comprobar: Connection check used for ``config_conexion``.
        funcion_insertar: Insert callback used for this call.
    """

    config_conexion: Optional[Any] = None
    funcion_comprobar: Optional[Callable[..., Any]] = None
    funcion_insertar: Optional[Callable[..., Any]] = None


@dataclass(frozen=True)
class EffectiveConfig:
    """Settings in force for a single log call."""

    fichero: Path
    formato: Renderer
    colores: ColorPalette
    codificacion: str


@dataclass(frozen=True)
class EffectiveDBConfig(EffectiveConfig):
    """Settings in force for a single database log call."""

    config_conexion: Any = None
    funcion_insertar: Optional[Callable[..., Any]] = None


ConfigT = TypeVar("ConfigT", bound=LoggerConfig)


def as_override(
    config: Union[ConfigT, Mapping[str, Any], None], kind: Type[ConfigT]
) -> ConfigT:
    """Normalise a per-call override into a private copy of ``kind``.

    Args:
        config: An override dataclass, a mapping of its field names, or None.
        kind: LoggerConfig or LoggerDBConfig.

    Returns:
        A new override instance; the caller's object is never modified.
    """
    if config is None:
        return kind()
    if isinstance(config, LoggerConfig):
        # Shallow on purpose: palettes are frozen and connection configs opaque
        values = {f.name: getattr(config, f.name) for f in dataclasses.fields(config)}
        known = {f.name for f in dataclasses.fields(kind)}
        return kind(**{k: v for k, v in values.items() if k in known})
    try:
        return kind(**config)
    except TypeError as e:
        raise ConfigInvalidError(f"Invalid logger configuration: {e}") from e


class LoggerSettings:
    """Validated defaults of a logger instance.

    Setters run the same checks as construction, so an invalid assignment
    raises ConfigInvalidError and leaves the previous value in place.
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
    ) -> None:
        self.compiler = compiler or TemplateCompiler()
        self._ruta = check_directory(ruta)
        self._fichero = check_file(fichero, self._ruta)
        self._formato = self.compiler.compile(formato)
        self._formato_error = self.compiler.compile(formato_error)
        self._nivel = LogLevel.from_value(nivel)
        self._codificacion = check_encoding(codificacion)

    @property
    def ruta(self) -> Path:
        return self._ruta

    @ruta.setter
    def ruta(self, ruta: PathLike) -> None:
        # The current file name moves to the new directory
        directory = check_directory(ruta)
        self._fichero = check_file(self._fichero.name, directory)
        self._ruta = directory

    @property
    def fichero(self) -> Path:
        return self._fichero

    @fichero.setter
    def fichero(self, fichero: PathLike) -> None:
        self._fichero = check_file(fichero, self._ruta)

    @property
    def formato(self) -> Renderer:
        return self._formato

    @formato.setter
    def formato(self, formato: str) -> None:
        self._formato = self.compiler.compile(formato)

    @property
    def formato_error(self) -> Renderer:
        return self._formato_error

    @formato_error.setter
    def formato_error(self, formato_error: str) -> None:
        self._formato_error = self.compiler.compile(formato_error)

    @property
    def nivel(self) -> LogLevel:
        return self._nivel

    @nivel.setter
    def nivel(self, nivel: Union[LogLevel, int, str]) -> None:
        self._nivel = LogLevel.from_value(nivel)

    @property
    def codificacion(self) -> str:
        return self._codificacion

    @codificacion.setter
    def codificacion(self, codificacion: str) -> None:
        self._codificacion = check_encoding(codificacion)


def merge_config(
    settings: LoggerSettings,
    override: LoggerConfig,
    synthetic: bool,
    fallback_palette: ColorPalette,
) -> EffectiveConfig:
    """Combine instance defaults with a per-call override.

    Args:
        settings: The logger's defaults.
        override: Override for this call. Fields the calling sink does not
                  use should already be cleared.
        synthetic: Whether the captured error is a call-site marker; selects
                   the normal template, otherwise the error template.
        fallback_palette: Palette used when the override has none.

    Returns:
        EffectiveConfig: Settings for this call.

    Raises:
        ConfigInvalidError: If the override's file or encoding is invalid.
    """
    if override.formato:
        formato = settings.compiler.compile(override.formato)
    else:
        formato = settings.formato if synthetic else settings.formato_error

    return EffectiveConfig(
        fichero=(
            check_file(override.fichero, settings.ruta)
            if override.fichero
            else settings.fichero
        ),
        formato=formato,
        colores=override.colores or fallback_palette,
        codificacion=(
            check_encoding(override.codificacion)
            if override.codificacion
            else settings.codificacion
        ),
    )

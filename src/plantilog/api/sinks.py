"""Console and file sink dispatchers.

Each dispatcher holds a reference to its logger's EmissionPipeline and only
adds the sink-specific parts: which override fields apply, which palette is
the fallback, and the write itself. Writes are synchronous and failures
propagate to the caller.
"""

import dataclasses
from typing import Any, Mapping, Optional, Union

from rich.console import Console, ConsoleOptions, RenderResult
from rich.segment import Segment

from plantilog.api.levels import LogLevel
from plantilog.api.origin import CapturedError, capture_call_site
from plantilog.api.pipeline import EmissionPipeline
from plantilog.api.settings import LoggerConfig, as_override
from plantilog.logging import console as shared_console
from plantilog.logging import logger
from plantilog.utils.colors import ANSI_PALETTE, EMPTY_PALETTE

Override = Union[LoggerConfig, Mapping[str, Any], None]


class RawLine:
    """Renderable that writes its text as is, control characters included."""

    def __init__(self, text: str) -> None:
        self.text = text

    def __rich_console__(
        self, console: Console, options: ConsoleOptions
    ) -> RenderResult:
        yield Segment(self.text)


class ConsoleSink:
    """Prints rendered lines through a rich console.

    The line is written verbatim: rich markup, highlighting and wrapping are
    disabled and control characters are kept. File and encoding overrides do
    not apply to the console and are ignored without validation.
    """

    def __init__(
        self, pipeline: EmissionPipeline, console: Optional[Console] = None
    ) -> None:
        self.pipeline = pipeline
        self._console = console

    @property
    def console(self) -> Console:
        """The injected console, or plantilog's shared one."""
        if self._console is not None:
            return self._console
        return shared_console

    def emit(
        self,
        level: LogLevel,
        label: str,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Print one log line if ``level`` passes the gate."""
        if not self.pipeline.enabled(level):
            return
        # Starts at the leveled method that called emit
        call_site = capture_call_site(skip=1)
        override = dataclasses.replace(
            as_override(config, LoggerConfig), fichero=None, codificacion=None
        )
        _, _, line = self.pipeline.prepare(
            label, msg, override, error, call_site, ANSI_PALETTE
        )
        self.console.print(RawLine(line), soft_wrap=True)


class FileSink:
    """Appends rendered lines to the log file.

    One line per call, followed by a newline, in the effective encoding.
    Colour placeholders always render empty.
    """

    def __init__(self, pipeline: EmissionPipeline) -> None:
        self.pipeline = pipeline

    def emit(
        self,
        level: LogLevel,
        label: str,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Append one log line if ``level`` passes the gate.

        Raises:
            ConfigInvalidError: If the override's file or encoding is invalid.
            OSError: If the file cannot be written.
        """
        if not self.pipeline.enabled(level):
            return
        call_site = capture_call_site(skip=1)
        override = dataclasses.replace(as_override(config, LoggerConfig), colores=None)
        _, effective, line = self.pipeline.prepare(
            label, msg, override, error, call_site, EMPTY_PALETTE
        )
        with open(effective.fichero, "a", encoding=effective.codificacion) as f:
            f.write(line + "\n")
        logger.debug(f"Appended {label} line to {effective.fichero}")

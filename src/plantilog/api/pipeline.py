"""The emission pipeline shared by every sink.

A logger owns one EmissionPipeline. Each sink dispatcher holds a reference to
it and runs the same steps for every call that passes the level gate:
resolve the origin, classify the captured error, merge the per-call
configuration and render the line. Only the final write differs per sink.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from plantilog.api.classifier import is_logger_synthetic
from plantilog.api.levels import LogLevel
from plantilog.api.origin import (
    LOGGER_FRAME_SIGNATURE,
    CallSite,
    CapturedError,
    OriginInfo,
    error_details,
    resolve_origin,
    trace_of,
)
from plantilog.api.records import LogData
from plantilog.api.settings import (
    EffectiveConfig,
    LoggerConfig,
    LoggerSettings,
    merge_config,
)
from plantilog.api.templates import Renderer
from plantilog.utils.colors import ColorPalette


@dataclass(frozen=True)
class Event:
    """A log call after origin resolution and classification.

    Attributes:
        data: Structured fields of the event.
        synthetic: Whether the captured error was a call-site marker.
        timestamp: Moment of the log call, used for the clock fields.
    """

    data: LogData
    synthetic: bool
    timestamp: datetime


class EmissionPipeline:
    """Steps common to the console, file and database sinks.

    Attributes:
        settings: The owning logger's defaults.
    """

    def __init__(self, settings: LoggerSettings) -> None:
        self.settings = settings

    def enabled(self, level: LogLevel) -> bool:
        """Level gate: whether a call at ``level`` is emitted."""
        return level >= self.settings.nivel

    def resolve_origin(
        self, error: Optional[CapturedError], call_site: Optional[CallSite] = None
    ) -> OriginInfo:
        """Locate the origin of a call.

        The error's own trace is preferred. An exception that was never
        raised has none, in which case the call site is used.
        """
        trace = trace_of(error)
        if trace is None and call_site is not None:
            trace = call_site.trace
        return resolve_origin(trace, LOGGER_FRAME_SIGNATURE)

    def classify_error(
        self, error: Optional[CapturedError], call_site: Optional[CallSite] = None
    ) -> bool:
        """Whether ``error`` is a call-site marker rather than a real error.

        An exception that was never raised is classified against the caller's
        frames of the call site, as if its trace had been taken where it was
        logged.
        """
        trace = trace_of(error)
        if trace is None and call_site is not None and error is not call_site:
            trace = "\n".join(
                line
                for line in call_site.trace.splitlines()
                if not LOGGER_FRAME_SIGNATURE.search(line)
            )
        return is_logger_synthetic(error, trace)

    def describe(
        self,
        label: str,
        message: object,
        error: Optional[CapturedError],
        call_site: Optional[CallSite] = None,
    ) -> Event:
        """Resolve origin and error details of a call into an Event."""
        if error is None:
            error = call_site
        origin = self.resolve_origin(error, call_site)
        data = LogData.build(label, message, origin, error_details(error))
        return Event(
            data=data,
            synthetic=self.classify_error(error, call_site),
            timestamp=datetime.now(),
        )

    def merge_config(
        self, override: LoggerConfig, synthetic: bool, fallback_palette: ColorPalette
    ) -> EffectiveConfig:
        """Merge a per-call override with the logger's defaults."""
        return merge_config(self.settings, override, synthetic, fallback_palette)

    def render(
        self,
        renderer: Renderer,
        data: LogData,
        palette: ColorPalette,
        now: Optional[datetime] = None,
    ) -> str:
        """Render one line from the event fields and a colour palette."""
        return renderer.render({**data.as_fields(), **palette.as_fields()}, now=now)

    def prepare(
        self,
        label: str,
        message: object,
        override: LoggerConfig,
        error: Optional[CapturedError],
        call_site: Optional[CallSite],
        fallback_palette: ColorPalette,
    ) -> Tuple[Event, EffectiveConfig, str]:
        """Run every step for a console or file call.

        Returns:
            tuple: The event, its effective configuration and the rendered
                   line.
        """
        event = self.describe(label, message, error, call_site)
        config = self.merge_config(override, event.synthetic, fallback_palette)
        line = self.render(config.formato, event.data, config.colores, event.timestamp)
        return event, config, line

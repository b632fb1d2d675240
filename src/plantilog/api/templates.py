"""Template compilation for log line formats.

This module turns a format string written in plantilog's placeholder
mini-language into a reusable Renderer. A placeholder is a ``%{X}`` token,
where X is any name in the token table. Each recognised token is bound to a
named field that is only looked up when the renderer is called, so compiling
never evaluates anything and a compiled template can be rendered any number
of times, from any thread.

Recognised tokens:

- ``%{s}`` seconds, ``%{i}`` minutes (both zero-padded to two digits),
  ``%{H}`` hours, ``%{D}`` day, ``%{M}`` month, ``%{Y}`` year
- ``%{T}`` log type, ``%{F}`` function, ``%{A}`` file, ``%{R}`` message,
  ``%{L}`` line
- ``%{N}`` error name, ``%{E}`` error message
- ``%{CR}`` red, ``%{CA}`` blue, ``%{CV}`` green, ``%{CM}`` yellow,
  ``%{CF}`` end of colouring

Unknown tokens are left in the output verbatim.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from plantilog.api.errors import FieldMissingError

PLACEHOLDERS: Dict[str, str] = {
    # Date and time, resolved from the clock at render time
    "s": "seconds",
    "i": "minutes",
    "H": "hours",
    "D": "day",
    "M": "month",
    "Y": "year",
    # Log context
    "T": "type",
    "F": "function",
    "A": "file",
    "R": "message",
    "L": "line",
    # Error details
    "N": "error_name",
    "E": "error_message",
    # Colours
    "CR": "red",
    "CA": "blue",
    "CV": "green",
    "CM": "yellow",
    "CF": "reset",
}

CLOCK_FIELDS: FrozenSet[str] = frozenset(
    {"seconds", "minutes", "hours", "day", "month", "year"}
)

TOKEN_PATTERN = re.compile(r"%\{([^{}]+)\}")


@dataclass(frozen=True)
class Slot:
    """A position in a compiled template filled from a named field."""

    field: str


Segment = Union[str, Slot]


def _clock_values(now: datetime) -> Dict[str, str]:
    return {
        "seconds": f"{now.second:02d}",
        "minutes": f"{now.minute:02d}",
        "hours": str(now.hour),
        "day": str(now.day),
        "month": str(now.month),
        "year": str(now.year),
    }


@dataclass(frozen=True)
class Renderer:
    """A compiled template.

    Renderers hold no mutable state: calling one only reads the value map it
    is given and the clock.

    Attributes:
        template: The format string this renderer was compiled from.
        segments: Literal text and field slots, in output order.

    Examples:
        >>> renderer = compile_template("(%{T}) %{R}")
        >>> renderer.render({"type": "INFO", "message": "hello"})
        '(INFO) hello'
    """

    template: str
    segments: Tuple[Segment, ...] = field(repr=False)

    @property
    def fields(self) -> FrozenSet[str]:
        """Names of every field referenced by the template."""
        return frozenset(seg.field for seg in self.segments if isinstance(seg, Slot))

    def render(
        self, values: Mapping[str, object], now: Optional[datetime] = None
    ) -> str:
        """Substitute field values into the template.

        Args:
            values: Mapping from field name to value. Values are converted
                    with str().
            now: Moment used for the date and time fields. Defaults to the
                 wall clock at the time of the call.

        Returns:
            str: The rendered text.

        Raises:
            FieldMissingError: If a referenced non-clock field is not in
                               ``values``.
        """
        clock: Optional[Dict[str, str]] = None
        parts = []
        for segment in self.segments:
            if isinstance(segment, str):
                parts.append(segment)
            elif segment.field in CLOCK_FIELDS:
                if clock is None:
                    clock = _clock_values(now or datetime.now())
                parts.append(clock[segment.field])
            else:
                try:
                    parts.append(str(values[segment.field]))
                except KeyError:
                    raise FieldMissingError(segment.field, self.template) from None
        return "".join(parts)

    __call__ = render


class TemplateCompiler:
    """Compiles format strings into renderers.

    Each logger owns its compiler, so a custom token table only affects the
    loggers it is given to.

    Attributes:
        placeholders: Mapping from token name (the text between ``%{`` and
                      ``}``) to field name.
    """

    def __init__(self, placeholders: Optional[Mapping[str, str]] = None) -> None:
        self.placeholders = dict(PLACEHOLDERS if placeholders is None else placeholders)

    def compile(self, template: str) -> Renderer:
        """Compile a format string.

        Args:
            template: Format string containing placeholder tokens.

        Returns:
            Renderer: The compiled template.
        """
        segments: List[Segment] = []
        position = 0
        for match in TOKEN_PATTERN.finditer(template):
            field_name = self.placeholders.get(match.group(1))
            if field_name is None:
                # Unknown token, stays part of the surrounding literal
                continue
            if match.start() > position:
                segments.append(template[position : match.start()])
            segments.append(Slot(field_name))
            position = match.end()
        if position < len(template):
            segments.append(template[position:])
        return Renderer(template=template, segments=tuple(segments))


_default_compiler = TemplateCompiler()


def compile_template(template: str) -> Renderer:
    """Compile a format string with the default token table."""
    return _default_compiler.compile(template)

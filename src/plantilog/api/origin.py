"""Call-site capture and origin resolution.

A log line is attributed to the code that emitted it (or that raised the
error being logged) by scanning a textual trace. Traces are written most
recent call first, one frame per line, in the form::

    File "/path/to/module.py", line 42, in Class.method

Traces copied from V8-based runtimes (``at fn (file.ts:42:7)``) are also
understood, so records relayed from such services resolve the same way.

The first frame that is not one of the logger's own emission methods is the
origin. Resolution is best effort: when nothing qualifies, or anything goes
wrong while parsing, the origin is empty rather than an error.
"""

import inspect
import re
import traceback
from dataclasses import dataclass
from types import FrameType
from typing import Iterable, Optional, Tuple, Union

from plantilog.logging import logger

TRACE_HEADER = "Traceback (most recent call first):"

# Frames of the leveled emission methods, e.g. "in Logger.info_consola"
LOGGER_FRAME_SIGNATURE = re.compile(
    r"\b(?:at|in) (?:async )?Logger(?:_?DB)?\."
    r"(?:log|info|aviso|error|fatal)_(?:consola|archivo|base_datos)\b"
)

PYTHON_FRAME = re.compile(
    r'^File "(?P<file>.+)", line (?P<line>\d+), in (?P<function>\S+)'
)
V8_FRAME = re.compile(
    r"^at (?:async |new )?(?P<function>\S+) (?P<location>\S+)$"
)


@dataclass(frozen=True)
class OriginInfo:
    """Where a log call (or the logged error) came from.

    All fields are empty strings when the origin could not be resolved.
    """

    function: str = ""
    file: str = ""
    line: str = ""


@dataclass(frozen=True)
class ErrorDetails:
    """Name and message of a captured error."""

    name: str = ""
    message: str = ""


@dataclass(frozen=True)
class CallSite:
    """Snapshot of the stack at a log call.

    Stands in for an error when the caller logs without one, so the line can
    still be attributed to its call site.

    Attributes:
        trace: The captured stack, most recent call first.
    """

    trace: str


CapturedError = Union[BaseException, CallSite]


def format_frames(frames: Iterable[Tuple[FrameType, int]]) -> str:
    """Format ``(frame, lineno)`` pairs as a trace.

    Frames must already be ordered most recent call first. Function names are
    qualified with their class, e.g. ``Logger.info_consola``.
    """
    lines = [TRACE_HEADER]
    for frame, lineno in frames:
        code = frame.f_code
        lines.append(
            f'  File "{code.co_filename}", line {lineno}, in {code.co_qualname}'
        )
    return "\n".join(lines)


def capture_call_site(skip: int = 0) -> CallSite:
    """Capture the current stack.

    Args:
        skip: Number of frames above the caller to leave out. With 0 the trace
              starts at the function calling capture_call_site.

    Returns:
        CallSite: The snapshot.
    """
    frame = inspect.currentframe()
    try:
        start = frame.f_back if frame is not None else None
        for _ in range(skip):
            if start is None or start.f_back is None:
                break
            start = start.f_back
        if start is None:
            return CallSite(trace=TRACE_HEADER)
        return CallSite(trace=format_frames(traceback.walk_stack(start)))
    finally:
        # Break the reference cycle between this frame and its locals
        del frame


def trace_of(error: Optional[CapturedError]) -> Optional[str]:
    """Return the trace carried by a captured error, if any.

    A CallSite carries its snapshot. An exception carries the frames of its
    traceback, innermost first, and only has one once it has been raised.
    """
    if isinstance(error, CallSite):
        return error.trace
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        frames = list(traceback.walk_tb(error.__traceback__))
        frames.reverse()
        return format_frames(frames)
    return None


def error_details(error: Optional[CapturedError]) -> ErrorDetails:
    """Extract the name and message of a captured error.

    A CallSite is not an error and yields empty details.
    """
    if isinstance(error, BaseException):
        return ErrorDetails(name=type(error).__name__, message=str(error))
    return ErrorDetails()


def _split_location(location: str) -> Tuple[str, str]:
    # "(path/to/file.ts:42:7)" -> ("path/to/file.ts", "42")
    parts = location.strip("()").split(":")
    if len(parts) >= 3 and parts[-1].isdigit() and parts[-2].isdigit():
        return ":".join(parts[:-2]), parts[-2]
    if len(parts) >= 2 and parts[-1].isdigit():
        return ":".join(parts[:-1]), parts[-1]
    raise ValueError(f"No line number in frame location {location!r}")


def _parse_frame(line: str) -> Optional[OriginInfo]:
    match = PYTHON_FRAME.match(line)
    if match:
        return OriginInfo(
            function=match.group("function"),
            file=match.group("file"),
            line=match.group("line"),
        )
    match = V8_FRAME.match(line)
    if match:
        file, lineno = _split_location(match.group("location"))
        return OriginInfo(function=match.group("function"), file=file, line=lineno)
    return None


def resolve_origin(
    trace: Optional[str], internal_signature: re.Pattern = LOGGER_FRAME_SIGNATURE
) -> OriginInfo:
    """Find the origin of a log call in a trace.

    Args:
        trace: Trace text, most recent call first. May be None.
        internal_signature: Pattern matching frames that belong to the
                            logger itself; those are skipped.

    Returns:
        OriginInfo: Function, file and line of the first frame outside the
                    logger, or an empty OriginInfo if there is none.
    """
    if not trace:
        return OriginInfo()

    try:
        for raw_line in trace.splitlines():
            line = raw_line.strip()
            if internal_signature.search(line):
                continue
            origin = _parse_frame(line)
            if origin is not None:
                return origin
    except Exception as e:
        logger.debug(f"Origin resolution failed, using an empty origin: {e}")
    return OriginInfo()

"""Classification of captured errors.

Every log call carries a captured error: either one the caller passed in, or
a CallSite snapshot taken by the logger to locate the call. The classifier
tells the two apart so the right template is used: call-site markers get the
normal format, genuine errors get the error format with their name and
message.

The test is a heuristic based on the naming convention of the logger's own
frames, not a strict type check. A plain Exception whose trace runs through a
Logger method is treated as a marker as well, which covers subclasses of the
logger that capture the call site themselves.
"""

import re
from typing import Optional

from plantilog.api.origin import CallSite, CapturedError, trace_of

# Any method of a class whose name starts with "Logger"
LOGGER_GENERIC_SIGNATURE = re.compile(
    r"\b(?:at|in) Logger[0-9A-Z_$]*\.[$A-Z_][0-9A-Z_$]*", re.IGNORECASE
)


def is_base_kind(error: Optional[CapturedError]) -> bool:
    """Whether the error is of the plain base kind (a CallSite or exactly Exception)."""
    return isinstance(error, CallSite) or type(error) is Exception


def is_logger_synthetic(
    error: Optional[CapturedError], trace: Optional[str] = None
) -> bool:
    """Decide whether a captured error is a call-site marker.

    Args:
        error: The captured error, a CallSite, or None.
        trace: Trace to classify instead of the error's own, for exceptions
               that were never raised.

    Returns:
        bool: True if the error carries no trace at all, or if it is of the
              plain base kind and its trace matches LOGGER_GENERIC_SIGNATURE.
              False for errors raised by the caller's own code.
    """
    if trace is None:
        trace = trace_of(error)
    if trace is None:
        return True
    return is_base_kind(error) and LOGGER_GENERIC_SIGNATURE.search(trace) is not None

"""Structured data describing a single log event.

LogData is built once per emitted call and serves two purposes: its fields
are the values substituted into the format template, and it is the
structured record handed to the database insert callback next to the
rendered line.
"""

from dataclasses import dataclass
from typing import Dict

from plantilog.api.origin import ErrorDetails, OriginInfo


@dataclass(frozen=True)
class LogData:
    """Fields of one log event."""

    type: str
    message: str
    line: str = ""
    error_name: str = ""
    error_message: str = ""
    file: str = ""
    function: str = ""

    @classmethod
    def build(
        cls, label: str, message: object, origin: OriginInfo, details: ErrorDetails
    ) -> "LogData":
        """Assemble the record from the resolved origin and error details."""
        return cls(
            type=label,
            message=str(message),
            line=origin.line,
            error_name=details.name,
            error_message=details.message,
            file=origin.file,
            function=origin.function,
        )

    def as_fields(self) -> Dict[str, str]:
        """Return the record as renderer field values."""
        return {
            "type": self.type,
            "message": self.message,
            "line": self.line,
            "error_name": self.error_name,
            "error_message": self.error_message,
            "file": self.file,
            "function": self.function,
        }

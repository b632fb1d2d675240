"""Log levels used to gate emission.

Levels are totally ordered: a logger configured with threshold L emits every
event whose level is greater than or equal to L. ALL lets everything through
and NONE silences the logger.
"""

from enum import IntEnum
from typing import Union

from plantilog.api.errors import ConfigInvalidError

# Alternative spellings accepted by LogLevel.from_value
_ALIASES = {
    "TODOS": "ALL",
    "AVISO": "WARN",
    "WARNING": "WARN",
    "NINGUNO": "NONE",
}


class LogLevel(IntEnum):
    """Ordered logging levels."""

    ALL = 0
    LOG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5
    NONE = 6

    @property
    def label(self) -> str:
        """Text substituted for the %{T} placeholder."""
        if self is LogLevel.WARN:
            return "AVISO"
        return self.name

    @classmethod
    def from_value(cls, value: Union["LogLevel", int, str]) -> "LogLevel":
        """Coerce a member, an integer or a level name into a LogLevel.

        Names are case-insensitive and include the Spanish aliases
        (TODOS, AVISO, NINGUNO) as well as WARNING.

        Raises:
            ConfigInvalidError: If the value does not name a level.
        """
        if isinstance(value, str):
            name = value.strip().upper()
            name = _ALIASES.get(name, name)
            try:
                return cls[name]
            except KeyError:
                raise ConfigInvalidError(f"Unknown log level: {value!r}") from None
        try:
            return cls(value)
        except ValueError:
            raise ConfigInvalidError(f"Unknown log level: {value!r}") from None

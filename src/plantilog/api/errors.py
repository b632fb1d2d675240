"""Exceptions raised by plantilog.

Every error the package raises derives from LoggerError so callers can catch
them as a group. Configuration problems are also ValueErrors and render-time
field lookups are also LookupErrors, matching the built-in exceptions they
stand in for.
"""


class LoggerError(Exception):
    """Base class for all plantilog errors."""


class ConfigInvalidError(LoggerError, ValueError):
    """Raised when a directory, file target, encoding, level or callback is invalid.

    Raised at construction, on setter assignment and while validating a
    per-call override. The operation that triggered it is aborted.
    """


class ConnectionFailedError(LoggerError):
    """Raised when the database connection check returns False or raises."""


class FieldMissingError(LoggerError, LookupError):
    """Raised when a renderer is given a value map without a referenced field.

    Attributes:
        field: Name of the missing field.
        template: Source template of the renderer that failed.
    """

    def __init__(self, field: str, template: str) -> None:
        super().__init__(f"Field '{field}' is required to render template {template!r}")
        self.field = field
        self.template = template

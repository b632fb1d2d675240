"""Database sink dispatcher.

plantilog ships no database driver. The database sink renders the line like
the other sinks and hands it, with the structured LogData record, to an
injected insert callback. Two callbacks make up the collaborator contract:

- ``check_connection(config, logger) -> bool``: validates a connection
  configuration. A False result or an exception means the connection failed.
- ``insert(line, config, data, logger)``: stores one entry.

Either may be a plain function or a coroutine function. Connection checks are
awaited. Inserts are fire-and-forget: the logger starts them and returns
without waiting, and their failures never reach the caller. An optional
``on_insert_error(exc, data)`` observer is told about failed inserts.
"""

import asyncio
import dataclasses
import inspect
from functools import partial
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Set, Union

from sigmatch import SignatureMatcher, SignatureMismatchError

from plantilog.api.errors import ConfigInvalidError, ConnectionFailedError
from plantilog.api.levels import LogLevel
from plantilog.api.origin import CapturedError, capture_call_site
from plantilog.api.pipeline import EmissionPipeline
from plantilog.api.records import LogData
from plantilog.api.settings import EffectiveDBConfig, LoggerDBConfig, as_override
from plantilog.api.sinks import Override
from plantilog.logging import logger
from plantilog.utils.colors import EMPTY_PALETTE

CheckConnection = Callable[[Any, Any], Union[bool, Awaitable[bool]]]
InsertLog = Callable[[str, Any, LogData, Any], Optional[Awaitable[None]]]
InsertErrorObserver = Callable[[BaseException, LogData], None]


class CallbackSignature(NamedTuple):
    """Expected form of a collaborator callback.

    ``matcher`` describes the plain form. Callbacks of any other shape are
    still accepted when they can be called with ``arity`` positional
    arguments.
    """

    matcher: SignatureMatcher
    arity: int


CHECK_CONNECTION_SIGNATURE = CallbackSignature(SignatureMatcher(".", "."), 2)
INSERT_SIGNATURE = CallbackSignature(SignatureMatcher(".", ".", ".", "."), 4)
OBSERVER_SIGNATURE = CallbackSignature(SignatureMatcher(".", "."), 2)


async def default_check_connection(config: Any, owner: Any) -> bool:
    """Connection check used when none is given; always succeeds."""
    return True


async def default_insert(line: str, config: Any, data: LogData, owner: Any) -> None:
    """Insert callback used when none is given; stores nothing."""
    return None


def accepts_positional(function: Callable[..., Any], arity: int) -> bool:
    """Whether ``function`` can be called with ``arity`` positional arguments.

    Callables whose signature cannot be inspected are given the benefit of
    the doubt.
    """
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind(*range(arity))
    except TypeError:
        return False
    return True


def validate_callback(
    function: Callable[..., Any], signature: CallbackSignature, role: str
) -> Callable[..., Any]:
    """Check that a collaborator callback has the expected signature.

    Args:
        function: The callback to check.
        signature: Expected signature.
        role: Name of the callback, used in the error message.

    Returns:
        The callback itself.

    Raises:
        ConfigInvalidError: If the callback is not callable or its signature
                            does not match.
    """
    if not callable(function):
        raise ConfigInvalidError(
            f"The {role} callback must be callable, got {function!r}"
        )
    try:
        signature.matcher.match(function, raise_exception=True)
    except SignatureMismatchError as e:
        if accepts_positional(function, signature.arity):
            return function
        raise ConfigInvalidError(
            f"The {role} callback has an invalid signature: {e}"
        ) from e
    return function


class DatabaseSink:
    """Dispatches rendered lines to the injected insert callback.

    Attributes:
        pipeline: The owning logger's emission pipeline.
        owner: The logger passed to callbacks as their last argument.
    """

    def __init__(
        self,
        pipeline: EmissionPipeline,
        owner: Any,
        config_conexion: Any = None,
        funcion_insertar: InsertLog = default_insert,
        funcion_comprobar: CheckConnection = default_check_connection,
        on_insert_error: Optional[InsertErrorObserver] = None,
    ) -> None:
        self.pipeline = pipeline
        self.owner = owner
        self.config_conexion = {} if config_conexion is None else config_conexion
        self.funcion_insertar = funcion_insertar
        self.funcion_comprobar = funcion_comprobar
        self.on_insert_error = on_insert_error
        # Strong references to running inserts until they finish
        self._pending: Set[asyncio.Future] = set()

    @property
    def funcion_insertar(self) -> InsertLog:
        return self._funcion_insertar

    @funcion_insertar.setter
    def funcion_insertar(self, function: InsertLog) -> None:
        self._funcion_insertar = validate_callback(function, INSERT_SIGNATURE, "insert")

    @property
    def funcion_comprobar(self) -> CheckConnection:
        return self._funcion_comprobar

    @funcion_comprobar.setter
    def funcion_comprobar(self, function: CheckConnection) -> None:
        self._funcion_comprobar = validate_callback(
            function, CHECK_CONNECTION_SIGNATURE, "connection check"
        )

    @property
    def on_insert_error(self) -> Optional[InsertErrorObserver]:
        return self._on_insert_error

    @on_insert_error.setter
    def on_insert_error(self, observer: Optional[InsertErrorObserver]) -> None:
        if observer is not None:
            validate_callback(observer, OBSERVER_SIGNATURE, "insert error observer")
        self._on_insert_error = observer

    @property
    def pending(self) -> int:
        """Number of inserts started and not yet finished."""
        return len(self._pending)

    async def check_connection(
        self, config: Any, funcion_comprobar: Optional[CheckConnection] = None
    ) -> Any:
        """Run a connection check.

        Args:
            config: Connection configuration to check.
            funcion_comprobar: Check to run instead of the sink's own.

        Returns:
            The configuration, once the check has succeeded.

        Raises:
            ConnectionFailedError: If the check returns a falsy value or raises.
        """
        check = funcion_comprobar or self.funcion_comprobar
        try:
            result = check(config, self.owner)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.debug(f"Connection check raised {type(e).__name__}: {e}")
            raise ConnectionFailedError("Failed to connect to the database") from e
        if not result:
            raise ConnectionFailedError("Failed to connect to the database")
        return config

    async def set_connection_config(self, config: Any) -> None:
        """Replace the connection configuration once it has been checked.

        On failure the previous configuration stays in place.
        """
        self.config_conexion = await self.check_connection(config)

    async def merge_db_config(
        self, override: LoggerDBConfig, synthetic: bool
    ) -> EffectiveDBConfig:
        """Merge a database override with the logger's defaults.

        Raises:
            ConfigInvalidError: If an override callback has a bad signature.
            ConnectionFailedError: If the override's connection config fails
                                   its check.
        """
        base = self.pipeline.merge_config(override, synthetic, EMPTY_PALETTE)

        if override.config_conexion is not None:
            check = None
            if override.funcion_comprobar is not None:
                check = validate_callback(
                    override.funcion_comprobar,
                    CHECK_CONNECTION_SIGNATURE,
                    "connection check",
                )
            config_conexion = await self.check_connection(
                override.config_conexion, check
            )
        else:
            config_conexion = self.config_conexion

        if override.funcion_insertar is not None:
            insert = validate_callback(
                override.funcion_insertar, INSERT_SIGNATURE, "insert"
            )
        else:
            insert = self.funcion_insertar

        return EffectiveDBConfig(
            fichero=base.fichero,
            formato=base.formato,
            colores=base.colores,
            codificacion=base.codificacion,
            config_conexion=config_conexion,
            funcion_insertar=insert,
        )

    async def emit(
        self,
        level: LogLevel,
        label: str,
        msg: object,
        config: Override = None,
        error: Optional[CapturedError] = None,
    ) -> None:
        """Render one log line and start its insert if ``level`` passes the gate.

        Returns once the insert has been started; it is not awaited.
        """
        if not self.pipeline.enabled(level):
            return
        call_site = capture_call_site(skip=1)
        override = dataclasses.replace(
            as_override(config, LoggerDBConfig),
            colores=None,
            fichero=None,
            codificacion=None,
        )
        event = self.pipeline.describe(label, msg, error, call_site)
        effective = await self.merge_db_config(override, event.synthetic)
        line = self.pipeline.render(
            effective.formato, event.data, effective.colores, event.timestamp
        )
        self._dispatch(
            effective.funcion_insertar, line, effective.config_conexion, event.data
        )

    def _dispatch(
        self, insert: InsertLog, line: str, config: Any, data: LogData
    ) -> None:
        try:
            result = insert(line, config, data, self.owner)
        except Exception as e:
            self._report(e, data)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(partial(self._finish, data))

    def _finish(self, data: LogData, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._report(exc, data)

    def _report(self, exc: BaseException, data: LogData) -> None:
        logger.debug(f"Log insert failed with {type(exc).__name__}: {exc}")
        if self._on_insert_error is None:
            return
        try:
            self._on_insert_error(exc, data)
        except Exception as e:
            logger.warning(f"Insert error observer raised {type(e).__name__}: {e}")

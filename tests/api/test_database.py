"""Tests for plantilog.api.database module and the LoggerDB facade."""

import asyncio
import functools

import pytest

from plantilog.api.database import default_check_connection, default_insert
from plantilog.api.errors import ConfigInvalidError, ConnectionFailedError
from plantilog.api.levels import LogLevel
from plantilog.api.loggers import LoggerDB
from plantilog.api.records import LogData
from plantilog.api.settings import LoggerDBConfig
from plantilog.utils.colors import ColorPalette


async def settle():
    """Let scheduled inserts and their done callbacks run."""
    for _ in range(5):
        await asyncio.sleep(0)


class Recorder:
    """Collects calls made to the insert callback and the failure observer."""

    def __init__(self):
        self.inserts = []
        self.failures = []

    async def insert(self, line, config, data, logger):
        self.inserts.append((line, config, data, logger))

    def observe(self, exc, data):
        self.failures.append((exc, data))


@pytest.fixture
def recorder():
    """Fixture providing a fresh Recorder."""
    return Recorder()


@pytest.fixture
def connection():
    """Fixture providing an opaque connection configuration."""
    return {"dsn": "postgres://logs", "table": "entries"}


async def accept(config, logger):
    return True


async def reject(config, logger):
    return False


def explode(config, logger):
    raise OSError("host unreachable")


class TestCrear:
    """Test creating a LoggerDB with a connection check."""

    def test_default_callbacks(self, tmp_path):
        """Test that the default check accepts an empty configuration."""
        logger = asyncio.run(LoggerDB.crear(ruta=tmp_path))

        assert logger.config_conexion == {}
        assert logger.funcion_insertar_log is default_insert
        assert logger.funcion_comprobar_conexion is default_check_connection

    def test_check_receives_config_and_logger(self, tmp_path, connection):
        """Test the arguments given to the connection check."""
        seen = []

        def check(config, logger):
            seen.append((config, logger))
            return True

        logger = asyncio.run(
            LoggerDB.crear(connection, funcion_comprobar_conexion=check, ruta=tmp_path)
        )

        assert seen == [(connection, logger)]
        assert logger.config_conexion is connection

    def test_check_returns_false(self, tmp_path, connection):
        """Test that a failed check raises ConnectionFailedError."""
        with pytest.raises(ConnectionFailedError):
            asyncio.run(
                LoggerDB.crear(
                    connection, funcion_comprobar_conexion=reject, ruta=tmp_path
                )
            )

    def test_check_raises(self, tmp_path, connection):
        """Test that an exception in the check counts as a failed connection."""
        with pytest.raises(ConnectionFailedError) as excinfo:
            asyncio.run(
                LoggerDB.crear(
                    connection, funcion_comprobar_conexion=explode, ruta=tmp_path
                )
            )

        assert isinstance(excinfo.value.__cause__, OSError)

    def test_constructor_does_not_check(self, tmp_path, connection):
        """Test that plain construction skips the connection check."""
        logger = LoggerDB(connection, funcion_comprobar_conexion=reject, ruta=tmp_path)

        assert logger.config_conexion is connection


class TestCallbackValidation:
    """Test that callback signatures are checked."""

    def test_bad_insert_signature(self, tmp_path):
        """Test that an insert callback with the wrong arity is rejected."""
        with pytest.raises(ConfigInvalidError):
            LoggerDB(funcion_insertar_log=lambda line: None, ruta=tmp_path)

    def test_bad_check_signature(self, tmp_path):
        """Test that a connection check with the wrong arity is rejected."""
        with pytest.raises(ConfigInvalidError):
            LoggerDB(funcion_comprobar_conexion=lambda: True, ruta=tmp_path)

    def test_not_callable(self, tmp_path):
        """Test that a non-callable insert is rejected."""
        with pytest.raises(ConfigInvalidError):
            LoggerDB(funcion_insertar_log="INSERT INTO logs", ruta=tmp_path)

    def test_setter_keeps_previous(self, tmp_path, recorder):
        """Test that a rejected assignment keeps the previous callback."""
        logger = LoggerDB(funcion_insertar_log=recorder.insert, ruta=tmp_path)

        with pytest.raises(ConfigInvalidError):
            logger.funcion_insertar_log = lambda line, config: None

        assert logger.funcion_insertar_log == recorder.insert

    def test_bad_observer_signature(self, tmp_path):
        """Test that a failure observer with the wrong arity is rejected."""
        with pytest.raises(ConfigInvalidError):
            LoggerDB(on_insert_error=lambda exc: None, ruta=tmp_path)

    def test_partial_insert(self, tmp_path):
        """Test that a partial leaving four positional arguments is accepted."""

        def insert(table, line, config, data, logger):
            return None

        callback = functools.partial(insert, "entries")

        logger = LoggerDB(funcion_insertar_log=callback, ruta=tmp_path)

        assert logger.funcion_insertar_log is callback

    def test_varargs_insert(self, tmp_path):
        """Test that a callback taking *args is accepted."""
        callback = lambda *args: None  # noqa: E731

        logger = LoggerDB(funcion_insertar_log=callback, ruta=tmp_path)

        assert logger.funcion_insertar_log is callback

    def test_extra_defaulted_parameter(self, tmp_path):
        """Test that extra parameters with defaults are accepted."""

        def insert(line, config, data, logger, retries=3):
            return None

        def check(config, logger, timeout=5.0):
            return True

        logger = LoggerDB(
            funcion_insertar_log=insert, funcion_comprobar_conexion=check, ruta=tmp_path
        )

        assert logger.funcion_insertar_log is insert
        assert logger.funcion_comprobar_conexion is check

    def test_partial_too_few_arguments(self, tmp_path):
        """Test that a partial binding too much is still rejected."""

        def insert(line, config, data, logger):
            return None

        with pytest.raises(ConfigInvalidError):
            LoggerDB(
                funcion_insertar_log=functools.partial(insert, "x"), ruta=tmp_path
            )


class TestEstablecerConfigConexion:
    """Test changing the connection configuration."""

    def test_success(self, tmp_path, connection):
        """Test that a checked configuration replaces the previous one."""
        logger = LoggerDB(
            {"dsn": "old"}, funcion_comprobar_conexion=accept, ruta=tmp_path
        )

        asyncio.run(logger.establecer_config_conexion(connection))

        assert logger.config_conexion is connection

    def test_failure_keeps_previous(self, tmp_path, connection):
        """Test that a failed check leaves the previous configuration in place."""
        previous = {"dsn": "old"}
        logger = LoggerDB(previous, ruta=tmp_path)
        logger.funcion_comprobar_conexion = explode

        with pytest.raises(ConnectionFailedError):
            asyncio.run(logger.establecer_config_conexion(connection))

        assert logger.config_conexion is previous

    def test_read_only_property(self, tmp_path):
        """Test that the configuration cannot be assigned without a check."""
        logger = LoggerDB(ruta=tmp_path)

        with pytest.raises(AttributeError):
            logger.config_conexion = {"dsn": "unchecked"}


class TestDatabaseSink:
    """Test the *_base_datos entry points."""

    def test_insert_arguments(self, tmp_path, recorder, connection):
        """Test the line, configuration, record and logger given to the insert."""

        async def run():
            logger = await LoggerDB.crear(
                connection, recorder.insert, formato="%{T}: %{R}", ruta=tmp_path
            )
            await logger.info_base_datos("stored")
            await settle()
            return logger

        logger = asyncio.run(run())

        assert len(recorder.inserts) == 1
        line, config, data, owner = recorder.inserts[0]
        assert line == "INFO: stored"
        assert config is connection
        assert owner is logger
        assert isinstance(data, LogData)
        assert data.type == "INFO"
        assert data.message == "stored"
        assert data.function == "TestDatabaseSink.test_insert_arguments.<locals>.run"
        assert data.error_name == ""
        assert logger.pending_inserts == 0

    def test_all_levels(self, tmp_path, recorder):
        """Test the label given by each entry point."""

        async def run():
            logger = LoggerDB(funcion_insertar_log=recorder.insert, ruta=tmp_path)
            await logger.log_base_datos("m")
            await logger.info_base_datos("m")
            await logger.aviso_base_datos("m")
            await logger.error_base_datos("m")
            await logger.fatal_base_datos("m")
            await settle()

        asyncio.run(run())

        assert [data.type for _, _, data, _ in recorder.inserts] == [
            "LOG",
            "INFO",
            "AVISO",
            "ERROR",
            "FATAL",
        ]

    def test_gated(self, tmp_path, recorder):
        """Test that calls below the threshold never reach the insert."""

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=recorder.insert, nivel=LogLevel.ERROR, ruta=tmp_path
            )
            await logger.aviso_base_datos("ignored")
            await logger.error_base_datos("kept")
            await settle()

        asyncio.run(run())

        assert [data.message for _, _, data, _ in recorder.inserts] == ["kept"]

    def test_sync_insert(self, tmp_path, connection):
        """Test that a plain function works as the insert callback."""
        rows = []

        def insert(line, config, data, logger):
            rows.append(line)

        async def run():
            logger = LoggerDB(connection, insert, formato="%{R}", ruta=tmp_path)
            await logger.log_base_datos("direct")

        asyncio.run(run())

        assert rows == ["direct"]

    def test_insert_not_awaited(self, tmp_path):
        """Test that the entry point returns before the insert finishes."""
        release = None
        done = []

        async def slow_insert(line, config, data, logger):
            await release.wait()
            done.append(line)

        async def run():
            nonlocal release
            release = asyncio.Event()
            logger = LoggerDB(
                funcion_insertar_log=slow_insert, formato="%{R}", ruta=tmp_path
            )
            await logger.info_base_datos("later")
            pending_before = logger.pending_inserts
            finished_before = list(done)
            release.set()
            await settle()
            return pending_before, finished_before, logger.pending_inserts

        pending_before, finished_before, pending_after = asyncio.run(run())

        assert pending_before == 1
        assert finished_before == []
        assert pending_after == 0
        assert done == ["later"]

    def test_colours_and_file_ignored(self, tmp_path, recorder):
        """Test that colours render empty and file overrides are not validated."""
        (tmp_path / "data.csv").write_text("a,b\n")
        override = {
            "formato": "%{CR}%{R}%{CF}",
            "colores": ColorPalette(red="<r>", reset="</r>"),
            "fichero": "data.csv",
            "codificacion": "bogus",
        }

        async def run():
            logger = LoggerDB(funcion_insertar_log=recorder.insert, ruta=tmp_path)
            await logger.info_base_datos("plain", override)
            await settle()

        asyncio.run(run())

        assert recorder.inserts[0][0] == "plain"

    def test_raised_error(self, tmp_path, recorder):
        """Test that a genuine error uses the error format and fills the record."""

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=recorder.insert,
                formato_error="%{N}|%{E}|%{R}",
                ruta=tmp_path,
            )
            try:
                {}["missing"]
            except KeyError as e:
                await logger.error_base_datos("lookup failed", error=e)
            await settle()

        asyncio.run(run())

        line, _, data, _ = recorder.inserts[0]
        assert line == "KeyError|'missing'|lookup failed"
        assert data.error_name == "KeyError"
        assert data.function == "TestDatabaseSink.test_raised_error.<locals>.run"


class TestDatabaseOverrides:
    """Test per-call overrides of the database sink."""

    def test_override_connection(self, tmp_path, recorder, connection):
        """Test that an override connection is checked and used for the call."""
        checked = []

        def check(config, logger):
            checked.append(config)
            return True

        async def run():
            logger = LoggerDB(funcion_insertar_log=recorder.insert, ruta=tmp_path)
            await logger.info_base_datos(
                "m", LoggerDBConfig(config_conexion=connection, funcion_comprobar=check)
            )
            await settle()
            return logger

        logger = asyncio.run(run())

        assert checked == [connection]
        assert recorder.inserts[0][1] is connection
        assert logger.config_conexion == {}

    def test_override_connection_default_check(self, tmp_path, recorder, connection):
        """Test that the instance check is used when the override has none."""

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=recorder.insert,
                funcion_comprobar_conexion=reject,
                ruta=tmp_path,
            )
            await logger.info_base_datos("m", {"config_conexion": connection})

        with pytest.raises(ConnectionFailedError):
            asyncio.run(run())

        assert recorder.inserts == []

    def test_override_insert(self, tmp_path, recorder):
        """Test that an override insert callback replaces the instance one."""
        other = Recorder()

        async def run():
            logger = LoggerDB(funcion_insertar_log=recorder.insert, ruta=tmp_path)
            await logger.info_base_datos("m", {"funcion_insertar": other.insert})
            await settle()

        asyncio.run(run())

        assert recorder.inserts == []
        assert len(other.inserts) == 1

    def test_override_bad_insert(self, tmp_path):
        """Test that an override insert with the wrong arity raises."""

        async def run():
            logger = LoggerDB(ruta=tmp_path)
            await logger.info_base_datos("m", {"funcion_insertar": lambda line: None})

        with pytest.raises(ConfigInvalidError):
            asyncio.run(run())


class TestInsertFailures:
    """Test that insert failures never reach the caller."""

    def test_async_failure_reaches_observer(self, tmp_path, recorder):
        """Test that an async insert failure is reported to the observer."""

        async def failing_insert(line, config, data, logger):
            raise RuntimeError("duplicate key")

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=failing_insert,
                on_insert_error=recorder.observe,
                ruta=tmp_path,
            )
            await logger.info_base_datos("m")
            await settle()
            return logger

        logger = asyncio.run(run())

        assert len(recorder.failures) == 1
        exc, data = recorder.failures[0]
        assert isinstance(exc, RuntimeError)
        assert data.message == "m"
        assert logger.pending_inserts == 0

    def test_sync_failure_reaches_observer(self, tmp_path, recorder):
        """Test that a synchronous insert failure is reported to the observer."""

        def failing_insert(line, config, data, logger):
            raise ValueError("bad row")

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=failing_insert,
                on_insert_error=recorder.observe,
                ruta=tmp_path,
            )
            await logger.fatal_base_datos("m")

        asyncio.run(run())

        assert isinstance(recorder.failures[0][0], ValueError)

    def test_failure_without_observer(self, tmp_path):
        """Test that a failure with no observer is silently dropped."""

        async def failing_insert(line, config, data, logger):
            raise RuntimeError("duplicate key")

        async def run():
            logger = LoggerDB(funcion_insertar_log=failing_insert, ruta=tmp_path)
            await logger.info_base_datos("m")
            await settle()

        asyncio.run(run())

    def test_observer_failure_contained(self, tmp_path):
        """Test that an observer raising does not reach the caller."""

        async def failing_insert(line, config, data, logger):
            raise RuntimeError("duplicate key")

        def failing_observer(exc, data):
            raise KeyError("observer bug")

        async def run():
            logger = LoggerDB(
                funcion_insertar_log=failing_insert,
                on_insert_error=failing_observer,
                ruta=tmp_path,
            )
            await logger.info_base_datos("m")
            await settle()

        asyncio.run(run())

# example.py
import asyncio
import sqlite3

from plantilog import LogLevel, Logger, LoggerConfig, LoggerDB
from plantilog.utils.colors import ColorPalette

# Console and file logging in the working directory
logger = Logger(fichero="example.log", nivel=LogLevel.INFO)

logger.log_consola("below the threshold, never printed")
logger.info_consola("service started")
logger.aviso_consola("cache is cold")

# Per-call override: colour tokens only render on the console
highlight = LoggerConfig(formato="%{CR}(%{T})%{CF} %{F}:%{L} - %{R}")
logger.error_consola("highlighted line", highlight)


def load_settings(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


try:
    load_settings("missing-settings.toml")
except OSError as e:
    # Genuine errors use the error format, with name, message and origin
    logger.error_consola("could not load settings", error=e)
    logger.error_archivo("could not load settings", error=e)

# A custom palette for one call
marker = ColorPalette(green="** ", reset=" **")
logger.info_consola("done", {"formato": "%{CV}%{R}%{CF}", "colores": marker})


# Database logging through injected callbacks
def check_connection(config, logger):
    return config["connection"].execute("SELECT 1").fetchone() == (1,)


def insert_log(line, config, data, logger):
    config["connection"].execute(
        "INSERT INTO logs (type, message, function, line) VALUES (?, ?, ?, ?)",
        (data.type, data.message, data.function, line),
    )


def report_failure(exc, data):
    logger.aviso_consola(f"insert of {data.type} entry failed: {exc}")


async def main():
    connection = sqlite3.connect(":memory:")
    connection.execute(
        "CREATE TABLE logs (type TEXT, message TEXT, function TEXT, line TEXT)"
    )

    db_logger = await LoggerDB.crear(
        {"connection": connection},
        insert_log,
        check_connection,
        fichero="example.log",
        on_insert_error=report_failure,
    )
    await db_logger.info_base_datos("stored in sqlite")
    await db_logger.fatal_base_datos("also stored")

    for row in connection.execute("SELECT type, message, function FROM logs"):
        db_logger.info_consola(f"row: {row}")


asyncio.run(main())

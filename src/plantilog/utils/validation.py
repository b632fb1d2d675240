"""Validation of log targets and encodings.

These checks back every place a directory, file name or encoding enters a
logger: construction, setter assignment and per-call overrides. They raise
ConfigInvalidError and never create or modify anything on disk.
"""

import os
from pathlib import Path
from typing import Union

from plantilog.api.errors import ConfigInvalidError
from plantilog.config import LOG_EXTENSION

PathLike = Union[str, os.PathLike]


def check_directory(ruta: PathLike) -> Path:
    """Validate the directory log files are written to.

    Args:
        ruta: Directory path, absolute or relative to the working directory.

    Returns:
        pathlib.Path: The absolute directory path.

    Raises:
        ConfigInvalidError: If the path does not exist, is not a directory,
                            or lacks read and write permission.
    """
    directory = Path(ruta).resolve()

    if not directory.is_dir():
        raise ConfigInvalidError(
            f"The path {directory} does not exist or is not a directory"
        )

    if not os.access(directory, os.R_OK | os.W_OK):
        raise ConfigInvalidError(
            f"Read and write permissions are required for the directory {directory}"
        )

    return directory


def check_file(fichero: PathLike, ruta: Path) -> Path:
    """Validate a log file target inside an already validated directory.

    Only the final component of ``fichero`` is kept, so a target can never
    escape ``ruta``. A target that does not exist yet is accepted as is. An
    existing one must be a regular file with the log extension and must be
    readable and writable, so unrelated files are never appended to.

    Args:
        fichero: File name; any leading directories are discarded.
        ruta: Directory returned by check_directory.

    Returns:
        pathlib.Path: Absolute path of the log file.

    Raises:
        ConfigInvalidError: If an existing target is not a file, does not have
                            the log extension, or lacks read and write
                            permission.
    """
    target = ruta / Path(fichero).name

    if target.exists():
        if not target.is_file():
            raise ConfigInvalidError(f"The target {target} is not a file")

        if target.suffix != LOG_EXTENSION:
            raise ConfigInvalidError(
                f"The file {target} is not a {LOG_EXTENSION} file; only log "
                "files are appended to"
            )

        if not os.access(target, os.R_OK | os.W_OK):
            raise ConfigInvalidError(
                f"Read and write permissions are required for the file {target}"
            )

    return target


def check_encoding(codificacion: str) -> str:
    """Validate a text encoding name.

    Args:
        codificacion: Name of a Python text codec, e.g. "utf-8" or "latin-1".

    Returns:
        str: The encoding name as given.

    Raises:
        ConfigInvalidError: If the name is not a known codec, or names a
                            bytes-to-bytes codec such as "hex".
    """
    try:
        "".encode(codificacion)
    except (LookupError, TypeError):
        raise ConfigInvalidError(
            f"The encoding {codificacion!r} is not valid"
        ) from None
    return codificacion

"""Filesystem helpers for the command line tool.

This module decides where generated code goes and writes it there.
"""

from pathlib import Path
from typing import Sequence

from .logging_config import get_logger

logger = get_logger(__name__)


class OutputError(Exception):
    """Raised when generated code cannot be written."""

    pass


def is_directory(name: str | Path) -> bool:
    """Report whether `name` names an existing directory."""
    return Path(name).is_dir()


def source_directory(patterns: Sequence[str]) -> Path:
    """Directory holding the package named by `patterns`.

    Args:
        patterns: A single directory, or source files of one package.

    Returns:
        The directory itself, or the parent of the first file.
    """
    if not patterns:
        return Path(".")
    first = Path(patterns[0])
    if len(patterns) == 1 and is_directory(first):
        return first
    return first.parent


def default_output_path(
    patterns: Sequence[str], type_name: str, suffix: str = "_option.go"
) -> Path:
    """Default output file: `<srcdir>/<type>_option.go`, lower-cased."""
    return source_directory(patterns) / f"{type_name}{suffix}".lower()


def write_output(path: str | Path, code: str) -> Path:
    """Write generated code to `path`.

    Args:
        path: Destination file.
        code: Generated source text.

    Returns:
        The path written.

    Raises:
        OutputError: If the file cannot be written.
    """
    path = Path(path)
    logger.debug("Writing %d bytes to %s", len(code), path)
    try:
        path.write_text(code, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"writing output: {e}") from e
    logger.info("Wrote %s", path)
    return path

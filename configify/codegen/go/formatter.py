"""
Canonical formatting of generated Go source.

Pipes the generated text through `gofmt`. Formatting problems never
fail a run: the raw text is kept and the reason comes back as warnings.
"""

import shutil
import subprocess
from typing import List, Optional, Tuple

from ...logging_config import get_logger

logger = get_logger(__name__)

INVALID_SOURCE_WARNINGS = [
    "internal error: invalid Go generated: {error}",
    "compile the package to analyze the error",
]


class GoFormatter:
    """Runs gofmt over generated source."""

    def __init__(self, command: str = "gofmt", timeout: Optional[float] = 30.0):
        self.command = command
        self.timeout = timeout

    def format(self, source: str) -> Tuple[str, List[str]]:
        """
        Format `source`.

        Returns:
            The formatted text (or `source` unchanged) and any warnings.
        """
        executable = shutil.which(self.command)
        if executable is None:
            logger.debug("%s not found; leaving output unformatted", self.command)
            return source, [f"{self.command} not found; output left unformatted"]

        try:
            proc = subprocess.run(
                [executable],
                input=source,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Running %s failed: %s", self.command, e)
            return source, [f"running {self.command} failed: {e}"]

        if proc.returncode != 0:
            error = _first_error(proc.stderr)
            for message in INVALID_SOURCE_WARNINGS:
                logger.warning(message.format(error=error))
            return source, [m.format(error=error) for m in INVALID_SOURCE_WARNINGS]

        return proc.stdout, []


def _first_error(stderr: str) -> str:
    for line in stderr.splitlines():
        line = line.strip()
        if line:
            # gofmt reports "<standard input>:line:col: message"
            return line.replace("<standard input>:", "", 1)
    return "gofmt failed"

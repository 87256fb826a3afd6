"""Process invocation behind a one-method interface.

The compiler adapter and the ``shasum`` fingerprint provider talk to the
outside world only through a :class:`ProcessRunner`, so tests can swap in
a fake that never spawns anything.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ProcessResult(BaseModel):
    """Captured outcome of one external command."""

    model_config = ConfigDict(frozen=True)

    args: tuple[str, ...]
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def diagnostics(self) -> str:
        """Human-readable stderr (falling back to stdout) for error messages."""
        text = self.stderr or self.stdout
        return text.decode("utf-8", errors="replace")


@runtime_checkable
class ProcessRunner(Protocol):
    """Anything that can run an argv and capture its output."""

    def run(self, args: Sequence[str]) -> ProcessResult:
        """Run *args* to completion and return the captured result.

        Raises ``OSError`` when the executable cannot be started.
        """
        ...


class SubprocessRunner:
    """Default :class:`ProcessRunner` backed by :func:`subprocess.run`."""

    def run(self, args: Sequence[str]) -> ProcessResult:
        argv = tuple(str(a) for a in args)
        logger.debug("exec: %s", " ".join(argv))
        completed = subprocess.run(argv, capture_output=True, check=False)
        return ProcessResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

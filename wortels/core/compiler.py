"""Batch compiler adapters for the supported JavaScript minifiers.

A batch is compiled with a single invocation. The minifier must print a
``// Input <N>`` line ahead of the output for the N-th file (0-indexed, in
the order the files were passed); :mod:`wortels.core.demux` relies on it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from wortels.core.errors import CompilationError
from wortels.core.process_runner import ProcessRunner, SubprocessRunner
from wortels.models.backends import CompressorBackend
from wortels.models.bundle import CompilationBatch
from wortels.models.config import BundleConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class BatchCompiler(Protocol):
    """Minifies a whole batch in one go and returns the combined output."""

    backend: CompressorBackend

    def compile(self, batch: CompilationBatch) -> bytes:
        ...


class _CommandCompiler:
    """Shared plumbing: build argv, run it once, check the exit status."""

    backend: CompressorBackend

    def __init__(self, runner: ProcessRunner | None = None) -> None:
        self._runner = runner or SubprocessRunner()

    def command(self, files: Sequence[Path]) -> list[str]:
        raise NotImplementedError

    def compile(self, batch: CompilationBatch) -> bytes:
        if not batch:
            return b""
        args = self.command(batch.files)
        logger.debug("Compiling %d file(s): %s", len(batch), " ".join(args))
        try:
            result = self._runner.run(args)
        except OSError as exc:
            raise CompilationError(
                f"Cannot start {self.backend.value} compiler ({args[0]}): {exc}"
            ) from exc
        if not result.ok:
            raise CompilationError(
                f"{self.backend.value} compiler exited with status {result.returncode}",
                diagnostics=result.diagnostics(),
            )
        return result.stdout


class ClosureCompiler(_CommandCompiler):
    """Google Closure Compiler, run from its jar with input delimiters on."""

    backend = CompressorBackend.CLOSURE

    def __init__(
        self,
        jar: Path,
        runner: ProcessRunner | None = None,
        *,
        java: str = "java",
    ) -> None:
        super().__init__(runner)
        self._jar = Path(jar)
        self._java = java

    def command(self, files: Sequence[Path]) -> list[str]:
        return [
            self._java,
            "-jar",
            self._jar.as_posix(),
            "--warning_level",
            "QUIET",
            "--compilation_level",
            "SIMPLE_OPTIMIZATIONS",
            "--formatting",
            "print_input_delimiter",
            "--js",
            *(Path(f).as_posix() for f in files),
        ]


class UglifyJSCompiler(_CommandCompiler):
    """UglifyJS command line tool."""

    backend = CompressorBackend.UGLIFYJS

    def __init__(self, runner: ProcessRunner | None = None, *, executable: str = "uglifyjs") -> None:
        super().__init__(runner)
        self._executable = executable

    def command(self, files: Sequence[Path]) -> list[str]:
        return [self._executable, *(Path(f).as_posix() for f in files)]


def make_compiler(config: BundleConfig, runner: ProcessRunner | None = None) -> BatchCompiler:
    """Build the compiler adapter for the configured backend."""
    if config.backend == CompressorBackend.UGLIFYJS:
        return UglifyJSCompiler(runner)
    return ClosureCompiler(config.closure_jar_path, runner)

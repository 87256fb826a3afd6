"""Content fingerprinting for source files and finished bundles.

Fingerprints are computed per directory rather than per file: the planner
asks for every file sitting next to a referenced source in one call, which
is what makes the ``shasum`` backend affordable. Directories are independent
of each other, so :func:`fingerprint_directories` fans them out over a
thread pool and merges the results on the calling thread.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Protocol, runtime_checkable

from wortels.core.errors import FingerprintError
from wortels.core.hasher import sha1_file
from wortels.core.process_runner import ProcessRunner, SubprocessRunner
from wortels.models.backends import FingerprintTool

logger = logging.getLogger(__name__)

# "<hex>  <path>" in text mode, "<hex> *<path>" in binary mode (Windows).
_SHASUM_LINE = re.compile(r"^(?P<digest>[0-9a-fA-F]+) [ *](?P<path>.+)$")


@runtime_checkable
class FingerprintProvider(Protocol):
    """Computes stable, filename-safe content fingerprints."""

    def fingerprint_directory(self, directory: Path) -> dict[Path, str]:
        """Fingerprint every regular file directly inside *directory*.

        A directory that does not exist or holds no files yields ``{}``.
        """
        ...

    def fingerprint_files(self, paths: Sequence[Path]) -> dict[Path, str]:
        """Fingerprint exactly the given files."""
        ...


def _glob_directory(directory: Path) -> list[Path] | None:
    """Non-hidden entries of *directory*, like a shell ``dir/*`` glob.

    Returns ``None`` when the directory does not exist.
    """
    try:
        return sorted(p for p in Path(directory).iterdir() if not p.name.startswith("."))
    except (FileNotFoundError, NotADirectoryError):
        return None
    except OSError as exc:
        raise FingerprintError(f"Cannot list directory '{directory}': {exc}") from exc


class HashlibFingerprintProvider:
    """In-process SHA-1 fingerprints."""

    def fingerprint_directory(self, directory: Path) -> dict[Path, str]:
        entries = _glob_directory(directory)
        if not entries:
            return {}
        return self.fingerprint_files([p for p in entries if p.is_file()])

    def fingerprint_files(self, paths: Sequence[Path]) -> dict[Path, str]:
        table: dict[Path, str] = {}
        for path in paths:
            try:
                table[Path(path)] = sha1_file(path)
            except OSError as exc:
                raise FingerprintError(f"Cannot fingerprint '{path}': {exc}") from exc
        return table


class ShasumFingerprintProvider:
    """Fingerprints computed by the ``shasum`` command line tool.

    ``shasum`` exits with status 1 when its argument list contains
    directories, even though every regular file was hashed. That status is
    accepted only when each diagnostic it printed is such a directory notice;
    any other diagnostic or exit status is a real failure.

    Parameters
    ----------
    runner:
        Process runner used to invoke the tool.
    executable:
        Name or path of the ``shasum`` binary.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        executable: str = "shasum",
    ) -> None:
        self._runner = runner or SubprocessRunner()
        self._executable = executable

    def fingerprint_directory(self, directory: Path) -> dict[Path, str]:
        entries = _glob_directory(directory)
        if not entries:
            # No matching files. Not an error; the planner reports any
            # referenced file that is missing.
            return {}
        return self.fingerprint_files(entries)

    def fingerprint_files(self, paths: Sequence[Path]) -> dict[Path, str]:
        if not paths:
            return {}
        args = [self._executable, *(Path(p).as_posix() for p in paths)]
        try:
            result = self._runner.run(args)
        except OSError as exc:
            raise FingerprintError(f"Cannot run {self._executable}: {exc}") from exc

        table: dict[Path, str] = {}
        problems: list[str] = []
        for line in _lines(result.stdout) + _lines(result.stderr):
            if _is_directory_notice(line):
                continue
            if line.startswith("shasum: "):
                problems.append(line)
                continue
            match = _SHASUM_LINE.match(line)
            if match is None:
                problems.append(f"unexpected output: {line!r}")
                continue
            table[Path(match.group("path"))] = match.group("digest").lower()

        tolerated = result.returncode == 1 and not problems
        if problems or not (result.ok or tolerated):
            detail = "; ".join(problems) or result.diagnostics().strip()
            raise FingerprintError(
                f"{self._executable} exited with status {result.returncode}: {detail}"
            )
        return table


def _lines(data: bytes) -> list[str]:
    return [line for line in data.decode("utf-8", errors="replace").splitlines() if line]


def _is_directory_notice(line: str) -> bool:
    return line.startswith("shasum: ") and line.endswith("Is a directory")


def make_fingerprint_provider(
    tool: FingerprintTool, runner: ProcessRunner | None = None
) -> FingerprintProvider:
    """Build the provider selected in configuration."""
    if tool == FingerprintTool.SHASUM:
        return ShasumFingerprintProvider(runner)
    return HashlibFingerprintProvider()


def fingerprint_directories(
    directories: Iterable[Path],
    provider: FingerprintProvider,
    *,
    max_workers: int = 4,
) -> dict[Path, str]:
    """Fingerprint several directories concurrently into one table.

    Each directory is handled by its own task. Results are merged only here,
    on the calling thread, after each task completes; the first failure is
    re-raised once the pool has shut down.
    """
    unique = sorted(set(directories))
    table: dict[Path, str] = {}
    if not unique:
        return table

    workers = max(1, min(max_workers, len(unique)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fingerprint") as pool:
        futures: dict[Future[dict[Path, str]], Path] = {
            pool.submit(provider.fingerprint_directory, directory): directory
            for directory in unique
        }
        for future in as_completed(futures):
            found = future.result()
            logger.debug("Fingerprinted %d file(s) in %s", len(found), futures[future])
            table.update(found)
    return table

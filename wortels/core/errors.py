"""Error taxonomy for a bundling run.

Every error aborts the whole run. Each class records the pipeline stage it
belongs to so the CLI can tell the user where things went wrong.
"""

from __future__ import annotations

from pathlib import Path


class WortelsError(RuntimeError):
    """Base class for all fatal bundling errors."""

    stage: str = "run"


class ManifestReadError(WortelsError):
    """Raised when a manifest file cannot be read or decoded."""

    stage = "resolve"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read manifest '{path}': {reason}")


class FingerprintError(WortelsError):
    """Raised when the fingerprint provider fails for a directory or file set."""

    stage = "fingerprint"


class UnresolvedFileError(WortelsError):
    """Raised when a manifest references a file that does not exist on disk."""

    stage = "plan"

    def __init__(self, path: Path, manifest: Path | None = None) -> None:
        self.path = path
        self.manifest = manifest
        where = f" (referenced by '{manifest}')" if manifest is not None else ""
        super().__init__(
            f"File mentioned in manifest not found: '{path}'{where}. "
            "Please check the file really exists!"
        )


class CacheMissError(WortelsError):
    """Raised when a cache entry is read without having been stored."""

    stage = "assemble"

    def __init__(self, fingerprint: str, backend: str) -> None:
        self.fingerprint = fingerprint
        self.backend = backend
        super().__init__(f"No cached output for {fingerprint} ({backend})")


class CompilationError(WortelsError):
    """Raised when the external minifier exits nonzero or cannot be started."""

    stage = "compile"

    def __init__(self, message: str, diagnostics: str = "") -> None:
        self.diagnostics = diagnostics
        text = message if not diagnostics else f"{message}\n{diagnostics.rstrip()}"
        super().__init__(text)


class DemuxProtocolError(WortelsError):
    """Raised when compiler output does not follow the input-marker convention."""

    stage = "demux"


class BundleWriteError(WortelsError):
    """Raised when a bundle cannot be written or renamed."""

    stage = "assemble"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write bundle '{path}': {reason}")


class StageError(WortelsError):
    """Unexpected failure (usually an ``OSError``) inside a named stage."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(message)

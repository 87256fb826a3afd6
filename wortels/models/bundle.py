"""Models flowing between pipeline stages."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ResolvedManifest(BaseModel):
    """A manifest and the ordered source files it lists.

    ``sources`` keeps manifest order (it decides bundle byte order) and may
    repeat files that other manifests also list.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    sources: tuple[Path, ...] = ()

    @property
    def bundle_name(self) -> str:
        return self.path.name


class CompilationPlan(BaseModel):
    """Fingerprints of every referenced file plus the files needing compilation.

    ``misses`` holds one path per uncached fingerprint, so identical content
    living at two paths is compiled once.
    """

    model_config = ConfigDict(frozen=True)

    fingerprints: dict[Path, str]
    misses: frozenset[Path] = frozenset()

    @property
    def missing_fingerprints(self) -> set[str]:
        return {self.fingerprints[p] for p in self.misses}

    @property
    def cache_hits(self) -> int:
        """Distinct referenced fingerprints that were already cached."""
        return len(set(self.fingerprints.values()) - self.missing_fingerprints)

    def batch(self) -> CompilationBatch:
        """Freeze the miss set into the order handed to the compiler."""
        return CompilationBatch(files=tuple(sorted(self.misses)))


class CompilationBatch(BaseModel):
    """Ordered miss set. Compiler output is demultiplexed by position in ``files``."""

    model_config = ConfigDict(frozen=True)

    files: tuple[Path, ...] = ()

    def __len__(self) -> int:
        return len(self.files)

    def __bool__(self) -> bool:
        return bool(self.files)


class BundleOutput(BaseModel):
    """A bundle written to disk."""

    model_config = ConfigDict(frozen=True)

    manifest: Path
    path: Path
    size_bytes: int
    digest: str | None = None


class BundleRunReport(BaseModel):
    """Summary of one pipeline run."""

    model_config = ConfigDict(frozen=True)

    manifests: int
    source_files: int
    compiled: int
    cache_hits: int
    bundles: list[BundleOutput]
    compile_seconds: float = 0.0

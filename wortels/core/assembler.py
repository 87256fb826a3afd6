"""Bundle assembly: concatenates cached output per manifest.

Bundles are written to ``<outdir>/<manifest-basename>``. An explicit digest
is injected into the name before writing; otherwise, when requested, each
staged bundle is fingerprinted and published under a name carrying its own
digest.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from wortels.core.cache_store import CompilationCache
from wortels.core.errors import BundleWriteError, CacheMissError, FingerprintError
from wortels.core.fingerprint import FingerprintProvider
from wortels.models.bundle import BundleOutput, ResolvedManifest

logger = logging.getLogger(__name__)


def inject_digest(path: Path, digest: str) -> Path:
    """Insert ``-<digest>`` in front of the file extension.

    >>> inject_digest(Path("public/assets/app.js"), "abc123")
    PosixPath('public/assets/app-abc123.js')
    """
    path = Path(path)
    suffix = path.suffix
    stem = path.name[: -len(suffix)] if suffix else path.name
    return path.with_name(f"{stem}-{digest}{suffix}")


class BundleAssembler:
    """Writes one bundle per manifest from the compilation cache.

    Parameters
    ----------
    cache:
        Cache holding minified output for every referenced fingerprint.
    outdir:
        Directory receiving the bundles; created if missing.
    provider:
        Fingerprints finished bundles for self-generated digests.
    """

    def __init__(
        self,
        cache: CompilationCache,
        outdir: Path,
        provider: FingerprintProvider,
    ) -> None:
        self._cache = cache
        self._outdir = Path(outdir)
        self._provider = provider

    def assemble(
        self,
        manifests: Sequence[ResolvedManifest],
        fingerprints: Mapping[Path, str],
        *,
        digest: str | None = None,
        generate_digest: bool = False,
    ) -> list[BundleOutput]:
        """Write every bundle and return where each one ended up.

        All referenced fingerprints are checked against the cache before the
        first byte is written, so a missing entry leaves no bundles behind.
        Bundles are staged in temporary files and moved into place only once
        all of them are written; a failure while moving removes the bundles
        already published by this call. An explicit *digest* takes precedence
        over *generate_digest*.
        """
        for manifest in manifests:
            for source in manifest.sources:
                if not self._cache.has(fingerprints[source]):
                    raise CacheMissError(fingerprints[source], self._cache.backend.value)

        try:
            self._outdir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BundleWriteError(self._outdir, str(exc)) from exc

        staged: dict[Path, Path] = {}
        published: list[Path] = []
        try:
            outputs: list[BundleOutput] = []
            for manifest in manifests:
                target = self._outdir / manifest.bundle_name
                if digest:
                    target = inject_digest(target, digest)
                if target in staged:
                    logger.warning("Bundle %s written by more than one manifest", target)
                    staged.pop(target).unlink(missing_ok=True)
                data = b"".join(self._cache.get(fingerprints[s]) for s in manifest.sources)
                staged[target] = self._stage(target, data)
                outputs.append(
                    BundleOutput(manifest=manifest.path, path=target, size_bytes=len(data), digest=digest)
                )
                logger.debug("Staged %s (%d bytes, %d source(s))", target, len(data), len(manifest.sources))

            if generate_digest and not digest:
                outputs, staged = self._apply_own_digest(outputs, staged)

            for target, tmp in staged.items():
                try:
                    os.replace(tmp, target)
                except OSError as exc:
                    raise BundleWriteError(target, str(exc)) from exc
                published.append(target)
                logger.info("Wrote %s", target)
        except BaseException:
            for path in published:
                path.unlink(missing_ok=True)
            raise
        finally:
            for tmp in staged.values():
                tmp.unlink(missing_ok=True)
        return outputs

    def _stage(self, target: Path, data: bytes) -> Path:
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._outdir, prefix=f".{target.name}.", suffix=".tmp")
        except OSError as exc:
            raise BundleWriteError(target, str(exc)) from exc
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise BundleWriteError(target, str(exc)) from exc
        return tmp

    def _apply_own_digest(
        self, outputs: list[BundleOutput], staged: dict[Path, Path]
    ) -> tuple[list[BundleOutput], dict[Path, Path]]:
        digests = self._provider.fingerprint_files(list(staged.values()))
        renamed: dict[Path, tuple[Path, str]] = {}
        for target, tmp in staged.items():
            own = digests.get(tmp)
            if own is None:
                raise FingerprintError(f"No fingerprint computed for bundle '{target}'")
            renamed[target] = (inject_digest(target, own), own)
            logger.debug("Bundle %s gets digest %s", target, own)

        outputs = [
            o.model_copy(update={"path": renamed[o.path][0], "digest": renamed[o.path][1]})
            for o in outputs
        ]
        return outputs, {renamed[target][0]: tmp for target, tmp in staged.items()}

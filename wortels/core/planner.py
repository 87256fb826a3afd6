"""Compilation planning: which referenced sources still need minifying."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from wortels.core.cache_store import CompilationCache
from wortels.core.errors import UnresolvedFileError
from wortels.core.fingerprint import FingerprintProvider, fingerprint_directories
from wortels.models.bundle import CompilationPlan, ResolvedManifest

logger = logging.getLogger(__name__)


def plan_compilation(
    manifests: Sequence[ResolvedManifest],
    provider: FingerprintProvider,
    cache: CompilationCache,
    *,
    max_workers: int = 4,
) -> CompilationPlan:
    """Fingerprint every referenced source and collect the cache misses.

    Fingerprints are gathered once per containing directory, plus one call
    for referenced hidden files the directory scans leave out. A referenced
    file missing from those results does not exist and fails the run with
    :class:`UnresolvedFileError`. Each uncached fingerprint is represented by
    exactly one path in the miss set, however many manifests (or paths)
    share that content.
    """
    directories = {source.parent for m in manifests for source in m.sources}
    table = fingerprint_directories(directories, provider, max_workers=max_workers)
    # Directory scans skip hidden names; fingerprint those that are referenced.
    unlisted = sorted({s for m in manifests for s in m.sources if s not in table and s.is_file()})
    if unlisted:
        table.update(provider.fingerprint_files(unlisted))
    logger.debug("Fingerprint table: %d file(s) in %d dir(s)", len(table), len(directories))

    fingerprints: dict[Path, str] = {}
    owners: dict[str, Path] = {}
    misses: set[Path] = set()
    for manifest in manifests:
        for source in manifest.sources:
            if source in fingerprints:
                continue
            fingerprint = table.get(source)
            if fingerprint is None:
                raise UnresolvedFileError(source, manifest.path)
            fingerprints[source] = fingerprint
            if fingerprint in owners:
                continue
            owners[fingerprint] = source
            if not cache.has(fingerprint):
                misses.add(source)

    plan = CompilationPlan(fingerprints=fingerprints, misses=frozenset(misses))
    logger.info(
        "%d source file(s), %d to compile, %d cached",
        len(fingerprints),
        len(plan.misses),
        plan.cache_hits,
    )
    return plan

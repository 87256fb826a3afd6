"""Manifest parsing: turns manifest files into ordered source lists.

A manifest lists one source per line. Sprockets ``//= require name`` lines
are accepted and rewritten to ``name.js``; any other line starting with
``//`` is a comment.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from wortels.core.errors import ManifestReadError
from wortels.models.bundle import ResolvedManifest

logger = logging.getLogger(__name__)

SPROCKETS_REQUIRE = "//= require "
COMMENT_PREFIX = "//"
JS_SUFFIX = ".js"


def parse_manifest_line(line: str) -> str | None:
    """Return the source reference on *line*, or ``None`` if it holds none."""
    entry = line.strip()
    if not entry:
        return None
    if entry.startswith(SPROCKETS_REQUIRE):
        entry = entry[len(SPROCKETS_REQUIRE):].strip()
        if not entry.endswith(JS_SUFFIX):
            entry += JS_SUFFIX
    if entry.startswith(COMMENT_PREFIX):
        return None
    return entry


def parse_manifest_text(text: str, asset_root: Path = Path("")) -> tuple[Path, ...]:
    """Resolve every reference in *text* against *asset_root*, keeping order."""
    sources: list[Path] = []
    for line in text.split("\n"):
        reference = parse_manifest_line(line)
        if reference is None:
            continue
        sources.append((Path(asset_root) / reference).resolve())
    return tuple(sources)


def read_manifest(manifest: Path, asset_root: Path = Path("")) -> ResolvedManifest:
    """Read and resolve a single manifest.

    The manifest is looked up under *asset_root* as well; an absolute
    manifest path is used as-is.
    """
    location = Path(asset_root) / manifest
    try:
        text = location.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ManifestReadError(location, f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise ManifestReadError(location, exc.strerror or str(exc)) from exc
    return ResolvedManifest(path=Path(manifest), sources=parse_manifest_text(text, asset_root))


def resolve_manifests(
    manifests: Iterable[Path], asset_root: Path = Path("")
) -> list[ResolvedManifest]:
    """Resolve manifests in command line order."""
    resolved = [read_manifest(Path(m), asset_root) for m in manifests]
    for manifest in resolved:
        logger.debug("Manifest %s: %d source(s)", manifest.path, len(manifest.sources))
    return resolved

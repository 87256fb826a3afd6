"""Run configuration model: built once at startup, never mutated."""

from __future__ import annotations

import os
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wortels.models.backends import CompressorBackend, FingerprintTool

DEFAULT_OUTDIR = Path("public") / "assets"

_SAFE_TOKEN = re.compile(r"^[A-Za-z0-9._-]+$")


def default_app_data_dir() -> Path:
    """Where wortels keeps its cache and the Closure Compiler jar."""
    return Path.home() / ".wortels"


def default_fingerprint_workers() -> int:
    return max(1, min(8, os.cpu_count() or 1))


class BundleConfig(BaseModel):
    """Everything a single bundling run needs to know.

    Constructed by the CLI from command line options and
    :class:`~wortels.config.WortelsSettings`, then handed to every
    pipeline component by reference.
    """

    model_config = ConfigDict(frozen=True)

    manifests: tuple[Path, ...]
    outdir: Path = DEFAULT_OUTDIR
    verbose: bool = False
    digest: str = ""  # explicit digest injected into bundle names
    generate_digest: bool = False
    asset_path: Path = Path("")
    backend: CompressorBackend = CompressorBackend.CLOSURE
    app_data_dir: Path = Field(default_factory=default_app_data_dir)
    closure_jar: Path | None = None
    fingerprint_tool: FingerprintTool = FingerprintTool.HASHLIB
    fingerprint_workers: int = Field(default_factory=default_fingerprint_workers, ge=1)

    @field_validator("manifests")
    @classmethod
    def _require_manifest(cls, value: tuple[Path, ...]) -> tuple[Path, ...]:
        if not value:
            raise ValueError("at least one manifest file is required")
        return value

    @field_validator("digest")
    @classmethod
    def _digest_is_filename_safe(cls, value: str) -> str:
        if value and not _SAFE_TOKEN.match(value):
            raise ValueError(f"digest {value!r} is not safe to use in a file name")
        return value

    @property
    def cache_root(self) -> Path:
        """Cache root; each backend keeps its entries in a subdirectory."""
        return self.app_data_dir / "cache"

    @property
    def closure_jar_path(self) -> Path:
        if self.closure_jar is not None:
            return self.closure_jar
        return self.app_data_dir / "compiler-latest" / "compiler.jar"

    @property
    def explicit_digest(self) -> str | None:
        return self.digest or None

"""Content-addressed cache of minified output.

Storage layout: ``{app_data_dir}/cache/{backend}/{fingerprint}``.
One file per cached unit holding the minified bytes. There is no delete
or eviction; an entry for a fingerprint never changes.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from wortels.core.errors import CacheMissError
from wortels.models.backends import CompressorBackend

logger = logging.getLogger(__name__)

_FINGERPRINT = re.compile(r"^[A-Za-z0-9_-]+$")


class CompilationCache:
    """Fingerprint-keyed store of minified bytes, scoped to one backend.

    Parameters
    ----------
    root:
        Cache root (``<app-data-dir>/cache``). Each backend gets its own
        subdirectory so outputs of different minifiers never mix.
    backend:
        The minifier whose output is cached.
    """

    def __init__(self, root: Path, backend: CompressorBackend) -> None:
        self._backend = CompressorBackend(backend)
        self._dir = Path(root) / self._backend.value
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def backend(self) -> CompressorBackend:
        return self._backend

    def _entry_path(self, fingerprint: str) -> Path:
        if not _FINGERPRINT.match(fingerprint):
            raise ValueError(f"Not a valid cache fingerprint: {fingerprint!r}")
        return self._dir / fingerprint

    def has(self, fingerprint: str) -> bool:
        """Check whether minified output for *fingerprint* is cached."""
        return self._entry_path(fingerprint).is_file()

    def get(self, fingerprint: str) -> bytes:
        """Return cached bytes. Raises :class:`CacheMissError` if absent."""
        path = self._entry_path(fingerprint)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise CacheMissError(fingerprint, self._backend.value) from None

    def put(self, fingerprint: str, data: bytes) -> Path:
        """Store *data* under *fingerprint* and return the entry path.

        The write goes through a temporary file in the same directory so a
        reader never sees a half-written entry.
        """
        path = self._entry_path(fingerprint)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{fingerprint}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Cached %s (%d bytes)", fingerprint, len(data))
        return path

    def __len__(self) -> int:
        return sum(1 for p in self._dir.iterdir() if not p.name.startswith("."))

    def __repr__(self) -> str:
        return f"<CompilationCache backend={self._backend.value!r} dir={str(self._dir)!r}>"

"""Content hashing used for cache keys and bundle digests.

SHA-1 hex digests, so the in-process provider produces the same tokens as
the ``shasum`` tool's default algorithm.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1 << 16


def sha1_file(path: Path) -> str:
    """Return the SHA-1 hex digest of a file, read in chunks."""
    digest = hashlib.sha1()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()

"""Splits combined compiler output back into per-file cache entries.

The minifier prints every input's output behind a marker line::

    // Input 0
    <minified first file>
    // Input 1
    <minified second file>

Markers are matched to files purely by position in the batch, so the
stream is checked strictly: markers must start at 0, count up by one, stay
within the batch and cover every file. Nothing is written to the cache
unless the whole stream passes those checks.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from wortels.core.cache_store import CompilationCache
from wortels.core.errors import DemuxProtocolError
from wortels.models.bundle import CompilationBatch

logger = logging.getLogger(__name__)

INPUT_MARKER = b"// Input "


def _marker_index(line: bytes) -> int | None:
    """Index announced by a marker line, or ``None`` for ordinary content."""
    if not line.startswith(INPUT_MARKER):
        return None
    token = line[len(INPUT_MARKER):].strip()
    if not token.isdigit():
        raise DemuxProtocolError(f"Malformed input marker: {line.decode('utf-8', 'replace')!r}")
    return int(token)


def split_compiler_output(output: bytes, count: int) -> list[bytes]:
    """Split *output* into *count* chunks, one per compiled input.

    Lines are copied verbatim including their newline; the stream's final
    segment gets no newline added, so the chunks concatenate back to the
    original content minus the marker lines.
    """
    chunks: list[bytearray] = []
    lines = output.split(b"\n")
    last = len(lines) - 1
    for number, line in enumerate(lines):
        index = _marker_index(line)
        if index is not None:
            if index >= count:
                raise DemuxProtocolError(
                    f"Input marker {index} is out of range for a batch of {count} file(s)"
                )
            if index != len(chunks):
                raise DemuxProtocolError(
                    f"Input marker {index} arrived out of order "
                    f"(expected {len(chunks)}) on line {number + 1}"
                )
            chunks.append(bytearray())
            continue
        if not chunks:
            if number == last and not line:
                break
            raise DemuxProtocolError(
                f"Compiler output line {number + 1} precedes the first input marker: "
                f"{line[:80].decode('utf-8', 'replace')!r}"
            )
        chunks[-1] += line
        if number != last:
            chunks[-1] += b"\n"

    if len(chunks) != count:
        raise DemuxProtocolError(
            f"Compiler output has {len(chunks)} input marker(s), expected {count}"
        )
    return [bytes(chunk) for chunk in chunks]


def demultiplex(
    output: bytes,
    batch: CompilationBatch,
    fingerprints: Mapping[Path, str],
    cache: CompilationCache,
) -> list[str]:
    """Store each input's minified output under its file's fingerprint.

    Returns the fingerprints written, in batch order.
    """
    chunks = split_compiler_output(output, len(batch))
    committed: list[str] = []
    for path, chunk in zip(batch.files, chunks):
        fingerprint = fingerprints[path]
        cache.put(fingerprint, chunk)
        logger.debug("%s -> %s", path, fingerprint)
        committed.append(fingerprint)
    return committed

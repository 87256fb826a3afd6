"""Tests for the output demultiplexer: boundary recovery and protocol checks."""

from __future__ import annotations

from pathlib import Path

import pytest

from wortels.core.cache_store import CompilationCache
from wortels.core.demux import demultiplex, split_compiler_output
from wortels.core.errors import DemuxProtocolError
from wortels.models.bundle import CompilationBatch

X = Path("/src/x.js")
Y = Path("/src/y.js")
Z = Path("/src/z.js")
FINGERPRINTS = {X: "f1x", Y: "f2y", Z: "f3z"}


class TestSplitCompilerOutput:
    def test_two_inputs(self):
        chunks = split_compiler_output(b"// Input 0\nAAA\n// Input 1\nBBB\n", 2)
        assert chunks == [b"AAA\n", b"BBB\n"]

    def test_no_trailing_newline_added(self):
        assert split_compiler_output(b"// Input 0\nAAA", 1) == [b"AAA"]

    def test_multiline_content_verbatim(self):
        chunks = split_compiler_output(b"// Input 0\nline1\n\nline3\n// Input 1\n", 2)
        assert chunks == [b"line1\n\nline3\n", b""]

    def test_crlf_preserved(self):
        chunks = split_compiler_output(b"// Input 0\r\nA;\r\n", 1)
        assert chunks == [b"A;\r\n"]

    def test_empty_stream_for_empty_batch(self):
        assert split_compiler_output(b"", 0) == []

    def test_content_before_first_marker(self):
        with pytest.raises(DemuxProtocolError, match="precedes the first input marker"):
            split_compiler_output(b"warning: something\n// Input 0\nA\n", 1)

    def test_out_of_order_markers(self):
        with pytest.raises(DemuxProtocolError, match="out of order"):
            split_compiler_output(b"// Input 1\nB\n// Input 0\nA\n", 2)

    def test_duplicate_marker(self):
        with pytest.raises(DemuxProtocolError, match="out of order"):
            split_compiler_output(b"// Input 0\nA\n// Input 0\nA\n", 2)

    def test_marker_out_of_range(self):
        with pytest.raises(DemuxProtocolError, match="out of range"):
            split_compiler_output(b"// Input 0\nA\n// Input 5\nB\n", 2)

    def test_missing_markers(self):
        with pytest.raises(DemuxProtocolError, match="expected 2"):
            split_compiler_output(b"// Input 0\nA\n", 2)

    def test_empty_stream_for_nonempty_batch(self):
        with pytest.raises(DemuxProtocolError):
            split_compiler_output(b"", 1)

    def test_malformed_marker(self):
        with pytest.raises(DemuxProtocolError, match="Malformed"):
            split_compiler_output(b"// Input first\nA\n", 1)


class TestDemultiplex:
    def test_commits_by_position(self, cache: CompilationCache):
        batch = CompilationBatch(files=(X, Y))
        committed = demultiplex(
            b"// Input 0\nAAA\n// Input 1\nBBB\n", batch, FINGERPRINTS, cache
        )
        assert committed == ["f1x", "f2y"]
        assert cache.get("f1x") == b"AAA\n"
        assert cache.get("f2y") == b"BBB\n"

    def test_batch_order_decides_mapping(self, cache: CompilationCache):
        batch = CompilationBatch(files=(Y, X))
        demultiplex(b"// Input 0\nAAA\n// Input 1\nBBB\n", batch, FINGERPRINTS, cache)
        assert cache.get("f2y") == b"AAA\n"
        assert cache.get("f1x") == b"BBB\n"

    def test_malformed_stream_writes_nothing(self, cache: CompilationCache):
        batch = CompilationBatch(files=(X, Y, Z))
        with pytest.raises(DemuxProtocolError):
            demultiplex(
                b"// Input 0\nAAA\n// Input 1\nBBB\n// Input 1\nCCC\n",
                batch,
                FINGERPRINTS,
                cache,
            )
        assert len(cache) == 0

    def test_error_stage(self, cache: CompilationCache):
        with pytest.raises(DemuxProtocolError) as info:
            demultiplex(b"junk", CompilationBatch(files=(X,)), FINGERPRINTS, cache)
        assert info.value.stage == "demux"

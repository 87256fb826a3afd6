"""Selectable external tool backends."""

from __future__ import annotations

from enum import Enum


class CompressorBackend(str, Enum):
    """External JavaScript minifier. Cache entries are namespaced by value."""

    CLOSURE = "closure"
    UGLIFYJS = "uglifyjs"


class FingerprintTool(str, Enum):
    """Where content fingerprints come from."""

    HASHLIB = "hashlib"  # in-process SHA-1
    SHASUM = "shasum"  # the shasum(1) command line tool

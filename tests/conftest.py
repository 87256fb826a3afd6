"""Shared test fixtures for wortels."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from wortels.core.cache_store import CompilationCache
from wortels.core.fingerprint import HashlibFingerprintProvider
from wortels.core.process_runner import ProcessResult
from wortels.models.backends import CompressorBackend
from wortels.models.config import BundleConfig


def fake_minify(source: bytes) -> bytes:
    """Stand-in minifier: drop blank lines and indentation, one line per file."""
    lines = [line.strip() for line in source.decode("utf-8").splitlines() if line.strip()]
    return ("".join(lines) + "\n").encode("utf-8")


class FakeMinifierRunner:
    """Process runner that behaves like a minifier printing input delimiters.

    Understands both the Closure argv (files after ``--js``) and the
    UglifyJS argv (files after the executable). Every invocation is
    recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str]) -> ProcessResult:
        argv = tuple(str(a) for a in args)
        self.calls.append(argv)
        files = argv[argv.index("--js") + 1:] if "--js" in argv else argv[1:]
        out = bytearray()
        for index, name in enumerate(files):
            out += f"// Input {index}\n".encode()
            out += fake_minify(Path(name).read_bytes())
        return ProcessResult(args=argv, returncode=0, stdout=bytes(out))


class ScriptedRunner:
    """Process runner returning a fixed result (or raising) for every call."""

    def __init__(
        self,
        returncode: int = 0,
        stdout: bytes = b"",
        stderr: bytes = b"",
        raises: Exception | None = None,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.raises = raises
        self.calls: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str]) -> ProcessResult:
        argv = tuple(str(a) for a in args)
        self.calls.append(argv)
        if self.raises is not None:
            raise self.raises
        return ProcessResult(
            args=argv, returncode=self.returncode, stdout=self.stdout, stderr=self.stderr
        )


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def asset_root(tmp_dir: Path) -> Path:
    """A small asset tree: two libraries, an app file and a duplicate copy."""
    root = tmp_dir / "assets"
    (root / "lib").mkdir(parents=True)
    (root / "app").mkdir()
    (root / "lib" / "a.js").write_text("var a = 1;\n\nfunction one() {\n  return a;\n}\n")
    (root / "lib" / "b.js").write_text("var b = 2;\n")
    (root / "app" / "main.js").write_text("one();\n  console.log(b);\n")
    (root / "app" / "copy-of-b.js").write_text("var b = 2;\n")
    return root


@pytest.fixture
def write_manifest(asset_root: Path) -> Callable[..., Path]:
    """Factory fixture: write a manifest under the asset root and return its name."""

    def _factory(name: str, *lines: str) -> Path:
        path = asset_root / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return Path(name)

    return _factory


@pytest.fixture
def cache(tmp_dir: Path) -> CompilationCache:
    """Provide an empty UglifyJS-scoped cache in a temp directory."""
    return CompilationCache(tmp_dir / "home" / "cache", CompressorBackend.UGLIFYJS)


@pytest.fixture
def provider() -> HashlibFingerprintProvider:
    return HashlibFingerprintProvider()


@pytest.fixture
def minifier() -> FakeMinifierRunner:
    return FakeMinifierRunner()


@pytest.fixture
def scripted_runner() -> type[ScriptedRunner]:
    """The ScriptedRunner class, for tests that need canned process output."""
    return ScriptedRunner


@pytest.fixture
def make_config(tmp_dir: Path, asset_root: Path) -> Callable[..., BundleConfig]:
    """Factory fixture: build a BundleConfig rooted in the temp directory."""

    def _factory(*manifests: Path | str, **overrides: Any) -> BundleConfig:
        defaults: dict[str, Any] = {
            "manifests": tuple(Path(m) for m in manifests),
            "outdir": tmp_dir / "public" / "assets",
            "asset_path": asset_root,
            "backend": CompressorBackend.UGLIFYJS,
            "app_data_dir": tmp_dir / "home",
            "fingerprint_workers": 2,
        }
        defaults.update(overrides)
        return BundleConfig(**defaults)

    return _factory


@pytest.fixture
def minified(asset_root: Path) -> Callable[..., bytes]:
    """Factory fixture: expected fake-minifier output for sources, concatenated."""

    def _factory(*names: str) -> bytes:
        return b"".join(fake_minify((asset_root / n).read_bytes()) for n in names)

    return _factory

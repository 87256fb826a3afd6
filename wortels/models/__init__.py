"""wortels data models: all Pydantic v2, all frozen (immutable)."""

from wortels.models.backends import CompressorBackend, FingerprintTool
from wortels.models.bundle import (
    BundleOutput,
    BundleRunReport,
    CompilationBatch,
    CompilationPlan,
    ResolvedManifest,
)
from wortels.models.config import BundleConfig

__all__ = [
    # backends
    "CompressorBackend",
    "FingerprintTool",
    # pipeline data
    "ResolvedManifest",
    "CompilationPlan",
    "CompilationBatch",
    "BundleOutput",
    "BundleRunReport",
    # config
    "BundleConfig",
]

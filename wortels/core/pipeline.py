"""Bundling pipeline, the coordinator for one wortels run.

Wires the manifest resolver, fingerprint provider, compilation cache,
batch compiler, demultiplexer and bundle assembler together and runs them
strictly in sequence::

    resolve -> plan (fingerprint) -> compile -> demux -> assemble

Each stage finishes all of its writes before the next one reads them.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from wortels.core.assembler import BundleAssembler
from wortels.core.cache_store import CompilationCache
from wortels.core.compiler import BatchCompiler, make_compiler
from wortels.core.demux import demultiplex
from wortels.core.errors import StageError, WortelsError
from wortels.core.fingerprint import FingerprintProvider, make_fingerprint_provider
from wortels.core.manifest_resolver import resolve_manifests
from wortels.core.planner import plan_compilation
from wortels.core.process_runner import ProcessRunner, SubprocessRunner
from wortels.models.bundle import BundleRunReport
from wortels.models.config import BundleConfig

logger = logging.getLogger(__name__)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Log stage timing and tag unexpected OS failures with the stage name."""
    started = time.perf_counter()
    logger.debug("Stage %s started", name)
    try:
        yield
    except WortelsError as exc:
        logger.debug("Stage %s aborted: %s", exc.stage, exc)
        raise
    except OSError as exc:
        logger.error("Stage %s failed: %s", name, exc)
        raise StageError(name, f"{name} failed: {exc}") from exc
    logger.debug("Stage %s finished in %.3fs", name, time.perf_counter() - started)


class BundlePipeline:
    """Runs the full bundling pipeline for one configuration.

    Parameters
    ----------
    config:
        Immutable run configuration.
    runner:
        Process runner shared by the compiler and the ``shasum`` provider.
    provider:
        Fingerprint provider. Defaults to the one selected in *config*.
    compiler:
        Batch compiler. Defaults to the adapter for ``config.backend``.
    """

    def __init__(
        self,
        config: BundleConfig,
        *,
        runner: ProcessRunner | None = None,
        provider: FingerprintProvider | None = None,
        compiler: BatchCompiler | None = None,
    ) -> None:
        self.config = config
        runner = runner or SubprocessRunner()
        self.provider = provider or make_fingerprint_provider(config.fingerprint_tool, runner)
        self.compiler = compiler or make_compiler(config, runner)
        self.cache = CompilationCache(config.cache_root, config.backend)
        self.assembler = BundleAssembler(self.cache, config.outdir, self.provider)

    def run(self) -> BundleRunReport:
        """Execute every stage and return a summary of the run."""
        cfg = self.config

        with _stage("resolve"):
            manifests = resolve_manifests(cfg.manifests, cfg.asset_path)
        logger.info("Resolved %d manifest(s)", len(manifests))

        with _stage("plan"):
            plan = plan_compilation(
                manifests, self.provider, self.cache, max_workers=cfg.fingerprint_workers
            )
        batch = plan.batch()

        compile_seconds = 0.0
        if batch:
            with _stage("compile"):
                started = time.perf_counter()
                output = self.compiler.compile(batch)
                compile_seconds = time.perf_counter() - started
            logger.info("Compiled %d file(s) in %.2fs", len(batch), compile_seconds)

            with _stage("demux"):
                demultiplex(output, batch, plan.fingerprints, self.cache)
        else:
            logger.info("Everything cached; skipping compilation")

        with _stage("assemble"):
            bundles = self.assembler.assemble(
                manifests,
                plan.fingerprints,
                digest=cfg.explicit_digest,
                generate_digest=cfg.generate_digest,
            )

        return BundleRunReport(
            manifests=len(manifests),
            source_files=len(plan.fingerprints),
            compiled=len(batch),
            cache_hits=plan.cache_hits,
            bundles=bundles,
            compile_seconds=compile_seconds,
        )

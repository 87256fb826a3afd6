"""``wortels MANIFEST...`` builds bundles from manifest files.

Resolves the manifests, minifies whatever is not cached yet, writes one
bundle per manifest into the output directory and prints a summary.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from wortels import __version__
from wortels.config import WortelsSettings
from wortels.core.errors import WortelsError
from wortels.core.pipeline import BundlePipeline
from wortels.log import configure_logging
from wortels.models.backends import CompressorBackend
from wortels.models.bundle import BundleRunReport
from wortels.models.config import DEFAULT_OUTDIR, BundleConfig

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True, soft_wrap=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"wortels {__version__}")
        raise typer.Exit()


def _print_report(report: BundleRunReport) -> None:
    table = Table(title="Bundles")
    table.add_column("Manifest", style="cyan")
    table.add_column("Bundle", style="green")
    table.add_column("Bytes", justify="right")
    for bundle in report.bundles:
        table.add_row(str(bundle.manifest), str(bundle.path), str(bundle.size_bytes))
    console.print(table)
    console.print(
        Panel(
            "\n".join([
                f"[bold]Manifests:[/bold]    {report.manifests}",
                f"[bold]Sources:[/bold]      {report.source_files}",
                f"[bold]Compiled:[/bold]     {report.compiled}",
                f"[bold]Cache hits:[/bold]   {report.cache_hits}",
                f"[bold]Compile time:[/bold] {report.compile_seconds:.2f}s",
            ]),
            title="[bold]wortels[/bold]",
            border_style="green",
            padding=(0, 2),
        )
    )


def bundle_cmd(
    manifests: list[Path] = typer.Argument(
        ...,
        help="Manifest files, one bundle is written per manifest.",
        show_default=False,
    ),
    outdir: str = typer.Option(
        str(DEFAULT_OUTDIR),
        "--outdir",
        "-o",
        help="Folder where to put packaged files.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Turn on verbose logging.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print version and exit.",
    ),
    digest: str = typer.Option(
        "",
        "--digest",
        help="Inject this digest into output file names.",
    ),
    generate_digest: bool = typer.Option(
        False,
        "--generate-digest",
        help="Name each bundle after the digest of its own content.",
    ),
    asset_path: str = typer.Option(
        "",
        "--asset-path",
        help="Prefix for manifests and the sources they list.",
    ),
    js_compressor: CompressorBackend = typer.Option(
        CompressorBackend.CLOSURE,
        "--js-compressor",
        case_sensitive=False,
        help="JavaScript compiler to minify with.",
    ),
) -> None:
    """Minify and bundle the JavaScript sources listed in MANIFESTS."""
    settings = WortelsSettings()

    try:
        config = BundleConfig(
            manifests=tuple(manifests),
            outdir=Path(outdir),
            verbose=verbose,
            digest=digest,
            generate_digest=generate_digest,
            asset_path=Path(asset_path),
            backend=js_compressor,
            app_data_dir=settings.home,
            closure_jar=settings.closure_jar,
            fingerprint_tool=settings.fingerprint_tool,
            fingerprint_workers=settings.fingerprint_workers,
        )
    except ValidationError as exc:
        for error in exc.errors():
            err_console.print(f"[bold red]Invalid option:[/bold red] {escape(error['msg'])}")
        raise typer.Exit(code=2)

    configure_logging(logging.DEBUG if config.verbose else settings.log_level, err_console)

    if generate_digest and digest:
        logger.warning(
            "--digest given; --generate-digest is ignored"
        )

    try:
        report = BundlePipeline(config).run()
    except WortelsError as exc:
        err_console.print(
            f"[bold red]Bundling failed during {exc.stage}:[/bold red] {escape(str(exc))}"
        )
        raise typer.Exit(code=1)
    except OSError as exc:
        # Only the cache directory setup can get here; stage failures are wrapped.
        err_console.print(f"[bold red]Cannot prepare cache:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    _print_report(report)

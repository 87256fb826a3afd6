"""Main Typer application.

Entry point: ``wortels`` (configured via pyproject.toml scripts). The app
has a single command, so options and manifests follow ``wortels`` directly.
"""

from __future__ import annotations

import typer

from wortels.cli.commands.bundle import bundle_cmd

app = typer.Typer(
    name="wortels",
    help="wortels: minify, cache and bundle JavaScript listed in manifest files.",
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(help="Minify and bundle the sources listed in manifest files.")(bundle_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

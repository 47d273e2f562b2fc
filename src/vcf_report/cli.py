from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import load_settings, write_default_config
from .parser import KEY_MATCHING_MODES, load_contacts
from .report import print_contacts, print_summary, report_path_for, write_html_report

app = typer.Typer(
    add_completion=False,
    help="vcf-report: turn a .vcf address book into a browsable HTML report.",
)
console = Console()
logger = logging.getLogger("vcf_report")

USAGE = "Usage: vcf-report [OPTIONS] <path-to-vcf>"


def setup_logging(level: str) -> None:
    """Route the package's log records through rich at *level*."""
    logger.handlers.clear()
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


@app.command()
def main(
    vcf_path: Path | None = typer.Argument(None, help="vCard (.vcf) file to report on"),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o",
        help="Folder for <name>_report.html (default: current directory or config).",
    ),
    title: str | None = typer.Option(None, "--title", help="Report heading"),
    lang: str | None = typer.Option(None, "--lang", help="HTML lang attribute"),
    key_matching: str | None = typer.Option(
        None, "--key-matching",
        help="How property keys are dispatched: 'prefix' (default) or 'exact'.",
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help="TOML settings file (default: ./vcf-report.toml if present).",
    ),
    write_config: Path | None = typer.Option(
        None, "--write-config", help="Write a default settings file to this path and exit.",
    ),
    dump: bool = typer.Option(False, "--dump", help="Print every parsed contact"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Parse VCF_PATH and write <name>_report.html."""

    if write_config is not None:
        written = write_default_config(write_config)
        console.print(f"[dim]Config → {escape(str(written))}[/dim]")
        return

    if vcf_path is None:
        console.print(USAGE, markup=False)
        return

    setup_logging("DEBUG" if verbose else "WARNING")

    # ── Settings: config file, then command-line overrides ───────────────────
    settings = load_settings(config)
    if output_dir is not None:
        settings.output_dir = output_dir
    if title is not None:
        settings.title = title
    if lang is not None:
        settings.lang = lang
    if key_matching is not None:
        if key_matching.lower() not in KEY_MATCHING_MODES:
            raise typer.BadParameter(
                f"must be one of: {', '.join(KEY_MATCHING_MODES)}", param_hint="--key-matching",
            )
        settings.key_matching = key_matching.lower()

    if not verbose:
        logger.setLevel(settings.log_level)

    # ── 1. Read + parse ────────────────────────────────────────────────────────
    try:
        contacts = load_contacts(vcf_path, key_matching=settings.key_matching)
    except OSError as e:
        logger.error("Error reading VCF %s: %s", vcf_path, e)
        console.print(f"[bold red]Error reading VCF:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(f"Total contacts: [bold]{len(contacts)}[/bold]")

    if dump:
        print_contacts(contacts)

    # ── 2. Render ──────────────────────────────────────────────────────────────
    out_path = report_path_for(vcf_path, settings.output_dir)
    try:
        summary = write_html_report(contacts, out_path, title=settings.title, lang=settings.lang)
    except (OSError, KeyError, ValueError) as e:
        logger.error("Error generating HTML %s: %s", out_path, e)
        console.print(f"[bold red]Error generating HTML:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)

    print_summary(summary, out_path)


if __name__ == "__main__":
    app()

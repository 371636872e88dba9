from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from .batch import process_directory, write_metadata_table
from .config import get_settings
from .index_scraper import process_index_files, write_index_table
from .postprocess import (
    check_structure,
    fill_meta_block,
    iter_qmd_files,
    move_meta_block,
    summarize_structure,
)

_log = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _qmd_files_or_fail(directory: Path) -> list[Path]:
    if not directory.exists():
        raise click.ClickException(f"Directory does not exist: {directory}")
    files = iter_qmd_files(directory)
    if not files:
        raise click.ClickException(f"No .qmd files found in {directory}")
    return files


@click.group()
def main() -> None:
    """CLI entrypoint for the cable ingestion pipeline."""


@main.command("extract")
@click.option("--input-dir", type=click.Path(path_type=Path), default=None)
@click.option("--output-dir", type=click.Path(path_type=Path), default=None)
@click.option("--overwrite", is_flag=True, help="Re-render cables whose output already exists.")
@click.option("--llm/--no-llm", default=False, help="Clean body text with Gemini.")
@click.option(
    "--formatted/--raw",
    default=True,
    help="Normalise dates and address lines for display.",
)
def extract(
    input_dir: Optional[Path],
    output_dir: Optional[Path],
    overwrite: bool,
    llm: bool,
    formatted: bool,
) -> None:
    """
    Extract every cable under the input directory.

    For each document we write a rendered .qmd file; the combined
    metadata table is written as CSV and as a pickle snapshot.
    """
    _configure_logging()

    settings = get_settings()
    input_dir = input_dir or settings.input_dir
    output_dir = output_dir or settings.output_dir

    _log.info("Using input_dir=%s", input_dir)
    _log.info("Output directory=%s", output_dir)

    try:
        result = process_directory(
            input_dir,
            output_dir,
            overwrite=overwrite,
            use_llm=llm,
            formatted=formatted,
            settings=settings,
        )
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    write_metadata_table(
        result.rows,
        settings.metadata_csv,
        settings.metadata_snapshot,
        keep_sources=result.skipped,
    )
    click.echo(
        f"Processed {len(result.processed)}, skipped {len(result.skipped)}, "
        f"failed {len(result.failed)}"
    )


@main.command("scrape-index")
@click.argument("files", nargs=-1, type=click.Path(path_type=Path))
@click.option("--base-url", default=None, help="Base URL for relative record links.")
def scrape_index(files: Tuple[Path, ...], base_url: Optional[str]) -> None:
    """Compile saved AAD index pages (default: all *.html in index_html_dir)."""
    _configure_logging()

    settings = get_settings()
    paths = list(files) or sorted(settings.index_html_dir.glob("*.html"))
    if not paths:
        raise click.ClickException(f"No HTML files found in {settings.index_html_dir}")

    frame = process_index_files(paths, base_url=base_url or settings.index_base_url)
    write_index_table(frame, settings.index_csv, settings.index_snapshot)
    click.echo(f"Successfully processed {len(frame)} records.")


@main.command("move-meta")
@click.argument("target_dir", type=click.Path(path_type=Path), default=None, required=False)
def move_meta(target_dir: Optional[Path]) -> None:
    """Move the cable-meta block below the classification line."""
    _configure_logging()

    files = _qmd_files_or_fail(target_dir or get_settings().output_dir)
    _log.info("Processing %d files...", len(files))
    for path in files:
        move_meta_block(path)
    _log.info("Done.")


@main.command("fill-meta")
@click.argument("target_dir", type=click.Path(path_type=Path), default=None, required=False)
def fill_meta(target_dir: Optional[Path]) -> None:
    """Replace the cable-meta placeholder with an HTML metadata table."""
    _configure_logging()

    files = _qmd_files_or_fail(target_dir or get_settings().output_dir)
    filled = sum(1 for path in files if fill_meta_block(path))
    click.echo(f"Filled {filled}/{len(files)} files.")


@main.command("check-headers")
@click.argument("target_dir", type=click.Path(path_type=Path), default=None, required=False)
def check_headers(target_dir: Optional[Path]) -> None:
    """Summarise the lines that follow each cable-meta block."""
    _configure_logging()

    files = _qmd_files_or_fail(target_dir or get_settings().output_dir)
    counts, oddballs = summarize_structure(check_structure(path) for path in files)

    click.echo("--- Pattern Summary ---")
    for (line_1, line_2), count in counts:
        click.echo(f"{count:5d}  {line_1!r}  {line_2!r}")

    if oddballs:
        click.echo("\n--- Files Deviating from Standard Structure ---")
        for report in oddballs:
            click.echo(f"{report.file}: {report.status} | {report.line_1!r} | {report.line_2!r}")
    else:
        click.echo("\nAll files appear to have consistent header text lines.")


if __name__ == "__main__":
    main()

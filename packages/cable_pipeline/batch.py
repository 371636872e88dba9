from __future__ import annotations

import logging
import pickle
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Dict, Iterable, List, Optional

import pandas as pd

from cable_core.extractor import extract_cable
from cable_core.formatting import format_record
from cable_core.models import CableRecord

from .cleanup import clean_body_text, needs_cleanup
from .config import CablePipelineSettings, get_settings
from .render import render_cable_markdown

_log = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".pdf", ".txt")


@dataclass
class BatchResult:
    """Outcome of one batch run."""

    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    rows: List[Dict[str, Optional[str]]] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows)


def iter_source_documents(root: Path) -> Iterable[Path]:
    for path in sorted(root.iterdir()):
        if path.is_file() and path.suffix.lower() in SOURCE_SUFFIXES:
            yield path


def load_document_text(path: Path) -> str:
    """Plain text of a cable: the PDF text layer, or the contents of a .txt file."""
    if path.suffix.lower() == ".pdf":
        from .pdf_text import read_pdf_text

        return read_pdf_text(path)
    return path.read_text(encoding="utf-8")


def output_path_for(source: Path, output_dir: Path, suffix: str) -> Path:
    return output_dir / source.with_suffix(suffix).name


def process_document(
    source: Path,
    *,
    formatted: bool,
    use_llm: bool,
    settings: CablePipelineSettings,
) -> tuple[CableRecord, str]:
    """Extract one cable and render it; returns (record, markdown)."""
    text = load_document_text(source)
    record = extract_cable(text, source_file=source.name)
    if formatted:
        record = format_record(record)

    body = record.body_text
    if use_llm:
        _log.info("  - Cleaning body text with Gemini...")
        body = clean_body_text(
            body,
            settings.gemini_api_key,
            model=settings.gemini_model,
        )
    else:
        _log.debug("  - Using raw body text (LLM disabled)")

    return record, render_cable_markdown(record, body_text=body)


def process_directory(
    input_dir: Path,
    output_dir: Path,
    *,
    overwrite: bool = False,
    use_llm: bool = False,
    formatted: bool = True,
    settings: Optional[CablePipelineSettings] = None,
) -> BatchResult:
    """
    Extract and render every cable under input_dir.

    Existing outputs are skipped unless overwrite is set. A failure on one
    document is logged and does not stop the batch.
    """
    settings = settings or get_settings()

    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory does not exist: {input_dir}")

    sources = list(iter_source_documents(input_dir))
    if not sources:
        raise FileNotFoundError(f"No cable documents (*.pdf, *.txt) found in {input_dir}")

    if use_llm and not settings.gemini_api_key:
        _log.warning("GEMINI_API_KEY is not set; LLM cleanup disabled, using raw text")
        use_llm = False

    output_dir.mkdir(parents=True, exist_ok=True)
    result = BatchResult()

    _log.info("Found %d cable documents to process", len(sources))

    for idx, source in enumerate(sources, start=1):
        out_path = output_path_for(source, output_dir, settings.output_suffix)

        if not overwrite and out_path.exists():
            _log.info("Skipping (exists): %s", source.name)
            result.skipped.append(source.name)
            continue

        _log.info("Processing %d/%d: %s", idx, len(sources), source.name)
        try:
            record, markdown = process_document(
                source,
                formatted=formatted,
                use_llm=use_llm,
                settings=settings,
            )
            out_path.write_text(markdown, encoding="utf-8")
        except Exception as exc:
            _log.warning("Failed to process %s: %s", source.name, exc, exc_info=True)
            result.failed.append(source.name)
            continue

        result.processed.append(source.name)
        result.rows.append(record.to_row())

        # Only pause when a cleanup request was actually sent.
        if (
            use_llm
            and settings.llm_pause_seconds > 0
            and needs_cleanup(record.body_text, settings.gemini_api_key)
        ):
            time.sleep(settings.llm_pause_seconds)

    _log.info(
        "Batch complete: %d processed, %d skipped, %d failed",
        len(result.processed),
        len(result.skipped),
        len(result.failed),
    )
    return result


def load_metadata_table(csv_path: Path, snapshot_path: Path) -> Optional[pd.DataFrame]:
    """Previously written metadata: the pickle snapshot if present, else the CSV."""
    try:
        if snapshot_path.exists():
            return pd.read_pickle(snapshot_path)
        if csv_path.exists():
            return pd.read_csv(csv_path)
    except (OSError, ValueError, pickle.UnpicklingError) as exc:
        _log.warning("Could not read existing metadata table: %s", exc)
    return None


def merge_metadata_rows(
    rows: List[Dict[str, Optional[str]]],
    previous: Optional[pd.DataFrame],
    keep_sources: Collection[str],
) -> pd.DataFrame:
    """
    Combine new rows with the earlier rows of documents listed in keep_sources.

    A new row replaces an earlier one for the same source_file. Earlier rows
    for documents not in keep_sources are dropped.
    """
    frame = pd.DataFrame(rows)
    if previous is None or previous.empty or not keep_sources:
        return frame
    if "source_file" not in previous.columns:
        _log.warning("Existing metadata table has no source_file column; ignoring it")
        return frame

    replaced = set(frame["source_file"]) if not frame.empty else set()
    kept = previous[
        previous["source_file"].isin(keep_sources) & ~previous["source_file"].isin(replaced)
    ]
    if kept.empty:
        return frame
    if frame.empty:
        return kept.reset_index(drop=True)

    merged = pd.concat([kept, frame], ignore_index=True)
    return merged.sort_values("source_file", kind="stable").reset_index(drop=True)


def write_metadata_table(
    rows: List[Dict[str, Optional[str]]],
    csv_path: Path,
    snapshot_path: Path,
    keep_sources: Collection[str] = (),
) -> pd.DataFrame:
    """
    Write the combined metadata table as CSV and as a pickle snapshot.

    Rows of skipped documents (keep_sources) are carried over from the
    table already on disk, so re-running a batch does not lose them.
    """
    previous = load_metadata_table(csv_path, snapshot_path) if keep_sources else None
    frame = merge_metadata_rows(rows, previous, keep_sources)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)

    frame.to_csv(csv_path, index=False)
    frame.to_pickle(snapshot_path)

    _log.info("Metadata (%d rows) written to %s and %s", len(frame), csv_path, snapshot_path)
    return frame


__all__ = [
    "BatchResult",
    "load_document_text",
    "load_metadata_table",
    "merge_metadata_rows",
    "process_directory",
    "write_metadata_table",
]

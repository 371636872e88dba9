from __future__ import annotations

import html
import logging
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .render import TELEGRAM_HEADING

_log = logging.getLogger(__name__)

META_START_PATTERN = re.compile(r"^:::\s*\{?\.?cable-meta\}?")
BLOCK_CLOSE_PATTERN = re.compile(r"^:::$")
HEADER_PATTERN = re.compile(rf"^{re.escape(TELEGRAM_HEADING)}")
CLASSIFICATION_LINE_PATTERN = re.compile(r"^\*\*.*\*\*$")
FRONT_MATTER_ITEM = re.compile(r'^([\w-]+):\s*"((?:[^"\\]|\\.)*)"\s*$')

# (front-matter key, label) rows of the rendered metadata table.
META_TABLE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("cable-date", "Date"),
    ("cable-from", "From"),
    ("cable-to", "To"),
    ("cable-info", "Info"),
    ("cable-subject", "Subject"),
    ("cable-tags", "TAGS"),
    ("cable-ref", "Ref"),
)


class RelocationStatus(str, Enum):
    MOVED = "moved"
    ALREADY_MOVED = "already_moved"
    NO_META_BLOCK = "no_meta_block"
    UNCLOSED_META_BLOCK = "unclosed_meta_block"
    NO_HEADER = "no_header"
    NO_CLASSIFICATION = "no_classification"


@dataclass(frozen=True)
class StructureReport:
    """First two text lines after the cable-meta block of one file."""

    file: str
    status: str
    line_1: Optional[str] = None
    line_2: Optional[str] = None


def iter_qmd_files(directory: Path) -> List[Path]:
    """All *.qmd files in a directory except index.qmd."""
    return [
        path
        for path in sorted(directory.glob("*.qmd"))
        if path.name.lower() != "index.qmd"
    ]


def _read_lines(path: Path) -> List[str]:
    return path.read_text(encoding="utf-8").splitlines()


def _write_lines(path: Path, lines: List[str]) -> None:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _first_index(lines: List[str], pattern: re.Pattern, after: int = -1) -> Optional[int]:
    for idx in range(after + 1, len(lines)):
        if pattern.search(lines[idx]):
            return idx
    return None


def _locate_meta_block(lines: List[str]) -> Tuple[Optional[int], Optional[int]]:
    start = _first_index(lines, META_START_PATTERN)
    if start is None:
        return None, None
    return start, _first_index(lines, BLOCK_CLOSE_PATTERN, after=start)


def move_meta_block(path: Path) -> RelocationStatus:
    """
    Move the cable-meta block below the telegram heading's classification line.

    Running it again on an already relocated file is a no-op.
    """
    lines = _read_lines(path)

    meta_start, meta_end = _locate_meta_block(lines)
    if meta_start is None:
        _log.warning("Skipping %s - No cable-meta block.", path.name)
        return RelocationStatus.NO_META_BLOCK
    if meta_end is None:
        _log.warning("Skipping %s - Unclosed cable-meta block.", path.name)
        return RelocationStatus.UNCLOSED_META_BLOCK

    header_idx = _first_index(lines, HEADER_PATTERN)
    if header_idx is None:
        _log.warning("Skipping %s - '%s' header not found.", path.name, TELEGRAM_HEADING)
        return RelocationStatus.NO_HEADER

    if meta_start > header_idx:
        _log.info("Skipping %s - Block already moved (or out of order).", path.name)
        return RelocationStatus.ALREADY_MOVED

    class_idx = _first_index(lines, CLASSIFICATION_LINE_PATTERN, after=header_idx)
    if class_idx is None:
        _log.warning(
            "Skipping %s - Classification line (**...**) not found after header.", path.name
        )
        return RelocationStatus.NO_CLASSIFICATION

    before_meta = lines[:meta_start]
    heading_block = lines[meta_end + 1 : class_idx + 1]
    meta_block = lines[meta_start : meta_end + 1]
    rest = lines[class_idx + 1 :]

    _write_lines(path, before_meta + heading_block + [""] + meta_block + [""] + rest)
    _log.info("Processed: %s", path.name)
    return RelocationStatus.MOVED


def check_structure(path: Path) -> StructureReport:
    """Report the first two non-blank lines following the cable-meta block."""
    lines = _read_lines(path)

    meta_start, meta_end = _locate_meta_block(lines)
    if meta_start is None:
        return StructureReport(file=path.name, status="No cable-meta block found")
    if meta_end is None:
        return StructureReport(file=path.name, status="Unclosed cable-meta block")

    text_lines = [line for line in lines[meta_end + 1 :] if line.strip()]
    return StructureReport(
        file=path.name,
        status="OK",
        line_1=text_lines[0] if len(text_lines) >= 1 else None,
        line_2=text_lines[1] if len(text_lines) >= 2 else None,
    )


def summarize_structure(
    reports: Iterable[StructureReport],
) -> Tuple[List[Tuple[Tuple[Optional[str], Optional[str]], int]], List[StructureReport]]:
    """
    Count (line_1, line_2) patterns and list files that deviate.

    A file deviates when its first line is not the telegram heading or its
    second line is not a bold classification line.
    """
    reports = list(reports)
    counts = Counter((r.line_1, r.line_2) for r in reports)

    oddballs = [
        r
        for r in reports
        if r.line_1 != TELEGRAM_HEADING or not (r.line_2 or "").startswith("**")
    ]
    return counts.most_common(), oddballs


def read_front_matter(lines: List[str]) -> Dict[str, str]:
    """Parse the quoted `key: "value"` pairs written by the renderer."""
    if not lines or lines[0].strip() != "---":
        return {}

    meta: Dict[str, str] = {}
    for line in lines[1:]:
        if line.strip() == "---":
            break
        match = FRONT_MATTER_ITEM.match(line)
        if match:
            meta[match.group(1)] = re.sub(r"\\(.)", r"\1", match.group(2))
    return meta


def render_meta_table(meta: Dict[str, str]) -> str:
    """HTML table for the non-empty cable header fields."""
    rows = []
    for key, label in META_TABLE_FIELDS:
        value = meta.get(key, "")
        if not value:
            continue
        rows.append(
            '    <tr class="cable-row">\n'
            f'      <td class="cable-label-cell"><strong>{label}:</strong></td>\n'
            f'      <td class="cable-value-cell">{html.escape(value)}</td>\n'
            "    </tr>"
        )
    return "\n".join(
        [
            '<div class="cable-metadata-container">',
            '  <table class="cable-table">',
            *rows,
            "  </table>",
            "</div>",
            "<hr>",
        ]
    )


def fill_meta_block(path: Path) -> bool:
    """
    Replace the first cable-meta placeholder with a raw HTML metadata table.

    Returns False (file untouched) when there is no complete placeholder.
    """
    lines = _read_lines(path)
    meta_start, meta_end = _locate_meta_block(lines)
    if meta_start is None or meta_end is None:
        _log.info("Skipping %s - No cable-meta placeholder.", path.name)
        return False

    table = render_meta_table(read_front_matter(lines))
    raw_block = ["```{=html}", *table.splitlines(), "```"]

    _write_lines(path, lines[:meta_start] + raw_block + lines[meta_end + 1 :])
    _log.info("Filled metadata table: %s", path.name)
    return True


__all__ = [
    "RelocationStatus",
    "StructureReport",
    "check_structure",
    "fill_meta_block",
    "iter_qmd_files",
    "move_meta_block",
    "read_front_matter",
    "summarize_structure",
]

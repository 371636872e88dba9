from __future__ import annotations

from typing import List, Optional, Tuple

from cable_core.models import CableRecord

TELEGRAM_HEADING = "# DEPARTMENT OF STATE TELEGRAM"
META_PLACEHOLDER = "::: {.cable-meta}\n:::"
UNKNOWN_SUBJECT = "Unknown Subject"


def _quote(value: Optional[str]) -> str:
    """Double-quoted front-matter scalar; missing values become empty strings."""
    text = (value or "").replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def front_matter_items(record: CableRecord) -> List[Tuple[str, Optional[str]]]:
    """Ordered front-matter keys for a rendered cable."""
    return [
        ("title", record.subject or UNKNOWN_SUBJECT),
        ("author", record.author),
        ("date", record.date),
        ("cable-date", record.date),
        ("cable-from", record.from_),
        ("cable-to", record.to),
        ("cable-info", record.info),
        ("cable-subject", record.subject),
        ("cable-tags", record.tags),
        ("cable-ref", record.reference),
        ("cable-doc-number", record.document_number),
        ("cable-classification", record.classification),
        ("cable-declass-date", record.declassification_date),
        ("cable-concepts", record.concepts),
    ]


def render_front_matter(record: CableRecord) -> str:
    lines = ["---"]
    for key, value in front_matter_items(record):
        lines.append(f"{key}: {_quote(value)}")
        if key == "date":
            lines.append("editor: visual")
    lines.append("---")
    return "\n".join(lines)


def render_attributes(record: CableRecord) -> str:
    """The trailing 'Message Attributes' bullet list."""
    rows = [
        ("Document Number", record.document_number),
        ("Date", record.date),
        ("Classification", record.classification),
        ("Declassified", record.declassification_date),
        ("Concepts", record.concepts),
    ]
    bullets = "\n\n".join(f"- **{label}:** {value or ''}" for label, value in rows)
    return "#### Message Attributes\n\n" + bullets


def render_cable_markdown(record: CableRecord, body_text: Optional[str] = None) -> str:
    """
    Render a cable as a Quarto document.

    `body_text` overrides the record's body (used after LLM cleanup).
    """
    body = record.body_text if body_text is None else body_text
    parts = [
        render_front_matter(record),
        META_PLACEHOLDER,
        f"{TELEGRAM_HEADING}\n**{record.classification or ''}**",
        body,
        "***",
        render_attributes(record),
    ]
    return "\n\n".join(parts) + "\n"


__all__ = [
    "META_PLACEHOLDER",
    "TELEGRAM_HEADING",
    "front_matter_items",
    "render_cable_markdown",
]

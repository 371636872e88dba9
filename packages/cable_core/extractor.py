from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Sequence, Tuple

from .formatting import title_case
from .models import CableRecord

_log = logging.getLogger(__name__)

# A header "label line": an all-caps WORD: label, an E.O. line, the BT
# separator, or a bare classification stamp.
_LABEL_LINE = (
    r"\n[ \t]*(?:[A-Z][A-Z /.-]*:|E\.O\.|BT\b|"
    r"CONFIDENTIAL\b|SECRET\b|UNCLASSIFIED\b|LIMITED OFFICIAL USE\b)"
)
# Lazily matched header continuation lines; never crosses a blank line.
_HEADER_BLOCK = r"(?:(?!\n[ \t]*\n).)*?"

# Ordered fallbacks per field: the first pattern that matches wins.
# Group 1 always carries the value.
HEADER_PATTERNS: Dict[str, Tuple[re.Pattern, ...]] = {
    "date": (
        re.compile(r"Draft Date:[ \t]*([^\n]+)"),
        re.compile(r"Date:[ \t]*([^\n]+)"),
    ),
    "from_": (
        re.compile(r"^[ \t]*FM\s+(.*?)(?=\n[ \t]*TO\s)", re.MULTILINE | re.DOTALL),
    ),
    "to": (
        re.compile(
            rf"^[ \t]*TO\s+({_HEADER_BLOCK})(?=\n[ \t]*INFO\b|{_LABEL_LINE})",
            re.MULTILINE | re.DOTALL,
        ),
        re.compile(r"\nTO\s+(.*?)(?=\nINFO|\n[A-Z]+)", re.DOTALL),
    ),
    "info": (
        re.compile(
            rf"^[ \t]*INFO\s+({_HEADER_BLOCK})(?={_LABEL_LINE})",
            re.MULTILINE | re.DOTALL,
        ),
        re.compile(r"\nINFO\s+(.*?)(?=\n[A-Z]+ [A-Z]+|\nE\.O\.)", re.DOTALL),
    ),
    "subject": (
        re.compile(
            r"\b(?:SUBJECT|SUBJ):\s*(.*?)(?=\n\s*(?:REFS?\b|SUMMARY\b|\d+\.))",
            re.DOTALL,
        ),
        re.compile(r"SUBJECT:\s*(.*?)(?=\n\s*1\.|REF:)", re.DOTALL),
    ),
    "tags": (re.compile(r"TAGS:[ \t]*([^\n]+)"),),
    "reference": (
        re.compile(r"\bREFS?:\s*(.*?)(?=\n\s*(?:SUMMARY\b|\d+\.))", re.DOTALL),
    ),
}

FOOTER_PATTERNS: Dict[str, Tuple[re.Pattern, ...]] = {
    "document_number": (re.compile(r"Document Number:[ \t]*([^\n]+)"),),
    "classification": (re.compile(r"Current Classification:[ \t]*([^\n]+)"),),
    "concepts": (re.compile(r"Concepts:[ \t]*([^\n]+)"),),
    "declassification_date": (
        re.compile(
            r"Declassified/Released US Department of State[^\n]*?"
            r"(\d{1,2}\s+[A-Za-z]{3}\s+\d{4})"
        ),
        re.compile(r"Decaption Date:[ \t]*([^\n]+)"),
    ),
}

BODY_END_PATTERN = re.compile(r"Message Attributes|\bNNN\b", re.IGNORECASE)

# Cleanup steps run in this order; see clean_body().
DECLASSIFICATION_PATTERN = re.compile(
    r"(?:Sheryl P\. Walter )?(?:Declassified/Released|EO Systematic Review)[^\n]*",
    re.IGNORECASE,
)
CLASSIFICATION_TOKEN_PATTERN = re.compile(
    r"\b(?:CONFIDENTIAL|LIMITED OFFICIAL USE|UNCLASSIFIED)\b"
)
PAGE_ARTIFACT_PATTERN = re.compile(r"PAGE \d+ [A-Z ]+ \d+[^\n]*")
EO_LINE_PATTERN = re.compile(r"^[ \t]*E\.O\.[^\n]*", re.MULTILINE)
FOOTER_TAIL_PATTERN = re.compile(r"Message Attributes.*", re.DOTALL)

SIGNER_PATTERN = re.compile(
    r"\b(?!NNN\b)([A-Z]{3,})[ \t]*\n\s*(?:NNN\b|Message Attributes)"
)

# Known signers; anything else is title-cased as a best guess.
KNOWN_SIGNERS: Dict[str, str] = {
    "BOEKER": "Paul Boeker, US Ambassador to Bolivia",
    "VANCE": "Cyrus Vance, Secretary of State",
}

UNKNOWN_AUTHOR = "Unknown"

_WHITESPACE = re.compile(r"\s+")


def _first_match(text: str, patterns: Sequence[re.Pattern]) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def _collapse(value: str) -> Optional[str]:
    collapsed = _WHITESPACE.sub(" ", value).strip()
    return collapsed or None


def _extract_fields(
    text: str, table: Dict[str, Tuple[re.Pattern, ...]]
) -> Tuple[Dict[str, Optional[str]], Dict[str, re.Match]]:
    """Run every field's fallback chain; return values and the winning matches."""
    values: Dict[str, Optional[str]] = {}
    matches: Dict[str, re.Match] = {}
    for field, patterns in table.items():
        match = _first_match(text, patterns)
        if match is None:
            values[field] = None
            continue
        values[field] = _collapse(match.group(1))
        matches[field] = match
    return values, matches


def clean_body(text: str) -> str:
    """
    Strip boilerplate from isolated body text.

    Order matters: declassification stamps first, then classification
    tokens, page artifacts, trailing E.O. lines and finally any stray
    footer tail.
    """
    cleaned = DECLASSIFICATION_PATTERN.sub("", text)
    cleaned = CLASSIFICATION_TOKEN_PATTERN.sub("", cleaned)
    cleaned = PAGE_ARTIFACT_PATTERN.sub("", cleaned)
    cleaned = EO_LINE_PATTERN.sub("", cleaned)
    cleaned = FOOTER_TAIL_PATTERN.sub("", cleaned)
    return cleaned.strip()


def isolate_body(text: str, anchors: Sequence[re.Match]) -> str:
    """
    Slice the narrative body out of the full cable text.

    The body starts after the latest header anchor (subject or reference
    match) and stops before the first end-of-message marker. Without any
    anchor the whole text is returned unchanged apart from trimming.
    """
    if not anchors:
        _log.debug("No subject/reference anchor; using full text as body")
        return text.strip()

    start = max(match.end() for match in anchors)
    end_match = BODY_END_PATTERN.search(text)
    end = end_match.start() if end_match else len(text)

    if end < start:
        _log.debug("Body end (%d) precedes start (%d); clamping to empty", end, start)
        return ""

    return clean_body(text[start:end])


def attribute_author(text: str) -> str:
    """Guess the signer from the all-caps token just above NNN / Message Attributes."""
    match = SIGNER_PATTERN.search(text)
    if not match:
        return UNKNOWN_AUTHOR
    token = match.group(1)
    return KNOWN_SIGNERS.get(token) or title_case(token)


def extract_cable(text: str, source_file: str) -> CableRecord:
    """
    Extract a CableRecord from the plain text of one cable.

    Missing fields are left as None; this function does not raise on
    irregular layouts.
    """
    header, header_matches = _extract_fields(text, HEADER_PATTERNS)
    footer, _ = _extract_fields(text, FOOTER_PATTERNS)

    anchors = [
        header_matches[name] for name in ("subject", "reference") if name in header_matches
    ]
    body_text = isolate_body(text, anchors)

    return CableRecord(
        source_file=source_file,
        **header,
        **footer,
        author=attribute_author(text),
        body_text=body_text,
    )


__all__ = [
    "FOOTER_PATTERNS",
    "HEADER_PATTERNS",
    "KNOWN_SIGNERS",
    "attribute_author",
    "clean_body",
    "extract_cable",
    "isolate_body",
]

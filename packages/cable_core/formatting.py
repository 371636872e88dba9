from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, Optional, Tuple

from .models import CableRecord

# Ordered: the first format that parses wins. Formats using %y are two-digit
# years and are pinned to the 1900s.
CABLE_DATE_FORMATS: Tuple[str, ...] = (
    "%d %b %Y",
    "%d %b %y",
    "%d %B %Y",
    "%d %B %y",
    "%Y%m%d",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %m %Y",
    "%d %m %y",
)

DISPLAY_DATE_FORMAT = "%B %d, %Y"

# Applied after title-casing, in order.
DIPLOMATIC_REPLACEMENTS: Dict[str, str] = {
    "Amembassy": "AmEmbassy",
    "Amconsul": "AmConsul",
    "Secstate": "SecState",
    "Washdc": "WashDC",
    "Usun": "USUN",
    "Usmission": "USMission",
    "Us": "US",
    "Usa": "USA",
}

SEC_PREFIX_PATTERN = re.compile(r"\bSec([a-z]+)\b")

# Ordinary words that happen to start with "Sec" and must not become "SecOnd".
SEC_PREFIX_EXCEPTIONS = frozenset(
    {
        "Second",
        "Seconds",
        "Secondary",
        "Secondly",
        "Secret",
        "Secrets",
        "Secretly",
        "Secretary",
        "Secretariat",
        "Section",
        "Sections",
        "Sector",
        "Sectors",
        "Sect",
        "Sects",
        "Secular",
        "Secure",
        "Secured",
        "Security",
    }
)

_WORD_PATTERN = re.compile(r"\b(\w)([\w']*)")
_WHITESPACE = re.compile(r"\s+")


def title_case(text: Optional[str]) -> Optional[str]:
    """Capitalise the first character of each word and lowercase the rest."""
    if text is None:
        return None
    return _WORD_PATTERN.sub(lambda m: m.group(1).upper() + m.group(2).lower(), text)


def format_cable_date(value: Optional[str]) -> Optional[str]:
    """
    Normalise a cable date to 'Month DD, YYYY'.

    Values that match none of CABLE_DATE_FORMATS are returned trimmed and
    otherwise untouched.
    """
    if value is None:
        return None

    cleaned = _WHITESPACE.sub(" ", value).strip().rstrip(".,")
    for fmt in CABLE_DATE_FORMATS:
        try:
            parsed = datetime.strptime(cleaned, fmt)
            if "%y" in fmt:
                parsed = parsed.replace(year=1900 + parsed.year % 100)
        except ValueError:
            continue
        return parsed.strftime(DISPLAY_DATE_FORMAT)

    return value.strip()


def _retitle_sec_prefix(match: re.Match) -> str:
    token = match.group(0)
    if token in SEC_PREFIX_EXCEPTIONS:
        return token
    return "Sec" + title_case(match.group(1))


def format_diplomatic_text(text: Optional[str]) -> Optional[str]:
    """
    Render an all-caps address line in conventional mixed case.

    'AMEMBASSY LA PAZ' -> 'AmEmbassy La Paz'
    'SECSTATE WASHDC'  -> 'SecState WashDC'
    """
    if text is None:
        return None

    formatted = title_case(text)
    for token, replacement in DIPLOMATIC_REPLACEMENTS.items():
        formatted = re.sub(rf"\b{re.escape(token)}\b", replacement, formatted)

    return SEC_PREFIX_PATTERN.sub(_retitle_sec_prefix, formatted)


def format_record(record: CableRecord) -> CableRecord:
    """Return the display variant of a record; the input is left untouched."""
    data = record.model_dump()
    data.update(
        date=format_cable_date(record.date),
        from_=format_diplomatic_text(record.from_),
        to=format_diplomatic_text(record.to),
        info=format_diplomatic_text(record.info),
        subject=title_case(record.subject),
    )
    return CableRecord.model_validate(data)


__all__ = [
    "CABLE_DATE_FORMATS",
    "DIPLOMATIC_REPLACEMENTS",
    "SEC_PREFIX_EXCEPTIONS",
    "format_cable_date",
    "format_diplomatic_text",
    "format_record",
    "title_case",
]

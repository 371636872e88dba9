"""
Scraper for saved NARA AAD "Display Partial Records" result pages.

Each page holds one results table (``table#queryResults``). Main rows carry
a "View Record" link in their first cell; detail rows span several columns
(``colspan``) and continue the previous record.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

import pandas as pd
from bs4 import BeautifulSoup, Tag

_log = logging.getLogger(__name__)

AAD_BASE_URL = "https://aad.archives.gov/aad/"
DETAIL_TARGET_HEADER = "TAGS"
# Standard AAD layout: View Record, Draft Date, Doc Num, Film Num, From,
# Subject, TAGS, To, Msg Text.
DETAIL_TARGET_INDEX = 6


def resolve_record_url(href: Optional[str], base_url: str = AAD_BASE_URL) -> str:
    if not href:
        return ""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url, href)


def _find_results_table(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.select_one("table#queryResults") or soup.find("table")


def _table_headers(table: Tag) -> List[str]:
    header_row = table.select_one("thead tr")
    if header_row is None:
        return []
    headers = [th.get_text(strip=True) for th in header_row.find_all("th")]
    if headers and headers[0] == "View Record":
        headers[0] = "Record URL"
    return headers


def _body_rows(table: Tag) -> List[Tag]:
    rows = table.select("tbody tr")
    if not rows:
        rows = [tr for tr in table.find_all("tr") if tr.find("td")]
    return rows


def _is_detail_row(cells: List[Tag]) -> bool:
    return any(cell.has_attr("colspan") for cell in cells)


def _detail_column(headers: List[str], row_length: int) -> int:
    target = DETAIL_TARGET_INDEX
    if DETAIL_TARGET_HEADER in headers:
        target = headers.index(DETAIL_TARGET_HEADER)
    return min(target, row_length - 1)


def _as_record(values: List[str], headers: List[str]) -> Dict[str, str]:
    if len(values) == len(headers):
        return dict(zip(headers, values))
    return {f"column_{i}": value for i, value in enumerate(values, start=1)}


def parse_index_html(html: str, base_url: str = AAD_BASE_URL) -> List[Dict[str, str]]:
    """
    Parse one AAD results page into records.

    Detail rows are merged into the previous main row's TAGS column as
    ``"<tags> | <detail text>"`` instead of becoming records of their own.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = _find_results_table(soup)
    if table is None:
        return []

    headers = _table_headers(table)
    records: list[list[str]] = []

    for row in _body_rows(table):
        cells = row.find_all("td")
        if not cells:
            continue

        if _is_detail_row(cells):
            if not records:
                _log.debug("Detail row before any main row; ignoring")
                continue
            current = records[-1]
            detail_text = row.get_text(" ", strip=True)
            col = _detail_column(headers, len(current))
            current[col] = f"{current[col]} | {detail_text}"
            continue

        values = [cell.get_text(strip=True) for cell in cells]
        link = cells[0].find("a", href=True)
        values[0] = resolve_record_url(link["href"] if link else None, base_url)
        records.append(values)

    return [_as_record(values, headers) for values in records]


def process_index_file(path: Path, base_url: str = AAD_BASE_URL) -> Optional[List[Dict[str, str]]]:
    """Parse one saved HTML file; returns None when it is missing or has no table."""
    if not path.exists():
        _log.warning("File not found: %s", path)
        return None

    html = path.read_text(encoding="utf-8", errors="replace")
    records = parse_index_html(html, base_url=base_url)
    if not records:
        _log.warning("No results table found in %s", path)
        return None

    _log.info("Parsed %d records from %s", len(records), path.name)
    return records


def process_index_files(paths: Iterable[Path], base_url: str = AAD_BASE_URL) -> pd.DataFrame:
    """Combine the records of all pages into one table."""
    all_records: list[dict] = []
    for path in paths:
        records = process_index_file(path, base_url=base_url)
        if records:
            all_records.extend(records)
    return pd.DataFrame(all_records)


def write_index_table(frame: pd.DataFrame, csv_path: Path, snapshot_path: Path) -> None:
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(csv_path, index=False)
    frame.to_pickle(snapshot_path)
    _log.info("Index records (%d) written to %s and %s", len(frame), csv_path, snapshot_path)


__all__ = [
    "parse_index_html",
    "process_index_file",
    "process_index_files",
    "resolve_record_url",
    "write_index_table",
]

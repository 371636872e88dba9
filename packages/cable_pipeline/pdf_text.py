from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pypdfium2 as pdfium
from docling.datamodel.base_models import InputFormat
from docling.datamodel.document import ConversionResult, DoclingDocument
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption

_log = logging.getLogger(__name__)


def _build_converter(do_ocr: bool = False) -> DocumentConverter:
    """Create a Docling PDF converter; OCR is only needed for scanned pages."""
    pipeline_options = PdfPipelineOptions(
        do_ocr=do_ocr,
        do_table_structure=False,
    )
    pdf_format_option = PdfFormatOption(pipeline_options=pipeline_options)
    return DocumentConverter(format_options={InputFormat.PDF: pdf_format_option})


def convert_pdf(pdf_path: Path, do_ocr: bool = False) -> DoclingDocument:
    """Convert a single cable PDF to a DoclingDocument."""
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    converter = _build_converter(do_ocr=do_ocr)
    _log.info("Converting with Docling (ocr=%s): %s", do_ocr, pdf_path)
    result: ConversionResult = converter.convert(pdf_path)

    if result.status.value != "success":
        raise RuntimeError(f"Docling conversion failed: {result.status.value}")

    return result.document


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def text_layer_pages(pdf_path: Path) -> List[str]:
    """
    Return the embedded text layer of each page, in page order.

    Line breaks of the typed cable are kept: the FM/TO/INFO header patterns
    are anchored to line starts.
    """
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    pdf = pdfium.PdfDocument(pdf_path)
    try:
        pages: list[str] = []
        for index in range(len(pdf)):
            page = pdf[index]
            textpage = page.get_textpage()
            try:
                pages.append(_normalize_newlines(textpage.get_text_bounded()))
            finally:
                textpage.close()
                page.close()
        return pages
    finally:
        pdf.close()


def page_texts(doc: DoclingDocument) -> List[str]:
    """
    Return the plain text of each page of a converted document.

    Every text-bearing item on a page becomes one line.
    """
    pages: list[str] = []
    for page_no in sorted(doc.pages):
        lines: list[str] = []
        for item, _level in doc.iterate_items(page_no=page_no):
            text = getattr(item, "text", None)
            if text:
                lines.append(text)
        pages.append("\n".join(lines))
    return pages


def read_pdf_text(pdf_path: Path) -> str:
    """
    Full cable text: per-page text joined with newlines.

    The embedded text layer is used when there is one; scanned cables
    without any text go through Docling with OCR.
    """
    pages = text_layer_pages(pdf_path)
    if not any(page.strip() for page in pages):
        _log.warning("No text layer in %s; falling back to Docling OCR", pdf_path.name)
        pages = page_texts(convert_pdf(pdf_path, do_ocr=True))
    return "\n".join(pages)


__all__ = ["convert_pdf", "page_texts", "read_pdf_text", "text_layer_pages"]

"""
Batch ingestion pipeline for diplomatic cable archives.

This package is responsible for:
- Reading the text layer of cable PDFs (Docling OCR for scans)
- Rendering per-cable Quarto documents and a combined metadata table
- Compiling saved NARA AAD index pages into CSV
- Post-processing rendered documents (meta block relocation, header checks)
- Providing a CLI for all of the above
"""

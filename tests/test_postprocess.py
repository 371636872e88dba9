"""Tests for the rendered-document post-processors."""

from pathlib import Path

import pytest

from cable_core.models import CableRecord
from cable_pipeline.postprocess import (
    RelocationStatus,
    StructureReport,
    check_structure,
    fill_meta_block,
    iter_qmd_files,
    move_meta_block,
    read_front_matter,
    summarize_structure,
)
from cable_pipeline.render import META_PLACEHOLDER, TELEGRAM_HEADING, render_cable_markdown


@pytest.fixture
def record() -> CableRecord:
    return CableRecord(
        source_file="1979LAPAZ04567.pdf",
        date="July 04, 1979",
        from_="AmEmbassy La Paz",
        to="SecState WashDC",
        subject='Election "Update" <Draft>',
        tags="PEPR, BL",
        classification="UNCLASSIFIED",
        author="Unknown",
        body_text="1. First paragraph.\n\n2. Second paragraph.",
    )


@pytest.fixture
def qmd_file(tmp_path: Path, record: CableRecord) -> Path:
    path = tmp_path / "1979LAPAZ04567.qmd"
    path.write_text(render_cable_markdown(record), encoding="utf-8")
    return path


def _index(lines, text):
    return next(i for i, line in enumerate(lines) if line.startswith(text))


class TestMoveMetaBlock:
    def test_block_moves_below_classification_line(self, qmd_file):
        assert move_meta_block(qmd_file) is RelocationStatus.MOVED

        lines = qmd_file.read_text(encoding="utf-8").splitlines()
        heading = _index(lines, TELEGRAM_HEADING)
        meta = _index(lines, "::: {.cable-meta}")
        body = _index(lines, "1. First paragraph.")

        assert lines[heading + 1] == "**UNCLASSIFIED**"
        assert heading < meta < body
        assert lines[meta + 1] == ":::"

    def test_second_run_is_a_no_op(self, qmd_file):
        move_meta_block(qmd_file)
        once = qmd_file.read_text(encoding="utf-8")

        assert move_meta_block(qmd_file) is RelocationStatus.ALREADY_MOVED
        assert qmd_file.read_text(encoding="utf-8") == once

    def test_file_without_meta_block(self, tmp_path):
        path = tmp_path / "plain.qmd"
        path.write_text(f"{TELEGRAM_HEADING}\n**SECRET**\nText\n", encoding="utf-8")
        assert move_meta_block(path) is RelocationStatus.NO_META_BLOCK

    def test_unclosed_meta_block(self, tmp_path):
        path = tmp_path / "open.qmd"
        path.write_text(f"::: {{.cable-meta}}\n{TELEGRAM_HEADING}\n**SECRET**\n", encoding="utf-8")
        assert move_meta_block(path) is RelocationStatus.UNCLOSED_META_BLOCK

    def test_missing_heading(self, tmp_path):
        path = tmp_path / "noheading.qmd"
        path.write_text(f"{META_PLACEHOLDER}\n\nText only\n", encoding="utf-8")
        assert move_meta_block(path) is RelocationStatus.NO_HEADER
        assert path.read_text(encoding="utf-8") == f"{META_PLACEHOLDER}\n\nText only\n"

    def test_missing_classification_line(self, tmp_path):
        path = tmp_path / "noclass.qmd"
        path.write_text(f"{META_PLACEHOLDER}\n{TELEGRAM_HEADING}\nplain text\n", encoding="utf-8")
        assert move_meta_block(path) is RelocationStatus.NO_CLASSIFICATION


class TestCheckStructure:
    def test_rendered_file_has_standard_structure(self, qmd_file):
        report = check_structure(qmd_file)
        assert report == StructureReport(
            file=qmd_file.name,
            status="OK",
            line_1=TELEGRAM_HEADING,
            line_2="**UNCLASSIFIED**",
        )

    def test_summary_lists_deviating_files(self, qmd_file, tmp_path):
        odd = tmp_path / "odd.qmd"
        odd.write_text(f"{META_PLACEHOLDER}\n# SOMETHING ELSE\nplain\n", encoding="utf-8")
        missing = tmp_path / "missing.qmd"
        missing.write_text("no block here\n", encoding="utf-8")

        reports = [check_structure(p) for p in (qmd_file, odd, missing)]
        counts, oddballs = summarize_structure(reports)

        assert counts[0][1] == 1
        assert ((TELEGRAM_HEADING, "**UNCLASSIFIED**"), 1) in counts
        assert [r.file for r in oddballs] == ["odd.qmd", "missing.qmd"]
        assert oddballs[1].status == "No cable-meta block found"


class TestFillMetaBlock:
    def test_placeholder_becomes_html_table(self, qmd_file):
        assert fill_meta_block(qmd_file) is True

        text = qmd_file.read_text(encoding="utf-8")
        assert META_PLACEHOLDER not in text
        assert "```{=html}" in text
        assert "<strong>From:</strong>" in text
        assert "AmEmbassy La Paz" in text
        assert "Election &quot;Update&quot; &lt;Draft&gt;" in text
        # Empty fields get no row.
        assert "<strong>Info:</strong>" not in text

    def test_second_fill_leaves_file_alone(self, qmd_file):
        fill_meta_block(qmd_file)
        once = qmd_file.read_text(encoding="utf-8")
        assert fill_meta_block(qmd_file) is False
        assert qmd_file.read_text(encoding="utf-8") == once


def test_front_matter_round_trips_quoted_values(record):
    lines = render_cable_markdown(record).splitlines()
    meta = read_front_matter(lines)
    assert meta["cable-subject"] == 'Election "Update" <Draft>'
    assert meta["cable-info"] == ""


def test_iter_qmd_files_skips_index(tmp_path):
    for name in ("index.qmd", "b.qmd", "a.qmd", "notes.md"):
        (tmp_path / name).write_text("", encoding="utf-8")
    assert [p.name for p in iter_qmd_files(tmp_path)] == ["a.qmd", "b.qmd"]

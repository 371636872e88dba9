"""Shared fixtures for the cable ingestion tests."""

from pathlib import Path

import pytest

from cable_pipeline.config import CablePipelineSettings

SAMPLE_CABLE = """UNCLASSIFIED
Sheryl P. Walter Declassified/Released US Department of State EO Systematic Review 30 JUN 2010
Draft Date: 4 JUL 1979
FM AMEMBASSY LA PAZ
TO SECSTATE WASHDC IMMEDIATE 4567
INFO AMEMBASSY LIMA
AMEMBASSY QUITO
E.O. 12065: GDS 7/4/85 (BOEKER, PAUL) OR-M
TAGS: PEPR, BL
SUBJECT: BOLIVIAN ELECTION UPDATE
REF: STATE 123456
1. SUMMARY: THE ELECTORAL COURT MET TODAY.
CONFIDENTIAL
PAGE 02 LA PAZ 04567 041530Z
2. EMBASSY WILL CONTINUE TO MONITOR.
BOEKER
NNN
Message Attributes
Document Number: 1979LAPAZ04567
Current Classification: UNCLASSIFIED
Concepts: ELECTIONS, POLITICAL SITUATION
Decaption Date: 01 JAN 1960
"""

MINIMAL_CABLE = """Draft Date: 4 JUL 1979
FM AMEMBASSY LA PAZ
TO SECSTATE WASHDC
SUBJECT: TEST CABLE
1. This is a test.
Message Attributes
"""


@pytest.fixture
def sample_cable() -> str:
    return SAMPLE_CABLE


@pytest.fixture
def minimal_cable() -> str:
    return MINIMAL_CABLE


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CablePipelineSettings:
    """Settings rooted in a temporary directory, with LLM cleanup disabled."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("CABLES_GEMINI_API_KEY", raising=False)
    return CablePipelineSettings(
        project_root=tmp_path,
        input_dir=tmp_path / "cables",
        output_dir=tmp_path / "out",
        metadata_csv=tmp_path / "cable_metadata.csv",
        metadata_snapshot=tmp_path / "cable_metadata.pkl",
        index_html_dir=tmp_path / "index",
        index_csv=tmp_path / "index.csv",
        index_snapshot=tmp_path / "index.pkl",
        gemini_api_key=None,
        llm_pause_seconds=0,
    )


@pytest.fixture
def cable_dir(tmp_path: Path) -> Path:
    """Input directory holding two pre-extracted cable text layers."""
    directory = tmp_path / "cables"
    directory.mkdir()
    (directory / "1979LAPAZ04567.txt").write_text(SAMPLE_CABLE, encoding="utf-8")
    (directory / "test_cable.txt").write_text(MINIMAL_CABLE, encoding="utf-8")
    return directory

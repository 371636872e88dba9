"""Tests for the CableRecord model invariants."""

import pytest
from pydantic import ValidationError

from cable_core.models import CableRecord


def test_strings_are_trimmed_and_blank_becomes_none():
    record = CableRecord(
        source_file="  a.pdf ",
        subject="  TEST CABLE \n",
        tags="   ",
        body_text="\n  body  \n",
    )
    assert record.source_file == "a.pdf"
    assert record.subject == "TEST CABLE"
    assert record.tags is None
    assert record.body_text == "body"


def test_from_accepts_alias_and_field_name():
    assert CableRecord(source_file="a", **{"from": "AMEMBASSY"}).from_ == "AMEMBASSY"
    assert CableRecord(source_file="a", from_="AMEMBASSY").from_ == "AMEMBASSY"


def test_record_is_immutable():
    record = CableRecord(source_file="a.pdf")
    with pytest.raises(ValidationError):
        record.subject = "changed"


def test_source_file_is_required():
    with pytest.raises(ValidationError):
        CableRecord(source_file="   ")


def test_to_row_columns():
    row = CableRecord(source_file="a.pdf", date="4 JUL 1979", reference="STATE 1").to_row()
    assert list(row) == [
        "source_file",
        "cable_date",
        "cable_from",
        "cable_to",
        "cable_info",
        "cable_subject",
        "cable_tags",
        "cable_ref",
        "doc_number",
        "classification",
        "declass_date",
        "concepts",
        "author",
    ]
    assert row["cable_date"] == "4 JUL 1979"
    assert row["cable_ref"] == "STATE 1"
    assert row["cable_from"] is None

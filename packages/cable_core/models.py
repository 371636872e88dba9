from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class CableRecord(BaseModel):
    """Structured fields extracted from one cable document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_file: str = Field(..., description="Name of the originating document.")

    date: Optional[str] = Field(
        default=None,
        description="Transmission date as written ('Draft Date:' preferred).",
    )
    from_: Optional[str] = Field(
        default=None,
        alias="from",
        description="Sending post (FM line).",
    )
    to: Optional[str] = Field(default=None, description="Addressee(s) (TO line).")
    info: Optional[str] = Field(default=None, description="Distribution list (INFO line).")
    subject: Optional[str] = Field(default=None, description="SUBJECT/SUBJ text.")
    tags: Optional[str] = Field(default=None, description="Raw TAGS codes.")
    reference: Optional[str] = Field(default=None, description="REF/REFS citations.")

    document_number: Optional[str] = Field(
        default=None,
        description="Footer 'Document Number:' value.",
    )
    classification: Optional[str] = Field(
        default=None,
        description="Footer 'Current Classification:' value.",
    )
    declassification_date: Optional[str] = Field(
        default=None,
        description="Release date from the declassification stamp or 'Decaption Date:'.",
    )
    concepts: Optional[str] = Field(default=None, description="Footer 'Concepts:' value.")

    author: Optional[str] = Field(
        default=None,
        description="Best-effort signer attribution.",
    )
    body_text: str = Field(
        default="",
        description="Narrative content with boilerplate stripped.",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _trim(cls, value: Any, info: ValidationInfo) -> Any:
        if info.field_name == "body_text":
            return (value or "").strip()
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def to_row(self) -> Dict[str, Optional[str]]:
        """Flat row used for the combined metadata table."""
        return {
            "source_file": self.source_file,
            "cable_date": self.date,
            "cable_from": self.from_,
            "cable_to": self.to,
            "cable_info": self.info,
            "cable_subject": self.subject,
            "cable_tags": self.tags,
            "cable_ref": self.reference,
            "doc_number": self.document_number,
            "classification": self.classification,
            "declass_date": self.declassification_date,
            "concepts": self.concepts,
            "author": self.author,
        }


__all__ = ["CableRecord"]

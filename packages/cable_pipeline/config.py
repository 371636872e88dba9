from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class CablePipelineSettings(BaseSettings):
    """Configuration for the cable ingestion pipeline."""

    project_root: Path = Field(
        default_factory=lambda: Path.cwd(),
        description="Directory that relative paths are resolved against.",
    )

    # Source cable PDFs (or pre-extracted .txt text layers).
    input_dir: Path = Field(
        default_factory=lambda: Path("data") / "cables-usa",
        description="Directory containing the source cable documents.",
    )

    # Rendered Quarto documents
    output_dir: Path = Field(
        default_factory=lambda: Path("data") / "cables-usa-md",
        description="Directory for rendered .qmd documents.",
    )
    output_suffix: str = Field(
        default=".qmd",
        description="Extension swapped onto each source file name.",
    )

    metadata_csv: Path = Field(
        default_factory=lambda: Path("data") / "cable_metadata.csv",
        description="Combined per-cable metadata table (CSV).",
    )
    metadata_snapshot: Path = Field(
        default_factory=lambda: Path("data") / "cable_metadata.pkl",
        description="Combined per-cable metadata table (pickle snapshot).",
    )

    # Saved NARA AAD result pages
    index_html_dir: Path = Field(
        default_factory=lambda: Path("data") / "index-nara",
        description="Directory containing saved AAD index HTML pages.",
    )
    index_csv: Path = Field(
        default_factory=lambda: Path("data") / "aad_records_compiled_combined.csv",
        description="Combined index records (CSV).",
    )
    index_snapshot: Path = Field(
        default_factory=lambda: Path("data") / "aad_records_compiled_combined.pkl",
        description="Combined index records (pickle snapshot).",
    )
    index_base_url: str = Field(
        default="https://aad.archives.gov/aad/",
        description="Base URL for relative 'View Record' links.",
    )

    # Optional Gemini cleanup of body text
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "CABLES_GEMINI_API_KEY"),
        description="API key for the cleanup model; absent disables cleanup.",
    )
    gemini_model: str = Field(default="gemini-2.5-flash")
    llm_pause_seconds: float = Field(
        default=3.0,
        description="Pause after each cleanup call to respect the rate limit.",
    )

    class Config:
        env_prefix = "CABLES_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    def resolve_paths(self) -> "CablePipelineSettings":
        """Return a copy with all relative paths resolved against project_root."""

        def _resolve(path: Path) -> Path:
            if path.is_absolute():
                return path
            return self.project_root / path

        return self.model_copy(
            update={
                "input_dir": _resolve(self.input_dir),
                "output_dir": _resolve(self.output_dir),
                "metadata_csv": _resolve(self.metadata_csv),
                "metadata_snapshot": _resolve(self.metadata_snapshot),
                "index_html_dir": _resolve(self.index_html_dir),
                "index_csv": _resolve(self.index_csv),
                "index_snapshot": _resolve(self.index_snapshot),
            }
        )


def get_settings() -> CablePipelineSettings:
    """Return settings with resolved paths."""
    return CablePipelineSettings().resolve_paths()


__all__ = ["CablePipelineSettings", "get_settings"]

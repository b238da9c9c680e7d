"""
PageFit — Export job result and pipeline output contracts.

Every export returns a JobResult with full traceability:
timings, hashes, placements, verification results, and artifact metadata.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field

from app.models.layout import Orientation, PageGeometry, PaperCode, PlacedImage


class JobState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    ASSEMBLED = "ASSEMBLED"
    VERIFIED = "VERIFIED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: str = "ok"  # ok | skipped | failed
    detail: str = ""


class ArtifactMetadata(BaseModel):
    filename: str
    size_bytes: int
    pages: int = 0
    content_hash: str = ""  # SHA-256 of the PDF


class VerificationResult(BaseModel):
    page_count: int = 0
    page_sizes_match: bool = False
    one_image_per_page: bool = False
    placements_match: bool = False
    file_size: int = 0
    content_hash: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    failures: list[str] = Field(default_factory=list)
    checks_passed: int = 0
    checks_total: int = 0
    passed: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "page_count": 3,
                "page_sizes_match": True,
                "one_image_per_page": True,
                "placements_match": True,
                "checks_passed": 5,
                "checks_total": 5,
                "passed": True,
            }
        }


class JobResult(BaseModel):
    """Complete output contract for every export job."""

    job_id: str
    paper_size: PaperCode
    orientation: Orientation
    page_geometry: PageGeometry
    artifact: ArtifactMetadata
    placements: list[PlacedImage] = Field(default_factory=list)
    timings: list[StepTiming] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    verification: VerificationResult | None = None

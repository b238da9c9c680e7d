"""PageFit data models — typed contracts for the entire export pipeline."""

from app.models.assets import ImageAsset
from app.models.layout import (
    ContentBox,
    Orientation,
    PageGeometry,
    PaperCode,
    PlacedImage,
)
from app.models.job import (
    JobState,
    StepTiming,
    ArtifactMetadata,
    VerificationResult,
    JobResult,
)

__all__ = [
    "ImageAsset",
    "ContentBox",
    "Orientation",
    "PageGeometry",
    "PaperCode",
    "PlacedImage",
    "JobState",
    "StepTiming",
    "ArtifactMetadata",
    "VerificationResult",
    "JobResult",
]

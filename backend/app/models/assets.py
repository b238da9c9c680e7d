"""
PageFit — Collected image model.

An ImageAsset is one selected image. Its ordinal is assigned when it is
collected and is the only key used to order pages. Pixel dimensions are
not stored here; they are decoded per export.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ImageAsset(BaseModel):
    ordinal: int = Field(ge=0)
    name: str = Field(min_length=1, max_length=500)
    relative_path: str = ""
    media_type: str = "application/octet-stream"
    data: bytes = Field(repr=False, exclude=True)

"""
PageFit — Page geometry and placement models.

All lengths are millimeters. Geometry values are derived per export and
never mutated in place.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


class PaperCode(str, enum.Enum):
    A3 = "A3"
    A4 = "A4"
    A5 = "A5"


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class PageGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0)
    height: float = Field(gt=0)

    def rotated(self) -> PageGeometry:
        """Return the same page turned 90 degrees."""
        return PageGeometry(width=self.height, height=self.width)


class ContentBox(BaseModel):
    """Printable area left after the border is taken off every side."""

    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0)
    height: float = Field(gt=0)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class PlacedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    ordinal: int = 0
    width: float
    height: float
    x: float
    y: float

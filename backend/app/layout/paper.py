"""
PageFit — Paper size registry.

Ships the ISO A3, A4 and A5 sheets. Dimensions are stored in portrait
orientation; landscape is the same sheet turned on its side. Adding a
size is a registry entry only.
"""

from __future__ import annotations

from pydantic import BaseModel

from app.models.layout import Orientation, PageGeometry, PaperCode


class PaperEntry(BaseModel):
    code: PaperCode
    width_mm: float
    height_mm: float
    label: str


PAPER_SIZES: dict[PaperCode, PaperEntry] = {
    PaperCode.A3: PaperEntry(code=PaperCode.A3, width_mm=297, height_mm=420, label="A3 (297×420 mm)"),
    PaperCode.A4: PaperEntry(code=PaperCode.A4, width_mm=210, height_mm=297, label="A4 (210×297 mm)"),
    PaperCode.A5: PaperEntry(code=PaperCode.A5, width_mm=148, height_mm=210, label="A5 (148×210 mm)"),
}


def get_paper(code: str) -> PaperEntry | None:
    try:
        return PAPER_SIZES.get(PaperCode(code))
    except ValueError:
        return None


def list_paper_sizes() -> list[PaperEntry]:
    return list(PAPER_SIZES.values())


def resolve_page_geometry(paper_size: PaperCode, orientation: Orientation) -> PageGeometry:
    """Page width and height in mm for a sheet in the given orientation."""
    paper = PAPER_SIZES[PaperCode(paper_size)]
    portrait = PageGeometry(width=paper.width_mm, height=paper.height_mm)
    if Orientation(orientation) is Orientation.LANDSCAPE:
        return portrait.rotated()
    return portrait

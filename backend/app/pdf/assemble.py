"""
PageFit — Images to PDF assembler.

Turns an ordered selection of images into a single PDF.
Each image becomes one page of the chosen paper size, scaled to fit
inside a 16 mm white border and centered. Pages follow image ordinals.

If any image fails to decode or embed, the whole export fails and no
partial document is returned.

Decoding runs in a worker thread. The PyMuPDF document is not thread-safe,
so pages are drawn and serialized on the event loop.
"""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from typing import Sequence

import fitz
from PIL import Image, ImageOps
from pydantic import BaseModel, Field

from app.errors import AssemblyFailureError, InvalidImageError, NoImagesError, PageFitError
from app.layout.fit import WHITE_BORDER_MM, content_box, fit_image
from app.layout.paper import resolve_page_geometry
from app.models.assets import ImageAsset
from app.models.layout import Orientation, PageGeometry, PaperCode, PlacedImage
from app.utils.logging import logger, step_timer

MM_TO_PT = 72 / 25.4

# MuPDF embeds these containers directly; anything else is converted to PNG.
# MPO is a baseline JPEG with extra pictures appended (phone cameras).
EMBEDDABLE_FORMATS = {"JPEG", "MPO", "PNG"}

EXIF_ORIENTATION = 0x0112

# EXIF orientation -> anticlockwise rotation applied when the stream is
# embedded as-is; mirrored orientations (2, 4, 5, 7) are transposed instead
EXIF_ROTATION = {1: 0, 3: 180, 6: 270, 8: 90}


def mm_rect(placed: PlacedImage) -> fitz.Rect:
    """Placement in PDF points, origin top-left."""
    return fitz.Rect(
        placed.x * MM_TO_PT,
        placed.y * MM_TO_PT,
        (placed.x + placed.width) * MM_TO_PT,
        (placed.y + placed.height) * MM_TO_PT,
    )


@dataclass(frozen=True)
class DecodedImage:
    ordinal: int
    name: str
    pixel_width: int
    pixel_height: int
    stream: bytes
    # anticlockwise degrees, pixel size above is already upright
    rotate: int = 0


class AssembledDocument(BaseModel):
    pdf_bytes: bytes = Field(repr=False, exclude=True)
    page_geometry: PageGeometry
    placements: list[PlacedImage] = Field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.placements)


def _to_png(img: Image.Image) -> bytes:
    if img.mode not in ("1", "L", "LA", "P", "RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _decode(asset: ImageAsset) -> DecodedImage:
    try:
        with Image.open(io.BytesIO(asset.data)) as img:
            img.load()
            orientation = img.getexif().get(EXIF_ORIENTATION, 1)
            if img.format in EMBEDDABLE_FORMATS and orientation in EXIF_ROTATION:
                rotate = EXIF_ROTATION[orientation]
                width, height = img.size
                if rotate in (90, 270):
                    width, height = height, width
                stream = asset.data
            else:
                upright = ImageOps.exif_transpose(img)
                rotate = 0
                width, height = upright.size
                stream = _to_png(upright)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise InvalidImageError(asset.name, str(exc) or type(exc).__name__) from exc

    if width <= 0 or height <= 0:
        raise InvalidImageError(asset.name, f"degenerate size {width}x{height}")
    return DecodedImage(
        ordinal=asset.ordinal,
        name=asset.name,
        pixel_width=width,
        pixel_height=height,
        stream=stream,
        rotate=rotate,
    )


async def decode_image(asset: ImageAsset) -> DecodedImage:
    """Decode upright pixel dimensions off the event loop.

    EXIF orientation is honoured: plain rotations keep the original
    stream and are drawn rotated, mirrored ones are transposed to PNG.
    """
    return await asyncio.to_thread(_decode, asset)


class DocumentAssembler:
    """Builds one PDF per call; keeps nothing between calls."""

    def __init__(
        self,
        paper_size: PaperCode | str = PaperCode.A4,
        orientation: Orientation | str = Orientation.PORTRAIT,
        margin_mm: float = WHITE_BORDER_MM,
        request_id: str | None = None,
    ):
        self.paper_size = PaperCode(paper_size)
        self.orientation = Orientation(orientation)
        self.margin_mm = margin_mm
        self.request_id = request_id

    @property
    def page_geometry(self) -> PageGeometry:
        return resolve_page_geometry(self.paper_size, self.orientation)

    def plan_placements(self, decoded: Sequence[DecodedImage]) -> list[PlacedImage]:
        geometry = self.page_geometry
        return [
            fit_image(
                geometry,
                d.pixel_width,
                d.pixel_height,
                self.margin_mm,
                ordinal=d.ordinal,
                name=d.name,
            )
            for d in sorted(decoded, key=lambda d: d.ordinal)
        ]

    async def assemble(self, assets: Sequence[ImageAsset]) -> AssembledDocument:
        if not assets:
            raise NoImagesError()

        geometry = self.page_geometry
        content_box(geometry, self.margin_mm)
        ordered = sorted(assets, key=lambda a: a.ordinal)

        with step_timer(
            f"Assemble PDF ({len(ordered)} images, {self.paper_size.value} {self.orientation.value})",
            request_id=self.request_id,
        ):
            doc = fitz.open()
            try:
                placements: list[PlacedImage] = []
                for asset in ordered:
                    placements.append(await self._add_page(doc, geometry, asset))

                doc.set_metadata({
                    "title": f"{len(ordered)} images on {self.paper_size.value} {self.orientation.value}",
                    "creator": "PageFit",
                })
                pdf_bytes = doc.tobytes()
            finally:
                doc.close()

            logger.info("  Created %d-page PDF (%d bytes)", len(placements), len(pdf_bytes))
            return AssembledDocument(
                pdf_bytes=pdf_bytes,
                page_geometry=geometry,
                placements=placements,
            )

    async def _add_page(self, doc: fitz.Document, geometry: PageGeometry, asset: ImageAsset) -> PlacedImage:
        try:
            decoded = await decode_image(asset)
            placed = self.plan_placements([decoded])[0]
        except PageFitError as exc:
            logger.error("  Image %d (%s) failed: %s", asset.ordinal, asset.name, exc.message)
            raise AssemblyFailureError(asset.name, exc.message) from exc

        page = doc.new_page(width=geometry.width * MM_TO_PT, height=geometry.height * MM_TO_PT)
        try:
            page.insert_image(mm_rect(placed), stream=decoded.stream, rotate=decoded.rotate)
        except Exception as exc:
            logger.error("  Image %d (%s) could not be embedded: %s", asset.ordinal, asset.name, exc)
            raise AssemblyFailureError(asset.name, str(exc)) from exc

        logger.info(
            "  Page %d: %s %dx%d px → %.1fx%.1f mm at (%.1f, %.1f)",
            doc.page_count, asset.name, decoded.pixel_width, decoded.pixel_height,
            placed.width, placed.height, placed.x, placed.y,
        )
        return placed

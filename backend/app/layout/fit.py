"""
PageFit — Fit an image inside the printable area of a page.

The whole image is always shown: it is scaled until one side touches the
content box, never stretched and never cropped, then centered on the page.
"""

from __future__ import annotations

import math

from app.errors import InvalidGeometryError, InvalidImageError
from app.models.layout import ContentBox, PageGeometry, PlacedImage

WHITE_BORDER_MM = 16.0


def content_box(page: PageGeometry, margin_mm: float = WHITE_BORDER_MM) -> ContentBox:
    """Page box shrunk by the margin on all four sides."""
    if 2 * margin_mm >= page.width or 2 * margin_mm >= page.height:
        raise InvalidGeometryError(page.width, page.height, margin_mm)
    return ContentBox(width=page.width - 2 * margin_mm, height=page.height - 2 * margin_mm)


def _check_pixels(pixel_width: float, pixel_height: float, name: str) -> None:
    for label, value in (("width", pixel_width), ("height", pixel_height)):
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = math.nan
        if not math.isfinite(number) or number <= 0:
            raise InvalidImageError(name, f"pixel {label} must be a positive number, got {value!r}")


def fit_image(
    page: PageGeometry,
    pixel_width: float,
    pixel_height: float,
    margin_mm: float = WHITE_BORDER_MM,
    ordinal: int = 0,
    name: str = "image",
) -> PlacedImage:
    """
    Largest undistorted size of an image inside the page's content box.

    Offsets are measured against the full page so the letterbox stays
    centered including the border.
    """
    box = content_box(page, margin_mm)
    _check_pixels(pixel_width, pixel_height, name)

    image_ratio = pixel_width / pixel_height
    if image_ratio > box.aspect_ratio:
        # relatively wider than the box: width is the binding side
        draw_width = box.width
        draw_height = min(box.width / image_ratio, box.height)
    else:
        draw_height = box.height
        draw_width = min(box.height * image_ratio, box.width)

    return PlacedImage(
        ordinal=ordinal,
        width=draw_width,
        height=draw_height,
        x=(page.width - draw_width) / 2,
        y=(page.height - draw_height) / 2,
    )

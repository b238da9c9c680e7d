"""
PageFit — Structured error catalog.

Every error has a code, human message, and suggested fix.
No raw exceptions leak to the API layer.
"""

from __future__ import annotations

from typing import Any


class PageFitError(Exception):
    """Base error with structured code + suggestion."""

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class ValidationError(PageFitError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            code="VALIDATION_FAILED",
            message=f"Input validation failed: {'; '.join(errors)}",
            suggestion="Check paper_size (A3, A4, A5) and orientation (portrait, landscape).",
            detail=errors,
        )


class InvalidGeometryError(PageFitError):
    def __init__(self, page_width: float, page_height: float, margin_mm: float):
        super().__init__(
            code="INVALID_GEOMETRY",
            message=(
                f"Page {page_width:g}x{page_height:g} mm is too small "
                f"for a {margin_mm:g} mm margin"
            ),
            suggestion="Choose a larger paper size.",
        )


class InvalidImageError(PageFitError):
    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(
            code="INVALID_IMAGE",
            message=f"Image cannot be used: {name} ({reason})",
            suggestion="Remove the image or re-save it as JPEG or PNG.",
        )


class TraversalReadError(PageFitError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            code="TRAVERSAL_READ_FAILED",
            message=f"Could not read entry: {path} ({reason})",
            suggestion="Check file permissions; the entry was skipped.",
        )


class AssemblyFailureError(PageFitError):
    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(
            code="ASSEMBLY_FAILED",
            message=f"PDF export failed at {name}: {reason}",
            suggestion="Remove the failing image and export again. Your selection was kept.",
        )


class NoImagesError(PageFitError):
    def __init__(self):
        super().__init__(
            code="NO_IMAGES",
            message="No images to export",
            suggestion="Add at least one image file (jpg, png, webp, gif, bmp, tiff).",
        )


class UploadTooLargeError(PageFitError):
    def __init__(self, name: str, size_mb: float, limit_mb: float):
        super().__init__(
            code="UPLOAD_TOO_LARGE",
            message=f"File exceeds {limit_mb:g}MB limit: {name} ({size_mb:.1f}MB)",
            suggestion="Compress or resize the image before uploading.",
        )

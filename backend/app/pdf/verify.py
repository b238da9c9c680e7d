"""
PageFit — PDF verification module.

Inspects an exported PDF locally to confirm it matches the layout that
was planned for it. Uses pymupdf (fitz) for parsing.

Checks:
  1. PDF opens and parses
  2. Page count matches the number of images
  3. Every page has the paper size
  4. Every page carries exactly one image
  5. Each image sits where its placement says
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

import fitz

from app.models.job import VerificationResult
from app.models.layout import PageGeometry, PlacedImage
from app.pdf.assemble import MM_TO_PT, mm_rect
from app.utils.logging import logger, step_timer

TOLERANCE_PT = 0.5


@dataclass
class VerifyExpectations:
    page_geometry: PageGeometry | None = None
    expected_pages: int | None = None
    placements: list[PlacedImage] = field(default_factory=list)


def _close(a: float, b: float) -> bool:
    return abs(a - b) <= TOLERANCE_PT


class DocumentVerifier:
    """Local PDF inspection using pymupdf."""

    def verify(self, pdf_bytes: bytes, expectations: VerifyExpectations) -> VerificationResult:
        content_hash = hashlib.sha256(pdf_bytes).hexdigest()

        with step_timer("Verify PDF"):
            try:
                doc = fitz.open(stream=pdf_bytes, filetype="pdf")
            except (RuntimeError, ValueError) as exc:
                logger.warning("  PDF does not open: %s", exc)
                return VerificationResult(
                    file_size=len(pdf_bytes),
                    content_hash=content_hash,
                    failures=[f"opens_and_parses: {exc}"],
                    checks_passed=0,
                    checks_total=1,
                )

            try:
                checks: dict[str, bool] = {}
                failures: list[str] = []

                # 1. Opens and parses
                checks["opens_and_parses"] = len(doc) > 0

                # 2. Page count
                if expectations.expected_pages is not None:
                    checks["page_count_matches"] = len(doc) == expectations.expected_pages
                    if not checks["page_count_matches"]:
                        failures.append(f"expected {expectations.expected_pages} pages, found {len(doc)}")
                else:
                    checks["page_count_matches"] = True

                # 3. Page size
                sizes_ok = True
                if expectations.page_geometry is not None:
                    want_w = expectations.page_geometry.width * MM_TO_PT
                    want_h = expectations.page_geometry.height * MM_TO_PT
                    for page in doc:
                        if not (_close(page.rect.width, want_w) and _close(page.rect.height, want_h)):
                            sizes_ok = False
                            failures.append(
                                f"page {page.number + 1} is {page.rect.width:.1f}x{page.rect.height:.1f} pt"
                            )
                checks["page_sizes_match"] = sizes_ok

                # 4-5. Images and their rectangles
                image_boxes: list[list[fitz.Rect]] = [
                    [fitz.Rect(info["bbox"]) for info in page.get_image_info()] for page in doc
                ]
                one_each = all(len(boxes) == 1 for boxes in image_boxes)
                if not one_each:
                    failures.extend(
                        f"page {i + 1} has {len(boxes)} images"
                        for i, boxes in enumerate(image_boxes) if len(boxes) != 1
                    )
                checks["one_image_per_page"] = one_each

                placements_ok = True
                if expectations.placements:
                    if len(expectations.placements) != len(image_boxes):
                        placements_ok = False
                    for i, (placed, boxes) in enumerate(zip(expectations.placements, image_boxes)):
                        want = mm_rect(placed)
                        if len(boxes) != 1 or not all(
                            _close(a, b) for a, b in zip(boxes[0], want)
                        ):
                            placements_ok = False
                            failures.append(f"page {i + 1} image is not at its planned rectangle")
                checks["placements_match"] = placements_ok

                passed_count = sum(checks.values())
                total_count = len(checks)

                metadata_raw = doc.metadata or {}
                metadata: dict[str, Any] = {k: v for k, v in metadata_raw.items() if v}

                result = VerificationResult(
                    page_count=len(doc),
                    page_sizes_match=sizes_ok,
                    one_image_per_page=one_each,
                    placements_match=placements_ok,
                    file_size=len(pdf_bytes),
                    content_hash=content_hash,
                    metadata=metadata,
                    failures=failures,
                    checks_passed=passed_count,
                    checks_total=total_count,
                    passed=passed_count == total_count,
                )
            finally:
                doc.close()

            logger.info(
                "  Verification: %d/%d checks passed %s",
                result.checks_passed, result.checks_total,
                "✓" if result.passed else "✗",
            )
            return result

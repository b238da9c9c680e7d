"""
PageFit — Export job orchestrator.

Runs one export as a state machine:

  RECEIVED → VALIDATED → ASSEMBLED → VERIFIED → DELIVERED

Each step is timed, logged, and recorded in the JobResult. Any failure
moves the job to FAILED and is raised as a single error; the caller's
selection is never touched.
"""

from __future__ import annotations

import hashlib
import time
from typing import Sequence

from app.core.config import settings
from app.errors import NoImagesError, PageFitError, ValidationError
from app.layout.fit import WHITE_BORDER_MM
from app.models.assets import ImageAsset
from app.models.job import (
    ArtifactMetadata,
    JobResult,
    JobState,
    StepTiming,
    VerificationResult,
)
from app.models.layout import Orientation, PaperCode
from app.pdf.assemble import AssembledDocument, DocumentAssembler
from app.pdf.verify import DocumentVerifier, VerifyExpectations
from app.utils.logging import log_banner, logger, new_request_id


def export_filename(
    paper_size: PaperCode | str,
    timestamp_ms: int | None = None,
    prefix: str | None = None,
) -> str:
    """Suggested download name: prefix, paper code and export time in ms."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix or settings.filename_prefix}_{PaperCode(paper_size).value}_{timestamp_ms}.pdf"


def _as_paper_code(value: PaperCode | str) -> PaperCode:
    if isinstance(value, PaperCode):
        return value
    return PaperCode(str(value).strip().upper())


def _as_orientation(value: Orientation | str) -> Orientation:
    if isinstance(value, Orientation):
        return value
    return Orientation(str(value).strip().lower())


class ExportContext:
    """Mutable context passed through export steps."""

    def __init__(self):
        self.paper_size: PaperCode | None = None
        self.orientation: Orientation | None = None
        self.document: AssembledDocument | None = None
        self.final_pdf: bytes = b""
        self.warnings: list[str] = []


class ExportJob:
    """
    State-machine orchestrator for one images-to-PDF export.

    Works on a snapshot of the caller's images; holds nothing once
    the JobResult is returned.
    """

    def __init__(
        self,
        images: Sequence[ImageAsset],
        paper_size: PaperCode | str | None = None,
        orientation: Orientation | str | None = None,
        verify: bool | None = None,
        margin_mm: float = WHITE_BORDER_MM,
        job_id: str | None = None,
    ):
        self.job_id = job_id or new_request_id()
        self.images = tuple(images)
        self.raw_paper_size = paper_size or settings.default_paper_size
        self.raw_orientation = orientation or settings.default_orientation
        self.verify = settings.verify_exports if verify is None else verify
        self.margin_mm = margin_mm
        self.state = JobState.RECEIVED
        self.ctx = ExportContext()
        self.timings: list[StepTiming] = []

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        symbol = "✓" if status == "ok" else ("⊘" if status == "skipped" else "✗")
        logger.info("  %s %s — %dms %s", symbol, name, ms, detail)

    async def run(self) -> JobResult:
        """Execute the full export. Returns a complete JobResult."""
        log_banner("Export starting (%d images)", len(self.images), request_id=self.job_id)
        export_start = time.perf_counter()

        try:
            await self._step_validate()
            await self._step_assemble()

            verification = None
            if self.verify:
                verification = await self._step_verify()
            else:
                self._record_step("verify", time.perf_counter(), "skipped", "disabled")

            self.state = JobState.DELIVERED

        except Exception:
            self.state = JobState.FAILED
            raise

        document = self.ctx.document
        filename = export_filename(self.ctx.paper_size)
        total_ms = int((time.perf_counter() - export_start) * 1000)
        log_banner(
            "Export complete — %s, %d bytes, %d pages, %dms",
            filename, len(self.ctx.final_pdf), document.page_count, total_ms,
            request_id=self.job_id,
        )

        return JobResult(
            job_id=self.job_id,
            paper_size=self.ctx.paper_size,
            orientation=self.ctx.orientation,
            page_geometry=document.page_geometry,
            artifact=ArtifactMetadata(
                filename=filename,
                size_bytes=len(self.ctx.final_pdf),
                pages=document.page_count,
                content_hash=hashlib.sha256(self.ctx.final_pdf).hexdigest(),
            ),
            placements=document.placements,
            timings=self.timings,
            warnings=self.ctx.warnings,
            verification=verification,
        )

    async def _step_validate(self):
        t = time.perf_counter()
        errors: list[str] = []
        try:
            self.ctx.paper_size = _as_paper_code(self.raw_paper_size)
        except ValueError:
            errors.append(f"Unknown paper_size: {self.raw_paper_size!r}")
        try:
            self.ctx.orientation = _as_orientation(self.raw_orientation)
        except ValueError:
            errors.append(f"Unknown orientation: {self.raw_orientation!r}")

        ordinals = [image.ordinal for image in self.images]
        if len(set(ordinals)) != len(ordinals):
            errors.append("Image ordinals must be unique")

        if errors:
            self._record_step("validate", t, "failed", "; ".join(errors))
            raise ValidationError(errors)
        if not self.images:
            self._record_step("validate", t, "failed", "no images")
            raise NoImagesError()

        self.state = JobState.VALIDATED
        self._record_step(
            "validate", t,
            detail=f"{len(self.images)} images, {self.ctx.paper_size.value} {self.ctx.orientation.value}",
        )

    async def _step_assemble(self):
        t = time.perf_counter()
        assembler = DocumentAssembler(
            self.ctx.paper_size, self.ctx.orientation, self.margin_mm, request_id=self.job_id,
        )
        try:
            self.ctx.document = await assembler.assemble(self.images)
        except PageFitError as exc:
            self._record_step("assemble", t, "failed", exc.message)
            raise
        self.ctx.final_pdf = self.ctx.document.pdf_bytes
        self.state = JobState.ASSEMBLED
        self._record_step("assemble", t, detail=f"{self.ctx.document.page_count} pages → {len(self.ctx.final_pdf)} bytes")

    async def _step_verify(self) -> VerificationResult:
        t = time.perf_counter()
        document = self.ctx.document
        verification = DocumentVerifier().verify(
            self.ctx.final_pdf,
            VerifyExpectations(
                page_geometry=document.page_geometry,
                expected_pages=len(self.images),
                placements=document.placements,
            ),
        )
        if not verification.passed:
            self.ctx.warnings.extend(verification.failures)

        self.state = JobState.VERIFIED
        self._record_step(
            "verify", t,
            detail=f"{verification.checks_passed}/{verification.checks_total} checks",
        )
        return verification


async def run_export(
    images: Sequence[ImageAsset],
    paper_size: PaperCode | str = PaperCode.A4,
    orientation: Orientation | str = Orientation.PORTRAIT,
) -> bytes:
    """Shortcut that returns just the PDF bytes."""
    job = ExportJob(images, paper_size=paper_size, orientation=orientation, verify=False)
    await job.run()
    return job.ctx.final_pdf

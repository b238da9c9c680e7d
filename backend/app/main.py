"""
PageFit — FastAPI backend

Endpoints:
  POST /v1/export         — Image(s) or a folder upload → one PDF
  POST /v1/layout         — Page geometry + image placements (preview)
  POST /v1/verify         — Check an exported PDF against its paper size
  GET  /v1/paper-sizes    — List supported paper sizes
  GET  /health            — Health check
"""

import base64
import time

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.collect.entries import build_upload_tree
from app.collect.tree import collect_images
from app.core.config import settings
from app.errors import NoImagesError, PageFitError, UploadTooLargeError
from app.layout.fit import content_box, fit_image
from app.layout.paper import list_paper_sizes, resolve_page_geometry
from app.models.layout import Orientation, PaperCode
from app.pdf.verify import DocumentVerifier, VerifyExpectations
from app.pipeline.export import ExportJob
from app.utils.logging import logger, new_request_id


app = FastAPI(
    title="PageFit API",
    description=(
        "Lay out a batch of images, one per page, on A3/A4/A5 paper "
        "with a uniform white border and export them as a single PDF."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-PageFit-Job", "X-Pipeline-Duration-Ms", "X-Request-Id"],
)


@app.on_event("startup")
async def _startup_banner():
    logger.info("")
    logger.info("╔══════════════════════════════════════════════════╗")
    logger.info("║              PageFit  ·  API Server v1           ║")
    logger.info("╠══════════════════════════════════════════════════╣")
    logger.info("║  POST /v1/export       → Images → PDF            ║")
    logger.info("║  POST /v1/layout       → Placement preview       ║")
    logger.info("║  POST /v1/verify       → PDF verification        ║")
    logger.info("║  GET  /v1/paper-sizes  → Paper size registry     ║")
    logger.info("║  GET  /health          → Health check            ║")
    logger.info("╠══════════════════════════════════════════════════╣")
    logger.info("║  Default paper : %-32s║", f"{settings.default_paper_size} {settings.default_orientation}")
    logger.info("║  Upload limit  : %-32s║", f"{settings.max_upload_mb:g} MB per file")
    logger.info("╚══════════════════════════════════════════════════╝")
    logger.info("")


# ──────────────────────────────────────────────────────────
# Request/Response models
# ──────────────────────────────────────────────────────────

class PixelSize(BaseModel):
    pixel_width: float = Field(..., description="Decoded image width in pixels")
    pixel_height: float = Field(..., description="Decoded image height in pixels")


class LayoutRequest(BaseModel):
    paper_size: PaperCode = Field(default=PaperCode.A4, description="A3 | A4 | A5")
    orientation: Orientation = Field(default=Orientation.PORTRAIT, description="portrait | landscape")
    images: list[PixelSize] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "service": "pagefit-api", "version": "1.0.0"}


@app.get("/v1/paper-sizes")
async def get_paper_sizes():
    """List supported paper sizes with both orientations in mm."""
    return [
        {
            **paper.model_dump(mode="json"),
            "portrait": resolve_page_geometry(paper.code, Orientation.PORTRAIT).model_dump(),
            "landscape": resolve_page_geometry(paper.code, Orientation.LANDSCAPE).model_dump(),
        }
        for paper in list_paper_sizes()
    ]


@app.post("/v1/layout")
async def layout_preview(req: LayoutRequest):
    """
    Compute where each image would land without building a PDF.

    Lets a client draw page previews from pixel sizes it already knows.
    """
    try:
        geometry = resolve_page_geometry(req.paper_size, req.orientation)
        box = content_box(geometry)
        placements = [
            fit_image(geometry, img.pixel_width, img.pixel_height, ordinal=i, name=f"image {i + 1}")
            for i, img in enumerate(req.images)
        ]
    except PageFitError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict())

    return {
        "page_geometry": geometry.model_dump(),
        "content_box": box.model_dump(),
        "placements": [p.model_dump() for p in placements],
    }


@app.post(
    "/v1/export",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Exported PDF"},
        413: {"description": "Upload too large"},
        422: {"description": "No usable images or an image failed to decode"},
        500: {"description": "Export error"},
    },
)
async def export_pdf(
    files: list[UploadFile] = File(..., description="Images, or a folder upload with relative paths"),
    paper_size: PaperCode | None = None,
    orientation: Orientation | None = None,
    verify: bool | None = None,
):
    """
    Collect images from the upload and export them as one PDF.

    Folder uploads keep their structure: a folder's images come before
    the next top-level item. Non-image files are ignored.

    Data handling: nothing is stored. Uploads are processed in memory
    and discarded after the PDF is returned.
    """
    request_id = new_request_id()
    start = time.perf_counter()
    logger.info(
        "[%s] POST /v1/export — %d files | paper=%s orientation=%s",
        request_id, len(files),
        paper_size.value if paper_size else settings.default_paper_size,
        orientation.value if orientation else settings.default_orientation,
    )

    limit = settings.max_upload_mb * 1024 * 1024
    uploads: list[tuple[str, str | None, bytes]] = []
    for f in files:
        content = await f.read()
        if len(content) > limit:
            exc = UploadTooLargeError(f.filename or "upload", len(content) / (1024 * 1024), settings.max_upload_mb)
            raise HTTPException(status_code=413, detail=exc.to_dict())
        uploads.append((f.filename or "upload", f.content_type, content))

    try:
        entries = build_upload_tree(uploads, batch_size=settings.directory_batch_size)
        images = await collect_images(entries, request_id=request_id)
        if not images:
            raise NoImagesError()

        job = ExportJob(
            images, paper_size=paper_size, orientation=orientation, verify=verify, job_id=request_id,
        )
        job_result = await job.run()
        pdf_bytes = job.ctx.final_pdf

    except PageFitError as exc:
        logger.warning("[%s] PageFit error: %s", request_id, exc.code)
        raise HTTPException(status_code=422, detail=exc.to_dict())
    except Exception as exc:
        logger.exception("[%s] Export failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[%s] Complete — %d bytes in %.0f ms", request_id, len(pdf_bytes), elapsed_ms
    )

    # base64 keeps the job JSON header-safe
    job_b64 = base64.b64encode(job_result.model_dump_json().encode()).decode("ascii")

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{job_result.artifact.filename}"',
            "X-Pipeline-Duration-Ms": f"{elapsed_ms:.0f}",
            "X-Request-Id": request_id,
            "X-PageFit-Job": job_b64,
        },
    )


@app.post("/v1/verify")
async def verify_pdf(
    file: UploadFile = File(..., description="PDF file to verify"),
    paper_size: PaperCode = PaperCode.A4,
    orientation: Orientation = Orientation.PORTRAIT,
    expected_pages: int | None = None,
):
    """
    Check an exported PDF: page count, page size, one image per page.
    Returns detailed check results and content hash.
    """
    request_id = new_request_id()
    logger.info("[%s] POST /v1/verify — %s", request_id, file.filename)

    content = await file.read()
    if len(content) > 50 * 1024 * 1024:
        raise HTTPException(status_code=413, detail="File exceeds 50MB limit")

    try:
        expectations = VerifyExpectations(
            page_geometry=resolve_page_geometry(paper_size, orientation),
            expected_pages=expected_pages,
        )
        result = DocumentVerifier().verify(content, expectations)
    except Exception as exc:
        logger.exception("[%s] Verification failed", request_id)
        raise HTTPException(status_code=500, detail=str(exc))

    return result.model_dump()

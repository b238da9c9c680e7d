"""Unit tests for assembling images into a PDF."""

import fitz
import pytest

from app.errors import AssemblyFailureError, InvalidImageError, NoImagesError
from app.models.assets import ImageAsset
from app.models.layout import Orientation, PaperCode
from app.pdf.assemble import MM_TO_PT, DocumentAssembler, decode_image, mm_rect
from app.pdf.verify import DocumentVerifier, VerifyExpectations

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.asyncio
class TestDecodeImage:
    async def test_png_kept_as_is(self, make_asset):
        asset = make_asset(0, 640, 480, "PNG")
        decoded = await decode_image(asset)
        assert (decoded.pixel_width, decoded.pixel_height) == (640, 480)
        assert decoded.stream == asset.data

    async def test_jpeg_kept_as_is(self, make_asset):
        asset = make_asset(0, 120, 90, "JPEG")
        decoded = await decode_image(asset)
        assert decoded.stream == asset.data

    @pytest.mark.parametrize("fmt", ["WEBP", "GIF"])
    async def test_other_formats_become_png(self, make_asset, fmt):
        decoded = await decode_image(make_asset(3, 50, 70, fmt))
        assert (decoded.pixel_width, decoded.pixel_height) == (50, 70)
        assert decoded.stream.startswith(PNG_SIGNATURE)
        assert decoded.ordinal == 3

    async def test_mpo_kept_as_is(self, make_asset):
        asset = make_asset(0, 120, 90, "MPO")
        decoded = await decode_image(asset)
        assert (decoded.pixel_width, decoded.pixel_height) == (120, 90)
        assert decoded.stream == asset.data

    @pytest.mark.parametrize(
        "orientation, size, rotate",
        [(1, (800, 400), 0), (3, (800, 400), 180), (6, (400, 800), 270), (8, (400, 800), 90)],
    )
    async def test_exif_rotation_swaps_size_and_keeps_stream(self, make_asset, orientation, size, rotate):
        asset = make_asset(0, 800, 400, "JPEG", orientation=orientation)
        decoded = await decode_image(asset)
        assert (decoded.pixel_width, decoded.pixel_height) == size
        assert decoded.rotate == rotate
        assert decoded.stream == asset.data

    @pytest.mark.parametrize("orientation, size", [(2, (800, 400)), (5, (400, 800)), (7, (400, 800))])
    async def test_exif_mirror_transposed_to_png(self, make_asset, orientation, size):
        decoded = await decode_image(make_asset(0, 800, 400, "JPEG", orientation=orientation))
        assert (decoded.pixel_width, decoded.pixel_height) == size
        assert decoded.rotate == 0
        assert decoded.stream.startswith(PNG_SIGNATURE)

    async def test_garbage_rejected(self):
        asset = ImageAsset(ordinal=0, name="bad.png", media_type="image/png", data=b"not an image")
        with pytest.raises(InvalidImageError) as info:
            await decode_image(asset)
        assert "bad.png" in info.value.message


@pytest.mark.asyncio
class TestDocumentAssembler:
    async def test_one_page_per_image_in_ordinal_order(self, make_asset):
        assets = [make_asset(2, 300, 400, "JPEG"), make_asset(0, 400, 300), make_asset(1, 100, 100, "WEBP")]
        result = await DocumentAssembler(PaperCode.A4, Orientation.PORTRAIT).assemble(assets)

        assert result.page_count == 3
        assert [p.ordinal for p in result.placements] == [0, 1, 2]

        doc = fitz.open(stream=result.pdf_bytes, filetype="pdf")
        try:
            assert len(doc) == 3
            for page, placed in zip(doc, result.placements):
                assert page.rect.width == pytest.approx(210 * MM_TO_PT, abs=0.01)
                assert page.rect.height == pytest.approx(297 * MM_TO_PT, abs=0.01)
                infos = page.get_image_info()
                assert len(infos) == 1
                for got, want in zip(fitz.Rect(infos[0]["bbox"]), mm_rect(placed)):
                    assert got == pytest.approx(want, abs=0.5)
        finally:
            doc.close()

    async def test_landscape_pages(self, make_asset):
        result = await DocumentAssembler("A5", "landscape").assemble([make_asset(0, 800, 600)])
        assert (result.page_geometry.width, result.page_geometry.height) == (210, 148)
        doc = fitz.open(stream=result.pdf_bytes, filetype="pdf")
        assert doc[0].rect.width > doc[0].rect.height
        doc.close()

    async def test_square_image_centered(self, make_asset):
        result = await DocumentAssembler().assemble([make_asset(0, 500, 500)])
        placed = result.placements[0]
        assert (placed.width, placed.height, placed.x, placed.y) == (178, 178, 16, 59.5)

    async def test_one_bad_image_fails_whole_export(self, make_asset):
        bad = ImageAsset(ordinal=1, name="broken.png", media_type="image/png", data=b"\x89PNG truncated")
        assets = [make_asset(0), bad, make_asset(2)]
        with pytest.raises(AssemblyFailureError) as info:
            await DocumentAssembler().assemble(assets)
        assert info.value.code == "ASSEMBLY_FAILED"
        assert "broken.png" in info.value.message

    async def test_empty_selection(self):
        with pytest.raises(NoImagesError):
            await DocumentAssembler().assemble([])

    async def test_same_inputs_same_layout(self, make_asset):
        assets = [make_asset(0, 1920, 1080), make_asset(1, 1080, 1920), make_asset(2, 10, 10)]
        assembler = DocumentAssembler(PaperCode.A3, Orientation.LANDSCAPE)
        first = await assembler.assemble(assets)
        second = await assembler.assemble(assets)
        assert first.page_geometry == second.page_geometry
        assert first.placements == second.placements

    async def test_input_not_mutated(self, make_asset):
        assets = [make_asset(1), make_asset(0)]
        before = [a.model_copy() for a in assets]
        await DocumentAssembler().assemble(assets)
        assert [a.ordinal for a in assets] == [1, 0]
        assert assets == before

    async def test_plan_placements_matches_assembly(self, make_asset):
        assets = [make_asset(0, 640, 480), make_asset(1, 480, 640)]
        assembler = DocumentAssembler()
        decoded = [await decode_image(a) for a in assets]
        result = await assembler.assemble(assets)
        assert assembler.plan_placements(decoded) == result.placements

    async def test_metadata_written(self, make_asset):
        result = await DocumentAssembler().assemble([make_asset(0)])
        doc = fitz.open(stream=result.pdf_bytes, filetype="pdf")
        assert doc.metadata["creator"] == "PageFit"
        doc.close()

    async def test_exif_rotated_photo_placed_upright(self, make_asset):
        # camera stored 800x400 sideways; displayed as 400x800
        assets = [make_asset(0, 800, 400, "JPEG", orientation=6), make_asset(1, 800, 400, "MPO")]
        result = await DocumentAssembler().assemble(assets)

        rotated, plain = result.placements
        assert (rotated.width, rotated.height) == (132.5, 265)
        assert plain.width == 178
        verification = DocumentVerifier().verify(
            result.pdf_bytes,
            VerifyExpectations(
                page_geometry=result.page_geometry,
                expected_pages=2,
                placements=result.placements,
            ),
        )
        assert verification.passed, verification.failures

"""Unit tests for the paper size registry and page geometry."""

import pytest

from app.layout.paper import get_paper, list_paper_sizes, resolve_page_geometry
from app.models.layout import Orientation, PageGeometry, PaperCode


ALL_PAPERS = list(PaperCode)


class TestRegistry:
    def test_three_sizes(self):
        codes = [p.code for p in list_paper_sizes()]
        assert codes == [PaperCode.A3, PaperCode.A4, PaperCode.A5]

    def test_get_paper(self):
        paper = get_paper("A4")
        assert paper is not None
        assert (paper.width_mm, paper.height_mm) == (210, 297)
        assert "A4" in paper.label

    def test_unknown_paper(self):
        assert get_paper("B5") is None


class TestResolvePageGeometry:
    @pytest.mark.parametrize(
        "code,expected",
        [(PaperCode.A3, (297, 420)), (PaperCode.A4, (210, 297)), (PaperCode.A5, (148, 210))],
    )
    def test_portrait_dimensions(self, code, expected):
        g = resolve_page_geometry(code, Orientation.PORTRAIT)
        assert (g.width, g.height) == expected

    @pytest.mark.parametrize("code", ALL_PAPERS)
    def test_landscape_is_transpose(self, code):
        portrait = resolve_page_geometry(code, Orientation.PORTRAIT)
        landscape = resolve_page_geometry(code, Orientation.LANDSCAPE)
        assert (landscape.width, landscape.height) == (portrait.height, portrait.width)
        assert landscape.width > landscape.height

    @pytest.mark.parametrize("code", ALL_PAPERS)
    def test_rotating_twice_is_identity(self, code):
        portrait = resolve_page_geometry(code, Orientation.PORTRAIT)
        landscape = resolve_page_geometry(code, Orientation.LANDSCAPE)
        assert landscape.rotated() == portrait
        assert portrait.rotated().rotated() == portrait

    def test_accepts_plain_strings(self):
        g = resolve_page_geometry("A5", "landscape")
        assert g == PageGeometry(width=210, height=148)

    @pytest.mark.parametrize("code", ALL_PAPERS)
    @pytest.mark.parametrize("orientation", list(Orientation))
    def test_deterministic(self, code, orientation):
        assert resolve_page_geometry(code, orientation) == resolve_page_geometry(code, orientation)

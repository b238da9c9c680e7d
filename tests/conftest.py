"""Shared test configuration and fixtures for the PageFit test suite."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add backend to Python path so imports work
backend_dir = str(Path(__file__).parent.parent / "backend")
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)


def image_bytes(
    width: int,
    height: int,
    fmt: str = "PNG",
    color=(200, 60, 40),
    orientation: int | None = None,
) -> bytes:
    """Encode a solid-colour image of the given size, optionally EXIF-oriented."""
    img = Image.new("RGB", (width, height), color)
    options = {}
    if orientation is not None:
        exif = Image.Exif()
        exif[0x0112] = orientation
        options["exif"] = exif.tobytes()
    if fmt == "MPO":
        options.update(save_all=True, append_images=[Image.new("RGB", (width, height), (40, 60, 200))])
    buf = io.BytesIO()
    img.save(buf, format=fmt, **options)
    return buf.getvalue()


@pytest.fixture(scope="session")
def project_root():
    return Path(__file__).parent.parent


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def make_asset():
    from app.models.assets import ImageAsset

    def _make(
        ordinal: int,
        width: int = 400,
        height: int = 300,
        fmt: str = "PNG",
        name: str | None = None,
        orientation: int | None = None,
    ):
        ext = {"PNG": "png", "JPEG": "jpg", "MPO": "jpg", "WEBP": "webp", "GIF": "gif"}[fmt]
        return ImageAsset(
            ordinal=ordinal,
            name=name or f"img{ordinal}.{ext}",
            media_type="image/jpeg" if ext == "jpg" else f"image/{ext}",
            data=image_bytes(width, height, fmt, orientation=orientation),
        )

    return _make

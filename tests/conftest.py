"""Shared fixtures for the image derivatives test suite."""
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from config import Settings, get_settings
from image_derivatives.dependencies import reset_dependencies
from image_derivatives.main import app


def create_test_image(
    width: int = 10,
    height: int = 10,
    fmt: str = "PNG",
    mode: str = "RGB",
    seed: int = 0,
) -> bytes:
    """Create a small test image.

    The left half is coloured by ``seed`` and the right half is white.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        fmt: Pillow format name to encode with.
        mode: Pillow image mode (RGBA images are half transparent).
        seed: Seed for generating different colored images.

    Returns:
        bytes: Encoded image data.
    """
    color = ((seed * 50) % 256, (seed * 100) % 256, (seed * 150) % 256)
    img = Image.new("RGB", (width, height), color="white")
    img.paste(color, (0, 0, max(width // 2, 1), height))
    if mode == "RGBA":
        img.putalpha(128)
    elif mode != "RGB":
        img = img.convert(mode)

    img_bytes = io.BytesIO()
    if fmt == "WEBP":
        img.save(img_bytes, format=fmt, lossless=True)
    else:
        img.save(img_bytes, format=fmt)
    return img_bytes.getvalue()


def open_image(content: bytes) -> Image.Image:
    """Decode response bytes for assertions."""
    image = Image.open(io.BytesIO(content))
    image.load()
    return image


@pytest.fixture
def image_factory():
    """Factory fixture for encoded test images."""
    return create_test_image


@pytest.fixture
def image_reader():
    """Helper fixture that decodes image bytes."""
    return open_image


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a temporary storage root."""
    return Settings(
        storage_root=tmp_path / "uploads",
        worker_threads=2,
        task_timeout=10.0,
        log_level="DEBUG",
    )


@pytest.fixture
def client(test_settings):
    """Create test client with overridden settings and fresh shared instances."""
    reset_dependencies()
    app.dependency_overrides[get_settings] = lambda: test_settings

    yield TestClient(app)

    app.dependency_overrides.clear()
    reset_dependencies()

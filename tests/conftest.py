"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from PIL import Image, ImageDraw


def make_gradient(size=(120, 90)) -> Image.Image:
    """Colour gradient with an ellipse, used as a structured reference image."""
    width, height = size
    img = Image.new('RGB', size)
    pixels = img.load()
    for y in range(height):
        for x in range(width):
            pixels[x, y] = (x * 255 // (width - 1), y * 255 // (height - 1), 128)
    draw = ImageDraw.Draw(img)
    draw.ellipse((width // 4, height // 4, width // 2, height // 2), fill=(240, 240, 40))
    return img


def make_checkerboard(size=(100, 100), cells=4) -> Image.Image:
    """Black/white checkerboard with the given number of cells per side."""
    img = Image.new('L', size, color=0)
    draw = ImageDraw.Draw(img)
    step_x = size[0] // cells
    step_y = size[1] // cells
    for row in range(cells):
        for col in range(cells):
            if (row + col) % 2 == 0:
                draw.rectangle(
                    (col * step_x, row * step_y, (col + 1) * step_x - 1, (row + 1) * step_y - 1),
                    fill=255,
                )
    return img


def make_stripes(size=(100, 100), bands=5) -> Image.Image:
    """Vertical stripes getting darker from left to right."""
    img = Image.new('RGB', size)
    draw = ImageDraw.Draw(img)
    band = size[0] // bands
    for i in range(bands):
        level = 255 - i * (255 // bands)
        draw.rectangle((i * band, 0, (i + 1) * band - 1, size[1]), fill=(level, level // 2, 30))
    return img


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def red_image():
    return Image.new('RGB', (100, 100), color='red')


@pytest.fixture
def blue_image():
    return Image.new('RGB', (100, 100), color='blue')


@pytest.fixture
def gradient_image():
    return make_gradient()


@pytest.fixture
def reference_dir(temp_dir):
    """
    Create a directory of reference images for bulk loading.

    Contains:
        - 4 visually distinct supported images (png, jpg, upper-case BMP, gif)
        - 2 unsupported files (notes.txt, data.csv)
        - 1 subdirectory holding another image (must be skipped)
    """
    refs = temp_dir / "refs"
    refs.mkdir()

    Image.new('RGB', (100, 100), color='red').save(refs / "red.png", 'PNG')
    make_gradient().save(refs / "gradient.jpg", 'JPEG', quality=95)
    make_checkerboard().save(refs / "checker.BMP", 'BMP')
    make_stripes().save(refs / "stripes.gif", 'GIF')

    (refs / "notes.txt").write_text("not an image")
    (refs / "data.csv").write_text("a,b\n1,2\n")

    nested = refs / "nested"
    nested.mkdir()
    Image.new('RGB', (50, 50), color='green').save(nested / "green.png", 'PNG')

    return refs


class CountingExtractor:
    """Descriptor extractor wrapper that counts extract() calls."""

    def __init__(self, inner):
        self.inner = inner
        self.name = inner.name
        self.calls = 0

    @property
    def available(self):
        return self.inner.available

    def extract(self, image):
        self.calls += 1
        return self.inner.extract(image)


@pytest.fixture
def counting_extractor():
    from dupematch.features import GradientHistogramExtractor
    return CountingExtractor(GradientHistogramExtractor())


@pytest.fixture
def isolated_config(temp_dir, monkeypatch):
    """User configuration reading from an empty config directory, no env overrides."""
    from dupematch.user_config import get_user_config

    monkeypatch.setenv('DUPEMATCH_CONFIG_DIR', str(temp_dir / "config"))
    for var in (
        'DUPEMATCH_THRESHOLD', 'DUPEMATCH_WORKERS', 'DUPEMATCH_IMAGES_DIR',
        'DUPEMATCH_DESCRIPTOR', 'DUPEMATCH_HYBRID', 'DUPEMATCH_MAX_UPLOAD', 'DUPEMATCH_PORT',
    ):
        monkeypatch.delenv(var, raising=False)
    config = get_user_config()
    config.reload()
    yield config
    config.reload()

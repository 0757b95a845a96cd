"""Pytest configuration and fixtures."""
import numpy as np
import pytest
from PIL import Image

from kmquant.grid import PixelGrid


@pytest.fixture
def random_grid():
    """40x30 grid of random colors."""
    rng = np.random.default_rng(1234)
    data = rng.integers(0, 256, size=(30, 40, 3), dtype=np.uint8)
    return PixelGrid(data)


@pytest.fixture
def squares_array():
    """32x32 image with four flat colored quadrants."""
    image = np.zeros((32, 32, 3), dtype=np.uint8)
    image[:16, :16] = [255, 0, 0]    # Red
    image[:16, 16:] = [0, 255, 0]    # Green
    image[16:, :16] = [0, 0, 255]    # Blue
    image[16:, 16:] = [255, 255, 0]  # Yellow
    return image


@pytest.fixture
def two_color_png(tmp_path):
    """8x6 PNG, black on the left half and white on the right half."""
    image = np.zeros((6, 8, 3), dtype=np.uint8)
    image[:, 4:] = [255, 255, 255]
    path = tmp_path / "img.png"
    Image.fromarray(image).save(path)
    return path

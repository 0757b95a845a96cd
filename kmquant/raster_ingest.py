"""Raster image decoding and encoding."""
from pathlib import Path
from typing import Union
import logging

import numpy as np
from PIL import Image
from PIL import ImageOps

from kmquant.grid import PixelGrid
from kmquant.types import IngestError

logger = logging.getLogger(__name__)


def ingest(path: Union[str, Path]) -> PixelGrid:
    """
    Ingest a raster image file.

    Loads the image, applies its EXIF orientation and converts it to 8-bit RGB.
    Transparent images are composited on a white background.

    Args:
        path: Path to image file

    Returns:
        PixelGrid with the image pixels

    Raises:
        FileNotFoundError: If file doesn't exist
        IngestError: If file cannot be loaded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise IngestError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)

            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                rgba = img.convert('RGBA')
                background = Image.new('RGB', rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.split()[3])
                img = background
            elif img.mode != 'RGB':
                img = img.convert('RGB')

            data = np.array(img, dtype=np.uint8)

    except (IOError, OSError) as e:
        raise IngestError(f"Failed to load image {path}: {e}") from e
    except Exception as e:
        raise IngestError(f"Unexpected error loading image {path}: {e}") from e

    logger.info(f"Loaded {path} ({data.shape[1]}x{data.shape[0]})")
    return PixelGrid(data)


def ingest_from_array(image: np.ndarray) -> PixelGrid:
    """
    Create a PixelGrid from a numpy array.

    Args:
        image: Image array (H, W), (H, W, 3) or (H, W, 4) with values 0-255

    Returns:
        PixelGrid
    """
    if image.ndim == 2:
        # Grayscale - convert to RGB
        image = np.stack([image] * 3, axis=-1)

    if image.ndim != 3:
        raise IngestError(f"Expected 3D array, got {image.ndim}D")

    if image.shape[2] == 4:
        # RGBA - composite on white
        alpha = image[..., 3:4].astype(np.float64) / 255.0
        rgb = image[..., :3].astype(np.float64)
        image = rgb * alpha + 255.0 * (1 - alpha)
        image = np.round(image)
    elif image.shape[2] != 3:
        raise IngestError(f"Expected 3 or 4 channels, got {image.shape[2]}")

    if image.size and (image.min() < 0 or image.max() > 255):
        raise IngestError("Pixel values must be in range 0-255")

    return PixelGrid.from_array(image.astype(np.uint8))


def save(grid: PixelGrid, path: Union[str, Path]) -> Path:
    """
    Encode a PixelGrid to an image file.

    The format is chosen from the file extension.

    Args:
        grid: Pixels to save
        path: Output file path

    Returns:
        Path written

    Raises:
        IngestError: If the image cannot be encoded or written
    """
    path = Path(path)

    try:
        Image.fromarray(grid.to_array()).save(path)
    except (ValueError, KeyError, IOError, OSError) as e:
        raise IngestError(f"Failed to save image {path}: {e}") from e

    logger.info(f"Saved {path}")
    return path

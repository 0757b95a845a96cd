"""Pixel grid backed by an (H, W, 3) uint8 array."""
from typing import Iterator

import numpy as np

from kmquant.types import Color, Pixel, OutOfBoundsError, QuantizationError


class PixelGrid:
    """
    Width x height grid of RGB pixels.

    Coordinates are ``(x, y)`` with ``0 <= x < width`` and ``0 <= y < height``.
    Access outside these bounds raises ``OutOfBoundsError``; nothing is clamped.
    """

    def __init__(self, data: np.ndarray):
        if data.ndim != 3 or data.shape[2] != 3:
            raise QuantizationError(f"Expected (H, W, 3) array, got shape {data.shape}")
        if not np.issubdtype(data.dtype, np.integer):
            raise QuantizationError(f"Expected integer pixel values, got dtype {data.dtype}")
        if data.size and (data.min() < 0 or data.max() > 255):
            raise QuantizationError("Pixel values must be in range 0-255")
        self._data = np.ascontiguousarray(data, dtype=np.uint8)

    @classmethod
    def blank(cls, width: int, height: int) -> 'PixelGrid':
        """Create a black grid of the given size."""
        if width < 0 or height < 0:
            raise QuantizationError(f"Invalid grid size {width}x{height}")
        return cls(np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def from_array(cls, data: np.ndarray) -> 'PixelGrid':
        """Create a grid holding a copy of an (H, W, 3) array."""
        return cls(np.array(data, copy=True))

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def size(self) -> int:
        return self.width * self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} grid"
            )

    def pixel(self, x: int, y: int) -> Color:
        """Get the color at (x, y)."""
        self._check_bounds(x, y)
        r, g, b = self._data[y, x]
        return int(r), int(g), int(b)

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        """Set the color at (x, y)."""
        self._check_bounds(x, y)
        if any(not 0 <= c <= 255 for c in color):
            raise QuantizationError(f"Color {color} is not 8-bit RGB")
        self._data[y, x] = color

    def pixels(self) -> Iterator[Pixel]:
        """Iterate over all pixels in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield Pixel(x, y, self.pixel(x, y))

    def flat(self) -> np.ndarray:
        """Colors as an (H*W, 3) int64 array indexed by ``y * width + x``."""
        return self._data.reshape(-1, 3).astype(np.int64)

    def to_array(self) -> np.ndarray:
        """Copy of the underlying (H, W, 3) uint8 array."""
        return self._data.copy()

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return np.array_equal(self._data, other._data)

    def __repr__(self) -> str:
        return f"PixelGrid({self.width}x{self.height})"

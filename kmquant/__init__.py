"""K-means color quantization package."""
from kmquant.types import (
    Color,
    Pixel,
    Cluster,
    QuantizeConfig,
    ClusteringResult,
    QuantizationError,
    ConfigurationError,
    OutOfBoundsError,
    IngestError,
)
from kmquant.grid import PixelGrid

__version__ = "0.1.0"

__all__ = [
    "Color",
    "Pixel",
    "Cluster",
    "QuantizeConfig",
    "ClusteringResult",
    "QuantizationError",
    "ConfigurationError",
    "OutOfBoundsError",
    "IngestError",
    "PixelGrid",
]

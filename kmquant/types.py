"""Core types for the clustering engine."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np

# Type aliases
Color = Tuple[int, int, int]

BLACK: Color = (0, 0, 0)


@dataclass(frozen=True)
class Pixel:
    """Pixel coordinates with its source color."""
    x: int
    y: int
    color: Color


@dataclass(eq=False)
class Cluster:
    """A cluster of pixels around a centroid color.

    ``points`` holds flat pixel indices (``y * width + x``) and is rebuilt
    on every assignment pass.
    """
    center: Color
    prev_center: Color = BLACK
    points: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))

    @property
    def size(self) -> int:
        return int(len(self.points))

    def clear(self) -> None:
        self.points = np.empty(0, dtype=np.int64)


@dataclass
class QuantizeConfig:
    """Configuration for K-means color quantization."""
    n_clusters: int = 8
    max_iter: int = 300
    random_state: Optional[int] = None

    # Performance
    parallel_workers: int = 1  # -1 = auto
    min_chunk_pixels: int = 65536

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.n_clusters < 1:
            raise ConfigurationError(f"n_clusters must be >= 1, got {self.n_clusters}")
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.parallel_workers == 0 or self.parallel_workers < -1:
            raise ConfigurationError(
                f"parallel_workers must be -1 or >= 1, got {self.parallel_workers}"
            )
        if self.min_chunk_pixels < 1:
            raise ConfigurationError(
                f"min_chunk_pixels must be >= 1, got {self.min_chunk_pixels}"
            )


@dataclass
class ClusteringResult:
    """Result of a clustering run."""
    clusters: List[Cluster]
    iterations: int
    converged: bool
    displacement: float

    @property
    def palette(self) -> List[Color]:
        return [cluster.center for cluster in self.clusters]


class QuantizationError(Exception):
    """Base exception for quantization errors."""
    pass


class ConfigurationError(QuantizationError, ValueError):
    """Exception raised for invalid engine configuration."""
    pass


class OutOfBoundsError(QuantizationError, IndexError):
    """Exception raised when a pixel coordinate is outside the grid."""
    pass


class IngestError(QuantizationError):
    """Exception raised when an image cannot be decoded or encoded."""
    pass

"""K-means color clustering with a luma-weighted color distance."""
import logging
import math
import os
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from kmquant.grid import PixelGrid
from kmquant.types import (
    Cluster,
    ClusteringResult,
    Color,
    ConfigurationError,
    OutOfBoundsError,
    QuantizationError,
    QuantizeConfig,
)

logger = logging.getLogger(__name__)

# R, G, B weights of the distance metric
LUMA_WEIGHTS = np.array([30, 59, 11], dtype=np.int64)


def seed_clusters(n_clusters: int, rng: np.random.Generator) -> List[Cluster]:
    """
    Create clusters with uniformly random centroid colors.

    Args:
        n_clusters: Number of clusters (must be >= 1)
        rng: Random source used to draw every channel from [0, 255]

    Returns:
        List of clusters with black ``prev_center`` and no points

    Raises:
        ConfigurationError: If n_clusters < 1
    """
    if n_clusters < 1:
        raise ConfigurationError(f"n_clusters must be >= 1, got {n_clusters}")

    centers = rng.integers(0, 256, size=(n_clusters, 3))
    return [Cluster(center=_to_color(row)) for row in centers]


def clusters_from_centers(centers: Sequence[Color]) -> List[Cluster]:
    """Create clusters from explicit centroid colors."""
    if len(centers) < 1:
        raise ConfigurationError("At least one initial center is required")
    for center in centers:
        if len(center) != 3 or any(not 0 <= int(c) <= 255 for c in center):
            raise ConfigurationError(f"Initial center {center} is not 8-bit RGB")
    return [Cluster(center=_to_color(center)) for center in centers]


def color_distance(color: Color, center: Color) -> int:
    """Luma-weighted squared distance: 30*dR^2 + 59*dG^2 + 11*dB^2."""
    dr = int(color[0]) - int(center[0])
    dg = int(color[1]) - int(center[1])
    db = int(color[2]) - int(center[2])
    return 30 * dr * dr + 59 * dg * dg + 11 * db * db


def _nearest_cluster(colors: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Index of the nearest center for every color; ties keep the lowest index."""
    best = np.full(len(colors), np.iinfo(np.int64).max, dtype=np.int64)
    labels = np.zeros(len(colors), dtype=np.int64)

    for index, center in enumerate(centers):
        diff = colors - center
        distances = (diff * diff) @ LUMA_WEIGHTS
        closer = distances < best
        best[closer] = distances[closer]
        labels[closer] = index

    return labels


def _assign_chunk(args: Tuple[np.ndarray, np.ndarray]) -> np.ndarray:
    """Worker entry point for one contiguous chunk of pixels."""
    colors, centers = args
    return _nearest_cluster(colors, centers)


def _resolve_workers(workers: int, n_pixels: int, min_chunk_pixels: int) -> int:
    """Number of chunks worth splitting the assignment pass into."""
    if workers == -1:
        workers = os.cpu_count() or 1
    return max(1, min(workers, n_pixels // min_chunk_pixels))


def _centers_array(clusters: Sequence[Cluster]) -> np.ndarray:
    return np.array([cluster.center for cluster in clusters], dtype=np.int64)


def _assign_labels(
    colors: np.ndarray,
    clusters: Sequence[Cluster],
    executor: Optional[Executor] = None,
    n_chunks: int = 1
) -> np.ndarray:
    """
    Label every color with its nearest cluster.

    With an executor the pixels are split into ``n_chunks`` contiguous
    chunks; results are concatenated in chunk order so the labels are the
    same as a sequential pass.
    """
    centers = _centers_array(clusters)

    if executor is None or n_chunks <= 1:
        return _nearest_cluster(colors, centers)

    chunks = np.array_split(colors, n_chunks)
    results = list(executor.map(_assign_chunk, [(chunk, centers) for chunk in chunks]))
    return np.concatenate(results)


def _collect_points(clusters: Sequence[Cluster], labels: np.ndarray) -> None:
    """Rebuild every cluster's point list from per-pixel labels."""
    for index, cluster in enumerate(clusters):
        cluster.points = np.flatnonzero(labels == index)


def assign_points(
    clusters: Sequence[Cluster],
    grid: PixelGrid,
    workers: int = 1,
    min_chunk_pixels: int = 65536
) -> np.ndarray:
    """
    Assign every pixel of the grid to its nearest cluster.

    Replaces each cluster's ``points`` with the flat indices of the pixels
    it won, in ascending order.

    Args:
        clusters: Clusters with current centers
        grid: Source pixels
        workers: Number of worker processes (-1 = auto, 1 = sequential)
        min_chunk_pixels: Smallest chunk handed to a worker

    Returns:
        Array of cluster indices, one per pixel (``y * width + x``)
    """
    colors = grid.flat()
    n_chunks = _resolve_workers(workers, len(colors), min_chunk_pixels)

    if n_chunks > 1:
        with ProcessPoolExecutor(max_workers=n_chunks) as executor:
            labels = _assign_labels(colors, clusters, executor, n_chunks)
    else:
        labels = _assign_labels(colors, clusters)

    _collect_points(clusters, labels)
    return labels


def _recenter(clusters: Sequence[Cluster], colors: np.ndarray) -> None:
    for index, cluster in enumerate(clusters):
        cluster.prev_center = cluster.center

        if cluster.size == 0:
            # Empty clusters keep their centroid
            logger.debug(f"Cluster {index} is empty, keeping center {cluster.center}")
            continue

        sums = colors[cluster.points].sum(axis=0)
        cluster.center = _to_color(sums // cluster.size)


def recenter(clusters: Sequence[Cluster], grid: PixelGrid) -> None:
    """
    Move every centroid to the mean color of its assigned pixels.

    The previous centroid is kept in ``prev_center``. Means are truncated
    to integers per channel. A cluster without points keeps its centroid.

    Args:
        clusters: Clusters after an assignment pass
        grid: Source pixels the point indices refer to
    """
    _recenter(clusters, grid.flat())


def displacement(cluster: Cluster) -> float:
    """Euclidean distance between a cluster's current and previous centroid."""
    dr = cluster.center[0] - cluster.prev_center[0]
    dg = cluster.center[1] - cluster.prev_center[1]
    db = cluster.center[2] - cluster.prev_center[2]
    return math.sqrt(dr * dr + dg * dg + db * db)


def max_displacement(clusters: Sequence[Cluster]) -> float:
    """Largest centroid movement across all clusters."""
    return max(displacement(cluster) for cluster in clusters)


def run_kmeans(
    grid: PixelGrid,
    config: QuantizeConfig,
    rng: Optional[np.random.Generator] = None,
    initial_centers: Optional[Sequence[Color]] = None
) -> ClusteringResult:
    """
    Cluster the grid's pixel colors until centroids stop moving.

    The loop ends once the largest centroid displacement of an iteration is
    strictly less than the number of clusters, or after ``config.max_iter``
    iterations. Hitting the cap is reported through the result and a
    warning, not raised.

    Args:
        grid: Source pixels
        config: Cluster count, iteration cap, seed and worker settings
        rng: Random source for seeding (default: seeded from config.random_state)
        initial_centers: Explicit starting centroids instead of random ones

    Returns:
        ClusteringResult with final clusters and point assignments

    Raises:
        QuantizationError: If the grid is empty
        ConfigurationError: If initial_centers does not match n_clusters
    """
    if grid.size == 0:
        raise QuantizationError("Cannot quantize empty image")

    if initial_centers is not None:
        if len(initial_centers) != config.n_clusters:
            raise ConfigurationError(
                f"Expected {config.n_clusters} initial centers, got {len(initial_centers)}"
            )
        clusters = clusters_from_centers(initial_centers)
    else:
        rng = rng if rng is not None else np.random.default_rng(config.random_state)
        clusters = seed_clusters(config.n_clusters, rng)

    colors = grid.flat()
    n_chunks = _resolve_workers(config.parallel_workers, len(colors), config.min_chunk_pixels)

    logger.info(
        f"Clustering {grid.width}x{grid.height} pixels into {len(clusters)} clusters"
    )

    if n_chunks > 1:
        logger.info(f"Assigning pixels using {n_chunks} workers")
        with ProcessPoolExecutor(max_workers=n_chunks) as executor:
            return _iterate(clusters, colors, config.max_iter, executor, n_chunks)

    return _iterate(clusters, colors, config.max_iter)


def _iterate(
    clusters: List[Cluster],
    colors: np.ndarray,
    max_iter: int,
    executor: Optional[Executor] = None,
    n_chunks: int = 1
) -> ClusteringResult:
    threshold = float(len(clusters))
    moved = math.inf

    for iteration in range(1, max_iter + 1):
        labels = _assign_labels(colors, clusters, executor, n_chunks)
        _collect_points(clusters, labels)
        _recenter(clusters, colors)

        moved = max_displacement(clusters)
        logger.debug(f"Iteration {iteration}: max displacement {moved:.3f}")

        if moved < threshold:
            logger.info(f"Converged after {iteration} iterations")
            return ClusteringResult(clusters, iteration, True, moved)

    logger.warning(
        f"Stopped after {max_iter} iterations without converging "
        f"(max displacement {moved:.3f}, threshold {threshold:.0f})"
    )
    return ClusteringResult(clusters, max_iter, False, moved)


def render(width: int, height: int, clusters: Sequence[Cluster]) -> PixelGrid:
    """
    Paint every pixel with its cluster's centroid color.

    Does not modify the clusters.

    Args:
        width: Output width
        height: Output height
        clusters: Clusters whose points cover the whole grid

    Returns:
        New PixelGrid of the given size

    Raises:
        OutOfBoundsError: If a point index lies outside the grid
        QuantizationError: If a pixel is owned by no cluster or by several
    """
    n_pixels = width * height
    output = np.zeros((n_pixels, 3), dtype=np.uint8)
    coverage = np.zeros(n_pixels, dtype=np.int64)

    for cluster in clusters:
        points = cluster.points
        if len(points) and (points.min() < 0 or points.max() >= n_pixels):
            raise OutOfBoundsError(
                f"Cluster points outside {width}x{height} grid"
            )
        output[points] = cluster.center
        np.add.at(coverage, points, 1)

    if not np.all(coverage == 1):
        missing = int(np.count_nonzero(coverage == 0))
        repeated = int(np.count_nonzero(coverage > 1))
        raise QuantizationError(
            f"Clusters do not cover the grid: {missing} unassigned, {repeated} repeated"
        )

    return PixelGrid(output.reshape(height, width, 3))


def quantize(
    grid: PixelGrid,
    config: QuantizeConfig,
    rng: Optional[np.random.Generator] = None
) -> Tuple[PixelGrid, ClusteringResult]:
    """Cluster the grid and render the quantized result."""
    result = run_kmeans(grid, config, rng=rng)
    return render(grid.width, grid.height, result.clusters), result


def _to_color(values) -> Color:
    r, g, b = values
    return int(r), int(g), int(b)

"""Image quantization pipeline: ingest, cluster, render, save."""
from pathlib import Path
from typing import Optional, Union
import logging
import time

from kmquant.clustering import render, run_kmeans
from kmquant.naming import floor_seconds, output_path as default_output_path
from kmquant.raster_ingest import ingest, save
from kmquant.types import ClusteringResult, QuantizeConfig

logger = logging.getLogger(__name__)


class QuantizePipeline:
    """Quantize an image file to ``n_clusters`` colors."""

    def __init__(self, config: Optional[QuantizeConfig] = None):
        """
        Initialize pipeline.

        Args:
            config: Configuration (uses defaults if None)
        """
        self.config = config or QuantizeConfig()
        self.result: Optional[ClusteringResult] = None
        self.elapsed: float = 0.0

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Process an image through the pipeline.

        Only the clustering is timed; the time goes into the default
        output name.

        Args:
            input_path: Path to input image
            output_path: Optional output path (default: derived from input,
                elapsed time and cluster count)

        Returns:
            Path of the saved image
        """
        grid = ingest(input_path)

        start_time = time.time()
        self.result = run_kmeans(grid, self.config)
        self.elapsed = floor_seconds(time.time() - start_time)

        if not self.result.converged:
            logger.warning(f"Rendering unconverged clusters for {input_path}")

        quantized = render(grid.width, grid.height, self.result.clusters)

        if output_path is None:
            output_path = default_output_path(input_path, self.elapsed, self.config.n_clusters)

        return save(quantized, output_path)

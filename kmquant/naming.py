"""Output file naming."""
import math
from pathlib import Path
from typing import Union


def floor_seconds(elapsed: float, digits: int = 2) -> float:
    """Floor a duration to the given number of decimal places."""
    scale = 10 ** digits
    return math.floor(elapsed * scale) / scale


def output_path(input_path: Union[str, Path], elapsed: float, n_clusters: int) -> Path:
    """
    Compose the output path for a quantized image.

    Every ``.jpg`` is removed from the input path, then
    ``_in_<seconds>s_<clusters>cl.jpg`` is appended. Other extensions are
    kept, e.g. ``photo.png`` becomes ``photo.png_in_0.5s_4cl.jpg`` and
    ``a.jpg.d/x.jpg`` becomes ``a.d/x_in_0.5s_4cl.jpg``.

    Args:
        input_path: Source image path
        elapsed: Clustering wall time in seconds
        n_clusters: Number of clusters used

    Returns:
        Output path next to the input
    """
    name = str(input_path).replace('.jpg', '')

    seconds = floor_seconds(elapsed)
    return Path(f"{name}_in_{seconds!r}s_{n_clusters}cl.jpg")

"""
256-bin intensity histograms.
"""

import logging

import numpy as np

from .buffer import PixelBuffer, ensure_buffer
from .constants import GRAY_AVERAGE_CHANNEL, LEVELS
from .errors import PreconditionError
from .point_transforms import average_plane, luminosity_plane

logger = logging.getLogger(__name__)


def levels_histogram(values: np.ndarray) -> np.ndarray:
    """Count occurrences of each 8-bit level in ``values``."""
    return np.bincount(values.ravel(), minlength=LEVELS).astype(np.int64)


def histogram(buffer: PixelBuffer, channel: int = GRAY_AVERAGE_CHANNEL) -> np.ndarray:
    """
    Compute a 256-bin histogram.

    Args:
        buffer: Input pixels
        channel: 0, 1 or 2 for R, G or B; -1 for the (R+G+B)//3 average

    Returns:
        int64 array of 256 counts summing to width*height
    """
    ensure_buffer(buffer)
    image = buffer.to_array()

    if channel == GRAY_AVERAGE_CHANNEL:
        return levels_histogram(average_plane(image))

    if channel in (0, 1, 2):
        return levels_histogram(image[:, :, channel])

    raise PreconditionError(f"Channel must be -1, 0, 1 or 2, got {channel!r}")


def luminosity_histogram(buffer: PixelBuffer) -> np.ndarray:
    """Histogram of BT.601 gray values, the gray used for binarization."""
    ensure_buffer(buffer)
    return levels_histogram(luminosity_plane(buffer.to_array()))


def histogram_statistics(hist: np.ndarray) -> dict:
    """Summary of a histogram: pixel count, mean level and occupied range."""
    hist = np.asarray(hist, dtype=np.int64)
    total = int(hist.sum())

    if total == 0:
        return {"count": 0, "mean": 0.0, "min_level": None, "max_level": None}

    occupied = np.flatnonzero(hist)
    levels = np.arange(hist.size)

    return {
        "count": total,
        "mean": float(np.dot(levels, hist) / total),
        "min_level": int(occupied[0]),
        "max_level": int(occupied[-1]),
    }

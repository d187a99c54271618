"""
Histogram-based contrast enhancement.

Both operations build a 256-entry lookup table per channel and apply it with
cv2.LUT; the R, G and B channels are processed independently.
"""

import logging

import cv2
import numpy as np

from .buffer import PixelBuffer, clamp_to_uint8, ensure_buffer
from .constants import LEVELS, MAX_LEVEL
from .histogram import levels_histogram

logger = logging.getLogger(__name__)

_IDENTITY = np.arange(LEVELS, dtype=np.uint8)


def stretch_lut(low: int, high: int) -> np.ndarray:
    """Lookup table mapping [low, high] linearly onto [0, 255]."""
    # Prevent division by zero
    if high <= low:
        return _IDENTITY.copy()

    levels = np.arange(LEVELS, dtype=np.int64)
    return clamp_to_uint8((levels - low) * MAX_LEVEL // (high - low))


def equalize_lut(hist: np.ndarray) -> np.ndarray:
    """
    Lookup table remapping levels through the cumulative distribution.

    level i -> round((cdf[i] - cdf_min) * 255 / (total - cdf_min)), where
    cdf_min is the smallest non-zero cdf value. A histogram with a single
    occupied level yields the identity table.
    """
    cdf = np.cumsum(np.asarray(hist, dtype=np.int64))
    total = int(cdf[-1])

    nonzero = cdf[cdf > 0]
    if nonzero.size == 0:
        return _IDENTITY.copy()

    cdf_min = int(nonzero[0])
    if total == cdf_min:
        return _IDENTITY.copy()

    mapped = np.rint((cdf - cdf_min) * float(MAX_LEVEL) / (total - cdf_min))
    return clamp_to_uint8(mapped)


def _apply_lut(channel: np.ndarray, lut: np.ndarray) -> np.ndarray:
    return cv2.LUT(np.ascontiguousarray(channel), lut)


def stretch(buffer: PixelBuffer) -> PixelBuffer:
    """Histogram stretching: v -> (v - min) * 255 // (max - min) per channel."""
    ensure_buffer(buffer)
    image = buffer.to_array()

    stretched = np.empty_like(image)
    for channel in range(3):
        channel_data = image[:, :, channel]
        low, high = int(channel_data.min()), int(channel_data.max())

        if high == low:
            logger.debug(f"Channel {channel} is flat at level {low}, left unchanged")

        stretched[:, :, channel] = _apply_lut(channel_data, stretch_lut(low, high))

    return buffer.with_array(stretched)


def equalize(buffer: PixelBuffer) -> PixelBuffer:
    """Histogram equalization per channel."""
    ensure_buffer(buffer)
    image = buffer.to_array()

    equalized = np.empty_like(image)
    for channel in range(3):
        channel_data = image[:, :, channel]
        lut = equalize_lut(levels_histogram(channel_data))
        equalized[:, :, channel] = _apply_lut(channel_data, lut)

    return buffer.with_array(equalized)

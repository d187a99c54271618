"""
Point transformations applied independently to every sample.

Arithmetic operations act on each byte of the buffer; the grayscale
conversions act on whole RGB triples.
"""

import logging
import math
from numbers import Integral, Real

import numpy as np

from .buffer import PixelBuffer, clamp_to_uint8, ensure_buffer
from .constants import DIVIDE_EPSILON, LUMA_BLUE, LUMA_GREEN, LUMA_RED, MAX_LEVEL
from .errors import PreconditionError

logger = logging.getLogger(__name__)


def _require_integer(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise PreconditionError(f"{name} must be an integer, got {value!r}")
    # Offsets beyond the sample range saturate the same way.
    return max(-MAX_LEVEL, min(MAX_LEVEL, int(value)))


def _require_real(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise PreconditionError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise PreconditionError(f"{name} must be finite, got {value!r}")
    return float(value)


def _samples(buffer: PixelBuffer) -> np.ndarray:
    return np.frombuffer(buffer.data, dtype=np.uint8)


def add(buffer: PixelBuffer, value: int) -> PixelBuffer:
    """Add ``value`` to every sample, clamping to [0, 255]."""
    ensure_buffer(buffer)
    value = _require_integer(value, "value")

    result = _samples(buffer).astype(np.int32) + value
    return buffer.with_data(clamp_to_uint8(result).tobytes())


def subtract(buffer: PixelBuffer, value: int) -> PixelBuffer:
    """Subtract ``value`` from every sample, clamping to [0, 255]."""
    ensure_buffer(buffer)
    value = _require_integer(value, "value")

    result = _samples(buffer).astype(np.int32) - value
    return buffer.with_data(clamp_to_uint8(result).tobytes())


def multiply(buffer: PixelBuffer, value: float) -> PixelBuffer:
    """Multiply every sample by ``value``; fractional results are truncated."""
    ensure_buffer(buffer)
    value = _require_real(value, "value")

    result = np.trunc(_samples(buffer).astype(np.float64) * value)
    return buffer.with_data(clamp_to_uint8(result).tobytes())


def divide(buffer: PixelBuffer, value: float) -> PixelBuffer:
    """
    Divide every sample by ``value``; fractional results are truncated.

    Raises:
        PreconditionError: If ``abs(value)`` is below 0.001
    """
    ensure_buffer(buffer)
    value = _require_real(value, "value")

    if abs(value) < DIVIDE_EPSILON:
        raise PreconditionError("Division by zero or near-zero value")

    result = np.trunc(_samples(buffer).astype(np.float64) / value)
    return buffer.with_data(clamp_to_uint8(result).tobytes())


def brightness(buffer: PixelBuffer, level: int) -> PixelBuffer:
    """Change brightness by ``level``; same as :func:`add`."""
    return add(buffer, level)


def average_plane(image: np.ndarray) -> np.ndarray:
    """(R+G+B)//3 for every pixel of an (H, W, 3) array."""
    wide = image.astype(np.int32)
    return ((wide[..., 0] + wide[..., 1] + wide[..., 2]) // 3).astype(np.uint8)


def luminosity_plane(image: np.ndarray) -> np.ndarray:
    """BT.601 luma, rounded and clamped, for every pixel of an (H, W, 3) array."""
    wide = image.astype(np.float64)
    gray = LUMA_RED * wide[..., 0] + LUMA_GREEN * wide[..., 1] + LUMA_BLUE * wide[..., 2]
    return clamp_to_uint8(np.rint(gray))


def _spread_gray(buffer: PixelBuffer, gray: np.ndarray) -> PixelBuffer:
    return buffer.with_array(np.repeat(gray[..., np.newaxis], 3, axis=2))


def grayscale_average(buffer: PixelBuffer) -> PixelBuffer:
    """Convert to grayscale with gray = (R+G+B)//3."""
    ensure_buffer(buffer)
    return _spread_gray(buffer, average_plane(buffer.to_array()))


def grayscale_luminosity(buffer: PixelBuffer) -> PixelBuffer:
    """Convert to grayscale with the ITU-R BT.601 luma weights."""
    ensure_buffer(buffer)
    return _spread_gray(buffer, luminosity_plane(buffer.to_array()))

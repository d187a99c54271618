"""
Named spatial filters.

Sharpening, Gaussian blur and custom kernels go through the generic
convolution engine and clamp neighbours to the image edge. Smoothing and the
median filter instead use only the in-bounds neighbours of each pixel, so
their windows shrink at the border. Sobel leaves the outermost ring of pixels
at zero.
"""

import logging
from numbers import Integral

import numpy as np

from .buffer import PixelBuffer, clamp_to_uint8, ensure_buffer
from .constants import (
    DEFAULT_KERNEL_SIZE,
    DEFAULT_SIGMA,
    SHARPEN_KERNEL,
    SOBEL_X,
    SOBEL_Y,
)
from .convolution import convolve, correlate_channels, gaussian_kernel, parse_kernel
from .errors import PreconditionError
from .numba_utils import median_filter_shrinking

logger = logging.getLogger(__name__)


def _validate_kernel_size(kernel_size) -> int:
    if isinstance(kernel_size, bool) or not isinstance(kernel_size, Integral):
        raise PreconditionError(f"Kernel size must be an integer, got {kernel_size!r}")

    if kernel_size < 1:
        raise PreconditionError(f"Kernel size must be positive, got {kernel_size}")

    if kernel_size % 2 == 0:
        raise PreconditionError("Kernel size must be odd")

    return int(kernel_size)


def _window_bounds(length: int, half: int) -> tuple[np.ndarray, np.ndarray]:
    """Start and exclusive end of the in-bounds window along one axis."""
    positions = np.arange(length)
    lower = np.maximum(positions - half, 0)
    upper = np.minimum(positions + half, length - 1) + 1
    return lower, upper


def _effective_half(buffer: PixelBuffer, kernel_size: int) -> int:
    # Windows wider than the image cover the same in-bounds samples.
    return min(kernel_size // 2, max(buffer.width, buffer.height))


def smooth(buffer: PixelBuffer, kernel_size: int = DEFAULT_KERNEL_SIZE) -> PixelBuffer:
    """
    Box blur averaging the in-bounds kernel_size x kernel_size neighbourhood.

    Near the border the divisor is the number of neighbours that exist, not
    kernel_size squared. The average is truncated.
    """
    ensure_buffer(buffer)
    kernel_size = _validate_kernel_size(kernel_size)
    half = _effective_half(buffer, kernel_size)

    image = buffer.to_array().astype(np.int64)

    # Summed-area table with a leading row and column of zeros.
    table = np.zeros((buffer.height + 1, buffer.width + 1, 3), dtype=np.int64)
    table[1:, 1:] = image.cumsum(axis=0).cumsum(axis=1)

    top, bottom = _window_bounds(buffer.height, half)
    left, right = _window_bounds(buffer.width, half)

    sums = (
        table[np.ix_(bottom, right)]
        - table[np.ix_(top, right)]
        - table[np.ix_(bottom, left)]
        + table[np.ix_(top, left)]
    )
    counts = np.outer(bottom - top, right - left)

    return buffer.with_array(clamp_to_uint8(sums // counts[:, :, np.newaxis]))


def median(buffer: PixelBuffer, kernel_size: int = DEFAULT_KERNEL_SIZE) -> PixelBuffer:
    """
    Median filter over the in-bounds kernel_size x kernel_size neighbourhood.

    For windows with an even number of samples (only possible at the border)
    the upper of the two middle samples is used.
    """
    ensure_buffer(buffer)
    kernel_size = _validate_kernel_size(kernel_size)

    if kernel_size == 1:
        return buffer.with_data(buffer.data)

    image = np.array(buffer.to_array(), dtype=np.uint8, order="C")
    half = _effective_half(buffer, kernel_size)
    return buffer.with_array(median_filter_shrinking(image, half))


def sobel(buffer: PixelBuffer) -> PixelBuffer:
    """
    Sobel gradient magnitude per channel.

    Only interior pixels (1 <= x < width-1, 1 <= y < height-1) are computed;
    the outermost ring stays zero.
    """
    ensure_buffer(buffer)

    result = np.zeros((buffer.height, buffer.width, 3), dtype=np.uint8)
    if buffer.width < 3 or buffer.height < 3:
        logger.debug(f"Sobel on {buffer!r}: no interior pixels")
        return buffer.with_array(result)

    image = buffer.to_array()
    gx = correlate_channels(image, SOBEL_X)
    gy = correlate_channels(image, SOBEL_Y)
    magnitude = clamp_to_uint8(np.rint(np.sqrt(gx * gx + gy * gy)))

    result[1:-1, 1:-1] = magnitude[1:-1, 1:-1]
    return buffer.with_array(result)


def sharpen(buffer: PixelBuffer) -> PixelBuffer:
    """High-pass sharpening with the 3x3 cross kernel."""
    return convolve(buffer, SHARPEN_KERNEL)


def gaussian_blur(buffer: PixelBuffer, sigma: float = DEFAULT_SIGMA) -> PixelBuffer:
    """Gaussian blur with a kernel sized from ``sigma``."""
    ensure_buffer(buffer)
    kernel = gaussian_kernel(sigma)

    logger.debug(f"Gaussian blur sigma={sigma} uses {kernel.shape[0]}x{kernel.shape[1]} kernel")
    return convolve(buffer, kernel)


def custom_kernel(buffer: PixelBuffer, kernel_text: str) -> PixelBuffer:
    """Apply a kernel given as text, see :func:`rasterlab.convolution.parse_kernel`."""
    ensure_buffer(buffer)
    return convolve(buffer, parse_kernel(kernel_text))

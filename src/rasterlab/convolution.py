"""
Generic 2D convolution over odd-sized kernels.

Kernels are applied as a correlation: the weight at kernel[ky][kx] multiplies
the sample at (x + kx - half_w, y + ky - half_h). Neighbour coordinates that
fall outside the image are clamped to the nearest edge row or column.
"""

import logging
import math
import re

import numpy as np
from scipy import ndimage

from .buffer import PixelBuffer, clamp_to_uint8, ensure_buffer
from .constants import GAUSSIAN_MAX_SIZE, GAUSSIAN_MIN_SIZE, GAUSSIAN_SIGMA_SPAN
from .errors import PreconditionError

logger = logging.getLogger(__name__)

_ROW_SEPARATOR = re.compile(r"[;\n]+")
_CELL_SEPARATOR = re.compile(r"[,\s]+")


def validate_kernel(kernel) -> np.ndarray:
    """
    Convert ``kernel`` to a 2D float array and check its shape.

    Raises:
        PreconditionError: If the kernel is not a non-empty 2D grid with odd
            height and odd width
    """
    if kernel is None:
        raise PreconditionError("Kernel cannot be None")

    try:
        weights = np.asarray(kernel, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise PreconditionError(f"Kernel must be a rectangular numeric grid: {e}") from e

    if weights.ndim != 2 or weights.size == 0:
        raise PreconditionError("Kernel must be a non-empty 2D grid")

    if weights.shape[0] % 2 == 0 or weights.shape[1] % 2 == 0:
        raise PreconditionError(
            f"Kernel dimensions must be odd, got {weights.shape[0]}x{weights.shape[1]}"
        )

    if not np.all(np.isfinite(weights)):
        raise PreconditionError("Kernel weights must be finite numbers")

    return weights


def correlate_channels(image: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Correlate each channel of an (H, W, 3) array with clamp-to-edge borders.

    Returns the unrounded float64 sums.
    """
    # The trailing axis of length 1 keeps the channels independent.
    return ndimage.correlate(
        image.astype(np.float64), weights[:, :, np.newaxis], mode="nearest"
    )


def convolve(buffer: PixelBuffer, kernel) -> PixelBuffer:
    """
    Apply ``kernel`` to every channel of ``buffer``.

    Args:
        buffer: Input pixels
        kernel: 2D grid of weights with odd dimensions

    Returns:
        New buffer with round(sum) clamped to [0, 255]
    """
    ensure_buffer(buffer)
    weights = validate_kernel(kernel)

    logger.debug(f"Convolving {buffer!r} with {weights.shape[0]}x{weights.shape[1]} kernel")

    sums = correlate_channels(buffer.to_array(), weights)
    return buffer.with_array(clamp_to_uint8(np.rint(sums)))


def gaussian_kernel_size(sigma: float) -> int:
    """Odd kernel size covering roughly six sigmas, limited to [3, 31]."""
    span = sigma * GAUSSIAN_SIGMA_SPAN
    if span >= GAUSSIAN_MAX_SIZE:
        return GAUSSIAN_MAX_SIZE

    size = math.ceil(span)
    if size % 2 == 0:
        size += 1
    return max(GAUSSIAN_MIN_SIZE, min(GAUSSIAN_MAX_SIZE, size))


def gaussian_kernel(sigma: float, size: int | None = None) -> np.ndarray:
    """
    Generate a normalized Gaussian kernel.

    Args:
        sigma: Standard deviation in pixels, must be positive
        size: Explicit odd size; derived from ``sigma`` when omitted

    Returns:
        size x size float64 array whose weights sum to 1
    """
    if sigma is None or not sigma > 0 or not math.isfinite(sigma):
        raise PreconditionError(f"Sigma must be a positive number, got {sigma!r}")

    if size is None:
        size = gaussian_kernel_size(sigma)
    elif size < 1 or size % 2 == 0:
        raise PreconditionError(f"Gaussian kernel size must be odd, got {size}")

    half = size // 2
    dy, dx = np.mgrid[-half : half + 1, -half : half + 1]
    # Very small sigmas overflow to a single-tap kernel.
    with np.errstate(over="ignore"):
        kernel = np.exp(-0.5 * ((dx / sigma) ** 2 + (dy / sigma) ** 2))

    return kernel / kernel.sum()


def parse_kernel(text: str) -> np.ndarray:
    """
    Parse kernel text into a weight grid.

    Rows are separated by newlines or semicolons, cells by commas or
    whitespace. Example: ``"0 -1 0; -1 5 -1; 0 -1 0"``.

    Raises:
        PreconditionError: For empty text, non-numeric cells, rows of unequal
            length or even dimensions
    """
    if text is None or not text.strip():
        raise PreconditionError("Kernel text is empty")

    rows = []
    for line in _ROW_SEPARATOR.split(text.strip()):
        cells = [cell for cell in _CELL_SEPARATOR.split(line.strip()) if cell]
        if not cells:
            continue

        try:
            rows.append([float(cell) for cell in cells])
        except ValueError as e:
            raise PreconditionError(f"Invalid kernel value in row '{line.strip()}'") from e

    if not rows:
        raise PreconditionError("Kernel text is empty")

    width = len(rows[0])
    for index, row in enumerate(rows):
        if len(row) != width:
            raise PreconditionError(
                f"Kernel row {index} has {len(row)} values, expected {width}"
            )

    return validate_kernel(rows)

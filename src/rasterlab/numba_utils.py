"""
Numba-optimized functions for heavy pixel-wise operations.
"""
import numpy as np
from numba import njit, prange


@njit(parallel=True, cache=True)
def median_filter_shrinking(image, half):
    """
    Median filter whose window shrinks at the image border.

    Only in-bounds neighbours are collected; the output is the sample at index
    count // 2 of the sorted window, per channel.
    """
    height, width, channels = image.shape
    result = np.empty((height, width, channels), dtype=np.uint8)
    window_size = (2 * half + 1) * (2 * half + 1)

    for y in prange(height):
        window = np.empty(window_size, dtype=np.uint8)
        y0 = max(y - half, 0)
        y1 = min(y + half, height - 1)

        for x in range(width):
            x0 = max(x - half, 0)
            x1 = min(x + half, width - 1)

            for c in range(channels):
                count = 0
                for ny in range(y0, y1 + 1):
                    for nx in range(x0, x1 + 1):
                        window[count] = image[ny, nx, c]
                        count += 1

                ordered = np.sort(window[:count])
                result[y, x, c] = ordered[count // 2]

    return result


"""
Numeric constants for the rasterlab processing engine.

All arithmetic works on sRGB-encoded 8-bit samples, so these values are the
exact weights and limits the operations are defined against.
"""

import numpy as np

# =============================================================================
# SAMPLE RANGE
# =============================================================================

LEVELS = 256
MAX_LEVEL = LEVELS - 1
CHANNELS = 3

# Histogram channel selector for the (R+G+B)//3 average.
GRAY_AVERAGE_CHANNEL = -1

# =============================================================================
# GRAYSCALE WEIGHTS (ITU-R BT.601 luma)
# =============================================================================

LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114

# =============================================================================
# POINT TRANSFORMS
# =============================================================================

# Divisors with a smaller magnitude are rejected.
DIVIDE_EPSILON = 0.001

# =============================================================================
# FIXED KERNELS
# =============================================================================

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)

SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)

SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)

# =============================================================================
# GAUSSIAN BLUR
# =============================================================================

GAUSSIAN_MIN_SIZE = 3
GAUSSIAN_MAX_SIZE = 31
GAUSSIAN_SIGMA_SPAN = 6.0

DEFAULT_KERNEL_SIZE = 3
DEFAULT_SIGMA = 1.0

# =============================================================================
# THRESHOLDING
# =============================================================================

ISODATA_MAX_ITERATIONS = 100

# Half-width of the linear membership ramp used by the fuzzy minimum error
# method, in gray levels.
FUZZY_HALF_WIDTH = 10

# Candidate range searched by the minimum error methods.
MIN_ERROR_FIRST_CANDIDATE = 1
MIN_ERROR_LAST_CANDIDATE = 254

DEFAULT_THRESHOLD = 128
DEFAULT_PERCENT_BLACK = 50.0

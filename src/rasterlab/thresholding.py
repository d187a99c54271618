"""
Automatic threshold selection and binarization.

Every strategy picks one 8-bit threshold from the histogram of BT.601 gray
values and shares the signature ``(histogram, width, height, **params) ->
int``. Pixels with gray < t are "background", pixels with gray >= t become
white. The histogram strategies search candidate thresholds t where the
background class is the levels <= t.

Methods:
- manual: caller-supplied threshold
- percent_black: gray value below which the requested share of pixels lies
- mean_iterative: Isodata, iterate t = (mean_low + mean_high) / 2
- entropy: Kapur, maximize the summed entropy of both classes
- minimum_error: Kittler-Illingworth minimum error criterion
- fuzzy_minimum_error: minimum error with graded class membership

Flat images never raise: when no candidate splits the histogram into two
usable classes, the rounded mean gray level is returned.
"""

import inspect
import logging
from collections.abc import Callable
from enum import Enum
from numbers import Integral, Real

import numpy as np

from .buffer import PixelBuffer, ensure_buffer
from .constants import (
    DEFAULT_PERCENT_BLACK,
    DEFAULT_THRESHOLD,
    FUZZY_HALF_WIDTH,
    ISODATA_MAX_ITERATIONS,
    LEVELS,
    MAX_LEVEL,
    MIN_ERROR_FIRST_CANDIDATE,
    MIN_ERROR_LAST_CANDIDATE,
)
from .errors import PreconditionError
from .histogram import luminosity_histogram
from .point_transforms import luminosity_plane

logger = logging.getLogger(__name__)

_LEVELS = np.arange(LEVELS, dtype=np.float64)

# Relative tolerance when comparing criterion values of different candidates.
_TIE_TOLERANCE = 1e-9


class ThresholdMethod(Enum):
    """Available threshold selection strategies."""

    MANUAL = "manual"
    PERCENT_BLACK = "percent_black"
    MEAN_ITERATIVE = "mean_iterative"
    ENTROPY = "entropy"
    MINIMUM_ERROR = "minimum_error"
    FUZZY_MINIMUM_ERROR = "fuzzy_minimum_error"


# =============================================================================
# SHARED HELPERS
# =============================================================================


def validate_threshold(threshold) -> int:
    """Check that ``threshold`` is an integer in [0, 255]."""
    if isinstance(threshold, bool) or not isinstance(threshold, Integral):
        raise PreconditionError(f"Threshold must be an integer, got {threshold!r}")

    if not 0 <= threshold <= MAX_LEVEL:
        raise PreconditionError(f"Threshold must be between 0 and 255, got {threshold}")

    return int(threshold)


def _validate_histogram(hist, width: int, height: int) -> np.ndarray:
    counts = np.asarray(hist, dtype=np.int64)

    if counts.shape != (LEVELS,):
        raise PreconditionError(f"Histogram must have {LEVELS} bins, got shape {counts.shape}")

    if np.any(counts < 0):
        raise PreconditionError("Histogram counts must be non-negative")

    if width <= 0 or height <= 0:
        raise PreconditionError(f"Image dimensions must be positive, got {width}x{height}")

    if int(counts.sum()) != width * height:
        raise PreconditionError(
            f"Histogram sums to {int(counts.sum())}, expected {width * height} pixels"
        )

    return counts


def _mean_level(counts: np.ndarray) -> int:
    total = counts.sum()
    return int(round(float(np.dot(_LEVELS, counts) / total)))


def _pick_best(scores: np.ndarray, valid: np.ndarray, maximize: bool) -> int | None:
    """
    Index of the best valid score.

    Candidates tied for the best score usually form a plateau over an empty
    gap in the histogram; the middle of the tied candidates is returned.
    """
    if not np.any(valid):
        return None

    candidates = np.where(valid, scores, -np.inf if maximize else np.inf)
    best = candidates.max() if maximize else candidates.min()
    tolerance = _TIE_TOLERANCE * max(1.0, abs(best))

    ties = np.flatnonzero(valid & (np.abs(scores - best) <= tolerance))
    return int(ties[len(ties) // 2])


# =============================================================================
# STRATEGIES
# =============================================================================


def manual_threshold(hist, width: int, height: int, threshold: int = DEFAULT_THRESHOLD) -> int:
    """Return the caller-supplied threshold unchanged."""
    _validate_histogram(hist, width, height)
    return validate_threshold(threshold)


def percent_black_threshold(
    hist, width: int, height: int, percent: float = DEFAULT_PERCENT_BLACK
) -> int:
    """
    Gray value at position round(count * percent / 100) of the sorted pixels.

    Args:
        percent: Share of pixels that should turn black, 0-100
    """
    counts = _validate_histogram(hist, width, height)

    if isinstance(percent, bool) or not isinstance(percent, Real) or not 0 <= percent <= 100:
        raise PreconditionError(f"Percent must be between 0 and 100, got {percent!r}")

    count = width * height
    index = min(max(int(round(count * percent / 100.0)), 0), count - 1)

    # Level of the sorted value at ``index``.
    cumulative = np.cumsum(counts)
    return int(np.searchsorted(cumulative, index, side="right"))


def mean_iterative_threshold(
    hist, width: int, height: int, max_iterations: int = ISODATA_MAX_ITERATIONS
) -> int:
    """
    Isodata threshold.

    Starts at the global mean, then repeatedly sets the threshold to the
    average of the means of the <= t and > t groups until it stops changing.
    """
    counts = _validate_histogram(hist, width, height).astype(np.float64)
    threshold = _mean_level(counts)

    for iteration in range(max_iterations):
        low = counts[: threshold + 1]
        high = counts[threshold + 1 :]
        low_mass = low.sum()
        high_mass = high.sum()

        if low_mass == 0 or high_mass == 0:
            logger.debug(f"Isodata: one class empty at t={threshold}, stopping")
            break

        low_mean = np.dot(_LEVELS[: threshold + 1], low) / low_mass
        high_mean = np.dot(_LEVELS[threshold + 1 :], high) / high_mass
        updated = int(round((low_mean + high_mean) / 2.0))

        if updated == threshold:
            logger.debug(f"Isodata converged to {threshold} after {iteration + 1} iterations")
            break

        threshold = updated

    return threshold


def entropy_threshold(hist, width: int, height: int) -> int:
    """
    Kapur's maximum entropy threshold.

    For each t in [0, 255] both classes are normalized by their own mass and
    their Shannon entropies summed; candidates with an empty class are
    skipped.
    """
    counts = _validate_histogram(hist, width, height)
    total = counts.sum()
    p = counts / total

    low_counts = np.cumsum(counts)
    high_counts = total - low_counts
    valid = (low_counts > 0) & (high_counts > 0)

    with np.errstate(divide="ignore", invalid="ignore"):
        p_log_p = np.where(p > 0, p * np.log(np.where(p > 0, p, 1.0)), 0.0)
        low_sum = np.cumsum(p_log_p)
        high_sum = p_log_p.sum() - low_sum

        low_mass = low_counts / total
        high_mass = high_counts / total

        # -sum((p/P) * ln(p/P)) == ln(P) - sum(p ln p) / P
        low_entropy = np.log(low_mass) - low_sum / low_mass
        high_entropy = np.log(high_mass) - high_sum / high_mass
        scores = low_entropy + high_entropy

    best = _pick_best(scores, valid, maximize=True)
    if best is None:
        fallback = _mean_level(counts)
        logger.debug(f"Entropy: no two-class split, falling back to mean level {fallback}")
        return fallback

    return best


def _minimum_error_criterion(p: np.ndarray, background: np.ndarray) -> float | None:
    """
    J = 1 + 2(P1 ln var1 + P2 ln var2) - 2(P1 ln P1 + P2 ln P2).

    ``background`` holds the background membership of each level; the
    foreground membership is its complement. Returns None for degenerate
    classes (no mass or no variance).
    """
    foreground = 1.0 - background
    criterion = 1.0

    for membership in (background, foreground):
        weights = p * membership
        mass = weights.sum()
        if mass <= 0:
            return None

        mean = np.dot(_LEVELS, weights) / mass
        variance = np.dot((_LEVELS - mean) ** 2, weights) / mass
        if variance <= 0:
            return None

        criterion += 2.0 * mass * np.log(variance) - 2.0 * mass * np.log(mass)

    return float(criterion)


def _search_minimum_error(counts: np.ndarray, membership: Callable) -> int:
    p = counts / counts.sum()
    candidates = np.arange(MIN_ERROR_FIRST_CANDIDATE, MIN_ERROR_LAST_CANDIDATE + 1)

    scores = np.full(candidates.size, np.inf)
    valid = np.zeros(candidates.size, dtype=bool)

    for index, t in enumerate(candidates):
        criterion = _minimum_error_criterion(p, membership(t))
        if criterion is not None:
            scores[index] = criterion
            valid[index] = True

    best = _pick_best(scores, valid, maximize=False)
    if best is None:
        fallback = _mean_level(counts)
        logger.debug(f"Minimum error: no usable split, falling back to mean level {fallback}")
        return fallback

    return int(candidates[best])


def _hard_membership(t: int) -> np.ndarray:
    return (_LEVELS <= t).astype(np.float64)


def _fuzzy_membership(t: int, half_width: int = FUZZY_HALF_WIDTH) -> np.ndarray:
    """1 below t - half_width, 0 above t + half_width, linear in between."""
    return np.clip((t + half_width - _LEVELS) / (2.0 * half_width), 0.0, 1.0)


def minimum_error_threshold(hist, width: int, height: int) -> int:
    """Kittler-Illingworth minimum error threshold over t in [1, 254]."""
    counts = _validate_histogram(hist, width, height)
    return _search_minimum_error(counts, _hard_membership)


def fuzzy_minimum_error_threshold(hist, width: int, height: int) -> int:
    """
    Minimum error threshold with fuzzy class membership.

    Levels within 10 of t belong partially to both classes, weighted by a
    linear ramp, which changes how each class's mass, mean and variance are
    accumulated.
    """
    counts = _validate_histogram(hist, width, height)
    return _search_minimum_error(counts, _fuzzy_membership)


THRESHOLD_METHODS: dict[ThresholdMethod, Callable[..., int]] = {
    ThresholdMethod.MANUAL: manual_threshold,
    ThresholdMethod.PERCENT_BLACK: percent_black_threshold,
    ThresholdMethod.MEAN_ITERATIVE: mean_iterative_threshold,
    ThresholdMethod.ENTROPY: entropy_threshold,
    ThresholdMethod.MINIMUM_ERROR: minimum_error_threshold,
    ThresholdMethod.FUZZY_MINIMUM_ERROR: fuzzy_minimum_error_threshold,
}


def get_threshold_method(method) -> Callable[..., int]:
    """Resolve a ThresholdMethod or its string value to a strategy."""
    if isinstance(method, ThresholdMethod):
        return THRESHOLD_METHODS[method]

    try:
        return THRESHOLD_METHODS[ThresholdMethod(method)]
    except ValueError as e:
        available = [m.value for m in ThresholdMethod]
        raise PreconditionError(
            f"Unknown threshold method: {method!r}. Available: {available}"
        ) from e


# =============================================================================
# BINARIZATION
# =============================================================================


def binarize_manual(buffer: PixelBuffer, threshold: int) -> PixelBuffer:
    """Set pixels whose BT.601 gray is >= threshold to white, the rest to black."""
    ensure_buffer(buffer)
    threshold = validate_threshold(threshold)

    gray = luminosity_plane(buffer.to_array())
    binary = np.where(gray >= threshold, 255, 0).astype(np.uint8)

    return buffer.with_array(np.repeat(binary[..., np.newaxis], 3, axis=2))


def select_threshold(buffer: PixelBuffer, method="manual", **params) -> int:
    """Pick a threshold for ``buffer`` with the named strategy."""
    ensure_buffer(buffer)
    strategy = get_threshold_method(method)

    try:
        inspect.signature(strategy).bind(None, buffer.width, buffer.height, **params)
    except TypeError as e:
        raise PreconditionError(f"Invalid parameters for threshold method {method!r}: {e}") from e

    hist = luminosity_histogram(buffer)
    threshold = strategy(hist, buffer.width, buffer.height, **params)

    logger.info(f"Threshold method {method!r} selected t={threshold}")
    return threshold


def binarize(buffer: PixelBuffer, method="manual", **params) -> PixelBuffer:
    """Select a threshold with the named strategy and binarize."""
    return binarize_manual(buffer, select_threshold(buffer, method, **params))

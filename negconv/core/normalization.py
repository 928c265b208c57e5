"""
Per-channel level normalization.

Min/max levels are measured on an interior rectangle (a border
percentage is ignored on every side to keep film edges and holder
shadows out of the statistics), then the FULL image is stretched so
that min maps to 0 and max maps to 65535.

The pixel-count thresholds give some hysteresis: a level only counts as
the channel min/max once more than `threshold` interior pixels sit on
it, so a few dust specks or hot pixels cannot dominate the stretch.
"""

import logging
from typing import Tuple

import numpy as np

from .errors import ConfigurationError, DegenerateImageError
from .lut import LEVELS, apply_channel_luts

logger = logging.getLogger(__name__)

MAX_VALUE = 65535

CHANNEL_NAMES = ("red", "green", "blue")


def interior_rect(
    width: int,
    height: int,
    border: float
) -> Tuple[int, int, int, int]:
    """
    Interior rectangle that excludes `border` percent on every side.

    Returns:
        (x0, y0, x1, y1), half-open
    """
    if not 0 <= border <= 100:
        raise ConfigurationError(f"Border must be between 0 and 100, got {border}")

    lower = border / 100.0
    upper = (100.0 - border) / 100.0

    return (
        int(width * lower),
        int(height * lower),
        int(width * upper),
        int(height * upper),
    )


def channel_histograms(region: np.ndarray) -> np.ndarray:
    """
    Dense histogram per channel.

    Args:
        region: uint16 RGB pixels, shape (H, W, 3)

    Returns:
        int64 counts, shape (3, 65536); counts[c, v] = pixels with value v
    """
    return np.stack([
        np.bincount(region[:, :, c].ravel(), minlength=MAX_VALUE + 1)
        for c in range(3)
    ])


def find_channel_bounds(
    histogram: np.ndarray,
    threshold_upper: int,
    threshold_lower: int
) -> Tuple[int, int]:
    """
    Derive (min, max) levels of one channel from its histogram.

    min is the lowest value whose count exceeds threshold_lower, max the
    highest value whose count exceeds threshold_upper.

    Raises:
        DegenerateImageError: If no value crosses a threshold or the
            resulting range is empty (max <= min)
    """
    lows = np.flatnonzero(histogram > threshold_lower)
    highs = np.flatnonzero(histogram > threshold_upper)

    if lows.size == 0 or highs.size == 0:
        raise DegenerateImageError(
            "No level exceeds the pixel-count threshold; "
            "lower --tlower/--tupper or reduce the border"
        )

    lo = int(lows[0])
    hi = int(highs[-1])
    if hi <= lo:
        raise DegenerateImageError(
            f"Channel has no dynamic range (min={lo}, max={hi})"
        )
    return lo, hi


def normalize_levels(
    image: np.ndarray,
    border: float = 10,
    threshold_upper: int = 10,
    threshold_lower: int = 10
) -> np.ndarray:
    """
    Stretch each channel independently to the full 16-bit range.

    Args:
        image: uint16 RGB image, shape (H, W, 3)
        border: Percentage border ignored when measuring levels
        threshold_upper: Pixel count a level must exceed to be the max
        threshold_lower: Pixel count a level must exceed to be the min

    Returns:
        Normalized image, uint16, same shape

    Raises:
        DegenerateImageError: If any channel has no usable range
    """
    if threshold_upper < 0 or threshold_lower < 0:
        raise ConfigurationError(
            f"Thresholds must be >= 0, got upper={threshold_upper}, lower={threshold_lower}"
        )

    h, w = image.shape[:2]
    x0, y0, x1, y1 = interior_rect(w, h, border)
    if x1 <= x0 or y1 <= y0:
        raise DegenerateImageError(
            f"Interior region is empty for a {w}x{h} image with {border}% border"
        )

    # Pass 1: levels from the interior only
    histograms = channel_histograms(image[y0:y1, x0:x1, :])

    bounds = []
    for c, name in enumerate(CHANNEL_NAMES):
        try:
            lo, hi = find_channel_bounds(histograms[c], threshold_upper, threshold_lower)
        except DegenerateImageError as e:
            raise DegenerateImageError(f"{name} channel: {e}") from e
        logger.debug("%s levels: min=%d max=%d", name, lo, hi)
        bounds.append((lo, hi))

    # Pass 2: stretch the FULL image
    luts = [stretch_lut(lo, hi) for lo, hi in bounds]
    return apply_channel_luts(image, luts)


def stretch_lut(lo: int, hi: int) -> np.ndarray:
    """Linear map of [lo, hi] onto [0, MAX], clipped, for every level."""
    scale = MAX_VALUE / float(hi - lo)
    stretched = np.clip((LEVELS - lo) * scale, 0.0, float(MAX_VALUE))
    return np.rint(stretched).astype(np.uint16)

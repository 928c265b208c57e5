"""
Gamma calibration from a printed curve chart.

The chart is a square render with three step curves (red, green, blue,
stacked bottom to top) drawn as dark bands on a light background; in
black/white mode there is a single curve. Each column is scanned from the
bottom edge upward and the height at which every band starts is
recorded. Fitting a line through those heights per channel gives the
chart's gamma exponent, which goes into the GAMMA_PROFILES registry.
"""

import logging
from enum import Enum
from typing import List, Sequence, Tuple

import numpy as np

from .errors import ChartShapeError, DegenerateCurveError, InvalidInputError
from .gamma import GammaProfile

logger = logging.getLogger(__name__)

# A pixel is dark when all three channels are below half scale
BLACK_POINT = 32768


class ScanState(Enum):
    SEEK_DARK = "seek_dark"    # walking up through background
    IN_DARK = "in_dark"        # first row of a band, record it
    SEEK_LIGHT = "seek_light"  # walking up through the band


def dark_mask(chart: np.ndarray) -> np.ndarray:
    """Boolean (H, W) mask of dark pixels."""
    return np.all(chart < BLACK_POINT, axis=2)


def scan_column(dark: Sequence[bool], bands: int) -> Tuple[List[int], bool]:
    """
    Walk one column from the bottom row upward.

    Args:
        dark: Dark flags for the column, index 0 is the top row
        bands: Number of bands to find

    Returns:
        (heights, exhausted) - heights holds rows walked from the bottom
        edge to the first row of each band found; exhausted is True when
        the top row was reached before all bands were seen.
    """
    height = len(dark)
    y = height - 1
    state = ScanState.SEEK_DARK
    heights: List[int] = []

    while len(heights) < bands:
        if state is ScanState.SEEK_DARK:
            if y <= 0:
                return heights, True
            if dark[y]:
                state = ScanState.IN_DARK
            else:
                y -= 1
        elif state is ScanState.IN_DARK:
            heights.append(height - y)
            state = ScanState.SEEK_LIGHT
        else:
            if y <= 0:
                return heights, True
            if dark[y]:
                y -= 1
            else:
                state = ScanState.SEEK_DARK

    return heights, False


def measure_bands(
    chart: np.ndarray,
    bw: bool = False
) -> Tuple[List[int], List[int], List[int]]:
    """
    Band heights per column for each curve.

    Scanning stops at the first column that runs out of chart data
    (typically the right edge of the top curve); whatever that column
    recorded before running out is kept.

    Raises:
        ChartShapeError: If the chart is not square
    """
    if chart.ndim != 3 or chart.shape[2] < 3:
        raise InvalidInputError(f"Expected RGB chart, got shape {chart.shape}")

    h, w = chart.shape[:2]
    if h != w:
        raise ChartShapeError(f"Input file is not a square! ({w}x{h})")

    dark = dark_mask(chart[:, :, :3])
    bands = 1 if bw else 3
    curves: List[List[int]] = [[] for _ in range(bands)]

    for x in range(w):
        heights, exhausted = scan_column(dark[:, x], bands)
        for curve, value in zip(curves, heights):
            curve.append(value)
        if exhausted:
            logger.debug("Ran out of chart data at column %d of %d", x, w)
            break

    if bw:
        red = curves[0]
        return red, list(red), list(red)
    return curves[0], curves[1], curves[2]


def slope(y: Sequence[int]) -> float:
    """
    Least-squares slope of evenly spaced points (x = 0, 1, 2, ...).

    Raises:
        DegenerateCurveError: If fewer than 2 points are given
    """
    if len(y) < 2:
        raise DegenerateCurveError(
            f"Need at least 2 columns to fit a slope, got {len(y)}"
        )

    values = np.asarray(y, dtype=np.float64)
    xs = np.arange(values.size, dtype=np.float64)

    dx = xs - xs.mean()
    dy = values - values.mean()

    return float(np.sum(dx * dy) / np.sum(dx * dx))


def profile_chart(chart: np.ndarray, bw: bool = False) -> GammaProfile:
    """Measure a chart and fit one gamma exponent per channel."""
    red, green, blue = measure_bands(chart, bw=bw)
    logger.info(
        "Measured %d/%d/%d columns (r/g/b)", len(red), len(green), len(blue)
    )

    gammas = []
    for name, curve in (("red", red), ("green", green), ("blue", blue)):
        try:
            gammas.append(slope(curve))
        except DegenerateCurveError as e:
            raise DegenerateCurveError(f"{name} curve: {e}") from e

    return GammaProfile(r=gammas[0], g=gammas[1], b=gammas[2])


def format_profile(profile: GammaProfile) -> str:
    """Text block in the form pasted into GAMMA_PROFILES."""
    return f"r: {profile.r!r},\ng: {profile.g!r},\nb: {profile.b!r},\n"

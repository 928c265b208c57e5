"""
Film base (mask) cast removal.

Film negatives carry an orange base/mask that shows up as a uniform
color cast. A scan of the unexposed film border (the "base sample")
gives the cast color; adding its complement to every pixel of the
negative neutralizes it before gamma and level normalization.

Both functions work on the 16-bit grid:
    uint16, shape (H, W, 3), RGB
"""

import numpy as np

from .errors import InvalidInputError
from .lut import apply_channel_luts

MAX_VALUE = 65535


def sample_average(sample: np.ndarray) -> np.ndarray:
    """
    Calculate the average color of a film base sample.

    Args:
        sample: Base sample image, uint16, shape (H, W, 3)

    Returns:
        Mean RGB values [R, G, B], uint16, rounded down

    Raises:
        InvalidInputError: If the sample contains no pixels
    """
    if sample.ndim != 3 or sample.shape[2] != 3:
        raise InvalidInputError(f"Expected RGB sample, got shape {sample.shape}")

    pixels = sample.reshape(-1, 3)
    count = pixels.shape[0]
    if count == 0:
        raise InvalidInputError("Empty base sample provided")

    # integer sums, so the floor division matches the exact mean
    totals = pixels.sum(axis=0, dtype=np.uint64)
    return (totals // np.uint64(count)).astype(np.uint16)


def compute_cast_offset(base_color: np.ndarray) -> np.ndarray:
    """Per-channel offset that cancels the base cast (its complement)."""
    base = np.asarray(base_color, dtype=np.int64).reshape(3)
    if np.any(base < 0) or np.any(base > MAX_VALUE):
        raise InvalidInputError(f"Base color out of range: {base.tolist()}")
    return (MAX_VALUE - base).astype(np.int64)


def remove_cast(image: np.ndarray, base_color: np.ndarray) -> np.ndarray:
    """
    Remove the base cast in negative space.

    Adds (MAX - base) to every channel and clips to the valid range.
    A black base therefore saturates the image to white; this is the
    expected result of adding the complement, not an identity.

    Args:
        image: Negative, uint16, shape (H, W, 3)
        base_color: Base color [R, G, B] as returned by sample_average

    Returns:
        New cast-corrected image, uint16, same shape
    """
    offset = compute_cast_offset(base_color)

    levels = np.arange(MAX_VALUE + 1, dtype=np.int64)
    luts = [np.minimum(levels + o, MAX_VALUE).astype(np.uint16) for o in offset]
    return apply_channel_luts(image, luts)

"""
Per-channel lookup tables for 16-bit images.

Every per-pixel curve in the pipeline depends only on the sample value,
so it is evaluated once over all 65536 levels and then applied by
indexing. The image is processed in row blocks to keep the index
temporaries small; the only full-size allocation is the output.
"""

from typing import Sequence

import numpy as np

MAX_VALUE = 65535

# All sample values, as float64 for building curves
LEVELS = np.arange(MAX_VALUE + 1, dtype=np.float64)
LEVELS.flags.writeable = False

ROW_BLOCK = 256


def apply_channel_luts(image: np.ndarray, luts: Sequence[np.ndarray]) -> np.ndarray:
    """
    Map every channel through its own 65536-entry table.

    Args:
        image: uint16 RGB image, shape (H, W, 3)
        luts: One uint16 table of length 65536 per channel

    Returns:
        New uint16 image, same shape
    """
    out = np.empty(image.shape, dtype=np.uint16)
    h = image.shape[0]

    for c, lut in enumerate(luts):
        for r0 in range(0, h, ROW_BLOCK):
            rows = slice(r0, r0 + ROW_BLOCK)
            out[rows, :, c] = lut[image[rows, :, c]]

    return out

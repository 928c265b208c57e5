"""
Film negative to positive inversion.
"""

import numpy as np

MAX_VALUE = 65535


def invert(image: np.ndarray) -> np.ndarray:
    """Complement every channel: positive = 65535 - negative."""
    return np.subtract(MAX_VALUE, image, dtype=np.uint16)

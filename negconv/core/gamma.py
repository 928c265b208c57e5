"""
Per-channel gamma correction for film negatives.

Film dyes respond differently per layer, so each channel gets its own
power-law curve. The stored profile values are the exponents measured
from a calibration chart (see curve_profiler); the correction applies
their reciprocals.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

import numpy as np

from .errors import ConfigurationError, UnknownProfileError
from .lut import LEVELS, apply_channel_luts

MAX_VALUE = 65535


@dataclass(frozen=True)
class GammaProfile:
    """Measured gamma exponents for one film stock."""
    r: float
    g: float
    b: float

    def correction_exponents(self) -> Tuple[float, float, float]:
        """Reciprocal exponents that undo the measured curve."""
        validate_exponents((self.r, self.g, self.b))
        return (1.0 / self.r, 1.0 / self.g, 1.0 / self.b)


# Values are generated by the negconv-gamma calibration tool.
GAMMA_PROFILES: Mapping[str, GammaProfile] = MappingProxyType({
    "none": GammaProfile(r=1.0, g=1.0, b=1.0),
    "ektar100": GammaProfile(
        r=0.5733379896124348,
        g=0.5737822736392102,
        b=0.6624829032379945,
    ),
    "portra800": GammaProfile(
        r=0.5228012326204643,
        g=0.536735995403697,
        b=0.6114420242779521,
    ),
})


def get_gamma_profile(name: str | None) -> GammaProfile:
    """
    Look up a gamma profile by name.

    Raises:
        UnknownProfileError: If the name is empty or not registered
    """
    profile = GAMMA_PROFILES.get(name) if name else None
    if profile is None:
        raise UnknownProfileError(name or "", GAMMA_PROFILES.keys())
    return profile


def validate_exponents(exponents) -> None:
    if len(exponents) != 3:
        raise ConfigurationError(f"Expected 3 gamma exponents, got {len(exponents)}")
    for channel, value in zip("rgb", exponents):
        if not math.isfinite(value) or value <= 0:
            raise ConfigurationError(
                f"Gamma exponent for {channel} must be positive, got {value}"
            )


def apply_gamma(
    image: np.ndarray,
    exponents: Tuple[float, float, float]
) -> np.ndarray:
    """
    Apply a 0..1 bound power-law curve per channel.

    Each sample s becomes round(MAX * (s / MAX) ** exponent).

    Args:
        image: uint16 RGB image, shape (H, W, 3)
        exponents: (r, g, b) exponents, all > 0

    Returns:
        Gamma-corrected image, uint16, same shape
    """
    validate_exponents(exponents)

    luts = [gamma_lut(e) for e in exponents]
    return apply_channel_luts(image, luts)


def gamma_lut(exponent: float) -> np.ndarray:
    """round(MAX * (s / MAX) ** exponent) for every level s."""
    curved = np.power(LEVELS / MAX_VALUE, exponent) * MAX_VALUE
    return np.clip(np.rint(curved), 0, MAX_VALUE).astype(np.uint16)

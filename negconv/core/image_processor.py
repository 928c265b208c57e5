"""
Image processor orchestrating the conversion pipeline.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from .errors import ConfigurationError, InvalidInputError
from .export import save_rgb16
from .film_base import remove_cast, sample_average
from .gamma import GammaProfile, apply_gamma, get_gamma_profile
from .image_loader import load_image
from .inversion import invert
from .normalization import normalize_levels

logger = logging.getLogger(__name__)


@dataclass
class ConversionSettings:
    """Options for one conversion run (mirrors the CLI flags)."""
    gamma_profile: str
    invert: bool = True
    normalize: bool = True
    border: float = 10
    threshold_upper: int = 10
    threshold_lower: int = 10
    base_path: Optional[Path] = None

    def validate(self) -> None:
        if not 0 <= self.border <= 100:
            raise ConfigurationError(
                f"Border must be between 0 and 100, got {self.border}"
            )
        if self.threshold_upper < 0 or self.threshold_lower < 0:
            raise ConfigurationError(
                "Pixel count thresholds must be >= 0, got "
                f"upper={self.threshold_upper}, lower={self.threshold_lower}"
            )

    def resolve_profile(self) -> GammaProfile:
        return get_gamma_profile(self.gamma_profile)


class ImageProcessor:
    """
    Main orchestrator for film negative conversion pipeline.

    Stages, in this order:
        1. remove_cast() - Film base cast removal (only with a base sample)
        2. apply_gamma() - Per-channel gamma from the selected profile
        3. normalize_levels() - Per-channel level stretch (optional)
        4. invert() - Negative to positive (optional)

    Settings and the gamma profile are validated on construction, so a
    bad configuration fails before any file is touched.
    """

    def __init__(self, settings: ConversionSettings):
        settings.validate()
        self.settings = settings
        self.profile = settings.resolve_profile()
        self.exponents = self.profile.correction_exponents()

        self.base_color: Optional[np.ndarray] = None

    def set_base_from_sample(self, sample: np.ndarray) -> np.ndarray:
        """
        Derive the film base color from a base sample image.

        Returns:
            Base color [R, G, B], uint16
        """
        self.base_color = sample_average(sample)
        logger.info("Film base color: R=%d G=%d B=%d", *self.base_color)
        return self.base_color

    def load_base(self, filepath: str | Path) -> np.ndarray:
        """Load a base sample from disk and derive the base color."""
        return self.set_base_from_sample(load_image(filepath))

    def convert(self, negative: np.ndarray) -> np.ndarray:
        """
        Convert negative to positive.

        Args:
            negative: uint16 RGB image, shape (H, W, 3)

        Returns:
            New uint16 RGB image, same shape; the input is not modified
        """
        if negative.ndim != 3 or negative.shape[2] != 3:
            raise InvalidInputError(f"Expected RGB image, got shape {negative.shape}")
        if negative.dtype != np.uint16:
            raise InvalidInputError(f"Expected uint16 samples, got {negative.dtype}")

        img = negative

        # remove film mask
        if self.base_color is None:
            logger.warning("Not removing film mask (no base sample given)")
        else:
            img = remove_cast(img, self.base_color)

        # apply gamma
        logger.debug(
            "Gamma exponents: R=%.4f G=%.4f B=%.4f", *self.exponents
        )
        img = apply_gamma(img, self.exponents)

        # normalize levels
        if self.settings.normalize:
            img = normalize_levels(
                img,
                border=self.settings.border,
                threshold_upper=self.settings.threshold_upper,
                threshold_lower=self.settings.threshold_lower,
            )

        # invert
        if self.settings.invert:
            img = invert(img)

        return img

    def process_file(self, input_path: str | Path, output_path: str | Path) -> np.ndarray:
        """
        Load, convert and write one scan.

        The output file is only created once the whole pipeline has
        succeeded.
        """
        if self.settings.base_path is not None and self.base_color is None:
            self.load_base(self.settings.base_path)

        negative = load_image(input_path)
        h, w = negative.shape[:2]
        logger.info("Loaded %s (%dx%d)", input_path, w, h)

        positive = self.convert(negative)
        save_rgb16(positive, output_path)
        return positive

"""
Exceptions raised by the conversion and calibration code.

Everything derives from ConversionError so the CLI can report any
failure with one handler.
"""

from typing import Iterable


class ConversionError(Exception):
    """Base class for all conversion failures."""
    pass


class ConfigurationError(ConversionError):
    """Raised for invalid settings (bad gamma exponent, border, thresholds)."""
    pass


class UnknownProfileError(ConfigurationError):
    """Raised when a gamma profile name is not in the registry."""

    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        self.available = sorted(available)
        super().__init__(
            f"Unknown gamma profile '{name}'. "
            f"Options are: {', '.join(self.available)}"
        )


class InvalidInputError(ConversionError):
    """Raised when an input image cannot be used."""
    pass


class ImageLoadError(InvalidInputError):
    """Raised when an image file cannot be read or decoded."""
    pass


class ChartShapeError(InvalidInputError):
    """Raised when a calibration chart is not square."""
    pass


class DegenerateImageError(ConversionError):
    """Raised when a channel has no usable dynamic range."""
    pass


class DegenerateCurveError(ConversionError):
    """Raised when too few band lengths were measured to fit a slope."""
    pass


class ImageWriteError(ConversionError):
    """Raised when the output image cannot be written."""
    pass

"""
Image file loading.

Scans come in as 16-bit TIFF/PNG (decoded with OpenCV) or as camera RAW
files (decoded with rawpy). Both end up as the same in-memory grid:

    uint16, shape (H, W, 3), RGB order, range [0, 65535]

Calibration charts are plain 8-bit PNG/JPEG renders and are decoded with
Pillow into the same grid.
"""

from pathlib import Path

import cv2
import numpy as np
import rawpy
from PIL import Image as PILImage, UnidentifiedImageError

from .errors import ImageLoadError

MAX_VALUE = 65535

RAW_EXTENSIONS = {".raf", ".dng", ".nef", ".arw", ".cr2", ".cr3"}


def load_image(filepath: str | Path) -> np.ndarray:
    """
    Load a negative scan from disk.

    RAW extensions go through rawpy, everything else through OpenCV.

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise ImageLoadError(f"File not found: {filepath}")

    if filepath.suffix.lower() in RAW_EXTENSIONS:
        return load_raw16(filepath)
    return load_raster16(filepath)


def load_raster16(filepath: str | Path) -> np.ndarray:
    """
    Decode a TIFF/PNG file with OpenCV into a uint16 RGB grid.

    8-bit files are widened to 16 bits (0xFF -> 0xFFFF). Alpha is dropped,
    grayscale is replicated to three channels.
    """
    filepath = Path(filepath)

    arr = cv2.imread(str(filepath), cv2.IMREAD_UNCHANGED)
    if arr is None:
        raise ImageLoadError(f"Image not found or unreadable: {filepath}")

    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]

    if arr.ndim == 2:
        rgb = np.stack([arr, arr, arr], axis=-1)
    elif arr.ndim == 3 and arr.shape[2] in (3, 4):
        # OpenCV delivers BGR(A)
        rgb = arr[:, :, 2::-1]
    else:
        raise ImageLoadError(f"Unsupported channel layout {arr.shape}: {filepath}")

    return _to_uint16(rgb, filepath)


def load_raw16(filepath: str | Path) -> np.ndarray:
    """
    Load a camera RAW negative as linear 16-bit RGB.

    Uses rawpy (LibRaw) with:
    - AHD demosaicing
    - No color correction, no white balance applied
    - Linear output (gamma 1.0), no auto brightness

    The film base cast stays in the data; it is removed later from a
    base sample.
    """
    filepath = Path(filepath)

    try:
        with rawpy.imread(str(filepath)) as raw:
            rgb = raw.postprocess(
                demosaic_algorithm=rawpy.DemosaicAlgorithm.AHD,
                output_color=rawpy.ColorSpace.raw,  # No color correction
                gamma=(1, 1),                       # Linear (no gamma curve)
                no_auto_bright=True,                # No auto exposure
                use_camera_wb=False,                # No white balance
                use_auto_wb=False,
                output_bps=16                       # 16-bit output
            )
    except (rawpy.LibRawError, OSError) as e:
        raise ImageLoadError(f"Failed to process RAW file {filepath}: {e}") from e

    return np.ascontiguousarray(rgb, dtype=np.uint16)


def load_chart(filepath: str | Path) -> np.ndarray:
    """
    Load a calibration chart render with Pillow.

    Returns the same uint16 RGB grid as load_image so the chart scanner
    can use one brightness threshold regardless of source bit depth.
    """
    filepath = Path(filepath)

    try:
        with PILImage.open(filepath) as im:
            if im.mode in ("I;16", "I;16B", "I;16L", "I"):
                gray = np.clip(np.asarray(im), 0, MAX_VALUE).astype(np.uint16)
                return np.stack([gray, gray, gray], axis=-1)
            arr = np.asarray(im.convert("RGB"))
    except FileNotFoundError as e:
        raise ImageLoadError(f"File not found: {filepath}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"Cannot decode chart {filepath}: {e}") from e

    return _to_uint16(arr, filepath)


def _to_uint16(rgb: np.ndarray, filepath: Path) -> np.ndarray:
    if rgb.dtype == np.uint16:
        return np.ascontiguousarray(rgb)
    if rgb.dtype == np.uint8:
        return rgb.astype(np.uint16) * 257
    raise ImageLoadError(
        f"Unsupported sample type {rgb.dtype} (expected 8 or 16 bit): {filepath}"
    )

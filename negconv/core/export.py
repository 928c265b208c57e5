# core/export.py
import logging
import os
import tempfile
from pathlib import Path

import cv2
import numpy as np

from .errors import ImageWriteError

logger = logging.getLogger(__name__)

MAX_VALUE = 65535

OUTPUT_EXTENSIONS = {".tif", ".tiff", ".png"}


def _rgb16_to_bgra16(img: np.ndarray) -> np.ndarray:
    h, w = img.shape[:2]
    alpha = np.full((h, w, 1), MAX_VALUE, dtype=np.uint16)
    bgr = img[..., ::-1].astype(np.uint16)  # RGB->BGR for OpenCV
    return np.concatenate([bgr, alpha], axis=-1)


def save_rgb16(img: np.ndarray, path: str | Path) -> None:
    """
    Save uint16 RGB (H, W, 3) as 16-bit RGBA TIFF/PNG with opaque alpha.

    The file is encoded to a temporary name next to the target and moved
    into place only after OpenCV reports success, so a failed run never
    leaves a truncated output behind.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in OUTPUT_EXTENSIONS:
        raise ImageWriteError(
            f"Unsupported output format '{path.suffix}' "
            f"(use one of {', '.join(sorted(OUTPUT_EXTENSIONS))})"
        )

    bgra = _rgb16_to_bgra16(img)

    directory = path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=suffix, dir=directory
        )
    except OSError as e:
        raise ImageWriteError(f"Cannot create output in {directory}: {e}") from e
    os.close(fd)

    try:
        try:
            ok = cv2.imwrite(tmp_name, bgra)
        except cv2.error as e:
            raise ImageWriteError(f"Failed to encode {path}: {e}") from e
        if not ok:
            raise ImageWriteError(f"Failed to encode {path}")
        try:
            os.chmod(tmp_name, _output_mode(path))
            os.replace(tmp_name, path)
        except OSError as e:
            raise ImageWriteError(f"Cannot write {path}: {e}") from e
    except ImageWriteError:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise

    logger.info("Wrote %s (%dx%d, 16 bit)", path, img.shape[1], img.shape[0])


def _output_mode(path: Path) -> int:
    """Mode a plain create would give: the existing file's, else 0666 & ~umask."""
    try:
        return os.stat(path).st_mode & 0o777
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask

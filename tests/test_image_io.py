import os
import stat

import cv2
import numpy as np
import pytest
from PIL import Image as PILImage

from negconv.core.errors import ImageLoadError, ImageWriteError
from negconv.core.export import save_rgb16
from negconv.core.image_loader import load_chart, load_image


class TestLoadImage:
    def test_16bit_tiff_is_rgb(self, tmp_path):
        path = tmp_path / "scan.tif"
        bgr = np.zeros((2, 3, 3), dtype=np.uint16)
        bgr[..., 0] = 100    # blue
        bgr[..., 2] = 50000  # red
        assert cv2.imwrite(str(path), bgr)

        img = load_image(path)

        assert img.dtype == np.uint16
        assert img.shape == (2, 3, 3)
        assert img[0, 0].tolist() == [50000, 0, 100]

    def test_8bit_png_is_widened(self, tmp_path):
        path = tmp_path / "scan.png"
        bgr = np.array([[[0, 128, 255]]], dtype=np.uint8)
        assert cv2.imwrite(str(path), bgr)

        img = load_image(path)

        assert img.dtype == np.uint16
        assert img[0, 0].tolist() == [65535, 128 * 257, 0]

    def test_grayscale_is_replicated(self, tmp_path):
        path = tmp_path / "gray.tif"
        assert cv2.imwrite(str(path), np.full((3, 3), 1234, dtype=np.uint16))

        img = load_image(path)

        assert img.shape == (3, 3, 3)
        assert np.all(img == 1234)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError, match="not found"):
            load_image(tmp_path / "missing.tif")

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "broken.tif"
        path.write_bytes(b"not an image")
        with pytest.raises(ImageLoadError):
            load_image(path)


class TestLoadChart:
    def test_8bit_chart(self, tmp_path):
        path = tmp_path / "chart.png"
        arr = np.zeros((4, 4, 3), dtype=np.uint8)
        arr[0, 0] = (255, 255, 255)
        PILImage.fromarray(arr).save(path)

        chart = load_chart(path)

        assert chart.dtype == np.uint16
        assert chart[0, 0].tolist() == [65535, 65535, 65535]
        assert chart[1, 1].tolist() == [0, 0, 0]

    def test_missing_chart(self, tmp_path):
        with pytest.raises(ImageLoadError):
            load_chart(tmp_path / "missing.png")


class TestSaveRgb16:
    def test_writes_opaque_rgba(self, tmp_path):
        path = tmp_path / "out.tif"
        img = np.array([[[1, 2, 3], [65535, 0, 40000]]], dtype=np.uint16)

        save_rgb16(img, path)

        raw = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        assert raw.dtype == np.uint16
        assert raw.shape == (1, 2, 4)
        assert np.all(raw[..., 3] == 65535)
        np.testing.assert_array_equal(load_image(path), img)

    def test_png_output(self, tmp_path):
        path = tmp_path / "out.png"
        img = np.full((2, 2, 3), 4321, dtype=np.uint16)
        save_rgb16(img, path)
        np.testing.assert_array_equal(load_image(path), img)

    def test_no_temporary_files_left(self, tmp_path):
        save_rgb16(np.zeros((2, 2, 3), dtype=np.uint16), tmp_path / "out.tiff")
        assert [p.name for p in tmp_path.iterdir()] == ["out.tiff"]

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ImageWriteError):
            save_rgb16(np.zeros((2, 2, 3), dtype=np.uint16), tmp_path / "out.jpg")
        assert list(tmp_path.iterdir()) == []

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ImageWriteError):
            save_rgb16(np.zeros((2, 2, 3), dtype=np.uint16), tmp_path / "nope" / "out.tif")

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_mode_matches_plain_create(self, tmp_path):
        old_umask = os.umask(0o022)
        try:
            plain = tmp_path / "plain.bin"
            plain.write_bytes(b"")
            out = tmp_path / "out.tif"
            save_rgb16(np.zeros((2, 2, 3), dtype=np.uint16), out)
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE(out.stat().st_mode) == stat.S_IMODE(plain.stat().st_mode) == 0o644

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
    def test_overwrite_keeps_existing_mode(self, tmp_path):
        out = tmp_path / "out.tif"
        save_rgb16(np.zeros((2, 2, 3), dtype=np.uint16), out)
        os.chmod(out, 0o640)

        save_rgb16(np.ones((2, 2, 3), dtype=np.uint16), out)

        assert stat.S_IMODE(out.stat().st_mode) == 0o640
        assert np.all(load_image(out) == 1)

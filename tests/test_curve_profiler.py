import numpy as np
import pytest

from negconv.core.curve_profiler import (
    BLACK_POINT,
    dark_mask,
    format_profile,
    measure_bands,
    profile_chart,
    scan_column,
    slope,
)
from negconv.core.errors import ChartShapeError, DegenerateCurveError
from negconv.core.gamma import GammaProfile


def make_chart(size, columns):
    """
    White square chart with dark bands.

    columns[x] lists (start, thickness) per band, where start is the band's
    first row counted from the bottom edge (1 = bottom row).
    """
    chart = np.full((size, size, 3), 65535, dtype=np.uint16)
    for x, bands in enumerate(columns):
        for start, thickness in bands:
            for k in range(thickness):
                chart[size - start - k, x] = 0
    return chart


class TestSlope:
    def test_linear_sequence(self):
        assert slope([0, 2, 4, 6, 8]) == 2.0

    def test_constant_sequence(self):
        assert slope([5, 5, 5, 5]) == 0.0

    def test_least_squares(self):
        assert slope([1, 3, 2]) == pytest.approx(0.5)

    @pytest.mark.parametrize("values", [[], [3]])
    def test_too_few_points(self, values):
        with pytest.raises(DegenerateCurveError):
            slope(values)


class TestScanColumn:
    def test_three_bands(self):
        # index 0 is the top row
        column = [False, False, True, False, True, False, True, False]
        heights, exhausted = scan_column(column, 3)
        assert heights == [2, 4, 6]
        assert not exhausted

    def test_thick_bands(self):
        column = [False, True, True, False, True, True, False, False]
        heights, exhausted = scan_column(column, 2)
        assert heights == [3, 6]
        assert not exhausted

    def test_missing_band_exhausts(self):
        column = [False, False, False, False, True, False]
        heights, exhausted = scan_column(column, 3)
        assert heights == [2]
        assert exhausted

    def test_top_row_is_never_a_band(self):
        column = [True, False, False, False]
        heights, exhausted = scan_column(column, 1)
        assert heights == []
        assert exhausted

    def test_band_reaching_top_exhausts(self):
        column = [True, True, True, False]
        heights, exhausted = scan_column(column, 2)
        assert heights == [2]
        assert exhausted


class TestMeasureBands:
    def test_dark_needs_all_channels(self):
        chart = np.array([[
            [0, 0, 0],
            [0, 65535, 0],
            [BLACK_POINT - 1, BLACK_POINT - 1, BLACK_POINT - 1],
            [BLACK_POINT, 0, 0],
        ]], dtype=np.uint16)
        assert dark_mask(chart).tolist() == [[True, False, True, False]]

    def test_color_chart(self):
        columns = [[(2 + x, 1), (6 + x, 1), (9 + x, 1)] for x in range(3)]
        chart = make_chart(12, columns)

        red, green, blue = measure_bands(chart)

        assert red == [2, 3, 4]
        assert green == [6, 7, 8]
        assert blue == [9, 10, 11]

    def test_scan_stops_when_data_runs_out(self):
        columns = [
            [(2, 1), (5, 1), (8, 1)],
            [(2, 1), (5, 1)],            # no blue: ends the scan
            [(2, 1), (5, 1), (8, 1)],
        ]
        chart = make_chart(10, columns)

        red, green, blue = measure_bands(chart)

        assert red == [2, 2]
        assert green == [5, 5]
        assert blue == [8]

    def test_bw_chart_reuses_single_curve(self):
        # 4x4 chart, a 2-row band one row above the bottom in every column
        chart = make_chart(4, [[(2, 2)]] * 4)

        red, green, blue = measure_bands(chart, bw=True)

        assert red == [2, 2, 2, 2]
        assert green == red
        assert blue == red

    def test_non_square_chart(self):
        chart = np.full((4, 5, 3), 65535, dtype=np.uint16)
        with pytest.raises(ChartShapeError):
            measure_bands(chart)


class TestProfileChart:
    def test_profile_from_chart(self):
        columns = [[(2 + x, 1), (6 + 2 * x, 1), (14 + 3 * x, 1)] for x in range(4)]
        chart = make_chart(30, columns)

        profile = profile_chart(chart)

        assert profile == GammaProfile(r=1.0, g=2.0, b=3.0)

    def test_bw_profile(self):
        columns = [[(3 + 2 * x, 2)] for x in range(5)]
        profile = profile_chart(make_chart(16, columns), bw=True)
        assert profile == GammaProfile(r=2.0, g=2.0, b=2.0)

    def test_empty_chart_raises(self):
        chart = np.full((8, 8, 3), 65535, dtype=np.uint16)
        with pytest.raises(DegenerateCurveError, match="red"):
            profile_chart(chart)

    def test_format(self):
        text = format_profile(GammaProfile(r=0.5, g=0.25, b=1.0))
        assert text == "r: 0.5,\ng: 0.25,\nb: 1.0,\n"

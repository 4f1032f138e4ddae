"""
Unit tests for export naming and option checks
"""

import os

import numpy as np
import pytest

from Aplate.crx.crx_errors import (ExportPathNotFound, UnsupportedCompressionMode,
                                   UnsupportedExportExtension)
from Aplate.crx.crx_export import (add_leading_zero, check_export_options, export_filename,
                                   to_display)


class TestAddLeadingZero:

    @pytest.mark.parametrize('text,expected', [
        ('well5', 'well05'),
        ('well12', 'well12'),
        ('A1', 'A01'),
        ('A01', 'A01'),
        ('P24', 'P24'),
        ('B3x7', 'B03x7'),
        ('none', 'none'),
        (4, '04'),
    ])
    def test_padding(self, text, expected):
        assert add_leading_zero(text) == expected


class TestExportFilename:

    def test_full_well(self):
        assert export_filename('out/exp.tif', 2, 'B3') == os.path.join('out', 'exp_ch2_B03.tif')

    def test_full_well_level(self):
        assert export_filename('exp.png', 1, 'H12', level=4) == 'exp_ch1_level4_H12.png'

    def test_tile_has_no_level(self):
        assert export_filename('exp.tif', 3, 'C5', level=2, tile=9) == 'exp_ch3_C05_09.tif'
        assert export_filename('exp.tif', 3, 'C5', tile=10) == 'exp_ch3_C05_10.tif'


class TestCheckExportOptions:

    def test_accepts_upper_case_extension(self, tmp_path):
        directory, stem, ext = check_export_options(str(tmp_path / 'exp.TIF'), 'LZW')
        assert (directory, stem, ext) == (str(tmp_path), 'exp', '.tif')

    def test_png_ignores_compression(self):
        assert check_export_options('exp.png', 'jpeg') == ('', 'exp', '.png')

    def test_extension(self):
        with pytest.raises(UnsupportedExportExtension):
            check_export_options('exp.jpg')

    def test_compression(self):
        with pytest.raises(UnsupportedCompressionMode):
            check_export_options('exp.tif', 'zip')

    def test_path(self, tmp_path):
        with pytest.raises(ExportPathNotFound):
            check_export_options(str(tmp_path / 'nowhere' / 'exp.tif'))


class TestDisplay:

    def test_stretch(self):
        image = np.array([[100, 200], [300, 500]], dtype=np.uint16)
        shown = np.array(to_display(image))
        assert shown.dtype == np.uint8
        assert shown.min() == 0
        assert shown.max() == 255

    def test_flat_image(self):
        shown = np.array(to_display(np.full((3, 3), 7, dtype=np.uint16)))
        assert not shown.any()

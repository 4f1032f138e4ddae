"""
Unit tests for block reading and canvas assembly
"""

import logging

import numpy as np
import pytest

from Aplate.crx.crx_blob import BlobReader
from Aplate.crx.crx_canvas import assemble_rect, assemble_tiles, assemble_zone, canvas_size
from Aplate.crx.crx_directory import TileDirectory
from Aplate.crx.crx_errors import StoreNotFound
from Aplate.crx.crx_metadata import read_experiment_info
from Aplate.crx.crx_structures import Rect, SourceImageRecord
from Aplate.crx.crx_tiles import tile_rect
from conftest import BLOCK_HEIGHT, BLOCK_WIDTH


@pytest.fixture
def directory(crx_store):
    return TileDirectory(crx_store.experiment_file)


@pytest.fixture
def info(crx_store):
    return read_experiment_info(crx_store.experiment_file)


class TestTileDirectory:

    def test_sorted_by_x_then_y(self, directory):
        records = directory.query_records(0, 0, 0)
        assert len(records) == 24
        keys = [(r.coord_x, r.coord_y) for r in records]
        assert keys == sorted(keys)
        assert {r.channel_id for r in records} == {0}
        assert {(r.size_x, r.size_y) for r in records} == {(BLOCK_WIDTH, BLOCK_HEIGHT)}

    def test_empty_level(self, directory):
        assert directory.query_records(0, 1, 1) == []
        assert directory.query_records(0, 7, 0) == []

    def test_levels(self, directory):
        assert directory.query_levels(3, 0) == [0, 1]
        assert directory.query_levels(3, 1) == [0]


class TestBlobReader:

    def test_native_orientation(self, crx_store, directory):
        record = [r for r in directory.query_records(0, 0, 0) if (r.coord_x, r.coord_y) == (3, 2)][0]
        with BlobReader(crx_store.images_file) as blob:
            block = blob.read_record(record)
        expected = crx_store.canvases[(0, 0, 0)][2:4, 3:6]
        assert block.shape == (BLOCK_WIDTH, BLOCK_HEIGHT)
        assert block.dtype == np.uint16
        np.testing.assert_array_equal(block.T, expected)

    def test_short_read(self, crx_store, caplog):
        record = SourceImageRecord(0, 0, 0, 0, 0, 1000, 1000, 16, 0)
        with BlobReader(crx_store.images_file) as blob:
            with caplog.at_level(logging.WARNING):
                assert blob.read_record(record) is None
        assert 'Short read' in caplog.text

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoreNotFound):
            with BlobReader(str(tmp_path / 'images-0.db')):
                pass

    def test_closed(self, crx_store):
        blob = BlobReader(crx_store.images_file)
        with pytest.raises(RuntimeError):
            blob.read_record(SourceImageRecord(0, 0, 0, 0, 0, 1, 1, 16, 0))


class TestCanvasAssembly:

    def test_canvas_size_law(self, directory):
        assert canvas_size(directory.query_records(0, 0, 0)) == (18, 8)
        # Level 1 blocks are 5 and 4 pixels wide
        assert canvas_size(directory.query_records(0, 1, 0)) == (9, 4)

    @pytest.mark.parametrize('zone,level,channel_id', [(0, 0, 0), (0, 0, 1), (3, 0, 1), (3, 1, 0)])
    def test_zone(self, crx_store, directory, zone, level, channel_id):
        records = directory.query_records(zone, level, channel_id)
        with BlobReader(crx_store.images_file) as blob:
            image = assemble_zone(blob, records)
        np.testing.assert_array_equal(image, crx_store.canvases[(zone, level, channel_id)])

    def test_crop_consistency(self, crx_store, directory, info):
        records = directory.query_records(3, 0, 1)
        with BlobReader(crx_store.images_file) as blob:
            full = assemble_zone(blob, records)
            for tile in range(1, info.well_info.tile_count + 1):
                rect = tile_rect(tile, info.well_info)
                image = assemble_rect(blob, records, rect)
                assert image.shape == (rect.height, rect.width)
                np.testing.assert_array_equal(image, full[rect.y:rect.bottom, rect.x:rect.right])

    def test_unaligned_region(self, crx_store, directory):
        records = directory.query_records(0, 0, 0)
        with BlobReader(crx_store.images_file) as blob:
            image = assemble_rect(blob, records, Rect(4, 1, 9, 5))
        np.testing.assert_array_equal(image, crx_store.canvases[(0, 0, 0)][1:6, 4:13])

    def test_all_tiles(self, crx_store, directory, info):
        records = directory.query_records(0, 0, 0)
        with BlobReader(crx_store.images_file) as blob:
            tiles, canvas = assemble_tiles(blob, records, info.well_info)
        expected = crx_store.canvases[(0, 0, 0)]
        assert len(tiles) == info.well_info.tile_count
        np.testing.assert_array_equal(canvas, expected)
        for tile, image in enumerate(tiles, start=1):
            rect = tile_rect(tile, info.well_info)
            np.testing.assert_array_equal(image, expected[rect.y:rect.bottom, rect.x:rect.right])

    def test_empty_records(self, crx_store, info, caplog):
        with BlobReader(crx_store.images_file) as blob:
            with caplog.at_level(logging.ERROR):
                assert assemble_zone(blob, []) is None
                assert assemble_rect(blob, [], Rect(0, 0, 6, 4)) is None
                assert assemble_tiles(blob, [], info.well_info) == (None, None)
        assert 'No image records' in caplog.text

    def test_unreadable_block_leaves_hole(self, crx_store, directory):
        records = directory.query_records(0, 0, 0)
        broken = [r if (r.coord_x, r.coord_y) != (0, 0) else
                  SourceImageRecord(r.zone_index, r.level, r.channel_id, 0, 0, r.size_x, r.size_y,
                                    16, 10 ** 9)
                  for r in records]
        with BlobReader(crx_store.images_file) as blob:
            image = assemble_zone(blob, broken)
        expected = crx_store.canvases[(0, 0, 0)].copy()
        expected[0:BLOCK_HEIGHT, 0:BLOCK_WIDTH] = 0
        np.testing.assert_array_equal(image, expected)

    def test_oversized_block_clipped(self, crx_store, directory, caplog):
        records = directory.query_records(0, 1, 0)
        first = records[0]
        # Second column placed one pixel too far right
        shifted = [first, SourceImageRecord(first.zone_index, 1, 0, 6, 0, 4, 4, 16,
                                            records[1].byte_offset)]
        with BlobReader(crx_store.images_file) as blob:
            with caplog.at_level(logging.WARNING):
                image = assemble_zone(blob, shifted)
        small = crx_store.canvases[(0, 1, 0)]
        assert image.shape == (4, 9)
        assert 'clipped' in caplog.text
        np.testing.assert_array_equal(image[:, :5], small[:, :5])
        assert not image[:, 5].any()
        np.testing.assert_array_equal(image[:, 6:9], small[:, 5:8])

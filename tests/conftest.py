"""
Synthetic CellReporterXpress stores for the test suite.

The main store has a 3x2 tile grid of 6x4 pixel tiles, two channels and
two imaged wells on a 6-well plate. Level 0 is stored as 3x2 pixel blocks
(four per tile), level 1 as two blocks of unequal width. Channel 2 has no
level 1.
"""

import os
import random
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Tuple

import numpy as np
import pytest


TILE_WIDTH, TILE_HEIGHT = 6, 4
TILE_COLUMNS, TILE_ROWS = 3, 2
BLOCK_WIDTH, BLOCK_HEIGHT = 3, 2

CREATED = datetime(2023, 10, 31, 12, 0, tzinfo=timezone.utc)

SCHEMA = """
CREATE TABLE ExperimentBase (DateCreated INTEGER, Creator TEXT, Name TEXT);
CREATE TABLE AcquisitionExp (Name TEXT, SensorSizeYPixels INTEGER, SensorSizeXPixels INTEGER,
                             Objective TEXT, PixelSizeUm REAL, SensorBitness INTEGER);
CREATE TABLE AutomaticZonesParametersExp (SitesX INTEGER, SitesY INTEGER);
CREATE TABLE Well (Name TEXT, ZoneIndex INTEGER, HasImages INTEGER);
CREATE TABLE ImageChannelExp (Emission REAL, Excitation REAL, Dye TEXT,
                              ChannelNumber INTEGER, ColorName TEXT);
CREATE TABLE SourceImageBase (ZoneIndex INTEGER, Level INTEGER, ChannelId INTEGER,
                              CoordX INTEGER, CoordY INTEGER, SizeX INTEGER, SizeY INTEGER,
                              BitsPerPixel INTEGER, ImageIndex INTEGER);
"""


def dotnet_ticks(moment: datetime) -> int:
    delta = moment - datetime(1, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86400 + delta.seconds) * 10_000_000 + delta.microseconds * 10


def grid_blocks(canvas: np.ndarray, block_width: int, block_height: int):
    """Cut a (height, width) canvas into (x, y, block) pieces."""
    height, width = canvas.shape
    for y in range(0, height, block_height):
        for x in range(0, width, block_width):
            yield x, y, canvas[y:y + block_height, x:x + block_width]


@dataclass
class Store:
    experiment_file: str
    images_file: str
    # (zone, level, channel_id) -> expected (height, width) canvas
    canvases: Dict[Tuple[int, int, int], np.ndarray] = field(default_factory=dict)


def build_store(directory, *, tile_size, grid, wells, channels, blocks, name='Test Plate',
                padding=16) -> Store:
    """Write experiment.db and images-0.db into directory.

    Args:
        tile_size: (width, height) of a tile
        grid: (columns, rows) of the tile grid
        wells: (name, zone_index, has_images) rows
        channels: (number, excitation, emission, dye, color_name) rows
        blocks: (zone, level, channel_id, x, y, block) with block a (h, w) array
        padding: junk bytes written before the first block
    """
    experiment_file = os.path.join(str(directory), 'experiment.db')
    images_file = os.path.join(str(directory), 'images-0.db')

    rows = []
    with open(images_file, 'wb') as f:
        f.write(b'\xab' * padding)
        for zone, level, channel_id, x, y, block in blocks:
            offset = f.tell()
            f.write(np.ascontiguousarray(block, dtype='<u2').tobytes())
            height, width = block.shape
            rows.append((zone, level, channel_id, x, y, width, height, 16, offset))

    # Catalog row order must not matter
    random.Random(7).shuffle(rows)

    conn = sqlite3.connect(experiment_file)
    try:
        conn.executescript(SCHEMA)
        conn.execute("INSERT INTO ExperimentBase VALUES (?, ?, ?)",
                     (dotnet_ticks(CREATED), 'tester', name))
        conn.execute("INSERT INTO AcquisitionExp VALUES (?, ?, ?, ?, ?, ?)",
                     ('Protocol 1', tile_size[1], tile_size[0], '10x Plan Fluor', 0.65, 12))
        conn.execute("INSERT INTO AutomaticZonesParametersExp VALUES (?, ?)", grid)
        conn.executemany("INSERT INTO Well VALUES (?, ?, ?)", wells)
        conn.executemany("INSERT INTO ImageChannelExp (ChannelNumber, Excitation, Emission, Dye, ColorName)"
                         " VALUES (?, ?, ?, ?, ?)", channels)
        conn.executemany("INSERT INTO SourceImageBase VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)", rows)
        conn.commit()
    finally:
        conn.close()

    return Store(experiment_file, images_file)


def level0_canvas(zone: int, channel_id: int) -> np.ndarray:
    height, width = TILE_ROWS * TILE_HEIGHT, TILE_COLUMNS * TILE_WIDTH
    canvas = np.arange(height * width, dtype=np.uint16).reshape(height, width)
    return canvas + np.uint16(1000 * channel_id + 200 * zone + 1)


@pytest.fixture
def crx_store(tmp_path) -> Store:
    blocks: List[tuple] = []
    canvases = {}
    for zone in (0, 3):
        for channel_id in (0, 1):
            canvas = level0_canvas(zone, channel_id)
            canvases[(zone, 0, channel_id)] = canvas
            for x, y, block in grid_blocks(canvas, BLOCK_WIDTH, BLOCK_HEIGHT):
                blocks.append((zone, 0, channel_id, x, y, block))

        # Level 1 of channel 1 only: 9x4 stored as 5 + 4 pixel wide blocks
        small = canvases[(zone, 0, 0)][::2, ::2].copy()
        canvases[(zone, 1, 0)] = small
        blocks.append((zone, 1, 0, 0, 0, small[:, :5]))
        blocks.append((zone, 1, 0, 5, 0, small[:, 5:]))

    wells = [
        ('A1', 0, 1), ('A2', 1, 0), ('A3', 2, 0),
        ('B1', 4, 0), ('B2', 3, 1), ('B3', 5, 0),
    ]
    channels = [
        (1, 0, 0, 'Brightfield', 'Gray'),
        (2, 485, 525, 'FITC', 'Bright Green'),
    ]
    store = build_store(tmp_path, tile_size=(TILE_WIDTH, TILE_HEIGHT), grid=(TILE_COLUMNS, TILE_ROWS),
                        wells=wells, channels=channels, blocks=blocks)
    store.canvases = canvases
    return store


@pytest.fixture
def square_store(tmp_path) -> Store:
    """2x2 tiles of 100x100 pixels, one block per tile."""
    canvas = (np.arange(200 * 200, dtype=np.uint32).reshape(200, 200) % 65521).astype(np.uint16)
    blocks = [(0, 0, 0, x, y, block) for x, y, block in grid_blocks(canvas, 100, 100)]
    store = build_store(tmp_path, tile_size=(100, 100), grid=(2, 2),
                        wells=[('C03', 0, 1)],
                        channels=[(1, 350, 450, 'DAPI', 'Blue')],
                        blocks=blocks, padding=0)
    store.canvases = {(0, 0, 0): canvas}
    return store

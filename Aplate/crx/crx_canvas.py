"""
Canvas assembly.

Blocks are stitched in native orientation, a (width, height) array indexed
[x, y] the way they are stored, and transposed to (height, width) row-major
images on return.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .crx_blob import BlobReader
from .crx_structures import Rect, SourceImageRecord, WellInfo
from .crx_tiles import covering_records, tile_rects


logger = logging.getLogger(__name__)


def canvas_size(records: Sequence[SourceImageRecord]) -> Tuple[int, int]:
    """Zone canvas (width, height).

    Width sums the block widths over distinct X coordinates, height the block
    heights over distinct Y coordinates; the first block at a coordinate wins.
    """
    widths = {}
    heights = {}
    for r in records:
        widths.setdefault(r.coord_x, r.size_x)
        heights.setdefault(r.coord_y, r.size_y)
    return sum(widths.values()), sum(heights.values())


def _blit(canvas: np.ndarray, block: np.ndarray, x: int, y: int):
    """Copy a native block into a native canvas at (x, y), clipping to the canvas."""
    width, height = canvas.shape
    x_end = min(x + block.shape[0], width)
    y_end = min(y + block.shape[1], height)
    if x_end <= x or y_end <= y:
        logger.warning(f"Block at ({x}, {y}) lies outside the {width}x{height} canvas")
        return
    if x_end - x < block.shape[0] or y_end - y < block.shape[1]:
        logger.warning(
            f"Block at ({x}, {y}) of size {block.shape[0]}x{block.shape[1]} "
            f"clipped to the {width}x{height} canvas"
        )
    canvas[x:x_end, y:y_end] = block[:x_end - x, :y_end - y]


def _stitch(blob: BlobReader, records: Sequence[SourceImageRecord],
            width: int, height: int, origin_x: int = 0, origin_y: int = 0) -> np.ndarray:
    canvas = np.zeros((width, height), dtype=np.uint16)
    for record in records:
        block = blob.read_record(record)
        if block is None:
            logger.warning(
                f"Block at ({record.coord_x}, {record.coord_y}) could not be read, leaving it empty"
            )
            continue
        _blit(canvas, block, record.coord_x - origin_x, record.coord_y - origin_y)
    return canvas


def assemble_native(blob: BlobReader, records: Sequence[SourceImageRecord]) -> Optional[np.ndarray]:
    """Full zone canvas in native (width, height) orientation."""
    if not records:
        logger.error("No image records to assemble")
        return None
    width, height = canvas_size(records)
    return _stitch(blob, records, width, height)


def assemble_zone(blob: BlobReader, records: Sequence[SourceImageRecord]) -> Optional[np.ndarray]:
    """Full zone image, (height, width)."""
    canvas = assemble_native(blob, records)
    if canvas is None:
        return None
    return np.ascontiguousarray(canvas.T)


def slice_tiles(native: np.ndarray, well_info: WellInfo) -> List[np.ndarray]:
    """Cut a native zone canvas into row-major tiles in tile index order."""
    tiles: List[Optional[np.ndarray]] = [None] * well_info.tile_count
    for i, rect in enumerate(tile_rects(well_info)):
        tile = np.zeros((rect.height, rect.width), dtype=np.uint16)
        part = native[rect.x:rect.right, rect.y:rect.bottom].T
        tile[:part.shape[0], :part.shape[1]] = part
        tiles[i] = tile
    return tiles


def assemble_tiles(blob: BlobReader, records: Sequence[SourceImageRecord],
                   well_info: WellInfo) -> Tuple[Optional[List[np.ndarray]], Optional[np.ndarray]]:
    """All tiles of a zone from a single full zone assembly.

    Returns:
        (tiles, zone image); both None when there are no records
    """
    native = assemble_native(blob, records)
    if native is None:
        return None, None
    return slice_tiles(native, well_info), np.ascontiguousarray(native.T)


def assemble_rect(blob: BlobReader, records: Sequence[SourceImageRecord],
                  rect: Rect) -> Optional[np.ndarray]:
    """Image of one rectangle, reading only the blocks that cover it.

    Returns:
        (rect.height, rect.width) array, or None when there are no records
    """
    needed = covering_records(records, rect)
    if not needed:
        logger.error(f"No image records cover region {rect.as_tuple()}")
        return None

    x_min = min(r.coord_x for r in needed)
    y_min = min(r.coord_y for r in needed)
    x_end = max(max(r.end_x for r in needed), rect.right)
    y_end = max(max(r.end_y for r in needed), rect.bottom)
    origin_x = min(x_min, rect.x)
    origin_y = min(y_min, rect.y)

    local = _stitch(blob, needed, x_end - origin_x, y_end - origin_y, origin_x, origin_y)
    x0 = rect.x - origin_x
    y0 = rect.y - origin_y
    crop = local[x0:x0 + rect.width, y0:y0 + rect.height]
    return np.ascontiguousarray(crop.T)

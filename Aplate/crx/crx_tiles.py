"""
Tile addressing within a well.

Tiles are numbered from 1 in raster order: the column advances first and
wraps to the next row after tile_columns tiles. Tile 1 is the top-left
field of view, tile tile_count the bottom-right.
"""

from bisect import bisect_left, bisect_right
from numbers import Integral
from typing import List, Sequence, Tuple

from .crx_errors import TileIndexOutOfRange
from .crx_structures import Rect, SourceImageRecord, WellInfo


def tile_position(tile: int, well_info: WellInfo) -> Tuple[int, int]:
    """Return the 0-based (column, row) of a 1-based tile index."""
    if isinstance(tile, bool) or not isinstance(tile, Integral):
        raise TileIndexOutOfRange(f"Tile index must be an integer, got {tile!r}")
    if tile < 1 or tile > well_info.tile_count:
        raise TileIndexOutOfRange(
            f"Tile {tile} does not exist, the well has {well_info.tile_count} tiles"
        )
    row, column = divmod(int(tile) - 1, well_info.tile_columns)
    return column, row


def tile_index(column: int, row: int, well_info: WellInfo) -> int:
    """Inverse of tile_position."""
    if not (0 <= column < well_info.tile_columns and 0 <= row < well_info.tile_rows):
        raise TileIndexOutOfRange(f"No tile at column {column}, row {row}")
    return row * well_info.tile_columns + column + 1


def tile_rect(tile: int, well_info: WellInfo) -> Rect:
    """Pixel rectangle of a tile in the full resolution zone canvas."""
    column, row = tile_position(tile, well_info)
    return Rect(
        x=column * well_info.tile_width,
        y=row * well_info.tile_height,
        width=well_info.tile_width,
        height=well_info.tile_height,
    )


def tile_rects(well_info: WellInfo) -> List[Rect]:
    """Rectangles of all tiles, in tile index order."""
    return [tile_rect(t, well_info) for t in range(1, well_info.tile_count + 1)]


def _coordinate_bounds(coords: Sequence[int], start: int, end: int, max_size: int) -> Tuple[int, int]:
    """Coordinate range of the blocks overlapping [start, end).

    coords must be sorted and distinct. The low bound is the last coordinate
    <= start, the high bound the first coordinate >= the last pixel minus the
    largest block size. The high bound is never below the last coordinate
    inside the range, so blocks narrower than max_size are not dropped.
    A bound with no match falls back to the extreme coordinate on that side.
    """
    i = bisect_right(coords, start)
    low = coords[i - 1] if i > 0 else coords[0]
    j = bisect_left(coords, end - 1 - max_size)
    high = coords[j] if j < len(coords) else coords[-1]
    k = bisect_left(coords, end)
    last_inside = coords[k - 1] if k > 0 else coords[0]
    return low, max(low, high, last_inside)


def covering_box(records: Sequence[SourceImageRecord], rect: Rect) -> Tuple[int, int, int, int]:
    """Coordinate box (x_min, x_max, y_min, y_max) of the records needed for rect."""
    xs = sorted({r.coord_x for r in records})
    ys = sorted({r.coord_y for r in records})
    max_width = max(r.size_x for r in records)
    max_height = max(r.size_y for r in records)

    x_min, x_max = _coordinate_bounds(xs, rect.x, rect.right, max_width)
    y_min, y_max = _coordinate_bounds(ys, rect.y, rect.bottom, max_height)
    return x_min, x_max, y_min, y_max


def covering_records(records: Sequence[SourceImageRecord], rect: Rect) -> List[SourceImageRecord]:
    """Minimal set of records to read for a rectangle.

    Avoids reading the full zone when only one tile or region is needed.
    Order of the input is kept.
    """
    if not records:
        return []
    x_min, x_max, y_min, y_max = covering_box(records, rect)
    return [
        r for r in records
        if x_min <= r.coord_x <= x_max and y_min <= r.coord_y <= y_max
    ]

"""
Directory of stored pixel blocks.

SourceImageBase holds one row per stored block:
- ZoneIndex: imaged region of a well
- Level: pyramid level, 0 is full resolution
- ChannelId: 0-based channel
- CoordX, CoordY: top-left offset of the block in the zone canvas
- SizeX, SizeY: block size in pixels
- BitsPerPixel: sample size
- ImageIndex: byte offset of the block in images-0.db
"""

import sqlite3
import logging
from contextlib import closing
from typing import List

from .crx_errors import SchemaMismatch, WellNotFound
from .crx_metadata import catalog_value, connect_readonly
from .crx_structures import ExperimentInfo, SourceImageRecord


logger = logging.getLogger(__name__)

_RECORDS_QUERY = """
    SELECT CoordX, CoordY, SizeX, SizeY, BitsPerPixel, ImageIndex, ChannelId
    FROM SourceImageBase
    WHERE ZoneIndex = ? AND Level = ? AND ChannelId = ?
    ORDER BY CoordX ASC, CoordY ASC
"""
_LEVELS_QUERY = """
    SELECT DISTINCT Level FROM SourceImageBase
    WHERE ZoneIndex = ? AND ChannelId = ?
    ORDER BY Level ASC
"""


def resolve_zone(info: ExperimentInfo, well_name: str) -> int:
    """Zone index of a well, matched case-insensitively.

    Raises:
        WellNotFound: if no imaged well has that name
    """
    wanted = well_name.lower()
    for name, zone_index in zip(info.wells, info.zone_indices):
        if name.lower() == wanted:
            return zone_index
    raise WellNotFound(f"Well '{well_name}' not found")


class TileDirectory:
    """Queries SourceImageBase of one experiment catalog."""

    def __init__(self, experiment_file: str):
        self._experiment_file = experiment_file

    def __repr__(self):
        return f'{self.__class__.__name__}({self._experiment_file!r})'

    def _execute(self, query: str, params: tuple) -> List[sqlite3.Row]:
        try:
            with closing(connect_readonly(self._experiment_file)) as conn:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise SchemaMismatch(f"Error querying SourceImageBase: {e}")

    def query_records(self, zone_index: int, level: int, channel_id: int) -> List[SourceImageRecord]:
        """Records of one zone, level and channel, sorted by (CoordX, CoordY).

        An empty list means there is no data at this level or channel.
        """
        rows = self._execute(_RECORDS_QUERY, (int(zone_index), int(level), int(channel_id)))
        records = [
            SourceImageRecord(
                zone_index=int(zone_index),
                level=int(level),
                channel_id=catalog_value(row, 'ChannelId', int),
                coord_x=catalog_value(row, 'CoordX', int),
                coord_y=catalog_value(row, 'CoordY', int),
                size_x=catalog_value(row, 'SizeX', int),
                size_y=catalog_value(row, 'SizeY', int),
                bits_per_pixel=catalog_value(row, 'BitsPerPixel', int),
                byte_offset=catalog_value(row, 'ImageIndex', int),
            )
            for row in rows
        ]
        logger.debug(f"Zone {zone_index} level {level} channel {channel_id}: {len(records)} records")
        return records

    def query_levels(self, zone_index: int, channel_id: int) -> List[int]:
        """Pyramid levels stored for a zone and channel."""
        rows = self._execute(_LEVELS_QUERY, (int(zone_index), int(channel_id)))
        return [catalog_value(row, 'Level', int) for row in rows]

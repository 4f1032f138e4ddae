"""
CellReporterXpress reader.

A request names what to read; its shape selects the result:

- no well: experiment information (InfoResult)
- well: full well image at a pyramid level (WellImage)
- well and tile number: one full resolution tile (TileImage)
- well and tile 'all': every tile of the well (TileCollection)

Failures come back as ReadError with an ErrorKind, never as an empty image.
"""

import logging
from enum import Enum
from numbers import Integral
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from .crx_blob import BlobReader
from .crx_canvas import assemble_rect, assemble_tiles, assemble_zone
from .crx_directory import TileDirectory, resolve_zone
from .crx_errors import CrxError, EmptyZoneData, ErrorKind, InvalidRequest, error_for_kind
from .crx_export import check_export_options, display_image, save_image, save_images
from .crx_metadata import DEFAULT_TIMEZONE, read_experiment_info
from .crx_structures import ExperimentInfo
from .crx_tiles import tile_rect


logger = logging.getLogger(__name__)

ALL_TILES = 'all'


class ReadMode(Enum):
    INFO = 'info'
    WELL = 'well'
    TILE = 'tile'
    ALL_TILES = 'all_tiles'


@dataclass
class ReadRequest:
    """What to read and what to do with it.

    Args:
        channel: 1-based channel number
        well: well name, None for experiment information only
        tile: 1-based tile number or 'all', None for the full well
        level: pyramid level of full well reads, 0 is full resolution
        info: previously read ExperimentInfo, skips reading the catalog
        save_as: .tif or .png path; channel, well, level and tile are appended
        tiff_compression: 'none', 'lzw' or 'deflate'
        show: display the image
        timezone: zone for the experiment creation date
    """
    channel: int = 1
    well: Optional[str] = None
    tile: Union[int, str, None] = None
    level: int = 0
    info: Optional[ExperimentInfo] = None
    save_as: Optional[str] = None
    tiff_compression: str = 'deflate'
    show: bool = False
    timezone: str = DEFAULT_TIMEZONE

    @property
    def mode(self) -> ReadMode:
        if self.well is None:
            return ReadMode.INFO
        if self.tile is None:
            return ReadMode.WELL
        if isinstance(self.tile, str):
            return ReadMode.ALL_TILES
        return ReadMode.TILE

    def validate(self):
        """Raise a CrxError for option values that can never be read."""
        if isinstance(self.channel, bool) or not isinstance(self.channel, Integral) or self.channel < 1:
            raise InvalidRequest(f"Channel must be an integer >= 1, got {self.channel!r}")
        if isinstance(self.level, bool) or not isinstance(self.level, Integral) or self.level < 0:
            raise InvalidRequest(f"Level must be an integer >= 0, got {self.level!r}")
        if self.well is None and self.tile is not None:
            raise InvalidRequest("A tile can only be read from a well")
        if isinstance(self.tile, str) and self.tile.lower() != ALL_TILES:
            raise InvalidRequest(f"Tile must be a number or '{ALL_TILES}', got {self.tile!r}")
        if self.save_as and self.mode is not ReadMode.INFO:
            check_export_options(self.save_as, self.tiff_compression)


class ReadResult:
    ok = True

    def unwrap(self):
        """Return the read value, raising the matching CrxError for a ReadError."""
        return self


@dataclass
class InfoResult(ReadResult):
    info: ExperimentInfo

    def unwrap(self):
        return self.info


@dataclass
class WellImage(ReadResult):
    image: np.ndarray
    well: str
    channel: int
    level: int

    def unwrap(self):
        return self.image


@dataclass
class TileImage(ReadResult):
    image: np.ndarray
    well: str
    channel: int
    tile: int

    def unwrap(self):
        return self.image


@dataclass
class TileCollection(ReadResult):
    tiles: List[np.ndarray]
    canvas: np.ndarray
    well: str
    channel: int

    def __len__(self):
        return len(self.tiles)

    def unwrap(self):
        return self.tiles


@dataclass
class ReadError(ReadResult):
    kind: ErrorKind
    message: str
    ok = False

    def unwrap(self):
        raise error_for_kind(self.kind, self.message)


class CrxReader:
    """Reader for one CellReporterXpress experiment.

    Args:
        experiment_file: Path to experiment.db; images-0.db must be next to it
        info: previously read ExperimentInfo of the same experiment
        timezone: zone for the experiment creation date
    """

    def __init__(self, experiment_file: str, info: Optional[ExperimentInfo] = None,
                 timezone: str = DEFAULT_TIMEZONE):
        self._experiment_file = experiment_file
        self._info = info
        self._timezone = timezone
        self._directory = TileDirectory(experiment_file)

    def __repr__(self):
        return f'{self.__class__.__name__}({self._experiment_file!r})'

    @property
    def experiment_file(self) -> str:
        return self._experiment_file

    @property
    def directory(self) -> TileDirectory:
        return self._directory

    @property
    def info(self) -> ExperimentInfo:
        """Experiment information, read from the catalog once.

        Raises:
            CrxError: if the catalog cannot be read
        """
        if self._info is None:
            self._info = read_experiment_info(self._experiment_file, self._timezone)
        return self._info

    def read(self, request: ReadRequest) -> ReadResult:
        """Serve a request. Reader failures are returned as ReadError."""
        try:
            request.validate()
            info = self._request_info(request)
            mode = request.mode
            if mode is ReadMode.INFO:
                return InfoResult(info)
            if mode is ReadMode.WELL:
                result = self._read_well(info, request)
            elif mode is ReadMode.TILE:
                result = self._read_tile(info, request)
            else:
                result = self._read_all_tiles(info, request)
            self._save_and_show(result, request)
            return result
        except CrxError as e:
            logger.error(f"Error: {e.message}")
            return ReadError(e.kind, e.message)

    def _request_info(self, request: ReadRequest) -> ExperimentInfo:
        if request.info is not None:
            logger.info("Using given Info!")
            return request.info
        if request.timezone != self._timezone:
            return read_experiment_info(self._experiment_file, request.timezone)
        return self.info

    def _records(self, info: ExperimentInfo, well: str, level: int, channel: int):
        zone_index = resolve_zone(info, well)
        records = self._directory.query_records(zone_index, level, channel - 1)
        if not records:
            raise EmptyZoneData(
                f"No images for well '{well}', channel {channel} at pyramid level {level}"
            )
        return records

    def _read_well(self, info: ExperimentInfo, request: ReadRequest) -> WellImage:
        records = self._records(info, request.well, request.level, request.channel)
        with BlobReader(info.images_file) as blob:
            image = assemble_zone(blob, records)
        logger.info("Ready Reading Full Well")
        return WellImage(image, request.well, request.channel, request.level)

    def _read_tile(self, info: ExperimentInfo, request: ReadRequest) -> TileImage:
        if request.level > 0:
            logger.warning(
                f"Single tiles are read at full resolution, ignoring level {request.level}"
            )
        resolve_zone(info, request.well)
        rect = tile_rect(request.tile, info.well_info)
        records = self._records(info, request.well, 0, request.channel)
        with BlobReader(info.images_file) as blob:
            image = assemble_rect(blob, records, rect)
        logger.info(f"Ready Reading Tile: {request.tile} from Well: '{request.well}'")
        return TileImage(image, request.well, request.channel, request.tile)

    def _read_all_tiles(self, info: ExperimentInfo, request: ReadRequest) -> TileCollection:
        records = self._records(info, request.well, 0, request.channel)
        with BlobReader(info.images_file) as blob:
            tiles, canvas = assemble_tiles(blob, records, info.well_info)
        logger.info(f"Ready Reading all Tiles from Well: '{request.well}'")
        return TileCollection(tiles, canvas, request.well, request.channel)

    def _save_and_show(self, result: ReadResult, request: ReadRequest):
        if request.save_as:
            if isinstance(result, TileCollection):
                save_images(result.tiles, request.save_as, request.channel, result.well,
                            request.tiff_compression)
            elif isinstance(result, TileImage):
                save_image(result.image, request.save_as, request.channel, result.well,
                           tile=result.tile, compression=request.tiff_compression)
            else:
                save_image(result.image, request.save_as, request.channel, result.well,
                           level=result.level, compression=request.tiff_compression)
        if request.show:
            display_image(result.canvas if isinstance(result, TileCollection) else result.image)

    # Shortcuts

    def read_info(self) -> ReadResult:
        return self.read(ReadRequest())

    def read_well(self, well: str, channel: int = 1, level: int = 0, **kwargs) -> ReadResult:
        return self.read(ReadRequest(channel=channel, well=well, level=level, **kwargs))

    def read_tile(self, well: str, tile: int, channel: int = 1, **kwargs) -> ReadResult:
        return self.read(ReadRequest(channel=channel, well=well, tile=tile, **kwargs))

    def read_all_tiles(self, well: str, channel: int = 1, **kwargs) -> ReadResult:
        return self.read(ReadRequest(channel=channel, well=well, tile=ALL_TILES, **kwargs))


if __name__ == '__main__':
    filepath = 'path/to/experiment.db'
    reader = CrxReader(filepath)
    result = reader.read_info()
    if result.ok:
        print("Wells : ", result.info.wells)
        print("Tiles : ", result.info.well_info.tile_count)
        print("LUTs : ", result.info.well_info.lut_names)
        well = reader.read_well(result.info.wells[0], level=2)
        print("Well image : ", well.image.shape if well.ok else well.message)

"""
CellReporterXpress experiment catalog reader.

CellReporterXpress Store Structure:
- experiment.db: SQLite 3.x metadata catalog
  - ExperimentBase: name, creator, creation date (.NET ticks)
  - AcquisitionExp: protocol name, sensor size, objective, pixel size, bitness
  - AutomaticZonesParametersExp: tile grid (SitesX x SitesY) of every well
  - ImageChannelExp: excitation, emission, dye and color name per channel
  - Well: well name, zone index, has-images flag
  - SourceImageBase: one row per stored pixel block (see crx_directory)
- images-0.db: headerless blob file with the raw pixel blocks, located by
  the byte offsets in SourceImageBase.ImageIndex
"""

import os
import sqlite3
import logging
from contextlib import closing
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .crx_errors import InvalidRequest, SchemaMismatch, StoreNotFound
from .crx_structures import ChannelInfo, ExperimentInfo, WellInfo


logger = logging.getLogger(__name__)

IMAGES_FILE_NAME = 'images-0.db'
DEFAULT_TIMEZONE = 'Europe/Amsterdam'

# .NET DateTime ticks are 100 ns intervals since 0001-01-01 00:00 UTC
_DOTNET_EPOCH = datetime(1, 1, 1, tzinfo=dt_timezone.utc)

_EXPERIMENT_QUERY = "SELECT DateCreated, Creator, Name FROM ExperimentBase"
_PROTOCOL_QUERY = "SELECT Name FROM AcquisitionExp"
_ALL_WELLS_QUERY = "SELECT Name FROM Well"
_IMAGED_WELLS_QUERY = "SELECT Name, ZoneIndex FROM Well WHERE HasImages = 1"
_ACQUISITION_QUERY = """
    SELECT AcquisitionExp.SensorSizeYPixels, AcquisitionExp.SensorSizeXPixels,
           AcquisitionExp.Objective, AcquisitionExp.PixelSizeUm,
           AcquisitionExp.SensorBitness,
           AutomaticZonesParametersExp.SitesX, AutomaticZonesParametersExp.SitesY
    FROM AcquisitionExp, AutomaticZonesParametersExp
"""
_CHANNEL_QUERY = """
    SELECT Emission, Excitation, Dye, ChannelNumber, ColorName
    FROM ImageChannelExp
"""


def connect_readonly(filename: str) -> sqlite3.Connection:
    """Open the catalog read-only. The caller owns closing it."""
    uri = f"file:{os.path.abspath(filename)}?mode=ro"
    conn = sqlite3.connect(uri, uri=True)
    conn.row_factory = sqlite3.Row
    return conn


def images_file_for(experiment_file: str) -> str:
    """Blob file path; it sits next to the experiment catalog."""
    return os.path.join(os.path.dirname(os.path.abspath(experiment_file)), IMAGES_FILE_NAME)


def dotnet_ticks_to_datetime(ticks: int, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Convert .NET DateTime ticks to an aware datetime in the given zone."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidRequest(f"Unknown timezone '{tz_name}': {e}")
    try:
        utc = _DOTNET_EPOCH + timedelta(microseconds=int(ticks) // 10)
    except (TypeError, ValueError, OverflowError):
        raise SchemaMismatch(f"Invalid creation date {ticks!r} in catalog")
    return utc.astimezone(tz)


def catalog_value(row: Mapping[str, Any], name: str,
                  cast: Optional[Callable[[Any], Any]] = None) -> Any:
    """Value of a catalog column, converted with cast when given.

    Raises:
        SchemaMismatch: if the column is absent or its value does not convert
    """
    try:
        value = row[name]
    except (KeyError, IndexError):
        raise SchemaMismatch(f"Expected column '{name}' not found in catalog row")
    if cast is None:
        return value
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise SchemaMismatch(f"Invalid value {value!r} in catalog column '{name}'")


def derive_channel_info(row: Mapping[str, Any]) -> ChannelInfo:
    """Build a ChannelInfo, applying the dye and LUT color rule.

    A channel without excitation is transmitted light and is shown white.
    Otherwise the LUT is the last word of the color name, e.g.
    'Thermo Orange' -> 'orange'.
    """
    excitation = catalog_value(row, 'Excitation')
    emission = catalog_value(row, 'Emission')
    number = catalog_value(row, 'ChannelNumber', int)
    dye_name = catalog_value(row, 'Dye')
    color_name = catalog_value(row, 'ColorName')

    if not excitation:
        dye = 'TL'
        lut_name = 'white'
    else:
        dye = str(dye_name or '').lower()
        words = str(color_name or '').split()
        lut_name = words[-1].lower() if words else ''

    return ChannelInfo(
        number=number,
        excitation=excitation or 0,
        emission=emission or 0,
        dye=dye,
        lut_name=lut_name,
    )


def derive_well_info(acquisition_row: Mapping[str, Any],
                     channel_rows: Iterable[Mapping[str, Any]]) -> WellInfo:
    """Convert acquisition and channel catalog rows to a WellInfo.

    Args:
        acquisition_row: Row joining AcquisitionExp and AutomaticZonesParametersExp
        channel_rows: Rows of ImageChannelExp

    Raises:
        SchemaMismatch: if an expected column is absent or the grid is empty
    """
    tile_columns = catalog_value(acquisition_row, 'SitesX', int)
    tile_rows = catalog_value(acquisition_row, 'SitesY', int)
    if tile_columns <= 0 or tile_rows <= 0:
        raise SchemaMismatch(f"Invalid tile grid {tile_columns}x{tile_rows}")

    pixel_size = catalog_value(acquisition_row, 'PixelSizeUm',
                               lambda v: 0.0 if v is None else float(v))

    return WellInfo(
        tile_columns=tile_columns,
        tile_rows=tile_rows,
        tile_width=catalog_value(acquisition_row, 'SensorSizeXPixels', int),
        tile_height=catalog_value(acquisition_row, 'SensorSizeYPixels', int),
        bit_depth=catalog_value(acquisition_row, 'SensorBitness', int),
        pixel_size_um=pixel_size,
        objective=catalog_value(acquisition_row, 'Objective'),
        channels=[derive_channel_info(row) for row in channel_rows],
    )


def _fetch_one(cursor: sqlite3.Cursor, query: str, what: str) -> sqlite3.Row:
    cursor.execute(query)
    row = cursor.fetchone()
    if row is None:
        raise SchemaMismatch(f"No {what} found in catalog")
    return row


def read_experiment_info(experiment_file: str,
                         tz_name: str = DEFAULT_TIMEZONE) -> ExperimentInfo:
    """Read experiment information from an experiment.db catalog.

    Args:
        experiment_file: Path to the CellReporterXpress experiment.db
        tz_name: IANA timezone used for the creation date

    Raises:
        StoreNotFound: if the catalog file does not exist
        SchemaMismatch: if the catalog content differs from what is expected
    """
    if not os.path.isfile(experiment_file):
        raise StoreNotFound(f"Experiment file not found: {experiment_file}")

    logger.info("Reading Info from CellReporterXpress experiment.db file")
    try:
        with closing(connect_readonly(experiment_file)) as conn:
            cursor = conn.cursor()
            experiment = _fetch_one(cursor, _EXPERIMENT_QUERY, 'experiment')
            protocol = _fetch_one(cursor, _PROTOCOL_QUERY, 'acquisition protocol')

            cursor.execute(_ALL_WELLS_QUERY)
            plate_well_count = len(cursor.fetchall())

            cursor.execute(_IMAGED_WELLS_QUERY)
            imaged = cursor.fetchall()

            acquisition = _fetch_one(cursor, _ACQUISITION_QUERY, 'acquisition geometry')
            cursor.execute(_CHANNEL_QUERY)
            channel_rows = cursor.fetchall()

            well_info = derive_well_info(acquisition, channel_rows)
    except sqlite3.Error as e:
        raise SchemaMismatch(f"Format of data in file is different than expected: {e}")

    created = dotnet_ticks_to_datetime(catalog_value(experiment, 'DateCreated', int), tz_name)
    info = ExperimentInfo(
        experiment_file=experiment_file,
        images_file=images_file_for(experiment_file),
        name=str(catalog_value(experiment, 'Name')),
        creator=str(catalog_value(experiment, 'Creator')),
        protocol=str(catalog_value(protocol, 'Name')),
        created=created,
        timezone=tz_name,
        well_info=well_info,
        plate_well_count=plate_well_count,
        wells=[catalog_value(row, 'Name', str) for row in imaged],
        zone_indices=[catalog_value(row, 'ZoneIndex', int) for row in imaged],
    )

    logger.info(f"Name: {info.name}")
    logger.info(f"Creator: {info.creator}")
    logger.info(f"Protocol: {info.protocol}")
    logger.info(f"Date: {created} (TimeZone: {tz_name})")
    logger.info("Ready Reading Info!")
    return info


def info_properties(info: ExperimentInfo) -> Dict[str, str]:
    """Flatten experiment information to string properties."""
    well_info = info.well_info
    properties = {
        'crx.name': info.name,
        'crx.creator': info.creator,
        'crx.protocol': info.protocol,
        'crx.date': info.created.isoformat(),
        'crx.plate-wells': str(info.plate_well_count),
        'crx.wells': str(info.well_count),
        'crx.tile-columns': str(well_info.tile_columns),
        'crx.tile-rows': str(well_info.tile_rows),
        'crx.tile-width': str(well_info.tile_width),
        'crx.tile-height': str(well_info.tile_height),
        'crx.bit-depth': str(well_info.bit_depth),
        'crx.channels': str(well_info.channel_count),
    }
    objective: Optional[str] = well_info.objective
    if objective:
        properties['crx.objective'] = str(objective)
    for i, channel in enumerate(well_info.channels):
        properties[f'crx.channel[{i}].dye'] = channel.dye
        properties[f'crx.channel[{i}].lut'] = channel.lut_name
    return properties

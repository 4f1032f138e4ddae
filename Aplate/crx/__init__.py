# CellReporterXpress (experiment.db + images-0.db) format support for Aplate

from .crx_errors import (CrxError, ErrorKind, StoreNotFound, SchemaMismatch, WellNotFound,
                         EmptyZoneData, TileIndexOutOfRange, UnsupportedExportExtension,
                         UnsupportedCompressionMode, ExportPathNotFound, InvalidRequest)
from .crx_structures import ChannelInfo, ExperimentInfo, Rect, SourceImageRecord, WellInfo
from .crx_metadata import derive_well_info, read_experiment_info
from .crx_directory import TileDirectory, resolve_zone
from .crx_reader import (ALL_TILES, CrxReader, InfoResult, ReadError, ReadMode, ReadRequest,
                         ReadResult, TileCollection, TileImage, WellImage)
from .crx_export import add_leading_zero
from .crx_overlay import overlay_channels, plate_layout

try:
    from .crx_slide import CrxWellSlide
except (ImportError, OSError):
    import warnings
    warnings.warn("CrxWellSlide not available (openslide-python library required)")
    CrxWellSlide = None

__all__ = [
    'CrxReader', 'CrxWellSlide', 'ReadRequest', 'ReadMode', 'ReadResult', 'InfoResult',
    'WellImage', 'TileImage', 'TileCollection', 'ReadError', 'ALL_TILES',
    'ExperimentInfo', 'WellInfo', 'ChannelInfo', 'SourceImageRecord', 'Rect',
    'TileDirectory', 'resolve_zone', 'derive_well_info', 'read_experiment_info',
    'add_leading_zero', 'overlay_channels', 'plate_layout',
    'CrxError', 'ErrorKind', 'StoreNotFound', 'SchemaMismatch', 'WellNotFound',
    'EmptyZoneData', 'TileIndexOutOfRange', 'UnsupportedExportExtension',
    'UnsupportedCompressionMode', 'ExportPathNotFound', 'InvalidRequest',
]

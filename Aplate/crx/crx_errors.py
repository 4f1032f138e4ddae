"""Failure kinds raised while reading a CellReporterXpress store."""

from enum import Enum


class ErrorKind(Enum):
    FILE_NOT_FOUND = 'file_not_found'
    SCHEMA_MISMATCH = 'schema_mismatch'
    WELL_NOT_FOUND = 'well_not_found'
    EMPTY_ZONE_DATA = 'empty_zone_data'
    TILE_INDEX_OUT_OF_RANGE = 'tile_index_out_of_range'
    UNSUPPORTED_EXPORT_EXTENSION = 'unsupported_export_extension'
    UNSUPPORTED_COMPRESSION_MODE = 'unsupported_compression_mode'
    EXPORT_PATH_NOT_FOUND = 'export_path_not_found'
    INVALID_REQUEST = 'invalid_request'


class CrxError(Exception):
    """Base class of all reader failures."""
    kind = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreNotFound(CrxError, FileNotFoundError):
    kind = ErrorKind.FILE_NOT_FOUND


class SchemaMismatch(CrxError):
    kind = ErrorKind.SCHEMA_MISMATCH


class WellNotFound(CrxError, KeyError):
    kind = ErrorKind.WELL_NOT_FOUND

    def __str__(self):
        return self.message


class EmptyZoneData(CrxError):
    kind = ErrorKind.EMPTY_ZONE_DATA


class TileIndexOutOfRange(CrxError, IndexError):
    kind = ErrorKind.TILE_INDEX_OUT_OF_RANGE


class UnsupportedExportExtension(CrxError, ValueError):
    kind = ErrorKind.UNSUPPORTED_EXPORT_EXTENSION


class UnsupportedCompressionMode(CrxError, ValueError):
    kind = ErrorKind.UNSUPPORTED_COMPRESSION_MODE


class ExportPathNotFound(CrxError, FileNotFoundError):
    kind = ErrorKind.EXPORT_PATH_NOT_FOUND


class InvalidRequest(CrxError, ValueError):
    kind = ErrorKind.INVALID_REQUEST


_ERRORS_BY_KIND = {
    cls.kind: cls for cls in (
        StoreNotFound, SchemaMismatch, WellNotFound, EmptyZoneData, TileIndexOutOfRange,
        UnsupportedExportExtension, UnsupportedCompressionMode, ExportPathNotFound,
        InvalidRequest,
    )
}


def error_for_kind(kind: ErrorKind, message: str) -> CrxError:
    """Exception instance matching an error kind."""
    return _ERRORS_BY_KIND[kind](message)

"""
Raw pixel block reader for images-0.db.

The images file carries no header or index. Every block is located by the
byte offset and size stored in the catalog and holds size_x * size_y
little-endian unsigned samples with X varying fastest.
"""

import os
import logging
from typing import BinaryIO, Optional

import numpy as np

from .crx_errors import StoreNotFound
from .crx_structures import SourceImageRecord


logger = logging.getLogger(__name__)

# BitsPerPixel -> on-disk sample type
SAMPLE_TYPES = {
    8: np.dtype('<u1'),
    16: np.dtype('<u2'),
}


class BlobReader:
    """Reads pixel blocks from an images file.

    The file handle is held from __enter__ to __exit__ only:

        with BlobReader(info.images_file) as blob:
            block = blob.read_record(record)
    """

    def __init__(self, filename: str):
        self._filename = filename
        self._file: Optional[BinaryIO] = None

    def __repr__(self):
        return f'{self.__class__.__name__}({self._filename!r})'

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def open(self):
        if self._file is not None:
            return
        if not os.path.isfile(self._filename):
            raise StoreNotFound(f"Images file not found: {self._filename}")
        self._file = open(self._filename, 'rb')

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    def read_record(self, record: SourceImageRecord) -> Optional[np.ndarray]:
        """Decode one block in native orientation.

        Returns:
            uint16 array of shape (size_x, size_y), or None if the file ends
            before the block does
        """
        if self._file is None:
            raise RuntimeError("Images file is not open")

        dtype = SAMPLE_TYPES.get(record.bits_per_pixel, SAMPLE_TYPES[16])
        count = record.size_x * record.size_y
        expected = count * dtype.itemsize

        self._file.seek(record.byte_offset)
        data = self._file.read(expected)
        if len(data) < expected:
            logger.warning(
                f"Short read at offset {record.byte_offset}: got {len(data)} bytes, expected {expected}"
            )
            return None

        samples = np.frombuffer(data, dtype=dtype, count=count)
        # X varies fastest on disk, so rows of the reshape are Y
        block = samples.reshape((record.size_y, record.size_x)).T
        return block.astype(np.uint16)

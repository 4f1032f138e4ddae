"""
OpenSlide compatible view of one well.

Every stored pyramid level of a well and channel becomes a slide level, so
code written against OpenSlide can read CellReporterXpress wells:

    with CrxWellSlide('experiment.db', 'B02', channel=2) as slide:
        region = slide.read_region((0, 0), 3, slide.level_dimensions[3])

Regions are 16-bit grayscale PIL images (mode 'I;16').
"""

import os
import logging
from typing import Dict, Optional, Tuple

import numpy as np
from PIL import Image
from openslide import AbstractSlide

from .crx_blob import BlobReader
from .crx_canvas import assemble_rect, canvas_size
from .crx_directory import resolve_zone
from .crx_errors import EmptyZoneData
from .crx_export import to_display
from .crx_metadata import info_properties
from .crx_reader import CrxReader
from .crx_structures import ExperimentInfo, Rect


logger = logging.getLogger(__name__)


class CrxWellSlide(AbstractSlide):
    """One well and channel of a CellReporterXpress experiment as a slide."""

    def __init__(self, filename: str, well: str, channel: int = 1,
                 info: Optional[ExperimentInfo] = None):
        AbstractSlide.__init__(self)
        if not os.path.exists(filename):
            raise FileNotFoundError(f"Experiment file not found: {filename}")

        self._filename = filename
        self._reader = CrxReader(filename, info=info)
        self._info = self._reader.info
        self._well = well
        self._channel = channel
        self._zone_index = resolve_zone(self._info, well)
        self._closed = False

        self._levels = self._reader.directory.query_levels(self._zone_index, channel - 1)
        if not self._levels:
            raise EmptyZoneData(f"No images for well '{well}', channel {channel}")

        self._level_dimensions = []
        for level in self._levels:
            records = self._reader.directory.query_records(self._zone_index, level, channel - 1)
            self._level_dimensions.append(canvas_size(records))

        self._properties = self._init_properties()

    def __repr__(self):
        return f'{self.__class__.__name__}({self._filename!r}, {self._well!r})'

    def _init_properties(self) -> Dict[str, str]:
        properties = {
            'openslide.vendor': 'CellReporterXpress',
            'openslide.level-count': str(self.level_count),
            'crx.well': self._well,
            'crx.channel': str(self._channel),
        }
        properties.update(info_properties(self._info))

        mpp = self._info.well_info.pixel_size_um
        if mpp:
            properties['openslide.mpp-x'] = str(mpp)
            properties['openslide.mpp-y'] = str(mpp)

        for i, (w, h) in enumerate(self._level_dimensions):
            properties[f'openslide.level[{i}].width'] = str(w)
            properties[f'openslide.level[{i}].height'] = str(h)
            properties[f'openslide.level[{i}].downsample'] = str(self.level_downsamples[i])
        return properties

    def _check_closed(self):
        if self._closed:
            raise RuntimeError("Slide has been closed")

    @classmethod
    def detect_format(cls, filename: str) -> Optional[str]:
        """Detect a CellReporterXpress experiment catalog."""
        if os.path.basename(filename).lower() != 'experiment.db':
            return None
        if not os.path.isfile(filename):
            return None
        with open(filename, 'rb') as f:
            if f.read(16) != b'SQLite format 3\x00':
                return None
        return 'crx'

    def close(self):
        self._closed = True

    @property
    def well(self) -> str:
        return self._well

    @property
    def channel(self) -> int:
        return self._channel

    @property
    def mpp(self) -> Optional[float]:
        return self._info.well_info.pixel_size_um or None

    @property
    def level_count(self) -> int:
        return len(self._levels)

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self._level_dimensions[0]

    @property
    def level_dimensions(self) -> Tuple[Tuple[int, int], ...]:
        return tuple(self._level_dimensions)

    @property
    def level_downsamples(self) -> Tuple[float, ...]:
        width, height = self._level_dimensions[0]
        return tuple(
            ((width / w if w else 1.0) + (height / h if h else 1.0)) / 2
            for w, h in self._level_dimensions
        )

    @property
    def properties(self) -> Dict[str, str]:
        return self._properties

    @property
    def associated_images(self) -> Dict[str, Image.Image]:
        return {}

    @property
    def color_profile(self):
        return None

    def get_best_level_for_downsample(self, downsample: float) -> int:
        for i, ds in enumerate(self.level_downsamples):
            if ds > downsample:
                return max(0, i - 1)
        return self.level_count - 1

    def read_region_array(self, location: Tuple[int, int], level: int,
                          size: Tuple[int, int]) -> np.ndarray:
        """Like read_region, as a (height, width) uint16 array."""
        self._check_closed()
        if level < 0 or level >= self.level_count:
            raise ValueError(f"Invalid level {level}, must be 0-{self.level_count - 1}")

        width, height = size
        downsample = self.level_downsamples[level]
        rect = Rect(
            x=int(location[0] / downsample),
            y=int(location[1] / downsample),
            width=int(width),
            height=int(height),
        )
        records = self._reader.directory.query_records(
            self._zone_index, self._levels[level], self._channel - 1
        )
        with BlobReader(self._info.images_file) as blob:
            region = assemble_rect(blob, records, rect)
        if region is None:
            return np.zeros((rect.height, rect.width), dtype=np.uint16)
        return region

    def read_region(self, location: Tuple[int, int], level: int,
                    size: Tuple[int, int]) -> Image.Image:
        """Read a region.

        Args:
            location: (x, y) top-left pixel in the level 0 reference frame
            level: slide level
            size: (width, height) of the region at that level

        Returns:
            PIL Image in mode 'I;16'
        """
        return Image.fromarray(self.read_region_array(location, level, size))

    def get_thumbnail(self, size: Tuple[int, int]) -> Image.Image:
        """Contrast stretched 8-bit thumbnail from the lowest resolution level."""
        level = self.level_count - 1
        region = self.read_region_array((0, 0), level, self._level_dimensions[level])
        thumb = to_display(region)
        thumb.thumbnail(size, Image.LANCZOS)
        return thumb

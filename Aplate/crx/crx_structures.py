"""
CellReporterXpress data structures.

Plain containers for what the experiment catalog describes: the acquisition
run, the imaging geometry shared by all wells, and the stored pixel blocks.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from dataclasses import dataclass, field


@dataclass
class ChannelInfo:
    """One acquisition channel and its display color."""
    number: int
    excitation: float
    emission: float
    dye: str
    lut_name: str


@dataclass
class WellInfo:
    """Imaging geometry shared by all wells of an experiment."""
    # Tile grid
    tile_columns: int
    tile_rows: int

    # Tile size in pixels (sensor size)
    tile_width: int
    tile_height: int

    bit_depth: int
    pixel_size_um: float
    objective: Optional[str] = None
    resolution_unit: str = 'µm'

    channels: List[ChannelInfo] = field(default_factory=list)

    @property
    def tile_count(self) -> int:
        return self.tile_columns * self.tile_rows

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def lut_names(self) -> List[str]:
        return [c.lut_name for c in self.channels]

    @property
    def dyes(self) -> List[str]:
        return [c.dye for c in self.channels]


@dataclass
class ExperimentInfo:
    """Container for experiment level metadata."""
    experiment_file: str
    images_file: str
    name: str
    creator: str
    protocol: str
    created: datetime
    timezone: str
    well_info: WellInfo

    # Number of wells of the plate, with or without images
    plate_well_count: int = 0

    # Wells with images and their zone index, in catalog order
    wells: List[str] = field(default_factory=list)
    zone_indices: List[int] = field(default_factory=list)

    def __post_init__(self):
        if len(self.wells) != len(self.zone_indices):
            raise ValueError(
                f"{len(self.wells)} wells but {len(self.zone_indices)} zone indices"
            )

    @property
    def well_count(self) -> int:
        return len(self.wells)


@dataclass(frozen=True)
class SourceImageRecord:
    """A rectangular pixel block stored in the images file."""
    zone_index: int
    level: int
    channel_id: int
    coord_x: int
    coord_y: int
    size_x: int
    size_y: int
    bits_per_pixel: int
    byte_offset: int

    @property
    def end_x(self) -> int:
        return self.coord_x + self.size_x

    @property
    def end_y(self) -> int:
        return self.coord_y + self.size_y


@dataclass(frozen=True)
class Rect:
    """Pixel rectangle in zone canvas coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

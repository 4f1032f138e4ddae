"""Channel color overlays and whole plate montages."""

import string
import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np


logger = logging.getLogger(__name__)

# LUT name -> (red, green, blue) components the channel adds to
LUT_COMPONENTS: Dict[str, Tuple[int, ...]] = {
    'red': (0,),
    'green': (1,),
    'blue': (2,),
    'cyan': (1, 2),
    'yellow': (0, 1),
    'magenta': (0, 2),
    'white': (0, 1, 2),
}

# Wells per plate -> (rows, columns)
PLATE_FORMATS: Dict[int, Tuple[int, int]] = {
    6: (2, 3),
    12: (3, 4),
    24: (4, 6),
    48: (6, 8),
    96: (8, 12),
    384: (16, 24),
}


def overlay_channels(images: Sequence[np.ndarray], lut_names: Sequence[str]) -> np.ndarray:
    """Add single channel images into one RGB image by their LUT color.

    Sums saturate at the uint16 maximum. Channels with an unknown LUT are
    left out.
    """
    if not images:
        raise ValueError("No channel images to overlay")
    if len(images) != len(lut_names):
        raise ValueError(f"{len(images)} images but {len(lut_names)} LUT names")

    height, width = images[0].shape
    rgb = np.zeros((height, width, 3), dtype=np.uint32)
    for image, lut_name in zip(images, lut_names):
        components = LUT_COMPONENTS.get(str(lut_name).lower())
        if components is None:
            logger.warning(f"No overlay color for LUT '{lut_name}', channel skipped")
            continue
        if image.shape != (height, width):
            raise ValueError(f"Image shape {image.shape} differs from {(height, width)}")
        logger.info(f"Adding {lut_name} channel")
        for c in components:
            rgb[:, :, c] += image
    return np.minimum(rgb, np.iinfo(np.uint16).max).astype(np.uint16)


def plate_layout(well_count: int) -> Tuple[List[str], List[str]]:
    """Row letters and column numbers of a standard multi-well plate."""
    if well_count not in PLATE_FORMATS:
        raise ValueError(f"Unsupported plate with {well_count} wells")
    rows, columns = PLATE_FORMATS[well_count]
    return list(string.ascii_uppercase[:rows]), [str(c) for c in range(1, columns + 1)]


def plate_well_names(well_count: int) -> List[List[str]]:
    """Well names of a plate laid out by row, e.g. [['A1', 'A2', ...], ...]."""
    rows, columns = plate_layout(well_count)
    return [[f"{r}{c}" for c in columns] for r in rows]


def compose_plate(well_images: Dict[Tuple[int, int], np.ndarray], well_count: int,
                  well_shape: Tuple[int, int]) -> np.ndarray:
    """Place well images, keyed by (row, column), on a plate sized canvas.

    Wells without an image stay zero; images are cropped to well_shape.
    """
    rows, columns = PLATE_FORMATS[well_count]
    height, width = well_shape
    plate = np.zeros((rows * height, columns * width), dtype=np.uint16)
    for (r, c), image in well_images.items():
        h = min(height, image.shape[0])
        w = min(width, image.shape[1])
        plate[r * height:r * height + h, c * width:c * width + w] = image[:h, :w]
    return plate

"""Saving and showing reader output."""

import os
import re
import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from .crx_errors import (ExportPathNotFound, UnsupportedCompressionMode,
                         UnsupportedExportExtension)


logger = logging.getLogger(__name__)

EXPORT_EXTENSIONS = ('.tif', '.png')

# Request value -> Pillow TIFF compression
TIFF_COMPRESSIONS = {
    'none': 'raw',
    'lzw': 'tiff_lzw',
    'deflate': 'tiff_adobe_deflate',
}

_FIRST_NUMBER = re.compile(r'\d+')


def add_leading_zero(text: Union[str, int]) -> str:
    """Pad the first number in text to two digits when it is below 10.

    'well5' -> 'well05', 'well12' -> 'well12', 'A1' -> 'A01'
    """
    text = str(text)
    match = _FIRST_NUMBER.search(text)
    if match is None or int(match.group()) >= 10:
        return text
    return text[:match.start()] + match.group().zfill(2) + text[match.end():]


def check_export_options(save_as: str, compression: str = 'deflate') -> Tuple[str, str, str]:
    """Validate an export target before anything is read.

    Returns:
        (directory, stem, extension) with the extension lower-cased

    Raises:
        UnsupportedExportExtension, UnsupportedCompressionMode, ExportPathNotFound
    """
    directory, filename = os.path.split(save_as)
    stem, ext = os.path.splitext(filename)
    ext = ext.lower()
    if ext not in EXPORT_EXTENSIONS:
        raise UnsupportedExportExtension("Only .tif or .png are supported!")
    if ext == '.tif' and str(compression).lower() not in TIFF_COMPRESSIONS:
        raise UnsupportedCompressionMode(
            "Only 'none', 'lzw' and 'deflate' are supported .tif compression values!"
        )
    if directory and not os.path.isdir(directory):
        raise ExportPathNotFound(f"Path not found, image not saved: {directory}")
    return directory, stem, ext


def export_basename(stem: str, channel: int, well: str, level: int = 0,
                    tiled: bool = False) -> str:
    """Base file name with channel, level and well appended.

    The level only appears for full well images above full resolution.
    """
    if not tiled and level > 0:
        return f"{stem}_ch{channel}_level{level}_{add_leading_zero(well)}"
    return f"{stem}_ch{channel}_{add_leading_zero(well)}"


def export_filename(save_as: str, channel: int, well: str, level: int = 0,
                    tile: Optional[int] = None) -> str:
    """Full output path for one image."""
    directory, filename = os.path.split(save_as)
    stem, ext = os.path.splitext(filename)
    name = export_basename(stem, channel, well, level, tiled=tile is not None)
    if tile is not None:
        name = f"{name}_{add_leading_zero(tile)}"
    return os.path.join(directory, name + ext)


def write_image(image: np.ndarray, filename: str, compression: str = 'deflate'):
    """Write a 16-bit grayscale image as TIFF or PNG."""
    pil_image = Image.fromarray(np.ascontiguousarray(image, dtype=np.uint16))
    if filename.lower().endswith('.tif'):
        pil_image.save(filename, format='TIFF', compression=TIFF_COMPRESSIONS[compression.lower()])
    else:
        pil_image.save(filename, format='PNG')
    logger.debug(f"Saved {filename}")


def save_image(image: np.ndarray, save_as: str, channel: int, well: str, level: int = 0,
               tile: Optional[int] = None, compression: str = 'deflate') -> str:
    check_export_options(save_as, compression)
    filename = export_filename(save_as, channel, well, level, tile)
    write_image(image, filename, compression)
    logger.info("Image Saved!")
    return filename


def save_images(images: Sequence[np.ndarray], save_as: str, channel: int, well: str,
                compression: str = 'deflate') -> list:
    """Save a tile collection, numbering the files from 1."""
    check_export_options(save_as, compression)
    filenames = []
    for i, image in enumerate(images, start=1):
        filename = export_filename(save_as, channel, well, tile=i)
        write_image(image, filename, compression)
        filenames.append(filename)
    logger.info("Images Saved!")
    return filenames


def to_display(image: np.ndarray) -> Image.Image:
    """Stretch an image between its minimum and maximum to 8-bit."""
    data = np.asarray(image, dtype=np.float64)
    low = data.min() if data.size else 0.0
    high = data.max() if data.size else 0.0
    if high > low:
        data = (data - low) / (high - low) * 255.0
    else:
        data = np.zeros_like(data)
    return Image.fromarray(data.astype(np.uint8))


def display_image(image: np.ndarray):
    logger.info("Showing Image")
    to_display(image).show()

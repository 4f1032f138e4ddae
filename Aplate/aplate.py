import os
import re
from dataclasses import replace

from Aplate.crx.crx_metadata import IMAGES_FILE_NAME
from Aplate.crx.crx_overlay import compose_plate, overlay_channels, plate_well_names
from Aplate.crx.crx_errors import CrxError
from Aplate.crx.crx_reader import ALL_TILES, CrxReader, ReadError, ReadRequest


def _plate_key(well):
	# 'a01' and 'A1' name the same well
	return re.sub(r'(?<=[A-Z])0+(?=\d)', '', well.upper())


class Plate(object):
	def __init__(self, filepath, info=None, timezone=None):
		self.filepath = filepath
		self.format = os.path.splitext(os.path.basename(filepath))[-1]

		if not os.path.isfile(filepath):
			raise FileNotFoundError("Experiment file not found => %s" % filepath)

		# CellReporterXpress: experiment.db catalog with images-0.db next to it
		images_file = os.path.join(os.path.dirname(os.path.abspath(filepath)), IMAGES_FILE_NAME)
		if self.format not in ['.db', '.DB'] or not os.path.isfile(images_file):
			raise Exception("UnsupportedFormat or ReadingFailed => %s" % filepath)

		if timezone:
			self._reader = CrxReader(filepath, info=info, timezone=timezone)
		else:
			self._reader = CrxReader(filepath, info=info)

	def __enter__(self):
		return self

	def __exit__(self, exc_type, exc_value, exc_tb):
		self.close()
		return False

	@property
	def reader(self):
		return self._reader

	@property
	def info(self):
		return self._reader.info

	@property
	def wells(self):
		return self.info.wells

	@property
	def well_info(self):
		return self.info.well_info

	@property
	def channel_count(self):
		return self.info.well_info.channel_count

	@property
	def tile_count(self):
		return self.info.well_info.tile_count

	def read(self, request):
		"""
		serve a ReadRequest
		:param request: (ReadRequest) – what to read, save and show
		:return: ReadResult, ReadError on failure
		"""
		if request.info is None:
			try:
				request = replace(request, info=self.info)
			except CrxError as e:
				return ReadError(e.kind, e.message)
		return self._reader.read(request)

	def read_well(self, well, channel=1, level=0, **kwargs):
		"""
		return full well image
		:param well:  (str) – well name, e.g. 'B02'
		:param channel:  (int) – 1-based channel number
		:param level:  (int) – pyramid level, 0 is full resolution
		:return: numpy uint16 array (height, width)
		"""
		return self.read(ReadRequest(channel=channel, well=well, level=level, **kwargs)).unwrap()

	def read_tile(self, well, tile, channel=1, **kwargs):
		"""
		return one full resolution tile
		:param well:  (str) – well name
		:param tile:  (int) – 1-based tile number, row by row from the top-left
		:param channel:  (int) – 1-based channel number
		:return: numpy uint16 array (tile height, tile width)
		"""
		return self.read(ReadRequest(channel=channel, well=well, tile=tile, **kwargs)).unwrap()

	def read_all_tiles(self, well, channel=1, **kwargs):
		"""
		return all tiles of a well
		:return: list of numpy uint16 arrays in tile number order
		"""
		return self.read(ReadRequest(channel=channel, well=well, tile=ALL_TILES, **kwargs)).unwrap()

	def read_overlay(self, well, level=0):
		"""
		return all channels of a well added by their LUT colors
		:return: numpy uint16 array (height, width, 3)
		"""
		images = [self.read_well(well, channel=c, level=level) for c in range(1, self.channel_count + 1)]
		return overlay_channels(images, self.well_info.lut_names)

	def read_plate(self, channel=1, level=5):
		"""
		return a montage of all wells of the plate at a pyramid level
		:return: numpy uint16 array, wells without images stay black
		"""
		names = plate_well_names(self.info.plate_well_count)
		imaged = dict((_plate_key(w), w) for w in self.wells)
		well_shape = self.read_well(self.wells[0], channel=1, level=level).shape

		well_images = {}
		for r, row in enumerate(names):
			for c, name in enumerate(row):
				well = imaged.get(_plate_key(name))
				if well is not None:
					well_images[(r, c)] = self.read_well(well, channel=channel, level=level)
		return compose_plate(well_images, self.info.plate_well_count, well_shape)

	def well_slide(self, well, channel=1):
		"""
		return an OpenSlide compatible view of one well
		:return: CrxWellSlide
		"""
		from Aplate.crx.crx_slide import CrxWellSlide
		return CrxWellSlide(self.filepath, well, channel=channel, info=self.info)

	def close(self):
		# Connections and file handles only live for one read
		pass


if __name__ == '__main__':
	filepath = 'path/to/experiment.db'
	plate = Plate(filepath)
	print("Name : ", plate.info.name)
	print("Wells : ", plate.wells)
	print("Tiles : ", plate.tile_count)
	print("Channels : ", plate.well_info.lut_names)
	im = plate.read_well(plate.wells[0], level=3)
	print(im.shape, im.dtype)

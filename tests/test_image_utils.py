import unittest
import numpy as np
from pgsdecode import ycbcr_to_rgb, palette_to_rgba, PDSSegment, PDSEntry, PDSColor

class TestImageUtils(unittest.TestCase):

	def test_ycbcr_to_rgb_valid_values(self):
		for y in range(0, 256, 5):
			for cb in range(0, 256, 5):
				for cr in range(0, 256, 5):
					np.array([ycbcr_to_rgb(y, cb, cr)], dtype=np.uint8)

	def test_ycbcr_to_rgb_grey(self):
		self.assertEqual((0, 0, 0), ycbcr_to_rgb(0, 128, 128))
		self.assertEqual((255, 255, 255), ycbcr_to_rgb(255, 128, 128))

	def test_palette_to_rgba(self):
		pds = PDSSegment(0, 0, (
			PDSEntry(1, PDSColor(255, 128, 128, 200)),
			PDSEntry(7, PDSColor(0, 128, 128, 255)),
		))
		palette = palette_to_rgba(pds)
		self.assertEqual((256, 4), palette.shape)
		self.assertEqual(np.uint8, palette.dtype)
		self.assertEqual([255, 255, 255, 200], palette[1].tolist())
		self.assertEqual([0, 0, 0, 255], palette[7].tolist())
		# undefined entries stay transparent
		self.assertEqual([0, 0, 0, 0], palette[0].tolist())
		self.assertEqual([0, 0, 0, 0], palette[255].tolist())

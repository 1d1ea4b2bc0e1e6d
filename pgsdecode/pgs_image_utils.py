import numpy as np
import pgsdecode

def palette_to_rgba(pds: 'pgsdecode.PDSSegment') -> np.ndarray:
	"""256 x 4 RGBA lookup table, entries the palette doesn't define stay fully transparent."""
	# pre-populate from 0 to 255
	rgba_palette = np.zeros((256, 4), dtype=np.uint8)
	# set values at the right indexs in case they are mixed up or something
	for entry in pds.entries:
		color = entry.color
		rgba_palette[entry.id] = np.array((*ycbcr_to_rgb(color.y, color.cb, color.cr), color.a), dtype=np.uint8)
	return rgba_palette

def ycbcr_to_rgb(y, cb, cr) -> tuple[int, int, int]:
	r = y                         + 1.402    * (cr - 128)
	g = y - 0.344136 * (cb - 128) - 0.714136 * (cr - 128)
	b = y + 1.772    * (cb - 128)
	r = int(max(0, min(0xff, r)))
	g = int(max(0, min(0xff, g)))
	b = int(max(0, min(0xff, b)))
	return (r, g, b)

import pgsdecode
import logging
import math
import typing
from dataclasses import dataclass
from enum import IntEnum

# PGS format information:
# Scorpius's blog
# https://blog.thescorpius.com/index.php/2017/07/15/presentation-graphic-stream-sup-files-bluray-subtitle-format/
# FFmpeg's source code
# https://git.ffmpeg.org/gitweb/ffmpeg.git/blob/1eafbf820312d45b31907e16877ae780022598c4:/libavcodec/pgssubdec.c


PGS_MAGIC_VALUE = b'PG'
"""Denotes the start of any PGS Segment"""
PGS_MAGIC_LENGTH = len(PGS_MAGIC_VALUE)
PGS_HEADER_LAYOUT = 'iiBh'
"""PTS - DTS - TYPE - SEG_LEN, follows the magic value"""
PGS_HEADER_LENGTH = PGS_MAGIC_LENGTH + pgsdecode.PGSReader.calcsize(PGS_HEADER_LAYOUT)
PGS_CLOCK_RATE = 90_000
"""PTS and DTS are expressed in ticks of a 90kHz clock"""



PCS_HEADER_LAYOUT = 'HHBHBBBB'
"""W - H - FPS - NUM - STATE - PALETTE-UPDATE-FLAG - PALETTE_ID - PCS_OBJ_COUNT"""
PCS_OBJECT_LAYOUT = 'HBBHH'
"""OBJ_ID - WINDOW_ID - CROP_FLAG - X - Y"""
PCS_CROP_LAYOUT = 'HHHH'
"""X - Y - W - H"""
PCS_CROPPED_FLAG = 0x40
PCS_PALETTE_UPDATE_FLAG = 0x80



WDS_HEADER_LAYOUT = 'B'
"""WINDOW_COUNT"""
WDS_WINDOW_LAYOUT = 'BHHHH'
"""WINDOW_ID - X - Y - W - H"""



PDS_HEADER_LAYOUT = 'BB'
"""PDS_ID - PDS_VER"""
PDS_HEADER_LENGTH = pgsdecode.PGSReader.calcsize(PDS_HEADER_LAYOUT)
PDS_ENTRY_LAYOUT = 'BBBBB'
"""ENTRY_ID - Y - CR - CB - ALPHA"""
PDS_ENTRY_LENGTH = pgsdecode.PGSReader.calcsize(PDS_ENTRY_LAYOUT)



ODS_HEADER_LAYOUT = 'HBB'
"""ODS_ID - ODS_VER - SEQ_POS_FLAG"""
ODS_SIZE_LAYOUT = 'HH'
"""W - H, counted in the 3 byte DATA_LEN that precedes them"""
ODS_SIZE_LENGTH = pgsdecode.PGSReader.calcsize(ODS_SIZE_LAYOUT)



class PGSSegmentType(IntEnum):
	PALETTE           = 0x14
	OBJECT_DATA       = 0x15
	COMPOSITION       = 0x16
	WINDOW_DEFINITION = 0x17
	END               = 0x80

# 0x00 - Normal, previously defined objects and palettes are still valid
# 0x40 - Acquisition point, previous objects and palettes can be released
# 0x80 - Epoch start, previous objects and palettes can be released
# any other value is treated as an epoch start
class PCSState(IntEnum):
	NORMAL            = 0x00
	ACQUISITION_POINT = 0x40
	EPOCH_START       = 0x80

	@staticmethod
	def from_flag(state_flag: int) -> 'PCSState':
		match state_flag:
			case 0x00:
				return PCSState.NORMAL
			case 0x40:
				return PCSState.ACQUISITION_POINT
			case 0x80:
				return PCSState.EPOCH_START
			case _:
				logging.warning(f'unknown composition state 0x{state_flag:02x}, treating it as an epoch start')
				return PCSState.EPOCH_START

class ODSPositionFlag(IntEnum):
	LAST           = 0b01_000000
	FIRST          = 0b10_000000
	FIRST_AND_LAST = 0b11_000000

	@staticmethod
	def from_flag(position_flag: int) -> 'ODSPositionFlag':
		match position_flag:
			case 0x40:
				return ODSPositionFlag.LAST
			case 0x80:
				return ODSPositionFlag.FIRST
			case 0xc0:
				return ODSPositionFlag.FIRST_AND_LAST
			case _:
				logging.warning(f'unknown object sequence flag 0x{position_flag:02x}, treating it as first and last')
				return ODSPositionFlag.FIRST_AND_LAST



@dataclass(frozen=True)
class PCSObjectCrop:
	x: int
	"""2 bytes: X offset from the top left pixel of the cropped object in the screen."""
	y: int
	"""2 bytes: Y offset from the top left pixel of the cropped object in the screen."""
	width: int
	"""2 bytes: Width of the cropped object in the screen."""
	height: int
	"""2 bytes: Height of the cropped object in the screen."""

	@staticmethod
	def read(reader: pgsdecode.PGSReader) -> 'PCSObjectCrop':
		return PCSObjectCrop(*reader.unpack(PCS_CROP_LAYOUT))

@dataclass(frozen=True)
class PCSObject:
	object_id: int
	"""2 bytes: ID of the ODS segment that defines the image to be shown"""
	window_id: int
	"""1 byte: Id of the WDS window to which the image is allocated. Up to two images may be assigned to one window."""
	x: int
	"""2 bytes: X offset from the top left pixel of the image on the screen."""
	y: int
	"""2 bytes: Y offset from the top left pixel of the image on the screen."""
	crop: PCSObjectCrop | None = None
	"""8 bytes: only present when the cropped flag byte is 0x40"""

	@property
	def is_cropped(self) -> bool:
		return self.crop is not None

	@staticmethod
	def read(reader: pgsdecode.PGSReader) -> 'PCSObject':
		(object_id, window_id, crop_flag, x, y) = reader.unpack(PCS_OBJECT_LAYOUT)
		# the crop rectangle only exists on the wire when requested
		crop: PCSObjectCrop | None = None
		if crop_flag == PCS_CROPPED_FLAG:
			crop = PCSObjectCrop.read(reader)
		return PCSObject(object_id, window_id, x, y, crop)

@dataclass(frozen=True)
class PCSSegment:
	width: int
	"""2 bytes: Video width in pixels (ex. 0x780 = 1920)"""
	height: int
	"""2 bytes: Video height in pixels (ex. 0x438 = 1080)"""
	framerate: int
	"""1 byte: Frame rate code, always 0x10 in practice."""
	number: int
	"""2 bytes: Number of this specific composition. It is incremented by one every time a graphics update occurs."""
	state: PCSState
	"""1 byte: Type of this composition. 0x00: Normal | 0x40: Acquisition Point | 0x80: Epoch Start"""
	is_palette_update: bool
	"""1 byte: Indicates if this PCS describes a Palette only Display Update. 0x00: False | 0x80: True"""
	palette_id: int
	"""1 byte: ID of the palette to be used in the Palette only Display Update."""
	objects: tuple[PCSObject, ...] = ()

	@staticmethod
	def read(reader: pgsdecode.PGSReader, size: int) -> 'PCSSegment':
		(width, height, framerate, number, state_flag, palette_update_flag, palette_id, object_count) = reader.unpack(PCS_HEADER_LAYOUT)

		objects = tuple(PCSObject.read(reader) for _ in range(object_count))

		return PCSSegment(
			width,
			height,
			framerate,
			number,
			PCSState.from_flag(state_flag),
			palette_update_flag == PCS_PALETTE_UPDATE_FLAG,
			palette_id,
			objects
		)



@dataclass(frozen=True)
class WDSWindow:
	id: int
	"""1 byte: ID of this window"""
	x: int
	"""2 bytes: X offset from the top left pixel of the window in the screen."""
	y: int
	"""2 bytes: Y offset from the top left pixel of the window in the screen."""
	width: int
	"""2 bytes: Width of the window."""
	height: int
	"""2 bytes: Height of the window."""

	@staticmethod
	def read(reader: pgsdecode.PGSReader) -> 'WDSWindow':
		return WDSWindow(*reader.unpack(WDS_WINDOW_LAYOUT))

@dataclass(frozen=True)
class WDSSegment:
	windows: tuple[WDSWindow, ...] = ()

	@staticmethod
	def read(reader: pgsdecode.PGSReader, size: int) -> 'WDSSegment':
		(window_count,) = reader.unpack(WDS_HEADER_LAYOUT)
		return WDSSegment(tuple(WDSWindow.read(reader) for _ in range(window_count)))



@dataclass(frozen=True)
class PDSColor:
	"""Y'CrCb color with alpha, not RGB. See `pgs_image_utils` for conversion."""
	y: int
	"""1 byte: Luminance."""
	cr: int
	"""1 byte: Color Difference Red."""
	cb: int
	"""1 byte: Color Difference Blue."""
	a: int
	"""1 byte: Transparency."""

@dataclass(frozen=True)
class PDSEntry:
	id: int
	"""1 byte: Entry number of the palette."""
	color: PDSColor

	@staticmethod
	def read(reader: pgsdecode.PGSReader) -> 'PDSEntry':
		(id, y, cr, cb, a) = reader.unpack(PDS_ENTRY_LAYOUT)
		return PDSEntry(id, PDSColor(y, cr, cb, a))

@dataclass(frozen=True)
class PDSSegment:
	id: int
	"""1 byte: ID of the palette."""
	version: int
	"""1 byte: Version of this palette within the Epoch."""
	entries: tuple[PDSEntry, ...] = ()

	@staticmethod
	def read(reader: pgsdecode.PGSReader, size: int) -> 'PDSSegment':
		segment_start_pos = reader.tell()
		# the entry count is only known through the segment length
		(entry_count, leftover) = divmod(size - PDS_HEADER_LENGTH, PDS_ENTRY_LENGTH)
		if entry_count < 0 or leftover != 0:
			raise pgsdecode.FormatError(f'invalid PDS segment length {size}', segment_start_pos)

		(id, version) = reader.unpack(PDS_HEADER_LAYOUT)
		entries = tuple(PDSEntry.read(reader) for _ in range(entry_count))
		return PDSSegment(id, version, entries)



@dataclass(frozen=True)
class ODSSegment:
	id: int
	"""2 bytes: ID of this object."""
	version: int
	"""1 byte: Version of this object."""
	position_flag: ODSPositionFlag
	"""1 byte: Position of this fragment in the object's sequence.
	possible values:
	0x40: Last in sequence
	0x80: First in sequence
	anything else: First and last in sequence
	"""
	width: int
	"""2 bytes: Width of the image, 0 when the segment carries no data."""
	height: int
	"""2 bytes: Height of the image, 0 when the segment carries no data."""
	data: memoryview | None = None
	"""variable length: Still RLE encoded image data. The size is the 3 byte data length minus 4 (width + height)."""

	@staticmethod
	def read(reader: pgsdecode.PGSReader, size: int) -> 'ODSSegment':
		(id, version, position_flag) = reader.unpack(ODS_HEADER_LAYOUT)
		position_flag = ODSPositionFlag.from_flag(position_flag)

		# the 3 byte length counts the width and height fields that follow it
		data_length = reader.read_uint24() - ODS_SIZE_LENGTH
		if data_length <= 0:
			return ODSSegment(id, version, position_flag, 0, 0)

		(width, height) = reader.unpack(ODS_SIZE_LAYOUT)
		data = reader.read(data_length)
		return ODSSegment(id, version, position_flag, width, height, data)



PGS_SEGMENT_TYPE_RESOLVER: dict[int, typing.Callable[[pgsdecode.PGSReader, int], typing.Any]] = {
	PGSSegmentType.PALETTE: PDSSegment.read,
	PGSSegmentType.OBJECT_DATA: ODSSegment.read,
	PGSSegmentType.COMPOSITION: PCSSegment.read,
	PGSSegmentType.WINDOW_DEFINITION: WDSSegment.read,
}

PGSSegmentBody = PCSSegment | WDSSegment | PDSSegment | ODSSegment

def format_timestamp(ticks: int) -> str:
	"""Renders a 90kHz timestamp as mm:ss.fff"""
	sign = '-' if ticks < 0 else ''
	ticks = abs(ticks)
	mins = math.floor((ticks / PGS_CLOCK_RATE) / 60)
	secs = math.floor((ticks / PGS_CLOCK_RATE) % 60)
	ms = math.floor((ticks / (PGS_CLOCK_RATE // 1000)) % 1000)
	return f'{sign}{mins:02d}:{secs:02d}.{ms:03d}'

@dataclass(frozen=True)
class Packet:
	pts: int
	"""4 bytes: Presentation Timestamp"""
	dts: int
	"""4 bytes: Decoding Timestamp"""
	kind: PGSSegmentType
	body: PGSSegmentBody | None = None
	"""None for END segments and for segments of an unknown type."""

	@property
	def presentation_seconds(self) -> float:
		return self.pts / PGS_CLOCK_RATE

	@property
	def decode_seconds(self) -> float:
		return self.dts / PGS_CLOCK_RATE



class PGSDecoder:
	"""Pulls packets one at a time out of a PGS (.sup) byte buffer.

	A decoder can only be walked once, construct a new one over the same
	buffer to start over. Instances keep an unsynchronized cursor and must not
	be shared between threads.
	"""
	__reader: pgsdecode.PGSReader

	def __init__(self, buffer: bytes | bytearray | memoryview):
		reader = pgsdecode.PGSReader(buffer)
		if len(reader) < PGS_HEADER_LENGTH or bytes(reader.read(PGS_MAGIC_LENGTH)) != PGS_MAGIC_VALUE:
			raise pgsdecode.FormatError('empty or not a PGS stream')
		reader.seek(0)
		self.__reader = reader

	def __iter__(self) -> 'PGSDecoder':
		return self

	def __next__(self) -> Packet:
		packet = self.read_packet()
		if packet is None:
			raise StopIteration
		return packet

	def tell(self) -> int:
		return self.__reader.tell()

	def read_packet(self) -> Packet | None:
		"""Decodes the next segment, returns None once the whole buffer was consumed."""
		reader = self.__reader
		if not reader.can_read():
			return None

		packet_start = reader.tell()
		# a bad magic value means the previous segment size threw us off
		magic = bytes(reader.read(PGS_MAGIC_LENGTH))
		if magic != PGS_MAGIC_VALUE:
			raise pgsdecode.FormatError('corrupt segment boundary', packet_start)
		(pts, dts, segment_type, size) = reader.unpack(PGS_HEADER_LAYOUT)
		logging.debug(f'segment 0x{segment_type:02x} of {size} bytes @ 0x{packet_start:x}')

		if segment_type not in PGS_SEGMENT_TYPE_RESOLVER:
			# END segments and unknown segments carry no body we understand
			if size < 0:
				raise pgsdecode.FormatError(f'negative segment length {size}', packet_start)
			if segment_type != PGSSegmentType.END:
				logging.debug(f'skipping unknown segment type 0x{segment_type:02x} @ 0x{packet_start:x}')
			reader.skip(size)
			return Packet(pts, dts, PGSSegmentType.END)

		body = PGS_SEGMENT_TYPE_RESOLVER[segment_type](reader, size)
		return Packet(pts, dts, PGSSegmentType(segment_type), body)



def decode_all(buffer: bytes | bytearray | memoryview) -> list[Packet]:
	return list(PGSDecoder(buffer))

def group_display_sets(packets: typing.Iterable[Packet]) -> typing.Iterator[tuple[Packet, ...]]:
	"""
	Groups packets into display sets, each closed by an END packet.
	A trailing group without an END packet is still yielded.
	"""
	curr_display_set: list[Packet] = []
	for packet in packets:
		curr_display_set.append(packet)
		if packet.kind == PGSSegmentType.END:
			yield tuple(curr_display_set)
			curr_display_set = []
	if curr_display_set:
		yield tuple(curr_display_set)

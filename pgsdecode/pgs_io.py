import pgsdecode
import struct
import typing

class PGSReader:
	"""Big-endian reader over an immutable byte buffer with an explicit cursor.

	The buffer is wrapped in a memoryview so slices handed out by `read` share
	memory with the caller's buffer instead of copying it.
	"""
	__buffer: memoryview
	__length: int
	__offset: int

	def __init__(self, buffer: bytes | bytearray | memoryview):
		self.__buffer = memoryview(buffer).cast('B')
		self.__length = len(self.__buffer)
		self.__offset = 0

	def __len__(self) -> int:
		return self.__length

	def tell(self) -> int:
		return self.__offset

	def remaining(self) -> int:
		return self.__length - self.__offset

	def seek(self, offset: int) -> int:
		if offset < 0 or offset > self.__length:
			raise pgsdecode.TruncatedStreamError(self.__offset, offset - self.__offset, self.remaining())
		self.__offset = offset
		return self.__offset

	def skip(self, size: int) -> int:
		return self.seek(self.__offset + size)

	@staticmethod
	def calcsize(fmt: str) -> int:
		return struct.calcsize('>' + fmt)

	def can_read(self, size: int = 1) -> bool:
		return self.__offset + size <= self.__length

	def unpack(self, fmt: str) -> tuple[typing.Any, ...]:
		fmt = '>' + fmt
		# calculate the expected size and read the data
		size = struct.calcsize(fmt)
		buf = self.read(size)

		# return parsed data
		return struct.unpack(fmt, buf)

	def read_uint24(self) -> int:
		return int.from_bytes(self.read(3), byteorder='big', signed=False)

	def read(self, size: int) -> memoryview:
		# anything past the end of the buffer is a truncated stream, not a short read
		if size < 0 or not self.can_read(size):
			raise pgsdecode.TruncatedStreamError(self.__offset, size, self.remaining())

		data = self.__buffer[self.__offset:self.__offset + size]
		self.__offset += size
		return data

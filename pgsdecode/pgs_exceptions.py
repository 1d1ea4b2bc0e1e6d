class PGSDecoderException(Exception):
	"""Base class of every error raised while decoding a PGS stream."""


class FormatError(PGSDecoderException):
	reason: str
	"""Short description of what was wrong with the stream."""
	offset: int | None
	"""Offset in the buffer where the problem was found, when known."""

	def __init__(self, reason: str, offset: int | None = None):
		self.reason = reason
		self.offset = offset
		if offset is None:
			super().__init__(reason)
		else:
			super().__init__(f'{reason} @ 0x{offset:x}')


class TruncatedStreamError(PGSDecoderException):
	offset: int
	"""Cursor position when the read was attempted."""
	requested: int
	"""Amount of bytes the read needed."""
	available: int
	"""Amount of bytes left in the buffer."""

	def __init__(self, offset: int, requested: int, available: int):
		self.offset = offset
		self.requested = requested
		self.available = available
		super().__init__(f'tried to read {requested} bytes @ 0x{offset:x} but only {available} remain')

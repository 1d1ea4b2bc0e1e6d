from .pgs_exceptions import PGSDecoderException, FormatError, TruncatedStreamError
from .pgs_io import PGSReader

from .pgs_parser import PGS_MAGIC_VALUE, PGS_HEADER_LENGTH, PGS_CLOCK_RATE
from .pgs_parser import PGSSegmentType, Packet, format_timestamp
from .pgs_parser import PDSColor, PDSEntry, PDSSegment
from .pgs_parser import ODSPositionFlag, ODSSegment
from .pgs_parser import PCSState, PCSObjectCrop, PCSObject, PCSSegment
from .pgs_parser import WDSWindow, WDSSegment
from .pgs_parser import PGSDecoder, decode_all, group_display_sets

from .pgs_image_utils import ycbcr_to_rgb, palette_to_rgba

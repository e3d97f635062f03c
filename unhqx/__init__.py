"""Decoder for BinHex 4.0 (.hqx) Macintosh files"""

from .binhex4 import BinHex4Reader, Header, State, decode
from .errors import BinHexError, FormatError, TruncatedInputError, ProtocolViolationError, RunLengthWarning
from .rle import crc16

__version__ = '0.1'

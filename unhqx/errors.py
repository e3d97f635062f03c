# Everything that can go wrong while decoding a BinHex 4.0 stream


class BinHexError(Exception):
    pass


class FormatError(BinHexError):
    """The stream is not BinHex 4.0, or a checksum does not match"""


class TruncatedInputError(BinHexError, EOFError):
    """The input ended before a logical boundary"""


class ProtocolViolationError(BinHexError):
    """The caller asked for something the decoder cannot do in its current state"""

    def __init__(self, message, error=None):
        super().__init__(message)
        self.error = error


class RunLengthWarning(UserWarning):
    pass

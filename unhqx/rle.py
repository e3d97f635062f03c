"""Run-length expansion and CRC-16 for the 8-bit BinHex stream"""

from warnings import warn

from .errors import FormatError, TruncatedInputError, ProtocolViolationError, RunLengthWarning
from .hqx7 import Unpacker


RLE_MARKER = 0x90
CRC_POLY = 0x1021


def crc_update(crc, byte):
    # Peter Lewis' bitwise version: data bits go in at the bottom, MSB first
    for i in range(8):
        carry = crc & 0x8000
        crc = ((crc << 1) & 0xffff) | (byte >> 7)
        if carry:
            crc ^= CRC_POLY
        byte = (byte << 1) & 0xff
    return crc


def crc_finish(crc):
    # BinHex folds two zero bytes into the register before reading it out
    return crc_update(crc_update(crc, 0), 0)


def crc16(data, crc=0):
    """CRC of a whole section, in the form stored after it in the file"""
    for b in data:
        crc = crc_update(crc, b)
    return crc_finish(crc)


class RLEDecoder:
    """Expands 0x90 runs and keeps a running CRC over what it returns.

    0x90 followed by 0 is a literal 0x90. 0x90 followed by n repeats the
    byte before it so that it occurs n times in all.
    """

    def __init__(self, source, eight_bit=False, buffer_size=1024):
        if buffer_size < 1:
            raise ValueError('buffer_size must be positive')

        self._source = Unpacker(source, eight_bit=eight_bit, buffer_size=buffer_size)
        self._buffer_size = buffer_size

        self._buf = b''
        self._pos = 0
        self._source_done = False

        # pending run: _last still to be emitted _repeat more times
        self._last = None
        self._repeat = 0

        self._crc = 0
        self._signalled = False

    def _next(self):
        if self._pos >= len(self._buf):
            if self._source_done:
                return None
            self._buf = self._source.read(self._buffer_size) or b''
            self._pos = 0
            if not self._buf:
                self._source_done = True
                return None

        b = self._buf[self._pos]
        self._pos += 1
        return b

    def _expand(self, size):
        result = bytearray()
        while len(result) < size:
            if self._repeat:
                n = min(self._repeat, size - len(result))
                result.extend(bytes([self._last]) * n)
                self._repeat -= n
                continue

            b = self._next()
            if b is None:
                break

            if b != RLE_MARKER:
                result.append(b)
                self._last = b
                continue

            count = self._next()
            if count is None:
                raise TruncatedInputError('input ended just after a run-length marker')

            if count == 0:
                result.append(RLE_MARKER)
                self._last = RLE_MARKER
                continue

            if self._last is None:
                raise FormatError('run-length marker at the start of the stream, with nothing to repeat')

            if count == 1:
                warn('run-length count of 1 after 0x%02X, treating as 2' % self._last, RunLengthWarning)

            # one copy went out before the marker
            self._repeat = max(count - 1, 1)

        return result

    def read(self, size):
        if size < 1:
            raise ValueError('size must be positive')
        if self._signalled:
            raise ProtocolViolationError('read past the end of the run-length stream')

        result = self._expand(size)

        crc = self._crc
        for b in result:
            crc = crc_update(crc, b)
        self._crc = crc

        if not result:
            self._signalled = True
        return bytes(result)

    def reset_crc(self):
        self._crc = 0

    def get_crc(self):
        """The CRC of everything read since reset_crc(), as BinHex stores it

        Only meaningful at the end of a section. The register itself is
        left untouched.
        """
        return crc_finish(self._crc)

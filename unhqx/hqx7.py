"""The 7-bit stage of BinHex 4.0 ("hqx") decoding, modeled on the
a2b routine in Jack Jansen's C code.

Every printable character carries six bits, so four characters make
three bytes. The encoded body starts after the "(This file must be
converted with BinHex" line and a ':' and runs until the next ':'.
"""

import io

from .errors import FormatError, TruncatedInputError, ProtocolViolationError


ALPHABET = b"!\"#$%&'()*+,-012345689@ABCDEFGHIJKLMNPQRSTUVXYZ[`abcdefhijklmpqr"
BANNER = b'(This file must be converted with BinHex'
DELIMITER = ord(':')
WHITESPACE = b' \t\n\r\v\f'
EOL = b'\r\n'

_a2b_table = {c: i for i, c in enumerate(ALPHABET)}


def as_source(data_or_file):
    # Anything with a read method will do
    if isinstance(data_or_file, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(data_or_file))
    if not hasattr(data_or_file, 'read'):
        raise TypeError('expected bytes or a binary file object, not %s' % type(data_or_file).__name__)
    return data_or_file


def a2b(char):
    """Look up one printable character (an int), ignoring any parity bit"""
    try:
        return _a2b_table[char & 0x7f]
    except KeyError:
        raise FormatError('invalid character %r in BinHex data' % chr(char & 0x7f)) from None


class Unpacker:
    """Turns a printable BinHex file into the 8-bit stream it encodes.

    With eight_bit=True the source is taken to be unpacked already, and
    its bytes pass straight through (no banner, no ':' terminator).

    read() returns b'' once at the end of the stream. Reading again after
    that raises ProtocolViolationError.
    """

    def __init__(self, source, eight_bit=False, buffer_size=1024):
        if buffer_size < 1:
            raise ValueError('buffer_size must be positive')

        self._source = as_source(source)
        self.eight_bit = eight_bit
        self._buffer_size = buffer_size

        # raw read-ahead
        self._buf = b''
        self._pos = 0
        self._physical_eof = False

        # bits that have not made a whole byte yet
        self._leftchar = 0
        self._leftbits = 0

        self._started = eight_bit
        self._done = False
        self._signalled = False

    def _fill(self):
        if self._physical_eof:
            return False

        self._buf = self._source.read(self._buffer_size) or b''
        self._pos = 0

        if not self._buf:
            self._physical_eof = True
            return False
        return True

    def _raw_byte(self):
        if self._pos >= len(self._buf) and not self._fill():
            return None

        b = self._buf[self._pos]
        self._pos += 1
        return b

    def _line_start(self):
        # Consume one line, returning as much of its start as could be the banner
        head = bytearray()
        while True:
            b = self._raw_byte()
            if b is None:
                return bytes(head) if head else None
            if b in EOL:
                return bytes(head)
            if len(head) < len(BANNER):
                head.append(b)

    def _skip_banner(self):
        while True:
            head = self._line_start()
            if head is None:
                raise FormatError('no BinHex banner found (%r...)' % BANNER.decode('ascii'))
            if head == BANNER:
                break

        while True:
            b = self._raw_byte()
            if b is None:
                raise FormatError("no ':' after the BinHex banner")
            if b == DELIMITER:
                return
            if b not in WHITESPACE:
                raise FormatError("expected ':' after the BinHex banner, found %r" % chr(b))

    def _next_value(self):
        # Next 6-bit value, or None at the closing ':'
        while True:
            b = self._raw_byte()
            if b is None:
                raise TruncatedInputError("input ended before the closing ':'")
            b &= 0x7f # may have been used as a parity bit
            if b == DELIMITER:
                return None
            if b not in WHITESPACE:
                return a2b(b)

    def _unpack(self, size):
        result = bytearray()
        while len(result) < size and not self._done:
            value = self._next_value()
            if value is None:
                self._done = True # up to 6 leftover bits are discarded
                break

            self._leftchar = (self._leftchar << 6) | value
            self._leftbits += 6
            if self._leftbits >= 8:
                self._leftbits -= 8
                result.append(self._leftchar >> self._leftbits)
                self._leftchar &= (1 << self._leftbits) - 1

        return bytes(result)

    def _passthrough(self, size):
        result = bytearray()
        while len(result) < size:
            if self._pos >= len(self._buf) and not self._fill():
                break
            chunk = self._buf[self._pos:self._pos + size - len(result)]
            self._pos += len(chunk)
            result.extend(chunk)

        return bytes(result)

    def read(self, size):
        if size < 1:
            raise ValueError('size must be positive')
        if self._signalled:
            raise ProtocolViolationError('read past the end of the 8-bit stream')

        if not self._started:
            self._skip_banner()
            self._started = True

        if self.eight_bit:
            result = self._passthrough(size)
        else:
            result = self._unpack(size)

        if not result:
            self._signalled = True
        return result

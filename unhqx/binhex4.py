"""BinHex 4.0 framing: a header, then the data fork, then the resource
fork, each followed by its own CRC-16.

The stream can only be read front to back, so the forks have to be
consumed in file order. Any error kills the reader for good.
"""

import enum
import functools
import struct
from collections import namedtuple

from .errors import FormatError, TruncatedInputError, ProtocolViolationError
from .rle import RLEDecoder


# Follows the length-prefixed file name
HeaderTail = struct.Struct('>B 4s 4s H L L')

CRC = struct.Struct('>H')

FINDER_FLAGS = {
    0x8000: 'isAlias',
    0x4000: 'isInvisible',
    0x2000: 'hasBundle',
    0x1000: 'nameLocked',
    0x0800: 'isStationery',
    0x0400: 'hasCustomIcon',
    0x0100: 'hasBeenInited',
    0x0080: 'hasNoINITs',
    0x0040: 'isShared',
    0x0001: 'isOnDesk',
}

COLOR_MASK = 0x000e

CHUNK = 0x10000


class Header(namedtuple('Header', 'name version type creator flags data_length rsrc_length')):
    """The file's Finder info. name, type and creator are raw Mac OS Roman bytes."""

    __slots__ = ()

    def name_str(self):
        return self.name.decode('mac_roman')

    def type_str(self):
        return self.type.decode('mac_roman')

    def creator_str(self):
        return self.creator.decode('mac_roman')

    def flag_names(self):
        names = [v for k, v in FINDER_FLAGS.items() if self.flags & k]
        color = (self.flags & COLOR_MASK) >> 1
        if color:
            names.append('color=%d' % color)
        return names

    def __str__(self):
        return '\n'.join([
            'name = %s' % self.name_str(),
            'version = %d' % self.version,
            'type = %s' % self.type_str(),
            'creator = %s' % self.creator_str(),
            ' '.join(['flags = 0x%04X' % self.flags] + self.flag_names()),
            'data_length = %d' % self.data_length,
            'rsrc_length = %d' % self.rsrc_length,
        ])


class State(enum.Enum):
    BEFORE_HEADER = 'header'
    DATA_FORK = 'data fork'
    RSRC_FORK = 'resource fork'
    ERROR = 'error'


# Forks go forward only. ERROR can be entered from anywhere and never left.
TRANSITIONS = {
    State.BEFORE_HEADER: {State.DATA_FORK, State.ERROR},
    State.DATA_FORK: {State.RSRC_FORK, State.ERROR},
    State.RSRC_FORK: {State.ERROR},
    State.ERROR: set(),
}


class ForkCursor:
    __slots__ = ('remaining', 'crc_checked', 'signalled')

    def __init__(self, length):
        self.remaining = length
        self.crc_checked = False
        self.signalled = False # b'' was returned; reading again is an error


def _fatal(method):
    # Every failure is terminal, and nothing works afterwards
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self.state is State.ERROR:
            raise ProtocolViolationError('BinHex reader has already failed: %s' % self.error, self.error) from self.error

        try:
            return method(self, *args, **kwargs)
        except Exception as e:
            self.error = e
            self._switch(State.ERROR)
            raise

    return wrapper


class BinHex4Reader:
    """Reads the header and forks out of a BinHex 4.0 file.

    source is a binary file object or bytes. By default it is expected to
    be the usual printable (7-bit) form; pass eight_bit=True if it has
    already been unpacked to 8 bits.

    read() works on the current fork. It returns b'' exactly once at the
    end of the fork, after the fork's CRC has been checked.
    """

    def __init__(self, source, eight_bit=False, buffer_size=1024):
        self._stream = RLEDecoder(source, eight_bit=eight_bit, buffer_size=buffer_size)
        self.state = State.BEFORE_HEADER
        self.error = None
        self._header = None
        self._cursor = None

    def _switch(self, new_state):
        if new_state not in TRANSITIONS[self.state]:
            raise ProtocolViolationError('cannot go from the %s to the %s: forks must be read in order'
                % (self.state.value, new_state.value))

        if new_state is State.DATA_FORK:
            self._enter_fork(self._header.data_length)
        elif new_state is State.RSRC_FORK:
            self._enter_fork(self._header.rsrc_length)

        self.state = new_state

    def _enter_fork(self, length):
        self._stream.reset_crc()
        self._cursor = ForkCursor(length)

    def _read_exact(self, n, meaning):
        data = bytearray()
        while len(data) < n:
            chunk = self._stream.read(n - len(data))
            if not chunk:
                raise TruncatedInputError('input ended in the %s' % meaning)
            data.extend(chunk)
        return bytes(data)

    def _check_crc(self, meaning):
        calculated = self._stream.get_crc()
        stored, = CRC.unpack(self._read_exact(CRC.size, meaning + ' CRC'))
        if calculated != stored:
            raise FormatError('bad %s CRC (calculated 0x%04X, file has 0x%04X)' % (meaning, calculated, stored))

    def _read_header(self):
        self._stream.reset_crc()

        name_len, = self._read_exact(1, 'header')
        name = self._read_exact(name_len, 'header')
        tail = HeaderTail.unpack(self._read_exact(HeaderTail.size, 'header'))

        self._check_crc('header')

        self._header = Header(name, *tail)
        self._switch(State.DATA_FORK)

    def _finish_fork(self):
        if not self._cursor.crc_checked:
            self._cursor.crc_checked = True
            self._check_crc(self.state.value)

    def _read_fork(self, size):
        cursor = self._cursor

        want = min(size, cursor.remaining)
        data = self._stream.read(want)
        if len(data) < want:
            raise TruncatedInputError('input ended %d bytes before the end of the %s'
                % (cursor.remaining - len(data), self.state.value))

        cursor.remaining -= len(data)
        if cursor.remaining == 0:
            self._finish_fork()

        return data

    @_fatal
    def get_header(self):
        if self.state is State.BEFORE_HEADER:
            self._read_header()
        return self._header

    @_fatal
    def use_data_fork(self):
        if self.state is State.BEFORE_HEADER:
            self._read_header()
        elif self.state is not State.DATA_FORK:
            self._switch(State.DATA_FORK)

    @_fatal
    def use_resource_fork(self):
        if self.state is State.BEFORE_HEADER:
            self._read_header()

        if self.state is State.DATA_FORK:
            # skip what is left, through the CRC check
            while self._cursor.remaining:
                self._read_fork(CHUNK)
            self._finish_fork()
            self._switch(State.RSRC_FORK)

    @_fatal
    def read(self, size=-1):
        """Read up to size bytes of the current fork (all of it if size is
        negative or None). b'' means the end of the fork."""

        if self.state is State.BEFORE_HEADER:
            raise ProtocolViolationError('no fork selected: call get_header() or use_data_fork() first')

        cursor = self._cursor
        if cursor.signalled:
            raise ProtocolViolationError('read past the end of the %s' % self.state.value)

        if cursor.remaining == 0:
            self._finish_fork()
            cursor.signalled = True
            return b''

        if size is None or size < 0:
            size = cursor.remaining
        elif size == 0:
            raise ValueError('size must not be zero')

        return self._read_fork(size)

    def read_all(self):
        """The rest of the current fork, up to and including its end"""
        parts = []
        while True:
            chunk = self.read(CHUNK)
            if not chunk:
                return b''.join(parts)
            parts.append(chunk)


def decode(source, eight_bit=False):
    """Decode a whole file, returning (header, data_fork, rsrc_fork)"""
    reader = BinHex4Reader(source, eight_bit=eight_bit)
    header = reader.get_header()
    data = reader.read_all()
    reader.use_resource_fork()
    rsrc = reader.read_all()
    return header, data, rsrc

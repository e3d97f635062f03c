import io

import pytest

from unhqx.hqx7 import Unpacker, ALPHABET, BANNER, WHITESPACE, a2b
from unhqx.errors import FormatError, TruncatedInputError, ProtocolViolationError

from hqxmaker import b2a


def wrap(text, newline=b'\n'):
    return BANNER + b' 4.0)' + newline + b':' + text + b':' + newline


def unpack_all(data, size=4096, **kwargs):
    u = Unpacker(data, **kwargs)
    parts = []
    while True:
        chunk = u.read(size)
        if not chunk:
            return b''.join(parts)
        parts.append(chunk)


def test_alphabet_values():
    assert len(ALPHABET) == 64
    assert sorted(a2b(c) for c in ALPHABET) == list(range(64))
    for i, c in enumerate(ALPHABET):
        assert a2b(c) == i


def test_alphabet_ignores_parity():
    for i, c in enumerate(ALPHABET):
        assert a2b(c | 0x80) == i


def test_invalid_characters():
    for c in range(128):
        if c in ALPHABET:
            continue
        with pytest.raises(FormatError):
            a2b(c)


def test_invalid_character_in_stream():
    # no 'v' in the alphabet
    with pytest.raises(FormatError):
        unpack_all(wrap(b2a(b'hello') + b'v'))


def test_simple():
    assert unpack_all(wrap(b2a(b'hello, world'))) == b'hello, world'


def test_all_byte_values():
    data = bytes(range(256))
    assert unpack_all(wrap(b2a(data))) == data


def test_crlf_and_preamble():
    text = b2a(b'Macintosh')
    data = b'From: someone\r\nSubject: a file\r\n\r\n' + BANNER + b' 4.0)\r\n:' + text[:5] + b'\r\n' + text[5:] + b':\r\n'
    assert unpack_all(data) == b'Macintosh'


def test_blank_lines_before_banner():
    data = b'\n\n\r\n' + wrap(b2a(b'abc'))
    assert unpack_all(data) == b'abc'


def test_whitespace_before_colon():
    data = BANNER + b' 4.0)\n\n  \t\n:' + b2a(b'abc') + b':'
    assert unpack_all(data) == b'abc'


def test_whitespace_inside_body():
    text = b2a(b'some longer text to split up')
    spaced = b' \t\r\n'.join(text[i:i+3] for i in range(0, len(text), 3))
    assert unpack_all(wrap(spaced)) == b'some longer text to split up'


def test_parity_bits_in_body():
    text = bytes(c | 0x80 for c in b2a(b'parity'))
    assert unpack_all(wrap(text)) == b'parity'


def test_no_banner():
    with pytest.raises(FormatError):
        unpack_all(b':' + b2a(b'abc') + b':')


def test_banner_must_start_line():
    with pytest.raises(FormatError):
        unpack_all(b'xx' + wrap(b2a(b'abc')))


def test_banner_without_colon():
    with pytest.raises(FormatError):
        unpack_all(BANNER + b' 4.0)\n\n')


def test_junk_between_banner_and_colon():
    with pytest.raises(FormatError):
        unpack_all(BANNER + b' 4.0)\njunk\n:' + b2a(b'abc') + b':')


def test_missing_closing_colon():
    data = BANNER + b' 4.0)\n:' + b2a(b'abc')
    with pytest.raises(TruncatedInputError):
        unpack_all(data)


def test_byte_count():
    # n symbols carry floor(6n/8) bytes
    for n in range(20):
        assert len(unpack_all(wrap(b'!' * n))) == 6 * n // 8


def test_small_reads_and_buffers():
    data = bytes(range(256)) * 3
    encoded = wrap(b2a(data))
    assert unpack_all(encoded, size=1) == data
    assert unpack_all(encoded, size=7, buffer_size=1) == data
    assert unpack_all(io.BytesIO(encoded), size=100, buffer_size=13) == data


def test_end_signalled_once():
    u = Unpacker(wrap(b2a(b'xyz')))
    assert u.read(10) == b'xyz'
    assert u.read(10) == b''
    with pytest.raises(ProtocolViolationError):
        u.read(10)


def test_trailing_text_ignored():
    data = wrap(b2a(b'xyz')) + b'--- end of file ---\n'
    assert unpack_all(data) == b'xyz'


def test_eight_bit_passthrough():
    data = bytes(range(256)) + b':' + BANNER
    assert unpack_all(data, size=10, eight_bit=True) == data


def test_eight_bit_end():
    u = Unpacker(b'', eight_bit=True)
    assert u.read(1) == b''
    with pytest.raises(ProtocolViolationError):
        u.read(1)


def test_bad_arguments():
    with pytest.raises(TypeError):
        Unpacker('not bytes')
    with pytest.raises(ValueError):
        Unpacker(b'', buffer_size=0)
    with pytest.raises(ValueError):
        Unpacker(b'', eight_bit=True).read(0)


def test_whitespace_set():
    assert b':' not in WHITESPACE
    assert not set(WHITESPACE) & set(ALPHABET)

import struct
import zlib

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from texelkit.png import PNG_SIGNATURE, encode_png, write_png


def _chunks(png):
    pos = 8
    result = []
    while pos < len(png):
        (length,) = struct.unpack(">I", png[pos : pos + 4])
        tag = png[pos + 4 : pos + 8]
        payload = png[pos + 8 : pos + 8 + length]
        (crc,) = struct.unpack(">I", png[pos + 8 + length : pos + 12 + length])
        result.append((tag, payload, crc))
        pos += 12 + length
    return result


def _paeth(a, b, c):
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _decode(png, width, height, channels):
    """Decode the image data, reversing the PNG scanline filters."""
    raw = zlib.decompress(b"".join(p for t, p, _ in _chunks(png) if t == b"IDAT"))
    row_bytes = width * channels
    assert len(raw) == height * (row_bytes + 1)
    prior = bytearray(row_bytes)
    out = bytearray()
    for j in range(height):
        line = raw[j * (row_bytes + 1) : (j + 1) * (row_bytes + 1)]
        ftype, filt = line[0], line[1:]
        row = bytearray(row_bytes)
        for i in range(row_bytes):
            left = row[i - channels] if i >= channels else 0
            up = prior[i]
            ul = prior[i - channels] if i >= channels else 0
            pred = [0, left, up, (left + up) >> 1, _paeth(left, up, ul)][ftype]
            row[i] = (filt[i] + pred) & 0xFF
        out += row
        prior = row
    return bytes(out)


def test_signature_and_chunk_order():
    png = encode_png(bytes(range(12)), 2, 2, 3)
    assert png[:8] == PNG_SIGNATURE
    assert [t for t, _, _ in _chunks(png)] == [b"IHDR", b"IDAT", b"IEND"]


def test_chunk_crcs_are_valid():
    png = encode_png(bytes(range(48)), 4, 3, 4)
    for tag, payload, crc in _chunks(png):
        assert crc == zlib.crc32(tag + payload)


@pytest.mark.parametrize("channels,color_type", [(1, 0), (2, 4), (3, 2), (4, 6)])
def test_ihdr_fields(channels, color_type):
    png = encode_png(bytes(5 * 3 * channels), 5, 3, channels)
    tag, payload, _ = _chunks(png)[0]
    assert tag == b"IHDR"
    assert struct.unpack(">IIBBBBB", payload) == (5, 3, 8, color_type, 0, 0, 0)


def test_iend_is_empty():
    png = encode_png(bytes(4), 2, 2, 1)
    assert png[-12:] == b"\x00\x00\x00\x00IEND\xaeB`\x82"


def test_round_trip_gradient():
    width, height, channels = 7, 5, 3
    pixels = bytes((x * 31 + y * 17 + c * 5) & 0xFF
                   for y in range(height) for x in range(width) for c in range(channels))
    png = encode_png(pixels, width, height, channels)
    assert _decode(png, width, height, channels) == pixels


def test_constant_row_uses_sub_filter():
    png = encode_png(bytes([7, 7, 7, 7]), 4, 1, 1)
    raw = zlib.decompress(_chunks(png)[1][1])
    assert raw == bytes([1, 7, 0, 0, 0])


def test_stride_selects_sub_rectangle():
    width, height, channels, stride = 3, 4, 2, 10
    big = bytes((i * 13) & 0xFF for i in range(stride * height))
    packed = b"".join(big[j * stride : j * stride + width * channels] for j in range(height))
    assert encode_png(big, width, height, channels, stride) == encode_png(
        packed, width, height, channels
    )
    assert _decode(encode_png(big, width, height, channels, stride), width, height, channels) == packed


def test_zero_stride_means_packed():
    pixels = bytes(range(24))
    assert encode_png(pixels, 2, 3, 4, 0) == encode_png(pixels, 2, 3, 4)


@pytest.mark.parametrize("channels", [0, 5])
def test_bad_channel_count(channels):
    with pytest.raises(ValueError):
        encode_png(bytes(100), 2, 2, channels)


def test_buffer_too_small():
    with pytest.raises(ValueError):
        encode_png(bytes(11), 2, 2, 3)


def test_stride_too_short():
    with pytest.raises(ValueError):
        encode_png(bytes(100), 4, 2, 3, 5)


@pytest.mark.parametrize("width,height", [(0, 3), (3, 0)])
def test_empty_dimensions(width, height):
    with pytest.raises(ValueError):
        encode_png(bytes(10), width, height, 1)


def test_write_png_matches_encoding(tmp_path):
    pixels = bytes((i * 7) & 0xFF for i in range(6 * 2 * 4))
    target = tmp_path / "out.png"
    write_png(target, 6, 2, 4, pixels)
    assert target.read_bytes() == encode_png(pixels, 6, 2, 4)


@settings(max_examples=40, deadline=None)
@given(
    st.integers(1, 6),
    st.integers(1, 6),
    st.integers(1, 4),
    st.data(),
)
def test_round_trip_random(width, height, channels, data):
    size = width * height * channels
    pixels = data.draw(st.binary(min_size=size, max_size=size))
    png = encode_png(pixels, width, height, channels)
    assert _decode(png, width, height, channels) == pixels
"""PNG encoding of 8-bit images.

Each scanline is filtered with whichever of the five PNG filters gives
the smallest sum of absolute (signed) residuals.  The filtered data is
compressed with the package's own zlib encoder.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from pathlib import Path
from typing import Union

from texelkit.deflate import crc32, zlib_compress

__all__ = ["PNG_SIGNATURE", "encode_png", "write_png"]

PNG_SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))

# PNG colour type for 1 (grey), 2 (grey + alpha), 3 (RGB) and 4 (RGBA) channels.
_COLOR_TYPES = {1: 0, 2: 4, 3: 2, 4: 6}

_COMPRESSION_QUALITY = 8


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def _filter_row(row: bytes, prior: bytes, n: int, filter_type: int) -> bytes:
    """Apply one PNG filter to a scanline; ``prior`` is the previous scanline."""
    out = bytearray(len(row))
    for i, value in enumerate(row):
        left = row[i - n] if i >= n else 0
        up = prior[i]
        up_left = prior[i - n] if i >= n else 0
        if filter_type == 0:
            predicted = 0
        elif filter_type == 1:
            predicted = left
        elif filter_type == 2:
            predicted = up
        elif filter_type == 3:
            predicted = (left + up) >> 1
        else:
            predicted = _paeth(left, up, up_left)
        out[i] = (value - predicted) & 0xFF
    return bytes(out)


def _residual_cost(filtered: bytes) -> int:
    return sum(v if v < 128 else 256 - v for v in filtered)


def _best_filtered_row(row: bytes, prior: bytes, n: int) -> bytes:
    """Return the filter type byte followed by the cheapest filtered scanline."""
    candidates = [_filter_row(row, prior, n, t) for t in range(5)]
    best = min(range(5), key=lambda t: _residual_cost(candidates[t]))
    return bytes((best,)) + candidates[best]


def _chunk(tag: bytes, payload: bytes) -> bytes:
    body = tag + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", crc32(body))


def encode_png(
    pixels: Sequence[int],
    width: int,
    height: int,
    channels: int,
    stride_bytes: int = 0,
) -> bytes:
    """Encode an image as a complete PNG file.

    ``stride_bytes`` is the distance between the starts of consecutive
    rows in ``pixels``; 0 means the rows are packed (``width * channels``).
    """
    if channels not in _COLOR_TYPES:
        raise ValueError("PNG images need 1 to 4 channels")
    if width < 1 or height < 1:
        raise ValueError("PNG images need a positive width and height")
    row_bytes = width * channels
    if stride_bytes == 0:
        stride_bytes = row_bytes
    if stride_bytes < row_bytes:
        raise ValueError("stride is shorter than one row of pixels")
    needed = stride_bytes * (height - 1) + row_bytes
    if len(pixels) < needed:
        raise ValueError(f"image buffer holds {len(pixels)} bytes, {needed} are needed")

    data = bytes(pixels[:needed])
    prior = bytes(row_bytes)
    filtered = bytearray()
    for j in range(height):
        start = j * stride_bytes
        row = data[start : start + row_bytes]
        filtered += _best_filtered_row(row, prior, channels)
        prior = row

    header = struct.pack(">IIBBBBB", width, height, 8, _COLOR_TYPES[channels], 0, 0, 0)
    return b"".join(
        (
            PNG_SIGNATURE,
            _chunk(b"IHDR", header),
            _chunk(b"IDAT", zlib_compress(filtered, _COMPRESSION_QUALITY)),
            _chunk(b"IEND", b""),
        )
    )


def write_png(
    filename: Union[str, Path],
    width: int,
    height: int,
    channels: int,
    data: Sequence[int],
    stride_bytes: int = 0,
) -> None:
    """Encode an image as PNG and write it to ``filename``."""
    encoded = encode_png(data, width, height, channels, stride_bytes)
    with open(filename, "wb") as handle:
        handle.write(encoded)
"""Decoding of ETC1 compressed texture blocks.

An ETC1 block is 8 bytes describing 4x4 pixels.  Decoded pixels are
32-bit ``0xAARRGGBB`` integers; :func:`decode_image` stores them
little-endian, so each pixel occupies the bytes B, G, R, A in that order.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence

__all__ = ["INTENSITY_TABLES", "etc_rgba", "decode_block", "decode_image"]

BLOCK_SIZE = 8

# Modifier tables, ordered so that a pixel index (lsb | msb << 1) selects
# the modifier directly.
INTENSITY_TABLES: tuple[tuple[int, int, int, int], ...] = (
    (2, 8, -2, -8),
    (5, 17, -5, -17),
    (9, 29, -9, -29),
    (13, 42, -13, -42),
    (18, 60, -18, -60),
    (24, 80, -24, -80),
    (33, 106, -33, -106),
    (47, 183, -47, -183),
)

_COLOR3_DELTA = (0, 1, 2, 3, -4, -3, -2, -1)
_ROW = struct.Struct("<4I")


def etc_rgba(r: int, g: int, b: int, a: int) -> int:
    """Pack components into a ``0xAARRGGBB`` integer."""
    return (a << 24) | (r << 16) | (g << 8) | b


def _clamp(x: int) -> int:
    return 0 if x < 0 else 255 if x > 255 else x


def _color4(high: int, offset: int) -> int:
    value = (high >> (offset - 32)) & 0xF
    return value | (value << 4)


def _color53(high: int, offset3: int) -> tuple[int, int]:
    """Read a 5-bit base colour and its 3-bit delta, both expanded to 8 bits."""
    shift = offset3 - 32
    base = (high >> shift) & 0xF8
    base |= base >> 5
    second = ((base >> 3) + _COLOR3_DELTA[(high >> shift) & 0x7]) << 3
    second |= (second >> 5) & 0x7
    return base, second


def decode_block(block: Sequence[int]) -> tuple[int, ...]:
    """Decode one 8-byte ETC1 block into 16 pixels in row-major order."""
    if len(block) != BLOCK_SIZE:
        raise ValueError(f"an ETC1 block is {BLOCK_SIZE} bytes, got {len(block)}")
    high = int.from_bytes(bytes(block[:4]), "big")
    low = int.from_bytes(bytes(block[4:]), "big")

    if high & 0x2:
        red = _color53(high, 56)
        green = _color53(high, 48)
        blue = _color53(high, 40)
        bases = ((red[0], green[0], blue[0]), (red[1], green[1], blue[1]))
    else:
        bases = (
            (_color4(high, 60), _color4(high, 52), _color4(high, 44)),
            (_color4(high, 56), _color4(high, 48), _color4(high, 40)),
        )

    tables = (
        INTENSITY_TABLES[(high >> 5) & 0x7],
        INTENSITY_TABLES[(high >> 2) & 0x7],
    )
    palettes = [
        [
            etc_rgba(*(_clamp(modifier + c) for c in base), 255)
            for modifier in table
        ]
        for base, table in zip(bases, tables)
    ]

    flipped = bool(high & 0x1)
    pixels = []
    for row in range(4):
        for col in range(4):
            offset = col * 4 + row
            index = ((low >> offset) & 1) | (((low >> (offset + 16)) & 1) << 1)
            sub_block = (row >= 2) if flipped else (col >= 2)
            pixels.append(palettes[sub_block][index])
    return tuple(pixels)


def decode_image(data: Sequence[int], width: int, height: int) -> bytes:
    """Decode an ETC1 image whose width and height are multiples of four."""
    if width < 0 or height < 0 or width % 4 or height % 4:
        raise ValueError("ETC1 image dimensions must be non-negative multiples of 4")
    blocks_wide = width // 4
    blocks_high = height // 4
    needed = blocks_wide * blocks_high * BLOCK_SIZE
    if len(data) < needed:
        raise ValueError(f"ETC1 data holds {len(data)} bytes, {needed} are needed")

    row_bytes = width * 4
    out = bytearray(row_bytes * height)
    for by in range(blocks_high):
        for bx in range(blocks_wide):
            start = (by * blocks_wide + bx) * BLOCK_SIZE
            pixels = decode_block(data[start : start + BLOCK_SIZE])
            for row in range(4):
                pos = (by * 4 + row) * row_bytes + bx * 16
                out[pos : pos + 16] = _ROW.pack(*pixels[row * 4 : row * 4 + 4])
    return bytes(out)
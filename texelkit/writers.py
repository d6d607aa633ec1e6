"""Writers for uncompressed image formats: BMP, TGA and Radiance HDR.

Images are flat, row-major sequences with ``channels`` interleaved
components per pixel (1 = grey, 2 = grey + alpha, 3 = RGB, 4 = RGBA),
starting with the top-left pixel.  BMP and TGA take 8-bit components;
HDR takes linear floating-point components.
"""

from __future__ import annotations

import math
import struct
from collections.abc import Sequence
from pathlib import Path
from typing import Union

__all__ = [
    "encode_bmp",
    "write_bmp",
    "encode_tga",
    "write_tga",
    "linear_to_rgbe",
    "encode_hdr",
    "write_hdr",
]

PathLike = Union[str, Path]

# Pixels with alpha written to a format without it are blended onto this.
_BACKGROUND = (255, 0, 255)

_BMP_HEADER = struct.Struct("<2sIHHIIiiHHIIIIII")
_BMP_HEADER_SIZE = 14 + 40
_TGA_HEADER = struct.Struct("<BBBHHBHHHHBB")

_HDR_HEADER = (
    b"#?RADIANCE\n"
    b"# Written by texelkit\n"
    b"FORMAT=32-bit_rle_rgbe\n"
)
_HDR_EXPOSURE = b"EXPOSURE=          1.0000000000000\n\n"
_HDR_RLE_MIN_WIDTH = 8
_HDR_RLE_MAX_WIDTH = 32768
_HDR_MAX_DUMP = 128
_HDR_MAX_RUN = 127

_FLOAT32 = struct.Struct("<f")


def _check_image(
    width: int, height: int, channels: int, data: Sequence, what: str
) -> None:
    if width < 0 or height < 0:
        raise ValueError(f"{what} images need a non-negative width and height")
    if not 1 <= channels <= 4:
        raise ValueError(f"{what} images need 1 to 4 channels")
    needed = width * height * channels
    if len(data) < needed:
        raise ValueError(f"image buffer holds {len(data)} values, {needed} are needed")


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // b
    return -q if a < 0 else q


def _pixel_bytes(
    d: Sequence[int], channels: int, write_alpha: bool, expand_mono: bool
) -> bytes:
    """Encode one pixel in BGR order, optionally followed by its alpha."""
    if channels in (1, 2):
        body = bytes((d[0],) * 3) if expand_mono else bytes((d[0],))
    elif channels == 4 and not write_alpha:
        alpha = d[3]
        px = [
            (bg + _trunc_div((d[k] - bg) * alpha, 255)) & 0xFF
            for k, bg in enumerate(_BACKGROUND)
        ]
        body = bytes((px[2], px[1], px[0]))
    else:
        body = bytes((d[2], d[1], d[0]))
    if write_alpha:
        body += bytes((d[channels - 1],))
    return body


def _rows_bottom_up(data: bytes, width: int, height: int, channels: int):
    row_bytes = width * channels
    for j in reversed(range(height)):
        row = data[j * row_bytes : (j + 1) * row_bytes]
        yield [row[k * channels : (k + 1) * channels] for k in range(width)]


def encode_bmp(width: int, height: int, channels: int, data: Sequence[int]) -> bytes:
    """Encode an image as a 24-bit BMP file.

    Grey is expanded to RGB; alpha is blended onto a magenta background.
    """
    _check_image(width, height, channels, data, "BMP")
    pad = (-width * 3) & 3
    file_size = _BMP_HEADER_SIZE + (width * 3 + pad) * height
    out = bytearray(
        _BMP_HEADER.pack(
            b"BM", file_size, 0, 0, _BMP_HEADER_SIZE,
            40, width, height, 1, 24, 0, 0, 0, 0, 0, 0,
        )
    )
    pixels = bytes(data[: width * height * channels])
    padding = bytes(pad)
    for row in _rows_bottom_up(pixels, width, height, channels):
        for px in row:
            out += _pixel_bytes(px, channels, write_alpha=False, expand_mono=True)
        out += padding
    return bytes(out)


def write_bmp(
    filename: PathLike, width: int, height: int, channels: int, data: Sequence[int]
) -> None:
    """Encode an image as BMP and write it to ``filename``."""
    encoded = encode_bmp(width, height, channels, data)
    with open(filename, "wb") as handle:
        handle.write(encoded)


def _tga_rle_row(row: list[bytes], channels: int, has_alpha: bool) -> bytes:
    out = bytearray()
    count = len(row)
    i = 0
    while i < count:
        length = 1
        differs = True
        if i < count - 1:
            length += 1
            differs = row[i] != row[i + 1]
            if differs:
                prev = i
                for k in range(i + 2, count):
                    if length >= 128:
                        break
                    if row[prev] != row[k]:
                        prev += 1
                        length += 1
                    else:
                        length -= 1
                        break
            else:
                for k in range(i + 2, count):
                    if length >= 128 or row[i] != row[k]:
                        break
                    length += 1

        if differs:
            out.append((length - 1) & 0xFF)
            for px in row[i : i + length]:
                out += _pixel_bytes(px, channels, has_alpha, expand_mono=False)
        else:
            out.append((length - 129) & 0xFF)
            out += _pixel_bytes(row[i], channels, has_alpha, expand_mono=False)
        i += length
    return bytes(out)


def encode_tga(
    width: int, height: int, channels: int, data: Sequence[int], rle: bool = True
) -> bytes:
    """Encode an image as a TGA file, run-length encoded unless ``rle`` is false."""
    _check_image(width, height, channels, data, "TGA")
    has_alpha = channels in (2, 4)
    color_bytes = channels - 1 if has_alpha else channels
    image_type = 3 if color_bytes < 2 else 2
    if rle:
        image_type += 8
    out = bytearray(
        _TGA_HEADER.pack(
            0, 0, image_type, 0, 0, 0, 0, 0, width, height,
            (color_bytes + has_alpha) * 8, has_alpha * 8,
        )
    )
    pixels = bytes(data[: width * height * channels])
    for row in _rows_bottom_up(pixels, width, height, channels):
        if rle:
            out += _tga_rle_row(row, channels, has_alpha)
        else:
            for px in row:
                out += _pixel_bytes(px, channels, has_alpha, expand_mono=False)
    return bytes(out)


def write_tga(
    filename: PathLike,
    width: int,
    height: int,
    channels: int,
    data: Sequence[int],
    rle: bool = True,
) -> None:
    """Encode an image as TGA and write it to ``filename``."""
    encoded = encode_tga(width, height, channels, data, rle)
    with open(filename, "wb") as handle:
        handle.write(encoded)


def _f32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def linear_to_rgbe(linear: Sequence[float]) -> bytes:
    """Encode a linear RGB colour as four RGBE bytes (shared exponent last)."""
    r, g, b = (_f32(float(v)) for v in linear[:3])
    maxcomp = max(r, max(g, b))
    if maxcomp < 1e-32:
        return bytes(4)
    mantissa, exponent = math.frexp(maxcomp)
    normalize = _f32(_f32(_f32(mantissa) * 256.0) / maxcomp)

    def component(v: float) -> int:
        return min(max(int(_f32(v * normalize)), 0), 255)

    return bytes((component(r), component(g), component(b), (exponent + 128) & 0xFF))


def _rle_plane(plane: bytes) -> bytes:
    """Run-length encode one component plane of an HDR scanline."""
    out = bytearray()
    width = len(plane)
    x = 0
    while x < width:
        r = x
        while r + 2 < width:
            if plane[r] == plane[r + 1] == plane[r + 2]:
                break
            r += 1
        if r + 2 >= width:
            r = width
        while x < r:
            length = min(r - x, _HDR_MAX_DUMP)
            out.append(length)
            out += plane[x : x + length]
            x += length
        if r + 2 < width:
            while r < width and plane[r] == plane[x]:
                r += 1
            while x < r:
                length = min(r - x, _HDR_MAX_RUN)
                out.append(length + 128)
                out.append(plane[x])
                x += length
    return bytes(out)


def _hdr_scanline(row: Sequence[float], width: int, channels: int) -> bytes:
    pixels = []
    for x in range(width):
        base = x * channels
        if channels >= 3:
            linear = (row[base], row[base + 1], row[base + 2])
        else:
            linear = (row[base],) * 3
        pixels.append(linear_to_rgbe(linear))

    if width < _HDR_RLE_MIN_WIDTH or width >= _HDR_RLE_MAX_WIDTH:
        return b"".join(pixels)

    out = bytearray((2, 2, (width >> 8) & 0xFF, width & 0xFF))
    for c in range(4):
        out += _rle_plane(bytes(px[c] for px in pixels))
    return bytes(out)


def encode_hdr(width: int, height: int, channels: int, data: Sequence[float]) -> bytes:
    """Encode linear floating-point pixels as a Radiance RGBE (.hdr) file.

    Alpha is discarded and grey is replicated across red, green and blue.
    """
    if width <= 0 or height <= 0:
        raise ValueError("HDR images need a positive width and height")
    _check_image(width, height, channels, data, "HDR")
    out = bytearray(_HDR_HEADER)
    out += _HDR_EXPOSURE
    out += f"-Y {height} +X {width}\n".encode("ascii")
    row_len = width * channels
    for i in range(height):
        out += _hdr_scanline(data[i * row_len : (i + 1) * row_len], width, channels)
    return bytes(out)


def write_hdr(
    filename: PathLike, width: int, height: int, channels: int, data: Sequence[float]
) -> None:
    """Encode an image as Radiance HDR and write it to ``filename``."""
    encoded = encode_hdr(width, height, channels, data)
    with open(filename, "wb") as handle:
        handle.write(encoded)
"""DXT1 / DXT5 (S3TC) block compression and DDS file output.

Images are flat, row-major byte sequences with ``channels`` interleaved
8-bit components per pixel (1 = grey, 2 = grey + alpha, 3 = RGB,
4 = RGBA).  Compressed blocks cover 4x4 pixels; partial blocks at the
right and bottom edges are padded with the block's first pixel.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

__all__ = [
    "DDSHeader",
    "convert_bit_range",
    "rgb_to_565",
    "rgb_888_from_565",
    "compress_color_block",
    "compress_alpha_block",
    "convert_image_to_dxt1",
    "convert_image_to_dxt5",
    "encode_dds",
    "save_image_as_dds",
]

# DDSURFACEDESC2 flags
DDSD_CAPS = 0x00000001
DDSD_HEIGHT = 0x00000002
DDSD_WIDTH = 0x00000004
DDSD_PITCH = 0x00000008
DDSD_PIXELFORMAT = 0x00001000
DDSD_MIPMAPCOUNT = 0x00020000
DDSD_LINEARSIZE = 0x00080000
DDSD_DEPTH = 0x00800000

# Pixel format flags
DDPF_ALPHAPIXELS = 0x00000001
DDPF_FOURCC = 0x00000004
DDPF_RGB = 0x00000040
DDPF_LUMINANCE = 0x00020000

# DDSCAPS2 caps1
DDSCAPS_COMPLEX = 0x00000008
DDSCAPS_TEXTURE = 0x00001000
DDSCAPS_MIPMAP = 0x00400000

# DDSCAPS2 caps2
DDSCAPS2_CUBEMAP = 0x00000200
DDSCAPS2_CUBEMAP_POSITIVEX = 0x00000400
DDSCAPS2_CUBEMAP_NEGATIVEX = 0x00000800
DDSCAPS2_CUBEMAP_POSITIVEY = 0x00001000
DDSCAPS2_CUBEMAP_NEGATIVEY = 0x00002000
DDSCAPS2_CUBEMAP_POSITIVEZ = 0x00004000
DDSCAPS2_CUBEMAP_NEGATIVEZ = 0x00008000
DDSCAPS2_VOLUME = 0x00200000

DDS_MAGIC = int.from_bytes(b"DDS ", "little")
FOURCC_DXT1 = int.from_bytes(b"DXT1", "little")
FOURCC_DXT5 = int.from_bytes(b"DXT5", "little")

_HEADER_FORMAT = struct.Struct("<32I")

# Index orderings used by the block formats.
_SWIZZLE4 = (0, 2, 3, 1)
_SWIZZLE8 = (1, 7, 6, 5, 4, 3, 2, 0)


@dataclass
class DDSHeader:
    """The 128-byte header of a DirectDraw Surface file, magic included."""

    magic: int = DDS_MAGIC
    size: int = 124
    flags: int = 0
    height: int = 0
    width: int = 0
    pitch_or_linear_size: int = 0
    depth: int = 0
    mipmap_count: int = 0
    reserved1: tuple[int, ...] = field(default=(0,) * 11)
    pf_size: int = 32
    pf_flags: int = 0
    four_cc: int = 0
    rgb_bit_count: int = 0
    r_bit_mask: int = 0
    g_bit_mask: int = 0
    b_bit_mask: int = 0
    alpha_bit_mask: int = 0
    caps1: int = 0
    caps2: int = 0
    caps_ddsx: int = 0
    caps_reserved: int = 0
    reserved2: int = 0

    def pack(self) -> bytes:
        """Serialise the header as little-endian bytes."""
        if len(self.reserved1) != 11:
            raise ValueError("reserved1 must hold exactly 11 values")
        return _HEADER_FORMAT.pack(
            self.magic,
            self.size,
            self.flags,
            self.height,
            self.width,
            self.pitch_or_linear_size,
            self.depth,
            self.mipmap_count,
            *self.reserved1,
            self.pf_size,
            self.pf_flags,
            self.four_cc,
            self.rgb_bit_count,
            self.r_bit_mask,
            self.g_bit_mask,
            self.b_bit_mask,
            self.alpha_bit_mask,
            self.caps1,
            self.caps2,
            self.caps_ddsx,
            self.caps_reserved,
            self.reserved2,
        )


def convert_bit_range(c: int, from_bits: int, to_bits: int) -> int:
    """Rescale a value from ``from_bits`` to ``to_bits`` of precision, rounding."""
    b = (1 << (from_bits - 1)) + c * ((1 << to_bits) - 1)
    return (b + (b >> from_bits)) >> from_bits


def rgb_to_565(r: int, g: int, b: int) -> int:
    """Pack an 8-bit RGB colour into a 16-bit 5:6:5 value."""
    return (
        (convert_bit_range(r, 8, 5) << 11)
        | (convert_bit_range(g, 8, 6) << 5)
        | convert_bit_range(b, 8, 5)
    )


def rgb_888_from_565(c: int) -> tuple[int, int, int]:
    """Expand a 16-bit 5:6:5 colour to 8-bit RGB."""
    return (
        convert_bit_range((c >> 11) & 31, 5, 8),
        convert_bit_range((c >> 5) & 63, 6, 8),
        convert_bit_range(c & 31, 5, 8),
    )


def _block_rgb(channels: int, uncompressed: Sequence[int]) -> list[tuple[int, int, int]]:
    if channels not in (3, 4):
        raise ValueError("colour blocks need 3 or 4 channels")
    if len(uncompressed) < 16 * channels:
        raise ValueError(f"a 4x4 block needs {16 * channels} bytes")
    return [
        (uncompressed[k], uncompressed[k + 1], uncompressed[k + 2])
        for k in range(0, 16 * channels, channels)
    ]


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _color_line(pixels: list[tuple[int, int, int]]):
    """Return the mean colour and the principal axis of the block's colours."""
    sum_r = float(sum(p[0] for p in pixels))
    sum_g = float(sum(p[1] for p in pixels))
    sum_b = float(sum(p[2] for p in pixels))
    sum_rr = float(sum(p[0] * p[0] for p in pixels))
    sum_gg = float(sum(p[1] * p[1] for p in pixels))
    sum_bb = float(sum(p[2] * p[2] for p in pixels))
    sum_rg = float(sum(p[0] * p[1] for p in pixels))
    sum_rb = float(sum(p[0] * p[2] for p in pixels))
    sum_gb = float(sum(p[1] * p[2] for p in pixels))

    mean = (sum_r / 16.0, sum_g / 16.0, sum_b / 16.0)
    cov_rr = sum_rr - 16.0 * mean[0] * mean[0]
    cov_gg = sum_gg - 16.0 * mean[1] * mean[1]
    cov_bb = sum_bb - 16.0 * mean[2] * mean[2]
    cov_rg = sum_rg - 16.0 * mean[0] * mean[1]
    cov_rb = sum_rb - 16.0 * mean[0] * mean[2]
    cov_gb = sum_gb - 16.0 * mean[1] * mean[2]

    # Three steps of the power method; the start vector avoids the
    # degenerate all-ones case.
    vec = (1.0, 2.718281828, 3.141592654)
    for _ in range(3):
        vec = (
            vec[0] * cov_rr + vec[1] * cov_rg + vec[2] * cov_rb,
            vec[0] * cov_rg + vec[1] * cov_gg + vec[2] * cov_gb,
            vec[0] * cov_rb + vec[1] * cov_gb + vec[2] * cov_bb,
        )
    return mean, vec


def _master_colors(pixels: list[tuple[int, int, int]]) -> tuple[int, int]:
    """Return the two 5:6:5 end-point colours, larger first."""
    mean, direction = _color_line(pixels)
    inv_len2 = 1.0 / (0.00001 + _dot(direction, direction))
    dots = [_dot(direction, p) for p in pixels]
    offset = _dot(direction, mean)
    dot_min = (min(dots) - offset) * inv_len2
    dot_max = (max(dots) - offset) * inv_len2

    def endpoint(t: float) -> int:
        rgb = [
            min(max(int(0.5 + mean[k] + t * direction[k]), 0), 255)
            for k in range(3)
        ]
        return rgb_to_565(*rgb)

    first = endpoint(dot_max)
    second = endpoint(dot_min)
    return (first, second) if first > second else (second, first)


def compress_color_block(channels: int, uncompressed: Sequence[int]) -> bytes:
    """Compress a 4x4 block of RGB or RGBA pixels into 8 bytes of DXT1 colour data."""
    pixels = _block_rgb(channels, uncompressed)
    enc_c0, enc_c1 = _master_colors(pixels)
    c0 = rgb_888_from_565(enc_c0)
    c1 = rgb_888_from_565(enc_c1)

    line = [float(c1[k] - c0[k]) for k in range(3)]
    len2 = _dot(line, line)
    if len2 > 0.0:
        scale = 1.0 / len2
        line = [v * scale for v in line]
    else:
        line = [v * len2 for v in line]
    dot_offset = _dot(line, c0)

    indices = 0
    for k, p in enumerate(pixels):
        position = _dot(line, p) - dot_offset
        value = min(max(int(position * 3.0 + 0.5), 0), 3)
        indices |= _SWIZZLE4[value] << (2 * k)

    return struct.pack("<HHI", enc_c0, enc_c1, indices)


def compress_alpha_block(uncompressed: Sequence[int]) -> bytes:
    """Compress the alpha of a 4x4 RGBA block into 8 bytes of DXT5 alpha data."""
    if len(uncompressed) < 64:
        raise ValueError("a 4x4 RGBA block needs 64 bytes")
    alphas = [uncompressed[k] for k in range(3, 64, 4)]
    a0 = max(alphas)
    a1 = min(alphas)

    indices = 0
    for k, alpha in enumerate(alphas):
        value = int((alpha - a1) * (7.9999 / (a0 - a1))) if a0 != a1 else 0
        indices |= _SWIZZLE8[value & 7] << (3 * k)

    return bytes((a0, a1)) + indices.to_bytes(6, "little")


def _check_image(data: Sequence[int], width: int, height: int, channels: int) -> None:
    if width < 1 or height < 1 or channels < 1 or channels > 4:
        raise ValueError("invalid image dimensions or channel count")
    needed = width * height * channels
    if len(data) < needed:
        raise ValueError(f"image buffer holds {len(data)} bytes, {needed} are needed")


def _blocks(
    data: Sequence[int], width: int, height: int, channels: int, with_alpha: bool
):
    """Yield each 4x4 block, left to right and top to bottom, as flat bytes."""
    step = 1 if channels >= 3 else 0
    has_alpha = channels in (2, 4)
    for by in range(0, height, 4):
        my = min(4, height - by)
        for bx in range(0, width, 4):
            mx = min(4, width - bx)
            pixels: list[tuple[int, ...]] = []
            for y in range(my):
                for x in range(mx):
                    base = ((by + y) * width + bx + x) * channels
                    px: tuple[int, ...] = (
                        data[base],
                        data[base + step],
                        data[base + 2 * step],
                    )
                    if with_alpha:
                        px += (data[base + channels - 1] if has_alpha else 255,)
                    pixels.append(px)
                pixels.extend([pixels[0]] * (4 - mx))
            pixels.extend([pixels[0]] * (4 * (4 - my)))
            yield bytes(v for px in pixels for v in px)


def convert_image_to_dxt1(
    uncompressed: Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Compress an image to DXT1 (colour only, 8 bytes per 4x4 block)."""
    _check_image(uncompressed, width, height, channels)
    return b"".join(
        compress_color_block(3, block)
        for block in _blocks(uncompressed, width, height, channels, False)
    )


def convert_image_to_dxt5(
    uncompressed: Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Compress an image to DXT5 (colour and alpha, 16 bytes per 4x4 block)."""
    _check_image(uncompressed, width, height, channels)
    return b"".join(
        compress_alpha_block(block) + compress_color_block(4, block)
        for block in _blocks(uncompressed, width, height, channels, True)
    )


def encode_dds(width: int, height: int, channels: int, data: Sequence[int]) -> bytes:
    """Return a complete DDS file: DXT1 for images without alpha, DXT5 otherwise."""
    _check_image(data, width, height, channels)
    if channels & 1:
        payload = convert_image_to_dxt1(data, width, height, channels)
        four_cc = FOURCC_DXT1
    else:
        payload = convert_image_to_dxt5(data, width, height, channels)
        four_cc = FOURCC_DXT5
    header = DDSHeader(
        flags=DDSD_CAPS | DDSD_HEIGHT | DDSD_WIDTH | DDSD_PIXELFORMAT | DDSD_LINEARSIZE,
        width=width,
        height=height,
        pitch_or_linear_size=len(payload),
        pf_flags=DDPF_FOURCC,
        four_cc=four_cc,
        caps1=DDSCAPS_TEXTURE,
    )
    return header.pack() + payload


def save_image_as_dds(
    filename: Union[str, Path],
    width: int,
    height: int,
    channels: int,
    data: Sequence[int],
) -> None:
    """Compress an image and write it to ``filename`` as a DDS file."""
    encoded = encode_dds(width, height, channels, data)
    with open(filename, "wb") as handle:
        handle.write(encoded)
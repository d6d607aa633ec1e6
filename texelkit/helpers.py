"""Pixel-buffer helpers: resampling, colour-space conversion and HDR packing.

Images are flat, row-major byte sequences with ``channels`` interleaved
8-bit components per pixel.  Every function returns a new ``bytes`` object
and leaves its input untouched.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

__all__ = [
    "clamp_byte",
    "up_scale_image",
    "mipmap_image",
    "scale_image_rgb_to_ntsc_safe",
    "convert_rgb_to_ycocg",
    "convert_ycocg_to_rgb",
    "find_max_rgbe",
    "rgbe_to_rgb_div_a",
    "rgbe_to_rgb_div_a2",
]

_NTSC_LO = 16.0 - 0.499
_NTSC_HI = 235.0 + 0.499
_NTSC_LUT = bytes(
    int((_NTSC_HI - _NTSC_LO) * i / 255.0 + _NTSC_LO) for i in range(256)
)


def clamp_byte(x: int) -> int:
    """Clamp an integer to the range 0..255."""
    if x < 0:
        return 0
    if x > 255:
        return 255
    return x


def _require_size(data: Sequence[int], needed: int) -> None:
    if len(data) < needed:
        raise ValueError(
            f"image buffer holds {len(data)} bytes, {needed} are needed"
        )


def up_scale_image(
    orig: Sequence[int],
    width: int,
    height: int,
    channels: int,
    resampled_width: int,
    resampled_height: int,
) -> bytes:
    """Resize an image to a larger size using bilinear interpolation."""
    if (
        width < 1
        or height < 1
        or resampled_width < 2
        or resampled_height < 2
        or channels < 1
    ):
        raise ValueError("invalid dimensions for up-scaling")
    _require_size(orig, width * height * channels)

    size = len(orig)

    def sample(index: int, weight: float) -> float:
        # Neighbours past the edge of a one-pixel-wide image carry zero weight.
        if weight == 0.0 or not 0 <= index < size:
            return 0.0
        return orig[index] * weight

    dx = (width - 1.0) / (resampled_width - 1.0)
    dy = (height - 1.0) / (resampled_height - 1.0)
    row_stride = width * channels
    out = bytearray(resampled_width * resampled_height * channels)
    pos = 0
    for y in range(resampled_height):
        sampley = y * dy
        inty = min(int(sampley), height - 2)
        fy = sampley - inty
        for x in range(resampled_width):
            samplex = x * dx
            intx = min(int(samplex), width - 2)
            fx = samplex - intx
            base = (inty * width + intx) * channels
            for c in range(channels):
                index = base + c
                value = 0.5
                value += sample(index, (1.0 - fx) * (1.0 - fy))
                value += sample(index + channels, fx * (1.0 - fy))
                value += sample(index + row_stride, (1.0 - fx) * fy)
                value += sample(index + row_stride + channels, fx * fy)
                out[pos] = int(value) & 0xFF
                pos += 1
    return bytes(out)


def mipmap_image(
    orig: Sequence[int],
    width: int,
    height: int,
    channels: int,
    block_size_x: int,
    block_size_y: int,
) -> bytes:
    """Shrink an image by averaging blocks of pixels (for MIPmap levels)."""
    if (
        width < 1
        or height < 1
        or channels < 1
        or block_size_x < 1
        or block_size_y < 1
    ):
        raise ValueError("invalid dimensions for mipmapping")
    _require_size(orig, width * height * channels)

    mip_width = max(width // block_size_x, 1)
    mip_height = max(height // block_size_y, 1)
    row_stride = width * channels
    out = bytearray(mip_width * mip_height * channels)
    pos = 0
    for j in range(mip_height):
        for i in range(mip_width):
            for c in range(channels):
                index = (j * block_size_y) * row_stride + (i * block_size_x) * channels + c
                u_block = block_size_x
                v_block = block_size_y
                # Edge blocks are trimmed; the horizontal trim deliberately
                # uses the vertical block size, as the reference does.
                if block_size_x * (i + 1) > width:
                    u_block = width - i * block_size_y
                if block_size_y * (j + 1) > height:
                    v_block = height - j * block_size_y
                block_area = u_block * v_block
                total = block_area >> 1
                for v in range(v_block):
                    row = index + v * row_stride
                    total += sum(orig[row + u * channels] for u in range(u_block))
                out[pos] = (total // block_area) & 0xFF
                pos += 1
    return bytes(out)


def scale_image_rgb_to_ntsc_safe(
    orig: Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Compress the colour components into the NTSC-safe range, keeping alpha."""
    if width < 1 or height < 1 or channels < 1:
        raise ValueError("invalid dimensions for NTSC scaling")
    total = width * height * channels
    _require_size(orig, total)

    colour_channels = channels - (1 - (channels & 1))
    out = bytearray(orig[:total])
    for start in range(0, total, channels):
        for k in range(start, start + colour_channels):
            out[k] = _NTSC_LUT[out[k]]
    return bytes(out)


def _check_colour_image(data: Sequence[int], width: int, height: int, channels: int) -> None:
    if width < 1 or height < 1 or channels not in (3, 4):
        raise ValueError("colour conversion needs a 3 or 4 channel image")
    _require_size(data, width * height * channels)


def convert_rgb_to_ycocg(
    orig: Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Convert RGB(A) pixels to YCoCg.

    Three-channel pixels become Co, Y, Cg; four-channel pixels become
    Co, Cg, A, Y.
    """
    _check_colour_image(orig, width, height, channels)
    out = bytearray(orig[: width * height * channels])
    for i in range(0, len(out), channels):
        r = out[i]
        g = (out[i + 1] + 1) >> 1
        b = out[i + 2]
        tmp = (2 + r + b) >> 2
        co = clamp_byte(128 + ((r - b + 1) >> 1))
        y = clamp_byte(g + tmp)
        cg = clamp_byte(128 + g - tmp)
        if channels == 3:
            out[i : i + 3] = bytes((co, y, cg))
        else:
            alpha = out[i + 3]
            out[i : i + 4] = bytes((co, cg, alpha, y))
    return bytes(out)


def convert_ycocg_to_rgb(
    orig: Sequence[int], width: int, height: int, channels: int
) -> bytes:
    """Convert YCoCg pixels (as laid out by convert_rgb_to_ycocg) back to RGB(A)."""
    _check_colour_image(orig, width, height, channels)
    out = bytearray(orig[: width * height * channels])
    for i in range(0, len(out), channels):
        if channels == 3:
            co = out[i] - 128
            y = out[i + 1]
            cg = out[i + 2] - 128
            alpha = None
        else:
            co = out[i] - 128
            cg = out[i + 1] - 128
            alpha = out[i + 2]
            y = out[i + 3]
        rgb = (clamp_byte(y + co - cg), clamp_byte(y + cg), clamp_byte(y - co - cg))
        if alpha is None:
            out[i : i + 3] = bytes(rgb)
        else:
            out[i : i + 4] = bytes((*rgb, alpha))
    return bytes(out)


def _rgbe_scale(exponent: int) -> float:
    return math.ldexp(1.0 / 255.0, exponent - 128)


def find_max_rgbe(image: Sequence[int], width: int, height: int) -> float:
    """Return the largest decoded colour component of an RGBE image."""
    _require_size(image, width * height * 4)
    max_val = 0.0
    for i in range(0, width * height * 4, 4):
        scale = _rgbe_scale(image[i + 3])
        for value in image[i : i + 3]:
            if value * scale > max_val:
                max_val = value * scale
    return max_val


def _rgbe_decode(image: Sequence[int], width: int, height: int, rescale: float | None):
    if width < 1 or height < 1:
        raise ValueError("invalid dimensions for RGBE conversion")
    _require_size(image, width * height * 4)
    scale = 1.0
    if rescale is not None:
        peak = find_max_rgbe(image, width, height)
        if peak == 0.0:
            raise ValueError("cannot rescale an image whose maximum is zero")
        scale = rescale / peak
    for i in range(0, width * height * 4, 4):
        e = scale * _rgbe_scale(image[i + 3])
        yield e * image[i], e * image[i + 1], e * image[i + 2]


def rgbe_to_rgb_div_a(
    image: Sequence[int], width: int, height: int, rescale_to_max: bool
) -> bytes:
    """Re-encode an RGBE image so that each colour is RGB / A."""
    out = bytearray()
    rescale = 255.0 if rescale_to_max else None
    for r, g, b in _rgbe_decode(image, width, height, rescale):
        m = max(r, g, b)
        iv = int(255.0 / m) if m != 0.0 else 1
        a = min(max(iv, 1), 255)
        out += bytes(min(int(a * c + 0.5), 255) for c in (r, g, b))
        out.append(a)
    return bytes(out)


def rgbe_to_rgb_div_a2(
    image: Sequence[int], width: int, height: int, rescale_to_max: bool
) -> bytes:
    """Re-encode an RGBE image so that each colour is RGB / (A * A)."""
    out = bytearray()
    rescale = 255.0 * 255.0 if rescale_to_max else None
    for r, g, b in _rgbe_decode(image, width, height, rescale):
        m = max(r, g, b)
        iv = int(math.sqrt(255.0 * 255.0 / m)) if m != 0.0 else 1
        a = min(max(iv, 1), 255)
        out += bytes(min(int(a * a * c / 255.0 + 0.5), 255) for c in (r, g, b))
        out.append(a)
    return bytes(out)
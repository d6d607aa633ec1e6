# texelkit

Small, dependency-free building blocks for preparing textures and writing
images from raw 8-bit pixel data, all in pure Python.

## Modules

- **`texelkit.helpers`**: resampling and colour-space utilities.
  `up_scale_image` (bilinear upscaling), `mipmap_image` (block averaging for
  MIPmap levels), `scale_image_rgb_to_ntsc_safe` (colour components into
  16..235, alpha untouched), `convert_rgb_to_ycocg` / `convert_ycocg_to_rgb`,
  `clamp_byte`, and RGBE HDR helpers `find_max_rgbe`, `rgbe_to_rgb_div_a` and
  `rgbe_to_rgb_div_a2`. Every function returns new `bytes` and leaves its
  input alone.
- **`texelkit.dxt`**: DXT1/DXT5 block compression (`compress_color_block`,
  `compress_alpha_block`, `convert_image_to_dxt1`, `convert_image_to_dxt5`),
  5:6:5 colour helpers (`rgb_to_565`, `rgb_888_from_565`, `convert_bit_range`)
  and DDS output through `DDSHeader`, `encode_dds` and `save_image_as_dds`.
  Images with 1 or 3 channels are written as DXT1, those with 2 or 4 as DXT5.
- **`texelkit.etc1`**: ETC1 decoding. `decode_block` turns one 8-byte block
  into 16 `0xAARRGGBB` integers; `decode_image` decodes a whole image whose
  sides are multiples of four into bytes laid out B, G, R, A per pixel.
- **`texelkit.deflate`**: a compact zlib stream encoder using fixed-Huffman
  blocks (`zlib_compress`), plus `crc32` and `adler32`.
- **`texelkit.png`**: PNG encoding with per-row filter selection
  (`encode_png`, `write_png`), with an optional row stride.
- **`texelkit.writers`**: 24-bit BMP (`encode_bmp`, `write_bmp`), TGA, raw or
  run-length encoded (`encode_tga`, `write_tga`), and Radiance HDR
  (`linear_to_rgbe`, `encode_hdr`, `write_hdr`).
- **`texelkit.resources`**: `resource_path` joins a file name onto the
  directory of the running program (`process_path`, falling back to `"./"`);
  `file_remove_file_name` strips the file part from a path.

Pixel data is passed as bytes-like objects laid out row by row, top to bottom,
with 1 (grey), 2 (grey + alpha), 3 (RGB) or 4 (RGBA) interleaved channels.
HDR input is a sequence of floats in the same layout.

## Installation

```
pip install texelkit
```

## Examples

Write a 2×2 RGBA image as PNG and as a DXT5-compressed DDS file:

```python
from texelkit.png import write_png
from texelkit.dxt import save_image_as_dds

pixels = bytes([
    255, 0, 0, 255,    0, 255, 0, 255,
    0, 0, 255, 255,    255, 255, 255, 128,
])
write_png("tiny.png", 2, 2, 4, pixels, 0)
save_image_as_dds("tiny.dds", 2, 2, 4, pixels)
```

Build the next mipmap level of that image:

```python
from texelkit.helpers import mipmap_image

half = mipmap_image(pixels, 2, 2, 4, 2, 2)
```

Write it as an uncompressed TGA instead:

```python
from texelkit.writers import encode_tga

tga = encode_tga(2, 2, 4, pixels, rle=False)
```

Decode ETC1-compressed data into BGRA bytes:

```python
from texelkit.etc1 import decode_image

bgra = decode_image(etc1_data, 64, 64)
```

Invalid arguments such as non-positive sizes, unsupported channel counts or
buffers that are too short raise `ValueError`.

## What it does not do

texelkit writes and converts images; it does not read image files. There
are no PNG, BMP, TGA, HDR or DDS loaders, no DXT decoder, no parsing of PVR
or PKM texture files, and nothing that uploads textures to a graphics
device. ETC1 is the only compressed format it decodes, and only from raw
block data. It has no command-line tool.

## Running the tests

```
pip install texelkit[test]
pytest
```
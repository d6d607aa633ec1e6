"""Texture and image utilities: DXT/DDS, ETC1 decoding, PNG/BMP/TGA/HDR writers and resampling helpers."""

__version__ = "0.1.0"

__all__ = [
    "deflate",
    "dxt",
    "etc1",
    "helpers",
    "png",
    "resources",
    "writers",
]
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "texelkit"
version = "0.1.0"
description = "Pure-Python texture and image helpers: DXT/DDS compression, ETC1 decoding, PNG/BMP/TGA/HDR writers and resampling utilities"
requires-python = ">=3.10"
dependencies = []
keywords = ["dxt", "dds", "etc1", "png", "bmp", "tga", "hdr", "texture", "ycocg", "mipmap"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["texelkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wkimage"
version = "3.1.1"
description = "Codec building blocks of the WK image format: DCT, quantization, entropy coding, prediction, lossless and lossy pipelines, motion search and animation."
requires-python = ">=3.10"
dependencies = []
keywords = ["image", "codec", "dct", "huffman", "compression", "quantization", "animation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: System :: Archiving :: Compression",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wkimage"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

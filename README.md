# wkimage

The codec pieces behind the WK image format, in plain Python with no
dependencies outside the standard library. Pixel data is handled as
interleaved 8-bit samples in `bytes`; coefficient blocks are lists of
integers in row-major order.

## What is inside

- `wkimage.compression.dct`: floating-point 8×8 DCT and inverse
  (`dct_8x8`, `idct_8x8`) and zigzag ordering (`zigzag_scan`,
  `zigzag_unscan`).
- `wkimage.compression.multi_dct`: 8×8 and 16×16 DCTs, an integer 8×8
  transform (`int_dct_8x8`, `int_idct_8x8`) and the `BlockSize` enum.
- `wkimage.compression.simd`: separable and direct 8×8 DCT kernels,
  `quantize_simd`/`dequantize_simd` and `rgb_to_ycbcr_simd`.
  `detect_simd()` always reports `SimdLevel.NONE`; all kernels run as plain
  Python.
- `wkimage.compression.color`: RGB ⇄ YCbCr conversion for BT.601, BT.709
  and BT.2020 (`ColorSpace`), per pixel and per image, plus 4:2:0 chroma
  down- and upsampling.
- `wkimage.compression.quantizer`: JPEG-style `QuantizationTable` and
  `Quantizer`, with activity-scaled block quantization.
- `wkimage.compression.adaptive_quant`: `QuantTable` variants
  (`for_quality`, `optimized_for_size`, `with_csf`, `aggressive`,
  `lossless`) and `AdaptiveQuantizer`, which picks a per-block quality within
  ten steps of the base quality from `BlockStats`.
- `wkimage.compression.cabac`: `BitWriter`/`BitReader` with Exp-Golomb
  codes, and run-length coding of coefficient blocks (`encode_block`,
  `decode_block`, `encode_coefficients`, `decode_coefficients`), plus
  zlib-based `compress_coefficients`/`decompress_coefficients`.
- `wkimage.compression.entropy`: Huffman coding of byte streams
  (`EntropyEncoder.encode_with_huffman`) and RLE-Huffman coding of
  coefficient streams (`encode_rle_huffman`), with `EntropyDecoder` to undo
  them. Also defines the `WkError` and `DecodingError` exceptions.
- `wkimage.compression.predictor`: PNG-style row filters (`PredictorType`)
  with per-row selection of the best filter for lossless coding.
- `wkimage.compression.intra_prediction`: eleven `IntraMode`s and an
  `IntraPredictor` that predicts a block from its neighbours and picks the
  mode with the lowest sum of absolute differences.
- `wkimage.compression.lossy`: `CompressionMode`, `CompressionConfig` and
  the block-based lossy stream (`compress_lossy_v3`, `decompress_lossy_v3`).
- `wkimage.compression.engine`: `CompressionEngine`, which compresses with
  the mode in its configuration and decompresses lossless or lossy streams.
  Lossy configurations with every block feature turned off
  (`CompressionConfig.fast_lossy`) use a simpler table-plus-RLE-Huffman
  stream.
- `wkimage.animation.motion`: `MotionEstimator` with full, diamond, hexagon
  and three-step search (`SearchPattern`), and
  `apply_motion_compensation`.
- `wkimage.animation.frame` and `wkimage.animation.sequence`:
  `AnimationFrame`, `AnimationConfig`, `BlendMode`, `DisposeMode`,
  `FrameType` and `Animation` (frame list, durations, keyframe lookup).

## Installation

```
pip install .
```

## Example

```python
from wkimage.compression.engine import CompressionEngine
from wkimage.compression.lossy import CompressionConfig, CompressionMode

width, height, channels = 16, 16, 3
pixels = bytes((x * 7 + y * 3) % 256 for y in range(height) for x in range(width * channels))

engine = CompressionEngine(CompressionConfig.lossless())
packed = engine.compress(pixels, width, height, channels)
assert engine.decompress(packed, width, height, channels, CompressionMode.LOSSLESS) == pixels

lossy = CompressionEngine(CompressionConfig.lossy(85))
packed = lossy.compress(pixels, width, height, channels)
restored = lossy.decompress(packed, width, height, channels, CompressionMode.LOSSY)
assert len(restored) == len(pixels)
```

Truncated Huffman data, filtered rows or lossy payloads raise
`wkimage.compression.entropy.DecodingError`. Bad dimensions or too little
input data raise `ValueError`.

## What this package does not do

- It does not read or write `.wk` files: there is no file header, container
  or metadata (EXIF, XMP, ICC) handling. `CompressionEngine` works on raw
  sample buffers whose width, height, channel count and mode the caller
  keeps.
- It does not open or save PNG, JPEG or other image files.
- It installs no command-line tools and has no viewer.
- Animations are data structures only; there is no encoder that writes a
  sequence of frames to a stream.

## Tests

```
pip install .[test]
pytest
```
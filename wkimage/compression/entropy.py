"""Huffman coding of byte streams and run-length coding of coefficient streams."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass

_HEADER = struct.Struct("<256I")
_LENGTHS = struct.Struct("<II")
_HEADER_SIZE = _HEADER.size + _LENGTHS.size


class WkError(Exception):
    """Base class for errors raised while coding image data."""


class DecodingError(WkError):
    """Raised when encoded data is malformed or truncated."""


@dataclass
class HuffmanNode:
    """Node of a Huffman tree; leaves carry a symbol, internal nodes two children."""

    symbol: int | None
    freq: int
    left: HuffmanNode | None = None
    right: HuffmanNode | None = None

    @classmethod
    def leaf(cls, symbol: int, freq: int) -> HuffmanNode:
        return cls(symbol=symbol, freq=freq)

    @classmethod
    def internal(cls, left: HuffmanNode, right: HuffmanNode) -> HuffmanNode:
        return cls(symbol=None, freq=left.freq + right.freq, left=left, right=right)


@dataclass(frozen=True)
class HuffmanCode:
    """A code word: ``length`` bits taken from the low end of ``bits``."""

    bits: int
    length: int


class HuffmanTable:
    """Code words for each symbol together with the tree used to decode them."""

    def __init__(
        self, codes: dict[int, HuffmanCode], decode_tree: HuffmanNode | None
    ) -> None:
        self.codes = codes
        self.decode_tree = decode_tree

    @classmethod
    def build(cls, freq: Sequence[int]) -> HuffmanTable:
        """Build a table from 256 symbol frequencies; zero-frequency symbols get no code."""
        counts = list(freq)
        if len(counts) != 256:
            raise ValueError(f"expected 256 frequencies, got {len(counts)}")

        nodes = [HuffmanNode.leaf(sym, f) for sym, f in enumerate(counts) if f > 0]
        if not nodes:
            return cls({}, None)

        if len(nodes) == 1:
            node = nodes[0]
            return cls({node.symbol: HuffmanCode(bits=0, length=1)}, node)

        while len(nodes) > 1:
            nodes.sort(key=lambda n: n.freq, reverse=True)
            right = nodes.pop()
            left = nodes.pop()
            nodes.append(HuffmanNode.internal(left, right))

        root = nodes[0]
        codes: dict[int, HuffmanCode] = {}
        stack = [(root, 0, 0)]
        while stack:
            node, bits, length = stack.pop()
            if node.symbol is not None:
                codes[node.symbol] = HuffmanCode(bits=bits, length=max(length, 1))
                continue
            if node.right is not None:
                stack.append((node.right, (bits << 1) | 1, length + 1))
            if node.left is not None:
                stack.append((node.left, bits << 1, length + 1))
        return cls(codes, root)

    def get(self, symbol: int) -> HuffmanCode | None:
        return self.codes.get(symbol)


class _BitSink:
    """Packs variable-length codes into bytes, most significant bit first."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self._acc = 0
        self._count = 0

    def write(self, bits: int, length: int) -> None:
        self._acc = (self._acc << length) | (bits & ((1 << length) - 1))
        self._count += length
        while self._count >= 8:
            self._count -= 8
            self.buffer.append((self._acc >> self._count) & 0xFF)
        self._acc &= (1 << self._count) - 1

    def flush(self) -> bytes:
        if self._count:
            self.buffer.append((self._acc << (8 - self._count)) & 0xFF)
            self._acc = 0
            self._count = 0
        return bytes(self.buffer)


class EntropyEncoder:
    """Huffman encoder with a frequency-table header."""

    def encode_with_huffman(self, data: bytes | Sequence[int]) -> bytes:
        """Encode bytes as 256 frequencies, the original and coded lengths, then the codes."""
        raw = bytes(data)
        freq = [0] * 256
        for byte in raw:
            freq[byte] += 1

        table = HuffmanTable.build(freq)
        sink = _BitSink()
        for byte in raw:
            code = table.get(byte)
            if code is not None:
                sink.write(code.bits, code.length)
        payload = sink.flush()

        return (
            _HEADER.pack(*freq)
            + _LENGTHS.pack(len(raw) & 0xFFFFFFFF, len(payload) & 0xFFFFFFFF)
            + payload
        )

    def encode_rle_huffman(self, data: Sequence[int]) -> bytes:
        """Run-length code 16-bit coefficients, then Huffman code the result."""
        values = list(data)
        rle = bytearray()
        i = 0
        while i < len(values):
            if values[i] == 0:
                count = 0
                while i < len(values) and values[i] == 0 and count < 255:
                    count += 1
                    i += 1
                rle += bytes((0, count))
                continue
            value = values[i]
            magnitude = abs(value) & 0xFFFF
            sign = 0x80 if value < 0 else 0
            if magnitude <= 127:
                rle += bytes((1, magnitude | sign))
            else:
                rle += bytes((2, magnitude & 0xFF, ((magnitude >> 8) | sign) & 0xFF))
            i += 1
        return self.encode_with_huffman(rle)


class EntropyDecoder:
    """Decoder for the streams written by :class:`EntropyEncoder`."""

    def decode_huffman(self, data: bytes | Sequence[int]) -> bytes:
        raw = bytes(data)
        if len(raw) < _HEADER_SIZE:
            raise DecodingError("Huffman data too short")

        freq = _HEADER.unpack_from(raw, 0)
        original_len, compressed_len = _LENGTHS.unpack_from(raw, _HEADER.size)
        if _HEADER_SIZE + compressed_len > len(raw):
            raise DecodingError("Truncated huffman data")
        compressed = raw[_HEADER_SIZE:_HEADER_SIZE + compressed_len]

        root = HuffmanTable.build(freq).decode_tree
        if root is None:
            return b""

        output = bytearray()
        current = root
        for byte in compressed:
            for shift in range(7, -1, -1):
                child = current.right if (byte >> shift) & 1 else current.left
                if child is not None:
                    current = child
                if current.symbol is not None:
                    output.append(current.symbol)
                    current = root
                    if len(output) >= original_len:
                        return bytes(output)
        return bytes(output)

    def decode_rle_huffman(self, data: bytes | Sequence[int]) -> list[int]:
        """Decode a run-length coded coefficient stream; unknown tags are skipped."""
        rle = self.decode_huffman(data)
        output: list[int] = []
        i = 0
        while i < len(rle):
            tag = rle[i]
            if tag == 0:
                if i + 1 >= len(rle):
                    break
                output.extend([0] * rle[i + 1])
                i += 2
            elif tag == 1:
                if i + 1 >= len(rle):
                    break
                b = rle[i + 1]
                magnitude = b & 0x7F
                output.append(-magnitude if b & 0x80 else magnitude)
                i += 2
            elif tag == 2:
                if i + 2 >= len(rle):
                    break
                high = rle[i + 2]
                magnitude = rle[i + 1] | ((high & 0x7F) << 8)
                output.append(-magnitude if high & 0x80 else magnitude)
                i += 3
            else:
                i += 1
        return output
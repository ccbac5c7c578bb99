"""Bit-level coding of coefficient blocks with run lengths and Exp-Golomb codes."""

from __future__ import annotations

import zlib
from collections.abc import Sequence


def _wrap16(value: int) -> int:
    return ((value + 32768) & 0xFFFF) - 32768


class BitWriter:
    """Accumulates bits most-significant first."""

    def __init__(self) -> None:
        self._bytes = bytearray()
        self._current = 0
        self._bits = 0

    def write_bit(self, bit: bool) -> None:
        self._current = ((self._current << 1) | (1 if bit else 0)) & 0xFF
        self._bits += 1
        if self._bits == 8:
            self._bytes.append(self._current)
            self._current = 0
            self._bits = 0

    def write_bits(self, value: int, count: int) -> None:
        """Write the low ``count`` bits of ``value``, highest first."""
        for shift in reversed(range(count)):
            self.write_bit((value >> shift) & 1 != 0)

    def write_exp_golomb(self, val: int) -> None:
        """Write an unsigned order-0 Exp-Golomb code."""
        if val == 0:
            self.write_bit(True)
            return
        val1 = val + 1
        bits = val1.bit_length()
        for _ in range(bits - 1):
            self.write_bit(False)
        self.write_bits(val1, bits)

    def finish(self) -> bytes:
        """Return the written bytes, zero-padding the final partial byte."""
        if self._bits:
            return bytes(self._bytes) + bytes([(self._current << (8 - self._bits)) & 0xFF])
        return bytes(self._bytes)


class BitReader:
    """Reads bits most-significant first; reads past the end yield zero bits."""

    def __init__(self, data: bytes | Sequence[int]) -> None:
        self._data = bytes(data)
        self._byte_pos = 0
        self._bit_pos = 0

    def read_bit(self) -> bool:
        if self._byte_pos >= len(self._data):
            return False
        bit = (self._data[self._byte_pos] >> (7 - self._bit_pos)) & 1 != 0
        self._bit_pos += 1
        if self._bit_pos == 8:
            self._bit_pos = 0
            self._byte_pos += 1
        return bit

    def read_bits(self, count: int) -> int:
        value = 0
        for _ in range(count):
            value = (value << 1) | int(self.read_bit())
        return value

    def read_exp_golomb(self) -> int:
        """Read an Exp-Golomb code; a prefix of more than 16 zeros yields 0."""
        zeros = 0
        while not self.read_bit():
            zeros += 1
            if zeros > 16:
                return 0
        if zeros == 0:
            return 0
        rest = self.read_bits(zeros)
        return ((1 << zeros) | rest) - 1


class ArithmeticEncoder:
    """Bypass-mode bit encoder."""

    def __init__(self) -> None:
        self.writer = BitWriter()

    def encode_bypass(self, bit: bool) -> None:
        self.writer.write_bit(bit)

    def finish(self) -> bytes:
        return self.writer.finish()


class ArithmeticDecoder:
    """Bypass-mode bit decoder."""

    def __init__(self, data: bytes | Sequence[int]) -> None:
        self.reader = BitReader(data)

    def decode_bypass(self) -> bool:
        return self.reader.read_bit()


class CABACContext:
    """Coding context shared by consecutive blocks; counts the blocks coded."""

    def __init__(self, block_size: int = 8) -> None:
        self.block_size = block_size
        self.blocks_coded = 0

    def reset(self) -> None:
        self.blocks_coded = 0


def encode_block(coeffs: Sequence[int]) -> bytes:
    """Encode up to 64 coefficients as zero runs and signed magnitudes."""
    values = list(coeffs)[:64]
    writer = BitWriter()

    nonzero = [i for i, c in enumerate(values) if c != 0]
    if not nonzero:
        writer.write_bits(0, 6)
        writer.write_bit(True)
        return writer.finish()

    last_nz = nonzero[-1]
    writer.write_bits(last_nz + 1, 6)
    writer.write_bit(False)

    i = 0
    while i <= last_nz:
        c = values[i]
        if c == 0:
            run = 0
            while i + run <= last_nz and values[i + run] == 0:
                run += 1
            run = min(run, 32)
            writer.write_bit(False)
            writer.write_exp_golomb(run - 1)
            i += run
        else:
            writer.write_bit(True)
            writer.write_exp_golomb(abs(c) - 1)
            writer.write_bit(c < 0)
            i += 1

    return writer.finish()


def decode_block(data: bytes | Sequence[int], size: int) -> list[int]:
    """Decode a block written by :func:`encode_block` into ``size`` coefficients."""
    coeffs = [0] * size
    reader = BitReader(data)
    n = min(size, 64)

    count = reader.read_bits(6)
    is_zero = reader.read_bit()
    if count == 0 and is_zero:
        return coeffs
    last_nz = max(count - 1, 0)

    i = 0
    while i <= last_nz and i < n:
        if not reader.read_bit():
            run = reader.read_exp_golomb() + 1
            i += min(run, last_nz + 1 - i)
        else:
            magnitude = _wrap16(reader.read_exp_golomb() + 1)
            coeffs[i] = _wrap16(-magnitude) if reader.read_bit() else magnitude
            i += 1

    return coeffs


def compress_coefficients(data: bytes | Sequence[int]) -> bytes:
    """Deflate a coefficient stream at the highest compression level."""
    return zlib.compress(bytes(data), 9)


def decompress_coefficients(data: bytes | Sequence[int]) -> bytes:
    """Inflate a coefficient stream, keeping whatever decodes before an error."""
    raw = bytes(data)
    decompressor = zlib.decompressobj()
    output = bytearray()
    try:
        for start in range(0, len(raw), 64):
            output += decompressor.decompress(raw[start:start + 64])
            if decompressor.eof:
                break
        output += decompressor.flush()
    except zlib.error:
        pass
    return bytes(output)


def encode_coefficients(
    encoder: ArithmeticEncoder, ctx: CABACContext, coeffs: Sequence[int]
) -> None:
    """Append one length-prefixed encoded block to the encoder's bit stream."""
    block_data = encode_block(coeffs)
    encoder.writer.write_bits(len(block_data), 16)
    for byte in block_data:
        encoder.writer.write_bits(byte, 8)
    ctx.blocks_coded += 1


def decode_coefficients(
    decoder: ArithmeticDecoder, ctx: CABACContext, size: int
) -> list[int]:
    """Read one length-prefixed block from the decoder's bit stream."""
    block_len = decoder.reader.read_bits(16)
    block_data = bytes(decoder.reader.read_bits(8) for _ in range(block_len))
    ctx.blocks_coded += 1
    return decode_block(block_data, size)
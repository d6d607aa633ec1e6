"""A small zlib (RFC 1950) encoder using fixed-Huffman DEFLATE blocks.

Matches are found through a hash of the next three bytes, with a simple
lazy-matching step: a match is dropped in favour of a literal when the
following byte starts a longer one.  Also provides the CRC-32 and
Adler-32 checksums used by PNG and zlib.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable

__all__ = ["zlib_compress", "crc32", "adler32"]

_HASH_SIZE = 16384
_WINDOW = 32768
_MAX_MATCH = 258
_MIN_QUALITY = 5

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31,
    35, 43, 51, 59, 67, 83, 99, 115, 131, 163, 195, 227, 258,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2,
    3, 3, 3, 3, 4, 4, 4, 4, 5, 5, 5, 5, 0,
)
_DIST_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193,
    257, 385, 513, 769, 1025, 1537, 2049, 3073, 4097, 6145,
    8193, 12289, 16385, 24577,
)
_DIST_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6,
    7, 7, 8, 8, 9, 9, 10, 10, 11, 11, 12, 12, 13, 13,
)

_MASK32 = 0xFFFFFFFF
_ADLER_MOD = 65521
_ADLER_BLOCK = 5552


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ 0xEDB88320 if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def crc32(data: Iterable[int]) -> int:
    """Return the CRC-32 (as used by PNG and zlib) of ``data``."""
    crc = _MASK32
    for byte in bytes(data):
        crc = (crc >> 8) ^ _CRC_TABLE[(byte ^ crc) & 0xFF]
    return crc ^ _MASK32


def adler32(data: Iterable[int]) -> int:
    """Return the Adler-32 checksum of ``data``."""
    buf = bytes(data)
    s1, s2 = 1, 0
    start = 0
    block = len(buf) % _ADLER_BLOCK
    while start < len(buf):
        for byte in buf[start : start + block]:
            s1 += byte
            s2 += s1
        s1 %= _ADLER_MOD
        s2 %= _ADLER_MOD
        start += block
        block = _ADLER_BLOCK
    return (s2 << 16) | s1


def _bit_reverse(code: int, bits: int) -> int:
    result = 0
    for _ in range(bits):
        result = (result << 1) | (code & 1)
        code >>= 1
    return result


class _BitWriter:
    """Collects bits least-significant first into a byte buffer."""

    def __init__(self, out: bytearray) -> None:
        self.out = out
        self.buffer = 0
        self.count = 0

    def add(self, code: int, bits: int) -> None:
        self.buffer |= code << self.count
        self.count += bits
        while self.count >= 8:
            self.out.append(self.buffer & 0xFF)
            self.buffer >>= 8
            self.count -= 8

    def huffman(self, code: int, bits: int) -> None:
        self.add(_bit_reverse(code, bits), bits)

    def symbol(self, n: int) -> None:
        """Write a literal/length symbol with the fixed Huffman code."""
        if n <= 143:
            self.huffman(0x30 + n, 8)
        elif n <= 255:
            self.huffman(0x190 + n - 144, 9)
        elif n <= 279:
            self.huffman(n - 256, 7)
        else:
            self.huffman(0xC0 + n - 280, 8)

    def pad(self) -> None:
        while self.count:
            self.add(0, 1)


def _hash3(data: bytes, pos: int) -> int:
    h = data[pos] + (data[pos + 1] << 8) + (data[pos + 2] << 16)
    h ^= (h << 3) & _MASK32
    h = (h + (h >> 5)) & _MASK32
    h ^= (h << 4) & _MASK32
    h = (h + (h >> 17)) & _MASK32
    h ^= (h << 25) & _MASK32
    h = (h + (h >> 6)) & _MASK32
    return h & (_HASH_SIZE - 1)


def _match_length(data: bytes, a: int, b: int, limit: int) -> int:
    limit = min(limit, _MAX_MATCH)
    length = 0
    while length < limit and data[a + length] == data[b + length]:
        length += 1
    return length


def zlib_compress(data: Iterable[int], quality: int = 8) -> bytes:
    """Compress ``data`` into a zlib stream.

    ``quality`` bounds the hash chains (at least 5); larger values search
    more candidates and give smaller output.
    """
    buf = bytes(data)
    size = len(buf)
    quality = max(quality, _MIN_QUALITY)

    out = bytearray((0x78, 0x5E))
    bits = _BitWriter(out)
    bits.add(1, 1)  # final block
    bits.add(1, 2)  # fixed Huffman codes

    table: dict[int, list[int]] = {}
    i = 0
    while i < size - 3:
        h = _hash3(buf, i)
        best = 3
        best_loc: int | None = None
        chain = table.setdefault(h, [])
        for loc in chain:
            if loc > i - _WINDOW:
                d = _match_length(buf, loc, i, size - i)
                if d >= best:
                    best, best_loc = d, loc
        if len(chain) == 2 * quality:
            del chain[:quality]
        chain.append(i)

        if best_loc is not None:
            for loc in table.get(_hash3(buf, i + 1), ()):
                if loc > i - (_WINDOW - 1):
                    if _match_length(buf, loc, i + 1, size - i - 1) > best:
                        best_loc = None
                        break

        if best_loc is not None:
            distance = i - best_loc
            j = bisect_right(_LENGTH_BASE, best) - 1
            bits.symbol(j + 257)
            if _LENGTH_EXTRA[j]:
                bits.add(best - _LENGTH_BASE[j], _LENGTH_EXTRA[j])
            j = bisect_right(_DIST_BASE, distance) - 1
            bits.add(_bit_reverse(j, 5), 5)
            if _DIST_EXTRA[j]:
                bits.add(distance - _DIST_BASE[j], _DIST_EXTRA[j])
            i += best
        else:
            bits.symbol(buf[i])
            i += 1

    for byte in buf[i:]:
        bits.symbol(byte)
    bits.symbol(256)  # end of block
    bits.pad()

    out += adler32(buf).to_bytes(4, "big")
    return bytes(out)
"""Encoding and decoding of firmware update images, and their byte sum."""

from __future__ import annotations

import sys

EXPECTED_CHECKSUM = 0x1057F8

_KEY_A = bytes([
    0x31, 0x1C, 0xEF, 0x62, 0xDF, 0xA7, 0x43, 0x23, 0x78, 0x92, 0x22, 0x6A,
    0x38, 0x12, 0x14, 0xA4, 0x65, 0x02, 0x2B, 0x00, 0x9C, 0x00, 0x57, 0x5E,
    0x10, 0x85, 0x50, 0x73, 0xD0, 0xB1, 0x17, 0x2B, 0x49, 0xAC, 0x49, 0xC4,
    0x33, 0x21, 0xB4, 0x48, 0x23, 0x8C, 0x27, 0x98, 0x12, 0x34, 0x80, 0x00,
    0x48, 0xFF, 0xB4, 0x8F, 0x04, 0x2E, 0x24, 0x2D, 0x92, 0xC7, 0x82, 0xE2,
    0xA6, 0xA5, 0x20, 0x20, 0x98, 0x11, 0x84, 0x26, 0xB7, 0xCC, 0x28, 0xF3,
    0xE6, 0x98, 0x38, 0x23, 0xDC, 0xBA, 0x28, 0x44, 0x42, 0x39, 0x44,
])

_KEY_B = bytes([
    0x12, 0x14, 0xA4, 0x65, 0x02, 0x2B, 0x00, 0x9C, 0x00, 0x57, 0x5E, 0x10,
    0x85, 0x50, 0x73, 0xD0, 0xB1, 0x17, 0x2B, 0x49, 0xAC, 0x49, 0xC4, 0x33,
    0x21, 0xB4, 0x48, 0x23, 0x8C, 0x27, 0x98, 0x12, 0x34, 0x80, 0x00, 0x48,
    0xFF, 0xB4, 0x8F, 0x04, 0x2E, 0x24, 0x2D, 0x92, 0xC7, 0x82, 0xE2, 0xA6,
    0xA5, 0x20, 0x20, 0x98, 0x11,
])

_FIRST_BLOCK_KEY = 0x11
_INVERTED_A = bytes(~byte & 0xFF for byte in _KEY_A)
BLOCK_SIZE = len(_KEY_A)


def transcode(data: bytes) -> bytes:
    """Encode or decode an image; applying it twice gives the input back."""
    out = bytearray()
    for block_index, start in enumerate(range(0, len(data), BLOCK_SIZE)):
        key = _KEY_B[(_FIRST_BLOCK_KEY + block_index) % len(_KEY_B)]
        chunk = data[start:start + BLOCK_SIZE]
        out.extend(a ^ key ^ byte for a, byte in zip(_INVERTED_A, chunk))
    return bytes(out)


def checksum(data: bytes) -> int:
    """Unsigned 32-bit sum of all bytes."""
    return sum(data) & 0xFFFFFFFF


def verify_checksum(data: bytes) -> bool:
    """Whether the byte sum matches the known firmware image."""
    return checksum(data) == EXPECTED_CHECKSUM


def main(argv: list[str] | None = None) -> int:
    """Transcode standard input to standard output."""
    data = sys.stdin.buffer.read()
    out = transcode(data)
    sys.stdout.buffer.write(out)
    sys.stdout.buffer.flush()
    print(f"Checksum is {checksum(out):x}", file=sys.stderr)
    return 0


def checksum_main(argv: list[str] | None = None) -> int:
    """Report the byte sum of standard input; exit status 1 if it is unexpected."""
    total = checksum(sys.stdin.buffer.read())
    message = f"CheckSum is {total:x}"
    status = 0
    if total != EXPECTED_CHECKSUM:
        discrepancy = (total - EXPECTED_CHECKSUM + 2**31) % 2**32 - 2**31
        message += f" (discrepancy {discrepancy})"
        status = 1
    print(message, file=sys.stderr)
    return status
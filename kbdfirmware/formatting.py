"""Small text formatters for numbers, hex dumps and C-style strings."""

from __future__ import annotations

_BYTES_PER_LINE = 32


def _is_print(byte: int) -> bool:
    return 0x20 <= byte <= 0x7E


def format_dec(value: int, min_width: int = -1) -> str:
    """Decimal, right-aligned with spaces to ``min_width`` if given."""
    text = str(int(value))
    return text.rjust(min_width) if min_width > 0 else text


def format_hex(value: int, width: int = 2) -> str:
    """``0x`` followed by lower-case hex digits, zero-padded to ``width``."""
    value = int(value)
    if value < 0 and width > 0:
        value &= (1 << (4 * width)) - 1
    return "0x" + format(value, "x").zfill(max(width, 0))


def format_oct(value: int) -> str:
    """Octal with a single leading ``0``."""
    return "0" + format(int(value), "o")


def format_bin(value: int, width: int = 8) -> str:
    """``0b`` followed by exactly ``width`` bits, most significant first."""
    value = int(value)
    bits = "".join("1" if value & (1 << bit) else "0" for bit in reversed(range(width)))
    return "0b" + bits


def hex_dump(data: bytes) -> str:
    """Render bytes as lines of 32 hex values followed by their printable text."""
    lines = []
    for start in range(0, len(data), _BYTES_PER_LINE):
        chunk = data[start:start + _BYTES_PER_LINE]
        pad = _BYTES_PER_LINE - len(chunk)
        hex_part = "".join(f" {byte:02x}" for byte in chunk) + "   " * pad
        text_part = "".join(chr(byte) if _is_print(byte) else "." for byte in chunk) + " " * pad
        lines.append(f"{hex_part} |{text_part}\n")
    return "".join(lines)


def c_string(data: bytes | str) -> str:
    """Quote bytes as a C string literal, escaping unprintable characters."""
    if isinstance(data, str):
        data = data.encode("latin-1")
    escapes = {0x0A: "\\n", 0x09: "\\t", 0x0B: "\\v"}
    parts = []
    for byte in data:
        if byte in escapes:
            parts.append(escapes[byte])
        elif _is_print(byte):
            parts.append(chr(byte))
        else:
            parts.append("\\" + format(byte, "o"))
    return '"' + "".join(parts) + '"'
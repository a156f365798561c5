"""List the keyboard scan codes stored in the firmware's key map area."""

from __future__ import annotations

import logging
import sys

from .hexfile import HexFile, HexFileError, RecordType, load
from .usbkeys import MAX_KEY_NAME_LENGTH, KeyTable, load_key_table

logger = logging.getLogger(__name__)

KEYMAP_BEGIN = 0xBF4
KEYMAP_END = 0xC8C

_START_OFFSET = 4
_BYTES_PER_LINE = 8
_UNKNOWN_KEY = "???"


def _describe_byte(byte: int, keys: KeyTable) -> str:
    scan_code = byte
    left, right = "(", ")"
    if scan_code >= 0xE0:
        left, right = "<", ">"
        scan_code -= 0x10
    name = keys.key_codes.get(scan_code, _UNKNOWN_KEY)
    return f" {left}{name.rjust(MAX_KEY_NAME_LENGTH)}{right}{byte:02x}"


def describe_keys(hex_file: HexFile, keys: KeyTable) -> str:
    """Describe every byte of the key map area with the name of its key."""
    parts = []
    segment_start = 0
    for record in hex_file.records:
        if record.type is RecordType.EXTENDED_LINEAR_ADDRESS:
            segment_start = record.segment << 8
            logger.debug("New segment start %06x", segment_start)
        elif record.type is RecordType.DATA:
            base = record.address + segment_start
            for index, byte in enumerate(record.data):
                address = base + index
                if not KEYMAP_BEGIN <= address < KEYMAP_END:
                    continue
                if (index - _START_OFFSET) % _BYTES_PER_LINE == 0:
                    parts.append(f"\n{address:04x}:")
                parts.append(_describe_byte(byte, keys))
        else:
            break
    return "".join(parts)


def main(argv: list[str] | None = None) -> int:
    """Read a hex image from standard input and print its key map."""
    try:
        keys = load_key_table()
        hex_file = load(sys.stdin)
    except (OSError, HexFileError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    sys.stdout.write(describe_keys(hex_file, keys))
    sys.stdout.flush()
    return 0
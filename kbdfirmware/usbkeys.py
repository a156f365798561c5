"""Table of USB HID key names and scan codes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

MAX_KEY_NAME_LENGTH = 7
DEFAULT_HID_KEYS_PATH = "Vendor/usb_hid_keys.h"

_IDENT_PREFIX = "KEY_"
_MEDIA_PREFIX = "MEDIA_"


@dataclass
class KeyTable:
    """Maps key names to scan codes and back."""

    key_names: dict[str, int] = field(default_factory=dict)
    key_codes: dict[int, str] = field(default_factory=dict)

    def add_key(self, name: str, scan_code: int, overwrite: bool = False) -> None:
        """Record a key; earlier entries win unless ``overwrite`` is set."""
        scan_code &= 0xFF
        if scan_code in self.key_codes and not overwrite:
            logger.warning("Already have a scancode for %#04x: %s", scan_code, self.key_codes[scan_code])
            return
        self.key_codes[scan_code] = name
        if name in self.key_names and not overwrite:
            logger.debug("Already have a name for %s: %x", name, self.key_names[name])
            return
        self.key_names[name] = scan_code


def _parse_define(tokens: list[str]) -> tuple[str, int] | None:
    if len(tokens) < 3 or tokens[0] != "define":
        return None
    name = tokens[1]
    if not name.startswith(_IDENT_PREFIX):
        return None
    name = name[len(_IDENT_PREFIX):]
    if name[:4] in ("MOD_", "ERR_"):
        return None
    if name.startswith(_MEDIA_PREFIX):
        name = name[len(_MEDIA_PREFIX):]
    name = name[:MAX_KEY_NAME_LENGTH]
    try:
        scan_code = int(tokens[2], 16)
    except ValueError:
        return None
    return name, scan_code


def parse_hid_header(text: str) -> KeyTable:
    """Build a key table from ``#define KEY_...`` lines of a C header."""
    table = KeyTable()
    for line in text.splitlines():
        line = line.strip()
        if not line.startswith("#"):
            continue
        entry = _parse_define(line[1:].split())
        if entry is not None:
            table.add_key(*entry)
    table.add_key("EJECT", 0xFC, True)
    table.add_key("FN", 0xF8, True)
    return table


def load_key_table(path: str | Path = DEFAULT_HID_KEYS_PATH) -> KeyTable:
    """Read a key table from a HID keys header file."""
    return parse_hid_header(Path(path).read_text(encoding="utf-8", errors="replace"))
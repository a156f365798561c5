"""Apply key map and byte patches to a hex firmware image."""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

from .hexfile import HexFile, HexFileError, load
from .usbkeys import KeyTable, load_key_table

logger = logging.getLogger(__name__)

EX_USAGE = 64

_ADDRESS_RE = re.compile(r"\s*(?:0[xX])?([0-9A-Fa-f]+)\s*(\S?)")
_HEX_RE = re.compile(r"(?:0[xX])?[0-9A-Fa-f]+")


class PatchError(ValueError):
    """Raised when one or more lines of a patch could not be applied."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("\n".join(errors))
        self.errors = list(errors)


class _LineError(Exception):
    pass


def _store(hex_file: HexFile, address: int, value: int) -> None:
    try:
        hex_file[address] = value
    except IndexError as err:
        raise _LineError(str(err)) from None


def _scan_code(token: str, keys: KeyTable) -> int:
    name = token.upper()
    code = keys.key_names.get(name)
    if code is not None:
        return code + 0x10 if 0xE0 <= code < 0xE8 else code
    if _HEX_RE.fullmatch(name) is None:
        raise _LineError(f"Unknown key code {name}")
    return int(name, 16) & 0xFF


def _apply_line(hex_file: HexFile, line: str, keys: KeyTable) -> None:
    line = line.split(";", 1)[0]
    if not line.strip():
        return
    match = _ADDRESS_RE.match(line)
    if match is None:
        raise _LineError("Expected address:")
    if not match.group(2):
        return
    if match.group(2) != ":":
        raise _LineError("Expected address:")
    address = int(match.group(1), 16)

    tokens = line[match.end():].split()
    if not tokens:
        raise _LineError("Expected directive")
    directive, *args = tokens

    if directive == "keys":
        for token in args:
            code = _scan_code(token, keys)
            logger.debug("%x: %s", address, token)
            _store(hex_file, address, code)
            address += 1
    elif directive == "db":
        for token in args:
            if _HEX_RE.fullmatch(token) is None:
                raise _LineError("Expected hex byte")
            value = int(token, 16)
            if value > 0xFF:
                logger.warning("Byte literal %x too large", value)
            _store(hex_file, address, value)
            address += 1
    else:
        raise _LineError(f"Unrecognized directive {directive}")


def apply_patch(hex_file: HexFile, patch_text: str, keys: KeyTable, name: str = "patch") -> None:
    """Apply a patch in place and refresh the stored low sum.

    Every line is tried; if any fails, PatchError lists all failures and the
    stored sum is left as it was.
    """
    errors = []
    for line_num, line in enumerate(patch_text.splitlines(), start=1):
        try:
            _apply_line(hex_file, line, keys)
        except _LineError as err:
            errors.append(f"{name}:{line_num}: error: {err}")
    if errors:
        raise PatchError(errors)
    hex_file.update_low_sum()


def main(argv: list[str] | None = None) -> int:
    """Patch a hex image read from standard input and write it to standard output."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("usage: patch <file.patch>", file=sys.stderr)
        return EX_USAGE
    patch_path = args[0]
    try:
        hex_file = load(sys.stdin)
        patch_text = Path(patch_path).read_text(encoding="utf-8")
        keys = load_key_table()
    except (OSError, HexFileError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    try:
        apply_patch(hex_file, patch_text, keys, patch_path)
    except PatchError as err:
        for message in err.errors:
            print(message, file=sys.stderr)
        return 1
    sys.stdout.write(hex_file.dumps())
    sys.stdout.flush()
    return 0
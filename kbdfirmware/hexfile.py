"""Reading, editing and writing Intel HEX firmware images."""

from __future__ import annotations

import enum
import string
import warnings
from dataclasses import dataclass, field
from typing import IO, Iterator

BEGIN_SUMMED = 0x80
END_SUMMED = 0x1300
STORED_SUM_ADDRESS = 0x1FFE


class HexFileError(ValueError):
    """Raised when a hex image is malformed."""


class RecordType(enum.IntEnum):
    DATA = 0
    END_OF_FILE = 1
    EXTENDED_LINEAR_ADDRESS = 4


@dataclass
class Record:
    """One record of a hex image."""

    type: RecordType
    address: int = 0
    data: bytearray = field(default_factory=bytearray)
    segment: int = 0
    length: int | None = None

    def __post_init__(self) -> None:
        self.type = RecordType(self.type)
        self.data = bytearray(self.data)
        if self.length is None:
            if self.type is RecordType.DATA:
                self.length = len(self.data)
            elif self.type is RecordType.EXTENDED_LINEAR_ADDRESS:
                self.length = 2
            else:
                self.length = 0
        if self.type is RecordType.DATA and len(self.data) != self.length:
            raise ValueError("Data record length does not match its data")

    def to_line(self) -> str:
        """Encode the record as a hex line without a line terminator."""
        raw = [self.length & 0xFF, (self.address >> 8) & 0xFF, self.address & 0xFF, int(self.type)]
        if self.type is RecordType.DATA:
            raw.extend(self.data)
        elif self.type is RecordType.EXTENDED_LINEAR_ADDRESS:
            raw.extend([(self.segment >> 8) & 0xFF, self.segment & 0xFF])
        raw.append(-sum(raw) & 0xFF)
        return ":" + "".join(f"{byte:02x}" for byte in raw)


class _Scanner:
    """Reads hex digits from text, skipping whitespace, tracking the check sum."""

    def __init__(self, text: str) -> None:
        self._chars: Iterator[str] = (ch for ch in text if not ch.isspace())
        self.total = 0

    def next_char(self) -> str | None:
        return next(self._chars, None)

    def byte(self) -> int:
        value = 0
        for _ in range(2):
            ch = self.next_char()
            if ch is None:
                raise HexFileError("Unexpected end of input")
            if ch not in string.hexdigits:
                raise HexFileError(f"Expected hex digit, got {ch!r}")
            value = (value << 4) | int(ch, 16)
        self.total += value
        return value

    def word(self) -> int:
        return (self.byte() << 8) | self.byte()


def _read_record(scanner: _Scanner) -> Record | None:
    colon = scanner.next_char()
    if colon is None:
        return None
    if colon != ":":
        raise HexFileError(f"Expected : on input, got {colon!r}")

    scanner.total = 0
    length = scanner.byte()
    address = scanner.word()
    type_code = scanner.byte()
    try:
        record_type = RecordType(type_code)
    except ValueError:
        raise HexFileError(f"Unknown record type {type_code}") from None

    data = bytearray()
    segment = 0
    if record_type is RecordType.DATA:
        data = bytearray(scanner.byte() for _ in range(length))
    elif record_type is RecordType.EXTENDED_LINEAR_ADDRESS:
        segment = scanner.word()

    expected = -scanner.total & 0xFF
    check_byte = scanner.byte()
    if check_byte != expected:
        raise HexFileError(f"Invalid check byte {check_byte} should be {expected}")

    return Record(record_type, address, data, segment, length)


def parse_record(line: str) -> Record:
    """Parse a single record; whitespace is ignored."""
    scanner = _Scanner(line)
    record = _read_record(scanner)
    if record is None:
        raise HexFileError("Empty record")
    extra = scanner.next_char()
    if extra is not None:
        raise HexFileError(f"Unexpected {extra!r} after record")
    return record


@dataclass
class HexFile:
    """A hex image as the ordered list of its records."""

    records: list[Record] = field(default_factory=list)

    def _locate(self, address: int) -> tuple[Record, int]:
        for record in self.records:
            if record.type is RecordType.DATA and record.address <= address < record.address + record.length:
                return record, address - record.address
        raise IndexError(f"No record at address {address}")

    def __getitem__(self, address: int) -> int:
        record, offset = self._locate(address)
        return record.data[offset]

    def __setitem__(self, address: int, value: int) -> None:
        record, offset = self._locate(address)
        record.data[offset] = value & 0xFF

    def stored_low_sum(self) -> int:
        """The 16-bit sum stored big-endian at 0x1ffe."""
        return (self[STORED_SUM_ADDRESS] << 8) | self[STORED_SUM_ADDRESS + 1]

    def sum_low_blocks(self) -> int:
        """16-bit sum of the bytes from 0x80 up to 0x1300 in the first segment."""
        segment = 0
        total = 0
        for record in self.records:
            if record.type is RecordType.DATA:
                if segment > 0:
                    continue
                begin = record.address & 0xFFFF
                end = (record.address + record.length) & 0xFFFF
                if end <= BEGIN_SUMMED or begin >= END_SUMMED:
                    continue
                end_offset = END_SUMMED - begin if end > END_SUMMED else record.length
                begin_offset = BEGIN_SUMMED - begin if begin < BEGIN_SUMMED else 0
                total += sum(record.data[begin_offset:end_offset])
            elif record.type is RecordType.EXTENDED_LINEAR_ADDRESS:
                segment = record.segment
        return total & 0xFFFF

    def update_low_sum(self) -> None:
        """Store the computed low sum at 0x1ffe."""
        computed = self.sum_low_blocks()
        self[STORED_SUM_ADDRESS] = computed >> 8
        self[STORED_SUM_ADDRESS + 1] = computed

    def dumps(self) -> str:
        """Encode all records, each line ending in CR LF."""
        return "".join(record.to_line() + "\r\n" for record in self.records)


def loads(text: str) -> HexFile:
    """Parse records up to and including the end record."""
    scanner = _Scanner(text)
    records = []
    done = False
    while not done:
        record = _read_record(scanner)
        if record is None:
            break
        records.append(record)
        done = record.type is RecordType.END_OF_FILE
    if not done:
        warnings.warn("Expected end record before EOF", stacklevel=2)
    return HexFile(records)


def load(stream: IO) -> HexFile:
    """Parse a hex image from a text or binary stream."""
    content = stream.read()
    if isinstance(content, (bytes, bytearray)):
        content = content.decode("ascii")
    return loads(content)
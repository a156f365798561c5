"""Boot loader protocol messages and firmware image preparation."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .formatting import format_hex
from .hexfile import BEGIN_SUMMED, END_SUMMED, HexFile, RecordType, load

logger = logging.getLogger(__name__)

MESSAGE_SIZE = 64
BLOCK_SIZE = 64
HALF_BLOCK = 32
MAGIC = 0xFF
SKIPPED_BLOCKS = frozenset({76, 78, 127})
_CHECKSUM_OFFSET = 45


class LoaderError(RuntimeError):
    """Raised when the boot loader or the firmware image reports a problem."""


class LoaderCommand(enum.IntEnum):
    ENTER = 0x38
    WRITE = 0x39
    VERIFY = 0x3A
    EXIT = 0x3B


class StatusFlag(enum.IntFlag):
    SUCCESS = 0x01
    BAD_LOW_SUM = 0x02
    VERIFY_FAILED = 0x04
    PROTECTED = 0x08
    BAD_CHECKSUM = 0x10
    READY_TO_WRITE = 0x20
    BAD_HEADER = 0x40
    BAD_COMMAND = 0x80


@dataclass(frozen=True)
class LoaderMessage:
    """A 64-byte command sent to the boot loader."""

    command: LoaderCommand
    block_num: int = 0
    second_half: int = 0
    payload: bytes = b""

    def __post_init__(self) -> None:
        if len(self.payload) > HALF_BLOCK:
            raise ValueError(f"Payload of {len(self.payload)} bytes exceeds {HALF_BLOCK}")

    def to_bytes(self) -> bytes:
        """The wire form of the message."""
        header = bytearray([MAGIC, int(self.command)])
        header.extend(range(8))
        header.extend([0, self.block_num & 0xFF, self.second_half & 0xFF])
        header.extend(bytes(self.payload).ljust(HALF_BLOCK, b"\0"))
        header.append(sum(header) & 0xFF)
        return bytes(header.ljust(MESSAGE_SIZE, b"\0"))


_STATUS_ERRORS = (
    (StatusFlag.BAD_LOW_SUM, "Invalid checksum for ROM range 0x80 - 0x1300"),
    (StatusFlag.VERIFY_FAILED, "Block verification failed for block {block}"),
    (StatusFlag.PROTECTED, "Protected flash block error"),
    (StatusFlag.BAD_CHECKSUM, "Invalid block checksum"),
    (StatusFlag.BAD_HEADER, "Invalid command header"),
    (StatusFlag.BAD_COMMAND, "Invalid command"),
)


def check_status(status: int, block_num: int = 0) -> int:
    """Raise LoaderError for an error status; return the status otherwise."""
    for flag, message in _STATUS_ERRORS:
        if status & flag:
            raise LoaderError(message.format(block=block_num))
    if not status & StatusFlag.READY_TO_WRITE:
        raise LoaderError("Device not in ready state")
    return status


def iter_blocks(hex_file: HexFile) -> Iterator[tuple[int, bytes]]:
    """Yield (block number, 64 data bytes) for each block to be sent."""
    segment = 0
    for record in hex_file.records:
        if record.type is RecordType.EXTENDED_LINEAR_ADDRESS:
            logger.debug("New segment starting at %s", format_hex(record.address, 8))
            segment = record.segment
            continue
        if record.type is not RecordType.DATA or segment > 0:
            continue
        if record.length != BLOCK_SIZE:
            logger.warning("Invalid record length %d", record.length)
            continue
        if record.address > BLOCK_SIZE * 0xFF:
            raise LoaderError(f"Record address {record.address} too high")
        if record.address % BLOCK_SIZE:
            raise LoaderError(f"Record address {record.address} not 64-byte aligned")
        block_num = record.address // BLOCK_SIZE
        if block_num in SKIPPED_BLOCKS:
            continue
        yield block_num, bytes(record.data)


def block_messages(hex_file: HexFile, write: bool) -> Iterator[LoaderMessage]:
    """Yield the write or verify messages for every block, two per block."""
    command = LoaderCommand.WRITE if write else LoaderCommand.VERIFY
    for block_num, data in iter_blocks(hex_file):
        for half in range(2):
            chunk = data[half * HALF_BLOCK:(half + 1) * HALF_BLOCK]
            yield LoaderMessage(command, block_num, half, chunk)


def read_firmware(path: str | Path, ignore_checksum: bool = False) -> HexFile:
    """Load a hex image and check its stored low sum against the computed one."""
    with open(path, encoding="ascii") as stream:
        hex_file = load(stream)
    computed = hex_file.sum_low_blocks()
    stored = hex_file.stored_low_sum()
    if not ignore_checksum and computed != stored:
        raise LoaderError(
            f"Stored checksum in {path} ({format_hex(stored, 4)}) "
            f"does not match computed sum ({format_hex(computed, 4)})"
        )
    logger.info(
        "Firmware blocks from %s to %s have sum %s, stored sum is %s",
        format_hex(BEGIN_SUMMED, 4),
        format_hex(END_SUMMED, 4),
        format_hex(computed, 4),
        format_hex(stored, 4),
    )
    return hex_file
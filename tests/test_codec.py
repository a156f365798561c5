import io
import sys

import pytest

from kbdfirmware.codec import (
    BLOCK_SIZE,
    EXPECTED_CHECKSUM,
    checksum,
    checksum_main,
    main,
    transcode,
    verify_checksum,
)


def _stdin(monkeypatch, data):
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


@pytest.mark.parametrize("size", [0, 1, BLOCK_SIZE - 1, BLOCK_SIZE, BLOCK_SIZE * 3 + 5, 5000])
def test_transcode_is_involution(size):
    data = bytes((i * 7 + 3) & 0xFF for i in range(size))
    encoded = transcode(data)
    assert len(encoded) == size
    assert transcode(encoded) == data


def test_block_keys_differ_by_constant():
    encoded = transcode(bytes(BLOCK_SIZE * 2))
    diffs = {a ^ b for a, b in zip(encoded[:BLOCK_SIZE], encoded[BLOCK_SIZE:])}
    assert len(diffs) == 1


def test_transcode_xor_linearity():
    x = bytes(range(200))
    zero = transcode(bytes(200))
    encoded = transcode(x)
    assert bytes(a ^ b for a, b in zip(encoded, zero)) == x


def test_key_cycle_repeats_after_53_blocks():
    encoded = transcode(bytes(BLOCK_SIZE * 54))
    assert encoded[:BLOCK_SIZE] == encoded[53 * BLOCK_SIZE:]
    assert encoded[:BLOCK_SIZE] != encoded[BLOCK_SIZE:2 * BLOCK_SIZE]


def test_checksum_sums_bytes():
    data = bytes(range(256))
    assert checksum(data) == sum(range(256))


def test_verify_checksum():
    good = b"\xff" * 4200 + bytes([EXPECTED_CHECKSUM - 4200 * 255])
    assert checksum(good) == EXPECTED_CHECKSUM
    assert verify_checksum(good)
    assert not verify_checksum(good + b"\x01")


def test_main_transcodes_stdin(monkeypatch, capsysbinary):
    data = bytes(range(256)) * 2
    _stdin(monkeypatch, data)
    assert main([]) == 0
    captured = capsysbinary.readouterr()
    assert captured.out == transcode(data)
    assert captured.err.startswith(b"Checksum is ")


def test_checksum_main_good(monkeypatch, capsys):
    good = b"\xff" * 4200 + bytes([EXPECTED_CHECKSUM - 4200 * 255])
    _stdin(monkeypatch, good)
    assert checksum_main([]) == 0
    assert "discrepancy" not in capsys.readouterr().err


def test_checksum_main_bad(monkeypatch, capsys):
    _stdin(monkeypatch, b"\x01\x02")
    assert checksum_main([]) == 1
    err = capsys.readouterr().err
    assert f"discrepancy {3 - EXPECTED_CHECKSUM}" in err
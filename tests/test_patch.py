import io
import sys

import pytest

from kbdfirmware.hexfile import HexFile, Record, RecordType, loads
from kbdfirmware.patch import PatchError, apply_patch, main
from kbdfirmware.usbkeys import KeyTable


def _table():
    table = KeyTable()
    table.add_key("A", 0x04)
    table.add_key("B", 0x05)
    table.add_key("LCTRL", 0xE0)
    return table


def _image():
    return HexFile([
        Record(RecordType.DATA, 0xC00, bytes(16)),
        Record(RecordType.DATA, 0x1FF0, bytes(16)),
        Record(RecordType.END_OF_FILE),
    ])


def test_keys_directive_writes_scan_codes():
    image = _image()
    apply_patch(image, "c00: keys a b\n", _table())
    assert image[0xC00] == 0x04
    assert image[0xC01] == 0x05
    assert image.stored_low_sum() == image.sum_low_blocks()
    assert image.sum_low_blocks() == image[0xC00] + image[0xC01]


def test_modifier_keys_are_shifted():
    image = _image()
    apply_patch(image, "c00: keys lctrl", _table())
    assert image[0xC00] == 0xF0


def test_hex_scan_code_is_accepted():
    image = _image()
    apply_patch(image, "0xc03: keys 0x2a 1f", _table())
    assert image[0xC03] == 0x2A
    assert image[0xC04] == 0x1F


def test_db_directive_and_comments():
    image = _image()
    apply_patch(image, "; heading\n\n   \nc02: db ff 1 ; trailing\n", _table())
    assert image[0xC02] == 0xFF
    assert image[0xC03] == 0x01


def test_empty_patch_only_updates_sum():
    image = _image()
    image[0xC05] = 7
    apply_patch(image, "", _table())
    assert image.stored_low_sum() == 7


@pytest.mark.parametrize(
    "line, message",
    [
        ("c00: bogus", "Unrecognized directive bogus"),
        ("zz", "Expected address:"),
        ("c00: keys nope", "Unknown key code NOPE"),
        ("c00:", "Expected directive"),
        ("c00 db 1", "Expected address:"),
        ("c00: db 1g", "Expected hex byte"),
        ("5000: db 1", "No record at address"),
    ],
)
def test_line_errors(line, message):
    with pytest.raises(PatchError) as info:
        apply_patch(_image(), line, _table(), "my.patch")
    assert len(info.value.errors) == 1
    assert info.value.errors[0].startswith("my.patch:1: error: ")
    assert message in info.value.errors[0]


def test_errors_accumulate_and_sum_is_untouched():
    image = _image()
    with pytest.raises(PatchError) as info:
        apply_patch(image, "c00: bogus\nc01: db 3\nzz\n", _table(), "p")
    assert [e.split(": error")[0] for e in info.value.errors] == ["p:1", "p:3"]
    assert image[0xC01] == 3
    assert image.stored_low_sum() == 0


def _setup(tmp_path, monkeypatch, patch_text):
    vendor = tmp_path / "Vendor"
    vendor.mkdir()
    (vendor / "usb_hid_keys.h").write_text("#define KEY_A 0x04\n#define KEY_B 0x05\n")
    patch_file = tmp_path / "x.patch"
    patch_file.write_text(patch_text)
    monkeypatch.chdir(tmp_path)
    image = _image()
    image.update_low_sum()
    monkeypatch.setattr(sys, "stdin", io.StringIO(image.dumps()))
    return image, str(patch_file)


def test_main_empty_patch_round_trips(tmp_path, monkeypatch, capsys):
    image, patch_file = _setup(tmp_path, monkeypatch, "")
    assert main([patch_file]) == 0
    assert capsys.readouterr().out == image.dumps()


def test_main_applies_patch(tmp_path, monkeypatch, capsys):
    _, patch_file = _setup(tmp_path, monkeypatch, "c00: keys b\n")
    assert main([patch_file]) == 0
    result = loads(capsys.readouterr().out)
    assert result[0xC00] == 0x05
    assert result.stored_low_sum() == result.sum_low_blocks()


def test_main_reports_errors(tmp_path, monkeypatch, capsys):
    _, patch_file = _setup(tmp_path, monkeypatch, "c00: oops\n")
    assert main([patch_file]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Unrecognized directive oops" in captured.err


@pytest.mark.parametrize("argv", [[], ["a", "b"]])
def test_main_usage(argv):
    assert main(argv) == 64
# kbdfirmware

Tools for working with the firmware image of a USB keyboard controller:
reading and writing Intel HEX images, listing the key map stored in the
firmware, patching that key map, and converting between the plain HEX
image and the obfuscated update-file form.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Commands

All commands read from standard input and write to standard output, so
they chain with shell redirection.

### `kbd-codec`

Converts a firmware update file to a HEX image, or a HEX image back to an
update file. The transform is its own inverse:

```
kbd-codec < firmware.irrxfw > firmware.hex
kbd-codec < firmware.hex > firmware.irrxfw
```

The byte sum of the output is reported in hexadecimal on standard error.

### `kbd-checksum`

Sums the bytes of its input and reports the result on standard error. It
exits with status 0 when the sum is `0x1057f8`, the value expected for the
stock decoded image, and 1 otherwise, reporting the signed discrepancy.

```
kbd-checksum < firmware.hex
```

### `kbd-findkeys`

Prints the key map held in a HEX image (addresses `0xbf4` up to `0xc8c`),
eight entries to a line, each showing the key name and its scan code.
Codes of `0xe0` and above are shown in angle brackets and named after the
code `0x10` lower; unknown codes are shown as `???`.

```
kbd-findkeys < firmware.hex > firmware.keys
```

Key names are read from `Vendor/usb_hid_keys.h`, relative to the current
directory: a C header whose `#define KEY_...` lines give the names and
scan codes. Names are cut to seven characters; `EJECT` (`0xfc`) and `FN`
(`0xf8`) are always added.

### `kbd-patch`

Applies a patch file to a HEX image read from standard input, fixes the
16-bit sum of the firmware range 0x80–0x1300 stored at `0x1ffe`, and
writes the patched image:

```
kbd-patch dvorak.patch < firmware.hex > dvorak.hex
```

It reads key names from `Vendor/usb_hid_keys.h` in the same way as
`kbd-findkeys`. A patch file holds one directive per line; anything after
`;` is a comment. Addresses and byte values are hexadecimal:

```
; replace the top letter row
c14: keys Q W E R T Y
c20: db 2c 28
```

`keys` takes key names (case does not matter) or hexadecimal scan codes;
`db` takes raw bytes. Every line is tried, each failure is reported on
standard error as `file:line: error: message`, and no output is written
if any line fails. The exit status is then 1; a wrong number of arguments
gives status 64.

## Library use

```python
from kbdfirmware import hexfile, codec
from kbdfirmware.usbkeys import load_key_table
from kbdfirmware.patch import apply_patch

with open("firmware.hex") as stream:
    image = hexfile.load(stream)

print(hex(image.stored_low_sum()), hex(image.sum_low_blocks()))

keys = load_key_table("usb_hid_keys.h")
with open("dvorak.patch") as stream:
    apply_patch(image, stream.read(), keys, "dvorak.patch")

update = codec.transcode(image.dumps().encode("ascii"))
```

- `kbdfirmware.hexfile`: `HexFile` holds the ordered `Record`s of an image
  and supports indexing by absolute address to read and write single
  bytes; `loads`, `load`, `HexFile.dumps` and `parse_record` convert
  between text and records. Malformed input raises `HexFileError`.
- `kbdfirmware.usbkeys`: `KeyTable`, `parse_hid_header`, `load_key_table`.
- `kbdfirmware.findkeys.describe_keys` returns the text `kbd-findkeys`
  prints.
- `kbdfirmware.patch.apply_patch` patches in place and raises
  `PatchError`, whose `errors` lists every failed line.
- `kbdfirmware.codec`: `transcode`, `checksum`, `verify_checksum`.
- `kbdfirmware.loader` builds the 64-byte bootloader messages
  (`LoaderMessage`, `block_messages`, `iter_blocks`) used to write or
  verify an image block by block, interprets the status byte the
  bootloader returns (`check_status`, raising `LoaderError`), and loads an
  image with a check of its stored sum (`read_firmware`).
- `kbdfirmware.devices` describes USB devices and their descriptors
  (`DeviceInfo`, `ConfigDescriptor`, `InterfaceDescriptor`,
  `EndpointDescriptor`), picks a device by bus and address or by vendor
  and product ids (`find_device`, raising `DeviceNotFound`), and parses
  the options of an uploader (`parse_options`, `usage`, `UploadOptions`).
- `kbdfirmware.formatting`: small number, hex-dump and C-string
  formatters.

## What this package does not do

The package does not talk to USB hardware. There is no upload command:
it can prepare the bootloader messages for an image and parse an
uploader's command line, but listing attached devices, switching the
keyboard into bootloader mode and sending the messages are left to the
caller.
"""USB device descriptions, device selection and upload command-line options."""

from __future__ import annotations

import enum
import getopt
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .formatting import format_dec, format_hex

logger = logging.getLogger(__name__)

EX_USAGE = 64
APPLE_VENDOR_ID = 0x05AC
KEYBOARD_PRODUCT_IDS = (0x220, 0x24F)
LOADER_PRODUCT_IDS = (0x228,)

_NUMBER_RE = re.compile(r"\d+")


class DeviceNotFound(LookupError):
    """Raised when no attached device matches the requested one."""


class UsageError(ValueError):
    """Raised when the command line cannot be understood."""


class UsbSpeed(enum.IntEnum):
    UNKNOWN = 0
    LOW = 1
    FULL = 2
    HIGH = 3
    SUPER = 4
    SUPER_PLUS = 5


_SPEED_NAMES = {
    UsbSpeed.LOW: "1.5 Mbps",
    UsbSpeed.FULL: "12 Mbps",
    UsbSpeed.HIGH: "480 Mbps",
    UsbSpeed.SUPER: "5 Gbps",
    UsbSpeed.SUPER_PLUS: "10 Gbps",
}


def speed_name(speed: int) -> str:
    """Human-readable bus speed, or ``Unknown``."""
    try:
        return _SPEED_NAMES.get(UsbSpeed(speed), "Unknown")
    except ValueError:
        return "Unknown"


@dataclass(frozen=True)
class EndpointDescriptor:
    """One endpoint of an interface."""

    endpoint_address: int
    attributes: int = 0
    max_packet_size: int = 0
    interval: int = 0
    refresh: int = 0
    synch_address: int = 0

    def describe(self) -> str:
        return (
            "      Endpoint:\n"
            f"        bEndpointAddress:    {format_hex(self.endpoint_address, 2)}\n"
            f"        bmAttributes:        {format_hex(self.attributes, 2)}\n"
            f"        wMaxPacketSize:      {format_dec(self.max_packet_size)}\n"
            f"        bInterval:           {format_dec(self.interval)}\n"
            f"        bRefresh:            {format_dec(self.refresh)}\n"
            f"        bSynchAddress:       {format_dec(self.synch_address)}\n"
        )


@dataclass(frozen=True)
class InterfaceDescriptor:
    """One alternate setting of an interface."""

    interface_number: int
    alternate_setting: int = 0
    interface_class: int = 0
    interface_subclass: int = 0
    interface_protocol: int = 0
    interface_string: int = 0
    endpoints: tuple[EndpointDescriptor, ...] = ()

    def describe(self) -> str:
        head = (
            "    Interface:\n"
            f"      bInterfaceNumber:      {format_hex(self.interface_number, 2)}\n"
            f"      bAlternateSetting:     {format_hex(self.alternate_setting, 2)}\n"
            f"      bNumEndpoints:         {format_hex(len(self.endpoints), 2)}\n"
            f"      bInterfaceClass:       {format_hex(self.interface_class, 2)}\n"
            f"      bInterfaceSubClass:    {format_hex(self.interface_subclass, 2)}\n"
            f"      bInterfaceProtocol:    {format_hex(self.interface_protocol, 2)}\n"
            f"      iInterface:            {format_dec(self.interface_string)}\n"
        )
        return head + "".join(endpoint.describe() for endpoint in self.endpoints)


@dataclass(frozen=True)
class ConfigDescriptor:
    """A configuration; each interface is the tuple of its alternate settings."""

    total_length: int
    configuration_value: int = 1
    configuration_string: int = 0
    attributes: int = 0
    max_power: int = 0
    interfaces: tuple[tuple[InterfaceDescriptor, ...], ...] = ()

    def describe(self) -> str:
        head = (
            "  Configuration:\n"
            f"    wTotalLength:            {format_dec(self.total_length)}\n"
            f"    bNumInterfaces:          {format_dec(len(self.interfaces))}\n"
            f"    bConfigurationValue:     {format_dec(self.configuration_value)}\n"
            f"    iConfiguration:          {format_dec(self.configuration_string)}\n"
            f"    bmAttributes:            {format_hex(self.attributes, 2)}\n"
            f"    MaxPower:                {format_dec(self.max_power)}\n"
        )
        body = "".join(alt.describe() for interface in self.interfaces for alt in interface)
        return head + body


@dataclass(frozen=True)
class DeviceInfo:
    """What is known about an attached device without opening it."""

    bus_number: int
    device_address: int
    vendor_id: int
    product_id: int
    speed: int = UsbSpeed.UNKNOWN
    configs: tuple[ConfigDescriptor, ...] = field(default=(), compare=False)

    def describe(self) -> str:
        return (
            f"Dev (bus {format_dec(self.bus_number, 2)}"
            f" address {format_dec(self.device_address, 2)}): "
            f"{format_hex(self.vendor_id, 4)} - {format_hex(self.product_id, 4)}"
            f" speed: {speed_name(self.speed)}"
        )


def sort_devices(devices: Iterable[DeviceInfo]) -> list[DeviceInfo]:
    """Devices ordered by bus number, then device address."""
    return sorted(devices, key=lambda device: (device.bus_number, device.device_address))


def find_device(
    devices: Iterable[DeviceInfo],
    bus_number: int | None,
    device_address: int | None,
    vendor_id: int,
    product_ids: Sequence[int],
) -> DeviceInfo:
    """Pick a device by bus and address if given, else by vendor and product ids."""
    product_ids = tuple(product_ids)
    by_location = bus_number is not None and bus_number != -1
    for device in devices:
        if by_location:
            if device.bus_number == bus_number and device.device_address == device_address:
                if device.vendor_id != vendor_id:
                    logger.warning(
                        "idVendor %s does not match expected value %s",
                        format_hex(device.vendor_id, 4),
                        format_hex(vendor_id, 4),
                    )
                if device.product_id not in product_ids:
                    logger.warning(
                        "idProduct %s does not match any expected value: %s",
                        format_hex(device.product_id, 4),
                        " ".join(format_hex(pid, 4) for pid in product_ids),
                    )
                return device
        elif device.vendor_id == vendor_id and device.product_id in product_ids:
            return device

    if by_location:
        raise DeviceNotFound(
            f"Could not find device at bus {bus_number} and device address {device_address}"
        )
    wanted = "".join(" " + format_hex(pid, 4) for pid in product_ids)
    raise DeviceNotFound(
        f"Could not find device with idVendor {format_hex(vendor_id, 4)} and idProduct in {{{wanted} }}"
    )


@dataclass
class UploadOptions:
    """Settings taken from the upload command line."""

    hex_path: str | None = None
    bus_number: int | None = None
    device_address: int | None = None
    ignore_checksum: bool = False
    list_only: bool = False
    verbosity: int = 0
    assume_loader: bool = False


def _parse_number(text: str, what: str) -> int:
    if _NUMBER_RE.fullmatch(text) is None:
        raise UsageError(f"Invalid {what} {text}")
    return int(text)


def parse_options(argv: Sequence[str]) -> UploadOptions:
    """Parse command-line arguments (without the program name)."""
    try:
        opts, args = getopt.getopt(list(argv), "a:b:chlvL")
    except getopt.GetoptError as err:
        raise UsageError(f"Unknown option -- {err.opt}") from None

    options = UploadOptions()
    for opt, value in opts:
        if opt == "-a":
            options.device_address = _parse_number(value, "device address")
        elif opt == "-b":
            options.bus_number = _parse_number(value, "bus number")
        elif opt == "-c":
            options.ignore_checksum = True
        elif opt == "-h":
            raise UsageError("")
        elif opt == "-l":
            options.list_only = True
        elif opt == "-v":
            options.verbosity += 1
        elif opt == "-L":
            options.assume_loader = True

    if (options.bus_number is None) != (options.device_address is None):
        raise UsageError("You must specify both bus number and device address, or neither")
    if not options.list_only and len(args) != 1:
        raise UsageError("")
    options.hex_path = args[0] if args else None
    return options


def usage(prog: str) -> str:
    """The usage text of the upload command."""
    return (
        f"usage: {prog} [-chvL] [-b <bus-num> -a <dev-addr> ] {{ <file.hex> | -l }}\n"
        "<file.hex>\tFirmware image to use\n"
        "-l\t\tList devices and then exit\n"
        "-v\t\tIncrease verbosity level\n"
        "-c\t\tIgnore checksum errors in the firmware image file\n"
        "-b <bus-num>\tSpecify bus number device is attached to\n"
        "-a <dev-addr>\tSpecify device address on bus\n"
        "-L\t\tAssume the device is already in bootloader mode\n"
        "-h\t\tShow this help\n"
    )
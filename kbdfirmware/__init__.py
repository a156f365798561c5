"""Read, patch and encode keyboard controller firmware images and build bootloader messages."""

__version__ = "0.1.0"
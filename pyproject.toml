[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kbdfirmware"
version = "0.1.0"
description = "Tools for inspecting, patching and encoding keyboard controller firmware images in Intel HEX form"
requires-python = ">=3.10"
dependencies = []
keywords = ["firmware", "intel-hex", "keyboard", "keymap", "usb", "hid", "bootloader"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kbd-codec = "kbdfirmware.codec:main"
kbd-checksum = "kbdfirmware.codec:checksum_main"
kbd-findkeys = "kbdfirmware.findkeys:main"
kbd-patch = "kbdfirmware.patch:main"

[tool.hatch.build.targets.wheel]
packages = ["kbdfirmware"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crystalgb"
version = "0.1.0"
description = "Game Boy Color hardware components: timer, serial port, joypad, MBC3 cartridge, save files, GPU and sound"
requires-python = ">=3.10"
dependencies = []
keywords = ["gameboy", "gbc", "emulator", "mbc3", "apu", "gpu", "blip-buffer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["crystalgb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

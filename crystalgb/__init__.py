"""Game Boy Color hardware components: timer, serial port, joypad, MBC3 cartridge, save files, GPU and sound."""

__version__ = "0.1.0"
"""CHIP-8 virtual machine package."""

from chipvm.state import EmulatorState, create_state
from chipvm.emulator import execute, fetch, step, run, tick_timers, load_program, load_rom
from chipvm.decode import DecodedInstruction, Opcode, decode, disassemble
from chipvm.constants import *
from chipvm.errors import (
    Fault, Chip8Error, RomTooLargeError, MachineFault,
    StackOverflowError, StackUnderflowError, OutOfBoundsError,
)
from chipvm.machine import Machine
from chipvm.rendering import display_to_rgb, create_color_scheme, save_frame

__all__ = [
    "EmulatorState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run",
    "tick_timers",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "Opcode",
    "decode",
    "disassemble",
    "Machine",
    "Fault",
    "Chip8Error",
    "RomTooLargeError",
    "MachineFault",
    "StackOverflowError",
    "StackUnderflowError",
    "OutOfBoundsError",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "MAX_ROM_SIZE",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "create_color_scheme",
    "save_frame",
]

"""CHIP-8 error types and fault codes."""

from enum import IntEnum


class Fault(IntEnum):
    """Fault code recorded in the emulator state after a step."""
    NONE = 0
    STACK_OVERFLOW = 1
    STACK_UNDERFLOW = 2
    OUT_OF_BOUNDS = 3


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class RomTooLargeError(Chip8Error, ValueError):
    """Program image does not fit in the program region."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"ROM is {size} bytes, program region holds at most {limit}")
        self.size = size
        self.limit = limit


class MachineFault(Chip8Error):
    """A step could not complete; the instruction had no effect."""

    fault = Fault.NONE
    description = "machine fault"

    def __init__(self, pc: int, instruction: int):
        super().__init__(f"{self.description} at 0x{pc:03X} (instruction 0x{instruction:04X})")
        self.pc = pc
        self.instruction = instruction


class StackOverflowError(MachineFault):
    fault = Fault.STACK_OVERFLOW
    description = "stack overflow"


class StackUnderflowError(MachineFault):
    fault = Fault.STACK_UNDERFLOW
    description = "stack underflow"


class OutOfBoundsError(MachineFault):
    fault = Fault.OUT_OF_BOUNDS
    description = "memory access out of bounds"


_FAULT_ERRORS = {
    Fault.STACK_OVERFLOW: StackOverflowError,
    Fault.STACK_UNDERFLOW: StackUnderflowError,
    Fault.OUT_OF_BOUNDS: OutOfBoundsError,
}


def fault_error(fault: int, pc: int, instruction: int) -> MachineFault:
    """Build the exception matching a nonzero fault code."""
    return _FAULT_ERRORS[Fault(fault)](pc, instruction)

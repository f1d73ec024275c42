"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from chipvm.state import EmulatorState, raise_fault
from chipvm.decode import DecodedInstruction
from chipvm.errors import Fault
from chipvm.stack import pop, is_empty


def no_op(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """No operation. Unrecognised words, including 0NNN, land here."""
    return state


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    state = raise_fault(state, is_empty(state.stack), Fault.STACK_UNDERFLOW)
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)

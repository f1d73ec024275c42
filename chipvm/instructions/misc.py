"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState, raise_fault, access_out_of_bounds, write_memory
from chipvm.decode import DecodedInstruction
from chipvm.errors import Fault
from chipvm.constants import FONT_START, FONT_GLYPH_SIZE, MEMORY_SIZE, NUM_REGISTERS


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, wrapping at 16 bits. VF is not touched."""
    new_i = (jnp.astype(state.I, jnp.int32) + state.V[instruction.x]) & 0xFFFF
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Rewinds pc while no key is down so the instruction runs again next step.
    """
    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        return state.replace(pc=state.pc - 2)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX (low nibble)."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.int32)
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_GLYPH_SIZE, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2.

    Digits aimed at the font table are not written.
    """
    state = raise_fault(state, access_out_of_bounds(state.I, 3), Fault.OUT_OF_BOUNDS)
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.clip(jnp.arange(3) + jnp.astype(state.I, jnp.int32), 0, MEMORY_SIZE - 1)
    return state.replace(memory=write_memory(state.memory, indices, digits))


def _register_block(state: EmulatorState, instruction: DecodedInstruction):
    """Mask of V0..VX and the memory addresses they map to from I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    addresses = jnp.clip(jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS), 0, MEMORY_SIZE - 1)
    return register_mask, addresses


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is unchanged.

    Registers aimed at the font table are not written.
    """
    state = raise_fault(state, access_out_of_bounds(state.I, instruction.x + 1), Fault.OUT_OF_BOUNDS)
    register_mask, addresses = _register_block(state, instruction)
    return state.replace(memory=write_memory(state.memory, addresses, state.V, mask=register_mask))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is unchanged."""
    state = raise_fault(state, access_out_of_bounds(state.I, instruction.x + 1), Fault.OUT_OF_BOUNDS)
    register_mask, addresses = _register_block(state, instruction)
    memory_values = state.memory[addresses]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V)

"""CHIP-8 emulator state structures."""

from dataclasses import field

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode

from chipvm.constants import (
    MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS, PROGRAM_START, FONT_START, FONT_DATA,
    SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
)
from chipvm.errors import Fault


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))


def raise_fault(state: EmulatorState, condition, fault: Fault) -> EmulatorState:
    """Record ``fault`` when ``condition`` holds, keeping any earlier fault."""
    code = jnp.where(
        condition & (state.fault == int(Fault.NONE)),
        jnp.astype(int(fault), jnp.uint8),
        state.fault,
    )
    return state.replace(fault=code)


def access_out_of_bounds(start, length):
    """True when ``length`` bytes starting at ``start`` leave the address space."""
    return jnp.astype(start, jnp.int32) + length > MEMORY_SIZE


def in_font_region(address):
    """True for addresses inside the font table."""
    return (address >= FONT_START) & (address < FONT_START + len(FONT_DATA))


def write_memory(memory: jnp.ndarray, addresses: jnp.ndarray, values: jnp.ndarray, mask=None) -> jnp.ndarray:
    """Scatter ``values`` to ``addresses`` in order, skipping lanes where ``mask`` is False.

    Writes that land in the font table are dropped, so the glyphs stay intact.
    """
    for offset in range(addresses.shape[0]):
        address = addresses[offset]
        keep = in_font_region(address)
        if mask is not None:
            keep = keep | ~mask[offset]
        value = jnp.where(keep, memory[address], values[offset])
        memory = memory.at[address].set(value)
    return memory

"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.state import EmulatorState, raise_fault, access_out_of_bounds
from chipvm.decode import DecodedInstruction
from chipvm.errors import Fault
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MEMORY_SIZE, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision.

    The origin wraps around the screen, the sprite body is clipped at the
    right and bottom edges.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    state = raise_fault(state, access_out_of_bounds(state.I, instruction.n), Fault.OUT_OF_BOUNDS)

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    in_sprite = (
        (col_offset >= 0) & (col_offset < SPRITE_WIDTH)
        & (row_offset >= 0) & (row_offset < instruction.n)
    )

    addresses = jnp.clip(jnp.astype(state.I, jnp.int32) + row_offset, 0, MEMORY_SIZE - 1)
    sprite_bytes = jnp.astype(state.memory[addresses], jnp.int32)
    bits = (sprite_bytes >> jnp.clip(SPRITE_WIDTH - 1 - col_offset, 0, SPRITE_WIDTH - 1)) & 1
    sprite = in_sprite & (bits == 1)

    collision = jnp.any(state.display & sprite)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )

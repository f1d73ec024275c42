"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function takes VX and VY widened to int32 and returns the new VX
(before masking to 8 bits) and the flag for VF, or ``None`` when the operation
leaves VF alone. The flag is written after VX, so with X = F the flag wins.
"""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import FLAG_REGISTER


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, VF = carry."""
    result = vx + vy
    return result, result > 255


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = VX > VY."""
    return vx - vy, vx > vy


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = VY > VX."""
    return vy - vx, vy > vx


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return vx << 1, (vx & 0x80) >> 7


def make_alu_instruction(alu_fn):
    """Wrap an ``alu_*`` function into an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = jnp.astype(state.V[instruction.x], jnp.int32)
        vy = jnp.astype(state.V[instruction.y], jnp.int32)
        result, flag = alu_fn(vx, vy)

        new_V = state.V.at[instruction.x].set(jnp.astype(result & 0xFF, jnp.uint8))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        return state.replace(V=new_V)

    alu_instruction.__doc__ = alu_fn.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_alu_instruction(alu_shift_right)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_alu_instruction(alu_shift_left)

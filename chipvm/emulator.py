"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState, raise_fault, access_out_of_bounds
from chipvm.decode import Opcode, decode
from chipvm.constants import PROGRAM_START, MAX_ROM_SIZE
from chipvm.errors import Fault, RomTooLargeError
from chipvm.instructions.system import no_op, execute_clear_screen, execute_return
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_pressed, execute_skip_if_key_not_pressed,
)
from chipvm.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left,
)
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers,
)

HANDLERS = {
    Opcode.NOOP: no_op,
    Opcode.CLS: execute_clear_screen,
    Opcode.RET: execute_return,
    Opcode.JP: execute_jump,
    Opcode.CALL: execute_call,
    Opcode.SE_BYTE: execute_skip_if_equal_immediate,
    Opcode.SNE_BYTE: execute_skip_if_not_equal_immediate,
    Opcode.SE_REG: execute_skip_if_equal_register,
    Opcode.LD_BYTE: execute_set,
    Opcode.ADD_BYTE: execute_add,
    Opcode.LD_REG: execute_alu_set,
    Opcode.OR: execute_alu_or,
    Opcode.AND: execute_alu_and,
    Opcode.XOR: execute_alu_xor,
    Opcode.ADD_REG: execute_alu_add,
    Opcode.SUB: execute_alu_sub_xy,
    Opcode.SHR: execute_alu_shift_right,
    Opcode.SUBN: execute_alu_sub_yx,
    Opcode.SHL: execute_alu_shift_left,
    Opcode.SNE_REG: execute_skip_if_not_equal_register,
    Opcode.LD_I: execute_set_index,
    Opcode.JP_V0: execute_jump_with_offset,
    Opcode.RND: execute_random,
    Opcode.DRW: execute_display,
    Opcode.SKP: execute_skip_if_key_pressed,
    Opcode.SKNP: execute_skip_if_key_not_pressed,
    Opcode.LD_VX_DT: execute_get_delay_timer,
    Opcode.LD_VX_K: execute_wait_for_key,
    Opcode.LD_DT_VX: execute_set_delay_timer,
    Opcode.LD_ST_VX: execute_set_sound_timer,
    Opcode.ADD_I_VX: execute_add_to_index,
    Opcode.LD_F_VX: execute_font_character,
    Opcode.LD_B_VX: execute_bcd_conversion,
    Opcode.LD_I_VX: execute_store_registers,
    Opcode.LD_VX_I: execute_load_registers,
}

# Branch list ordered by Opcode value, so the tag is the switch index.
_BRANCHES = [HANDLERS[op] for op in sorted(Opcode)]


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.op, _BRANCHES, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    state = raise_fault(state, access_out_of_bounds(state.pc, 2), Fault.OUT_OF_BOUNDS)
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement each nonzero timer by one."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


@jax.jit
def step(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Run one fetch/execute/timer cycle.

    If the cycle faults, the returned state is the input state with only
    ``fault`` set, so pc still points at the faulting instruction.
    """
    state = state.replace(fault=jnp.zeros_like(state.fault))
    next_state, instruction = fetch(state)
    next_state = tick_timers(execute(next_state, instruction))

    faulted = next_state.fault != Fault.NONE.value
    new_state = jax.lax.cond(
        faulted,
        lambda: state.replace(fault=next_state.fault),
        lambda: next_state,
    )
    return new_state, instruction


def _run_instruction(state, _):
    state, instruction = step(state)
    return state, instruction


@partial(jax.jit, static_argnums=1)
def run(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` cycles. A fault freezes the state at the faulting instruction."""
    state, _ = jax.lax.scan(_run_instruction, state, length=n)
    return state


def load_program(state: EmulatorState, image: bytes) -> EmulatorState:
    """Copy a program image into memory starting at 0x200. Nothing else changes."""
    if len(image) > MAX_ROM_SIZE:
        raise RomTooLargeError(len(image), MAX_ROM_SIZE)
    if not image:
        return state
    rom_array = jnp.array(list(image), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(image)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)

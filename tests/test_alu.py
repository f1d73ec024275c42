"""Tests for ALU operations (8xxx)."""

import jax.numpy as jnp
import pytest
from chipvm import execute
from chipvm.instructions.alu import alu_add, alu_shift_right, alu_shift_left


def with_registers(state, **registers):
    """Set registers by name, e.g. with_registers(state, V1=0x10, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


class TestBasicALU:
    """Test basic ALU operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = with_registers(fresh_state, V1=0x42, V2=0x99)

        state = execute(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = with_registers(fresh_state, V1=0xF0, V2=0x0F)

        state = execute(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = with_registers(fresh_state, V1=0xF0, V2=0xF1)

        state = execute(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = with_registers(fresh_state, V1=0xFF, V2=0xF0)

        state = execute(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0x0F

    @pytest.mark.parametrize("instruction", [0x8120, 0x8121, 0x8122, 0x8123])
    def test_logical_ops_leave_vf_alone(self, fresh_state, instruction):
        """8XY0-8XY3 do not touch the flag register."""
        state = with_registers(fresh_state, V1=0x0C, V2=0x0A, VF=0x77)

        state = execute(state, instruction)

        assert state.V[15] == 0x77

    def test_logical_op_into_vf(self, fresh_state):
        """8FY1 - VF as destination of a flagless operation keeps the result."""
        state = with_registers(fresh_state, VF=0xF0, V2=0x0F)

        state = execute(state, 0x8F21)  # VF |= V2

        assert state.V[15] == 0xFF


class TestALUArithmetic:
    """Test arithmetic ALU operations."""

    def test_alu_add_no_carry(self, fresh_state):
        """8XY4 - Add without carry."""
        state = with_registers(fresh_state, V1=0x10, V2=0x20)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x30
        assert state.V[15] == 0

    def test_alu_add_with_carry(self, fresh_state):
        """8XY4 - Add with carry."""
        state = with_registers(fresh_state, V1=0xFF, V2=0x01)

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x00  # 256 wraps to 0
        assert state.V[15] == 1  # Carry set

    def test_alu_add_exact_limit(self, fresh_state):
        """8XY4 - A sum of exactly 255 does not carry."""
        state = with_registers(fresh_state, V1=0xF0, V2=0x0F, VF=1)

        state = execute(state, 0x8124)

        assert state.V[1] == 0xFF
        assert state.V[15] == 0

    def test_alu_add_all_pairs(self):
        """8XY4 arithmetic over every (VX, VY) pair."""
        vx, vy = jnp.meshgrid(jnp.arange(256), jnp.arange(256), indexing="ij")

        result, carry = alu_add(vx, vy)

        assert jnp.all((result & 0xFF) == (vx + vy) % 256)
        assert jnp.all(carry == (vx + vy > 255))

    def test_alu_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, no borrow."""
        state = with_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8125)  # V1 -= V2

        assert state.V[1] == 0x20
        assert state.V[15] == 1  # VX > VY

    def test_alu_sub_xy_with_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, with borrow."""
        state = with_registers(fresh_state, V3=0x10, V4=0x30)

        state = execute(state, 0x8345)  # V3 -= V4

        assert state.V[3] == 0xE0  # 16 - 48 = -32 → 224
        assert state.V[15] == 0

    def test_alu_sub_xy_equal(self, fresh_state):
        """8XY5 - Equal operands clear VF (strict comparison)."""
        state = with_registers(fresh_state, V1=0x42, V2=0x42, VF=1)

        state = execute(state, 0x8125)

        assert state.V[1] == 0
        assert state.V[15] == 0

    def test_alu_sub_yx_no_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, no borrow."""
        state = with_registers(fresh_state, V1=0x10, V2=0x30)

        state = execute(state, 0x8127)  # V1 = V2 - V1

        assert state.V[1] == 0x20  # 48 - 16 = 32
        assert state.V[15] == 1  # VY > VX

    def test_alu_sub_yx_with_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX wraps when VX > VY."""
        state = with_registers(fresh_state, V1=0x30, V2=0x10)

        state = execute(state, 0x8127)

        assert state.V[1] == 0xE0
        assert state.V[15] == 0

    def test_alu_sub_yx_equal(self, fresh_state):
        """8XY7 - Equal operands clear VF."""
        state = with_registers(fresh_state, V1=0x05, V2=0x05, VF=1)

        state = execute(state, 0x8127)

        assert state.V[1] == 0
        assert state.V[15] == 0


class TestALUShifts:
    """Test shift operations."""

    def test_shift_right_even(self, fresh_state):
        """8XY6 - Shift right, even number."""
        state = with_registers(fresh_state, V1=0x04, V2=0xFF)  # V2 is ignored

        state = execute(state, 0x8126)  # V1 >>= 1

        assert state.V[1] == 0x02
        assert state.V[15] == 0  # LSB was 0

    def test_shift_right_odd(self, fresh_state):
        """8XY6 - Shift right, odd number."""
        state = with_registers(fresh_state, V3=0x05, V4=0xFF)

        state = execute(state, 0x8346)  # V3 >>= 1

        assert state.V[3] == 0x02
        assert state.V[15] == 1  # LSB was 1

    def test_shift_left_overflow(self, fresh_state):
        """8XYE - Shift left with overflow."""
        state = with_registers(fresh_state, V3=0x81, V4=0xFF)

        state = execute(state, 0x834E)  # V3 <<= 1

        assert state.V[3] == 0x02  # 129 << 1 = 258 → 2
        assert state.V[15] == 1  # MSB was 1

    def test_shift_left_no_overflow(self, fresh_state):
        """8XYE - Shift left without overflow."""
        state = with_registers(fresh_state, V3=0x41, VF=1)

        state = execute(state, 0x834E)

        assert state.V[3] == 0x82
        assert state.V[15] == 0

    def test_shift_flags_all_values(self):
        """8XY6/8XYE flags are bit 0 / bit 7 of the value before the shift."""
        values = jnp.arange(256)

        right, right_flag = alu_shift_right(values, values)
        left, left_flag = alu_shift_left(values, values)

        assert jnp.all(right_flag == values & 1)
        assert jnp.all(right == values // 2)
        assert jnp.all(left_flag == values >> 7)
        assert jnp.all((left & 0xFF) == (values * 2) % 256)

    def test_shift_right_then_left_loses_low_bit(self, fresh_state):
        """8XY6 then 8XYE clears bit 0 and reports bit 7 of the shifted value."""
        state = with_registers(fresh_state, V1=0xC3)

        state = execute(state, 0x8116)
        assert state.V[1] == 0x61
        assert state.V[15] == 1

        state = execute(state, 0x811E)
        assert state.V[1] == 0xC2
        assert state.V[15] == 0


class TestFlagRegisterAsOperand:
    """VF is both a general register and the flag register."""

    def test_add_into_vf_keeps_carry(self, fresh_state):
        """8FY4 - VF receives the carry, not the sum."""
        state = with_registers(fresh_state, VF=0xFF, V1=0x02)

        state = execute(state, 0x8F14)  # VF += V1

        assert state.V[15] == 1

    def test_add_into_vf_no_carry(self, fresh_state):
        """8FY4 - VF receives 0 when there is no carry, not the sum."""
        state = with_registers(fresh_state, VF=0x10, V1=0x02)

        state = execute(state, 0x8F14)

        assert state.V[15] == 0

    def test_sub_into_vf(self, fresh_state):
        """8FY5 - VF receives the no-borrow flag."""
        state = with_registers(fresh_state, VF=0x30, V1=0x10)

        state = execute(state, 0x8F15)

        assert state.V[15] == 1

    def test_shift_vf(self, fresh_state):
        """8FY6 - VF receives the shifted-out bit."""
        state = with_registers(fresh_state, VF=0x02)

        state = execute(state, 0x8F06)

        assert state.V[15] == 0

    def test_vf_as_source(self, fresh_state):
        """8XF4 - VF read as operand before the flag overwrites it."""
        state = with_registers(fresh_state, VF=0x42, V1=0x10)

        state = execute(state, 0x81F4)  # V1 += VF

        assert state.V[1] == 0x52
        assert state.V[15] == 0


class TestALUEdgeCases:
    """Test edge cases and comprehensive scenarios."""

    @pytest.mark.parametrize("op", [0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xF])
    def test_alu_undefined_operations(self, fresh_state, op):
        """8XY8-8XYD and 8XYF are no-ops."""
        state = with_registers(fresh_state, V1=0x42, V2=0x99, VF=0x33)

        state = execute(state, 0x8120 | op)

        assert state.V[1] == 0x42, f"Undefined op {op:X} changed VX"
        assert state.V[15] == 0x33, f"Undefined op {op:X} changed VF"

    def test_alu_self_operations(self, fresh_state):
        """Test operations where VX and VY are the same register."""
        state = with_registers(fresh_state, V5=0xAA)

        state = execute(state, 0x8553)  # V5 ^= V5
        assert state.V[5] == 0x00, "Self XOR should result in 0"

        state = with_registers(state, V5=0x80)
        state = execute(state, 0x8554)  # V5 += V5
        assert state.V[5] == 0x00, "Self ADD should wrap on overflow"
        assert state.V[15] == 1, "Self ADD should set carry flag"

    def test_add_immediate_wraps_without_flag(self, fresh_state):
        """7XNN wraps at 256 and never touches VF."""
        state = with_registers(fresh_state, V1=0xFF, VF=0x07)

        state = execute(state, 0x7102)

        assert state.V[1] == 0x01
        assert state.V[15] == 0x07

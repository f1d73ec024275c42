"""CHIP-8 instruction decoding."""

from enum import IntEnum

import jax.numpy as jnp
from chex import dataclass


class Opcode(IntEnum):
    """Instruction tags. The value is the branch index used by ``execute``."""
    NOOP = 0
    CLS = 1          # 00E0
    RET = 2          # 00EE
    JP = 3           # 1nnn
    CALL = 4         # 2nnn
    SE_BYTE = 5      # 3xkk
    SNE_BYTE = 6     # 4xkk
    SE_REG = 7       # 5xy0
    LD_BYTE = 8      # 6xkk
    ADD_BYTE = 9     # 7xkk
    LD_REG = 10      # 8xy0
    OR = 11          # 8xy1
    AND = 12         # 8xy2
    XOR = 13         # 8xy3
    ADD_REG = 14     # 8xy4
    SUB = 15         # 8xy5
    SHR = 16         # 8xy6
    SUBN = 17        # 8xy7
    SHL = 18         # 8xyE
    SNE_REG = 19     # 9xy0
    LD_I = 20        # Annn
    JP_V0 = 21       # Bnnn
    RND = 22         # Cxkk
    DRW = 23         # Dxyn
    SKP = 24         # Ex9E
    SKNP = 25        # ExA1
    LD_VX_DT = 26    # Fx07
    LD_VX_K = 27     # Fx0A
    LD_DT_VX = 28    # Fx15
    LD_ST_VX = 29    # Fx18
    ADD_I_VX = 30    # Fx1E
    LD_F_VX = 31     # Fx29
    LD_B_VX = 32     # Fx33
    LD_I_VX = 33     # Fx55
    LD_VX_I = 34     # Fx65


# (mask, value, opcode). Words matching none of these decode to NOOP.
INSTRUCTION_PATTERNS = (
    (0xFFFF, 0x00E0, Opcode.CLS),
    (0xFFFF, 0x00EE, Opcode.RET),
    (0xF000, 0x1000, Opcode.JP),
    (0xF000, 0x2000, Opcode.CALL),
    (0xF000, 0x3000, Opcode.SE_BYTE),
    (0xF000, 0x4000, Opcode.SNE_BYTE),
    (0xF000, 0x5000, Opcode.SE_REG),
    (0xF000, 0x6000, Opcode.LD_BYTE),
    (0xF000, 0x7000, Opcode.ADD_BYTE),
    (0xF00F, 0x8000, Opcode.LD_REG),
    (0xF00F, 0x8001, Opcode.OR),
    (0xF00F, 0x8002, Opcode.AND),
    (0xF00F, 0x8003, Opcode.XOR),
    (0xF00F, 0x8004, Opcode.ADD_REG),
    (0xF00F, 0x8005, Opcode.SUB),
    (0xF00F, 0x8006, Opcode.SHR),
    (0xF00F, 0x8007, Opcode.SUBN),
    (0xF00F, 0x800E, Opcode.SHL),
    (0xF000, 0x9000, Opcode.SNE_REG),
    (0xF000, 0xA000, Opcode.LD_I),
    (0xF000, 0xB000, Opcode.JP_V0),
    (0xF000, 0xC000, Opcode.RND),
    (0xF000, 0xD000, Opcode.DRW),
    (0xF0FF, 0xE09E, Opcode.SKP),
    (0xF0FF, 0xE0A1, Opcode.SKNP),
    (0xF0FF, 0xF007, Opcode.LD_VX_DT),
    (0xF0FF, 0xF00A, Opcode.LD_VX_K),
    (0xF0FF, 0xF015, Opcode.LD_DT_VX),
    (0xF0FF, 0xF018, Opcode.LD_ST_VX),
    (0xF0FF, 0xF01E, Opcode.ADD_I_VX),
    (0xF0FF, 0xF029, Opcode.LD_F_VX),
    (0xF0FF, 0xF033, Opcode.LD_B_VX),
    (0xF0FF, 0xF055, Opcode.LD_I_VX),
    (0xF0FF, 0xF065, Opcode.LD_VX_I),
)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    op: int      # Opcode tag
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def classify(instruction: int) -> jnp.ndarray:
    """Map a 16-bit word to its Opcode tag, NOOP when nothing matches."""
    op = jnp.zeros((), dtype=jnp.int32)
    for mask, value, opcode in INSTRUCTION_PATTERNS:
        op = jnp.where((instruction & mask) == value, int(opcode), op)
    return op


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        op=classify(instruction),
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


_OPERAND_FORMATS = {
    Opcode.NOOP: "",
    Opcode.CLS: "",
    Opcode.RET: "",
    Opcode.JP: "0x{nnn:03X}",
    Opcode.CALL: "0x{nnn:03X}",
    Opcode.SE_BYTE: "V{x:X}, 0x{nn:02X}",
    Opcode.SNE_BYTE: "V{x:X}, 0x{nn:02X}",
    Opcode.SE_REG: "V{x:X}, V{y:X}",
    Opcode.LD_BYTE: "V{x:X}, 0x{nn:02X}",
    Opcode.ADD_BYTE: "V{x:X}, 0x{nn:02X}",
    Opcode.SNE_REG: "V{x:X}, V{y:X}",
    Opcode.LD_I: "I, 0x{nnn:03X}",
    Opcode.JP_V0: "V0, 0x{nnn:03X}",
    Opcode.RND: "V{x:X}, 0x{nn:02X}",
    Opcode.DRW: "V{x:X}, V{y:X}, {n}",
    Opcode.SKP: "V{x:X}",
    Opcode.SKNP: "V{x:X}",
    Opcode.LD_VX_DT: "V{x:X}, DT",
    Opcode.LD_VX_K: "V{x:X}, K",
    Opcode.LD_DT_VX: "DT, V{x:X}",
    Opcode.LD_ST_VX: "ST, V{x:X}",
    Opcode.ADD_I_VX: "I, V{x:X}",
    Opcode.LD_F_VX: "F, V{x:X}",
    Opcode.LD_B_VX: "B, V{x:X}",
    Opcode.LD_I_VX: "[I], V{x:X}",
    Opcode.LD_VX_I: "V{x:X}, [I]",
}


def disassemble(instruction: int) -> str:
    """Human-readable mnemonic for a concrete instruction word."""
    instruction = int(instruction)
    op = next(
        (opcode for mask, value, opcode in INSTRUCTION_PATTERNS if (instruction & mask) == value),
        Opcode.NOOP,
    )
    fields = dict(
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )
    operands = _OPERAND_FORMATS.get(op, "V{x:X}, V{y:X}").format(**fields)
    return f"{op.name} {operands}".strip()

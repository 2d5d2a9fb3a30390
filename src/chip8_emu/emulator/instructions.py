"""
CHIP-8 Instruction Decoding
===========================

Every CHIP-8 instruction is a big-endian 16-bit word. The fields are:

    nnn (addr)  low 12 bits           - address operand
    x           bits 8-11             - first register index
    y           bits 4-7              - second register index
    kk          low 8 bits            - immediate byte
    n           low 4 bits            - nibble (sprite height, ALU selector)

Dispatch is on the top nibble; the 0, 8, E and F families dispatch again
on the low nibble or low byte.

decode() is a pure function from opcode to an immutable Instruction. It
never touches CPU state, which makes it safe to cache and trivial to test.
Executing an Instruction is the CPU's job (see cpu.py).

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto

from chip8_emu.errors import UnknownOpcodeError


class Op(Enum):
    """Instruction kinds, named after their conventional mnemonics."""
    SYS = auto()      # 0nnn  machine-code call, ignored
    CLS = auto()      # 00E0  clear display
    RET = auto()      # 00EE  return from subroutine
    JP = auto()       # 1nnn  jump
    CALL = auto()     # 2nnn  call subroutine
    SE_VB = auto()    # 3xkk  skip if Vx == kk
    SNE_VB = auto()   # 4xkk  skip if Vx != kk
    SE_VV = auto()    # 5xy0  skip if Vx == Vy
    LD_VB = auto()    # 6xkk  Vx = kk
    ADD_VB = auto()   # 7xkk  Vx += kk (no carry)
    LD_VV = auto()    # 8xy0  Vx = Vy
    OR = auto()       # 8xy1  Vx |= Vy
    AND = auto()      # 8xy2  Vx &= Vy
    XOR = auto()      # 8xy3  Vx ^= Vy
    ADD_VV = auto()   # 8xy4  Vx += Vy, VF = carry
    SUB = auto()      # 8xy5  Vx -= Vy, VF = not borrow
    SHR = auto()      # 8xy6  Vx >>= 1, VF = old bit 0
    SUBN = auto()     # 8xy7  Vy -= Vx, VF = not borrow
    SHL = auto()      # 8xyE  Vx <<= 1, VF = old bit 7
    SNE_VV = auto()   # 9xy0  skip if Vx != Vy
    LD_I = auto()     # Annn  I = nnn
    JP_V0 = auto()    # Bnnn  jump to nnn + V0
    RND = auto()      # Cxkk  Vx = random & kk
    DRW = auto()      # Dxyn  draw n-row sprite at (Vx, Vy)
    SKP = auto()      # Ex9E  skip if key Vx down
    SKNP = auto()     # ExA1  skip if key Vx up
    LD_VDT = auto()   # Fx07  Vx = delay timer
    LD_VK = auto()    # Fx0A  wait for key, store in Vx
    LD_DTV = auto()   # Fx15  delay timer = Vx
    LD_STV = auto()   # Fx18  sound timer = Vx
    ADD_IV = auto()   # Fx1E  I += Vx, VF = 16-bit overflow
    LD_FV = auto()    # Fx29  I = font glyph for Vx
    LD_BV = auto()    # Fx33  BCD of Vx at I..I+2
    LD_IV = auto()    # Fx55  store V0..Vx at I
    LD_VI = auto()    # Fx65  load V0..Vx from I


@dataclass(frozen=True)
class Instruction:
    """
    A decoded instruction.

    All operand fields are extracted for every opcode; each Op only reads
    the ones it needs.

    Attributes:
        op: Instruction kind
        opcode: Raw 16-bit instruction word
        addr: 12-bit address field (nnn)
        x: First register index
        y: Second register index
        kk: 8-bit immediate
        n: Low nibble
    """
    op: Op
    opcode: int
    addr: int
    x: int
    y: int
    kk: int
    n: int


_ALU_OPS = {
    0x0: Op.LD_VV,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VV,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS = {
    0x07: Op.LD_VDT,
    0x0A: Op.LD_VK,
    0x15: Op.LD_DTV,
    0x18: Op.LD_STV,
    0x1E: Op.ADD_IV,
    0x29: Op.LD_FV,
    0x33: Op.LD_BV,
    0x55: Op.LD_IV,
    0x65: Op.LD_VI,
}

_SIMPLE_OPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VB,
    0x4: Op.SNE_VB,
    0x5: Op.SE_VV,
    0x6: Op.LD_VB,
    0x7: Op.ADD_VB,
    0x9: Op.SNE_VV,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode.

    Args:
        opcode: Instruction word (0x0000-0xFFFF)

    Returns:
        The decoded Instruction

    Raises:
        UnknownOpcodeError: If the opcode is not in the instruction table
    """
    opcode &= 0xFFFF
    family = opcode >> 12
    kk = opcode & 0xFF
    n = opcode & 0xF

    match family:
        case 0x0:
            match kk:
                case 0x00:
                    op = Op.SYS
                case 0xE0:
                    op = Op.CLS
                case 0xEE:
                    op = Op.RET
                case _:
                    raise UnknownOpcodeError(opcode)
        case 0x8:
            if n not in _ALU_OPS:
                raise UnknownOpcodeError(opcode)
            op = _ALU_OPS[n]
        case 0xE:
            if kk not in _KEY_OPS:
                raise UnknownOpcodeError(opcode)
            op = _KEY_OPS[kk]
        case 0xF:
            if kk not in _MISC_OPS:
                raise UnknownOpcodeError(opcode)
            op = _MISC_OPS[kk]
        case _:
            op = _SIMPLE_OPS[family]

    return Instruction(
        op=op,
        opcode=opcode,
        addr=opcode & 0x0FFF,
        x=(opcode >> 8) & 0xF,
        y=(opcode >> 4) & 0xF,
        kk=kk,
        n=n,
    )


# =============================================================================
# Disassembly
# =============================================================================

def disassemble(instruction: Instruction) -> str:
    """
    Format an instruction as conventional CHIP-8 assembly.

    Example:
        >>> disassemble(decode(0x6A2F))
        'LD VA, $2F'
    """
    x = f"V{instruction.x:X}"
    y = f"V{instruction.y:X}"
    addr = f"${instruction.addr:03X}"
    kk = f"${instruction.kk:02X}"

    match instruction.op:
        case Op.SYS:
            return f"SYS {addr}"
        case Op.CLS:
            return "CLS"
        case Op.RET:
            return "RET"
        case Op.JP:
            return f"JP {addr}"
        case Op.CALL:
            return f"CALL {addr}"
        case Op.SE_VB:
            return f"SE {x}, {kk}"
        case Op.SNE_VB:
            return f"SNE {x}, {kk}"
        case Op.SE_VV:
            return f"SE {x}, {y}"
        case Op.LD_VB:
            return f"LD {x}, {kk}"
        case Op.ADD_VB:
            return f"ADD {x}, {kk}"
        case Op.LD_VV:
            return f"LD {x}, {y}"
        case Op.OR:
            return f"OR {x}, {y}"
        case Op.AND:
            return f"AND {x}, {y}"
        case Op.XOR:
            return f"XOR {x}, {y}"
        case Op.ADD_VV:
            return f"ADD {x}, {y}"
        case Op.SUB:
            return f"SUB {x}, {y}"
        case Op.SHR:
            return f"SHR {x}"
        case Op.SUBN:
            return f"SUBN {x}, {y}"
        case Op.SHL:
            return f"SHL {x}"
        case Op.SNE_VV:
            return f"SNE {x}, {y}"
        case Op.LD_I:
            return f"LD I, {addr}"
        case Op.JP_V0:
            return f"JP V0, {addr}"
        case Op.RND:
            return f"RND {x}, {kk}"
        case Op.DRW:
            return f"DRW {x}, {y}, {instruction.n}"
        case Op.SKP:
            return f"SKP {x}"
        case Op.SKNP:
            return f"SKNP {x}"
        case Op.LD_VDT:
            return f"LD {x}, DT"
        case Op.LD_VK:
            return f"LD {x}, K"
        case Op.LD_DTV:
            return f"LD DT, {x}"
        case Op.LD_STV:
            return f"LD ST, {x}"
        case Op.ADD_IV:
            return f"ADD I, {x}"
        case Op.LD_FV:
            return f"LD F, {x}"
        case Op.LD_BV:
            return f"LD B, {x}"
        case Op.LD_IV:
            return f"LD [I], {x}"
        case Op.LD_VI:
            return f"LD {x}, [I]"


def disassemble_word(opcode: int) -> str:
    """Disassemble a raw word, falling back to a data directive."""
    try:
        return disassemble(decode(opcode))
    except UnknownOpcodeError:
        return f"DW ${opcode & 0xFFFF:04X}"

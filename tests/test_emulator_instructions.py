"""
Instruction Decoder Unit Tests
==============================

Tests for opcode decoding, field extraction and disassembly.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from chip8_emu.emulator import Op, decode, disassemble, disassemble_word
from chip8_emu.errors import UnknownOpcodeError


# =============================================================================
# Decoding Tests
# =============================================================================

class TestDecode:
    """Test opcode to Instruction decoding."""

    @pytest.mark.parametrize("opcode,op", [
        (0x0000, Op.SYS),
        (0x00E0, Op.CLS),
        (0x00EE, Op.RET),
        (0x1234, Op.JP),
        (0x2345, Op.CALL),
        (0x3A12, Op.SE_VB),
        (0x4A12, Op.SNE_VB),
        (0x5AB0, Op.SE_VV),
        (0x6A2F, Op.LD_VB),
        (0x7A01, Op.ADD_VB),
        (0x8AB0, Op.LD_VV),
        (0x8AB1, Op.OR),
        (0x8AB2, Op.AND),
        (0x8AB3, Op.XOR),
        (0x8AB4, Op.ADD_VV),
        (0x8AB5, Op.SUB),
        (0x8AB6, Op.SHR),
        (0x8AB7, Op.SUBN),
        (0x8ABE, Op.SHL),
        (0x9AB0, Op.SNE_VV),
        (0xA123, Op.LD_I),
        (0xB300, Op.JP_V0),
        (0xC0FF, Op.RND),
        (0xD015, Op.DRW),
        (0xE19E, Op.SKP),
        (0xE1A1, Op.SKNP),
        (0xF107, Op.LD_VDT),
        (0xF10A, Op.LD_VK),
        (0xF115, Op.LD_DTV),
        (0xF118, Op.LD_STV),
        (0xF11E, Op.ADD_IV),
        (0xF129, Op.LD_FV),
        (0xF133, Op.LD_BV),
        (0xF155, Op.LD_IV),
        (0xF165, Op.LD_VI),
    ])
    def test_instruction_table(self, opcode, op):
        """Every documented opcode decodes to its instruction kind."""
        assert decode(opcode).op == op

    def test_fields(self):
        """All operand fields are extracted."""
        instr = decode(0xD12F)
        assert instr.opcode == 0xD12F
        assert instr.addr == 0x12F
        assert instr.x == 0x1
        assert instr.y == 0x2
        assert instr.kk == 0x2F
        assert instr.n == 0xF

    def test_se_vv_ignores_low_nibble(self):
        """5xy? and 9xy? decode whatever the low nibble is."""
        assert decode(0x5AB7).op == Op.SE_VV
        assert decode(0x9AB3).op == Op.SNE_VV

    @pytest.mark.parametrize("opcode", [
        0x0123, 0x00E1, 0x8AB8, 0x8ABF, 0xE19F, 0xF100, 0xF1FF,
    ])
    def test_unknown_opcodes(self, opcode):
        """Opcodes outside the table raise UnknownOpcodeError."""
        with pytest.raises(UnknownOpcodeError) as exc_info:
            decode(opcode)
        assert exc_info.value.opcode == opcode
        assert f"${opcode:04X}" in str(exc_info.value)

    def test_instruction_is_immutable(self):
        """Decoded instructions are frozen."""
        instr = decode(0x6A2F)
        with pytest.raises(AttributeError):
            instr.kk = 0


# =============================================================================
# Disassembly Tests
# =============================================================================

class TestDisassemble:
    """Test mnemonic output."""

    @pytest.mark.parametrize("opcode,text", [
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x1200, "JP $200"),
        (0x2ABC, "CALL $ABC"),
        (0x6A2F, "LD VA, $2F"),
        (0x8AB4, "ADD VA, VB"),
        (0x8A06, "SHR VA"),
        (0xA050, "LD I, $050"),
        (0xB300, "JP V0, $300"),
        (0xD015, "DRW V0, V1, 5"),
        (0xF30A, "LD V3, K"),
        (0xF355, "LD [I], V3"),
        (0xF365, "LD V3, [I]"),
        (0xF429, "LD F, V4"),
    ])
    def test_mnemonics(self, opcode, text):
        """Instructions format in conventional CHIP-8 syntax."""
        assert disassemble(decode(opcode)) == text

    def test_unknown_word_as_data(self):
        """Words that do not decode become DW directives."""
        assert disassemble_word(0xFFFF) == "DW $FFFF"
        assert disassemble_word(0x6A2F) == "LD VA, $2F"

"""
Unit Tests for the Disassembler Module
======================================

This module contains tests for the 6502 machine code disassembler.

Test coverage includes:
- All 6502 addressing modes
- Branch instructions with target calculation
- Symbol table annotations
- Edge cases (unknown opcodes, truncated data, empty input)
- Round trip through the assembler
"""

import pytest

from c64asm import assemble
from c64asm.assembler.opcodes import AddressingMode, INSTRUCTION_TABLE
from c64asm.disassembler import MOS6502Disassembler, DisassembledInstruction


# =============================================================================
# 6502 Disassembler Tests
# =============================================================================

class TestMOS6502Disassembler:
    """Tests for the 6502 machine code disassembler."""

    def setup_method(self):
        """Create disassembler instance for each test."""
        self.disasm = MOS6502Disassembler()

    # -------------------------------------------------------------------------
    # Single Instruction Tests
    # -------------------------------------------------------------------------

    def test_implied(self):
        instr = self.disasm.disassemble_one(bytes([0xE8]), address=0xC000)
        assert instr.mnemonic == "INX"
        assert instr.mode == AddressingMode.IMPLIED
        assert instr.size == 1
        assert instr.operand_str == ""

    def test_accumulator(self):
        instr = self.disasm.disassemble_one(bytes([0x0A]))
        assert instr.mnemonic == "ASL"
        assert instr.mode == AddressingMode.ACCUMULATOR
        assert instr.operand_str == ""

    def test_immediate_with_char_comment(self):
        instr = self.disasm.disassemble_one(bytes([0xA9, 0x41]))
        assert instr.mnemonic == "LDA"
        assert instr.operand_str == "#$41"
        assert instr.comment == "'A'"

    @pytest.mark.parametrize("data,operand", [
        ([0xA5, 0xFB], "$FB"),
        ([0xB5, 0xFB], "$FB,X"),
        ([0xB6, 0xFB], "$FB,Y"),
        ([0xAD, 0x20, 0xD0], "$D020"),
        ([0x9D, 0x00, 0x04], "$0400,X"),
        ([0xB9, 0x00, 0x04], "$0400,Y"),
        ([0x6C, 0x14, 0x03], "($0314)"),
        ([0xA1, 0xFB], "($FB,X)"),
        ([0xB1, 0xFB], "($FB),Y"),
        ([0x20, 0xD2, 0xFF], "$FFD2"),
    ])
    def test_operand_formats(self, data, operand):
        instr = self.disasm.disassemble_one(bytes(data))
        assert instr.operand_str == operand
        assert instr.size == len(data)

    def test_words_are_little_endian(self):
        instr = self.disasm.disassemble_one(bytes([0x4C, 0x00, 0xC0]))
        assert instr.mnemonic == "JMP"
        assert instr.mode == AddressingMode.JUMP_ABSOLUTE
        assert instr.operand_str == "$C000"

    def test_branch_backward(self):
        instr = self.disasm.disassemble_one(bytes([0xD0, 0xF5]), address=0x400B)
        assert instr.mnemonic == "BNE"
        assert instr.operand_str == "$4002"
        assert instr.comment == "-11"

    def test_branch_forward(self):
        instr = self.disasm.disassemble_one(bytes([0xF0, 0x05]), address=0x1000)
        assert instr.operand_str == "$1007"
        assert instr.comment == "+5"

    def test_offset_into_buffer(self):
        data = bytes([0xEA, 0xA9, 0x00])
        instr = self.disasm.disassemble_one(data, address=0x2001, offset=1)
        assert instr.mnemonic == "LDA"
        assert instr.raw_bytes == bytes([0xA9, 0x00])

    # -------------------------------------------------------------------------
    # Edge Cases
    # -------------------------------------------------------------------------

    def test_unknown_opcode(self):
        instr = self.disasm.disassemble_one(bytes([0x02]))
        assert instr.mnemonic == ".BYTE"
        assert instr.operand_str == "$02"
        assert instr.size == 1
        assert instr.comment == "unknown opcode"

    def test_truncated_instruction(self):
        instr = self.disasm.disassemble_one(bytes([0xAD, 0x20]))
        assert instr.mnemonic == "LDA"
        assert instr.operand_str == "???"
        assert instr.size == 2

    def test_offset_past_end(self):
        with pytest.raises(ValueError):
            self.disasm.disassemble_one(bytes([0xEA]), offset=1)

    def test_empty_input(self):
        assert self.disasm.disassemble(b"") == []

    def test_reverse_table_covers_every_opcode(self):
        total = sum(len(record.modes) for record in INSTRUCTION_TABLE.values())
        assert len(self.disasm._reverse_table) == total

    # -------------------------------------------------------------------------
    # Multiple Instructions and Output
    # -------------------------------------------------------------------------

    def test_disassemble_sequence(self):
        data = bytes([0xA9, 0x01, 0x8D, 0x20, 0xD0, 0x60])
        instructions = self.disasm.disassemble(data, start_address=0xC000)
        assert [i.address for i in instructions] == [0xC000, 0xC002, 0xC005]
        assert [i.mnemonic for i in instructions] == ["LDA", "STA", "RTS"]

    def test_count_limit(self):
        data = bytes([0xEA] * 10)
        assert len(self.disasm.disassemble(data, count=3)) == 3

    def test_max_bytes_limit(self):
        data = bytes([0xEA] * 10)
        assert len(self.disasm.disassemble(data, max_bytes=4)) == 4

    def test_str(self):
        instr = self.disasm.disassemble_one(bytes([0xEA]), address=0xC000)
        assert str(instr) == "$C000: EA        NOP"

    def test_str_with_comment(self):
        instr = self.disasm.disassemble_one(bytes([0xA9, 0x41]), address=0xC000)
        assert str(instr) == "$C000: A9 41     LDA #$41         ; 'A'"

    def test_to_dict(self):
        instr = self.disasm.disassemble_one(bytes([0xAD, 0x20, 0xD0]), address=0xC000)
        data = instr.to_dict()
        assert data["address"] == "$C000"
        assert data["mnemonic"] == "LDA"
        assert data["mode"] == "absolute"
        assert data["bytes"] == ["$AD", "$20", "$D0"]

    def test_disassemble_to_text(self):
        text = self.disasm.disassemble_to_text(bytes([0xE8, 0xC8]), start_address=0x1000)
        assert text.split("\n") == ["$1000: E8        INX", "$1001: C8        INY"]

    # -------------------------------------------------------------------------
    # Symbol Annotation
    # -------------------------------------------------------------------------

    def test_symbol_annotation(self):
        disasm = MOS6502Disassembler(symbol_table={0xD020: "border"})
        instr = disasm.disassemble_one(bytes([0x8D, 0x20, 0xD0]))
        assert instr.comment == "border"

    def test_branch_target_symbol(self):
        disasm = MOS6502Disassembler()
        disasm.add_symbol(0x4002, "next")
        instr = disasm.disassemble_one(bytes([0xD0, 0xF5]), address=0x400B)
        assert instr.comment == "next"

    def test_add_symbols(self):
        disasm = MOS6502Disassembler()
        disasm.add_symbols({0xFB: "ptr"})
        assert disasm.disassemble_one(bytes([0xA5, 0xFB])).comment == "ptr"


# =============================================================================
# Round Trip Tests
# =============================================================================

class TestRoundTrip:
    """Assembled code disassembles to the same mnemonic/mode sequence."""

    def test_every_assemblable_mode(self):
        source = "\n".join([
            "* = $C000",
            "start",
            "    sei",
            "    asl",
            "    lda #$41",
            "    sta $fb",
            "    lda $fb,x",
            "    ldx $fb,y",
            "    sta $d020",
            "    sta $0400,x",
            "    lda $0400,y",
            "    bne start",
            "    jsr $ffd2",
            "    jmp start",
        ])
        image = assemble(source).image
        decoded = MOS6502Disassembler().disassemble(image.to_bytes(), image.start_address)
        assert [(i.mnemonic, i.mode) for i in decoded] == [
            ("SEI", AddressingMode.IMPLIED),
            ("ASL", AddressingMode.ACCUMULATOR),
            ("LDA", AddressingMode.IMMEDIATE),
            ("STA", AddressingMode.ZEROPAGE),
            ("LDA", AddressingMode.ZEROPAGE_X),
            ("LDX", AddressingMode.ZEROPAGE_Y),
            ("STA", AddressingMode.ABSOLUTE),
            ("STA", AddressingMode.ABSOLUTE_X),
            ("LDA", AddressingMode.ABSOLUTE_Y),
            ("BNE", AddressingMode.JUMP_RELATIVE),
            ("JSR", AddressingMode.JUMP_ABSOLUTE),
            ("JMP", AddressingMode.JUMP_ABSOLUTE),
        ]
        assert decoded[9].operand_str == "$C000"

    def test_every_opcode_round_trips(self):
        disasm = MOS6502Disassembler()
        for mnemonic, record in INSTRUCTION_TABLE.items():
            for mode in record.modes:
                data = bytes([record.opcode(mode), 0x00, 0x00])
                instr = disasm.disassemble_one(data)
                assert (instr.mnemonic, instr.mode) == (mnemonic, mode)

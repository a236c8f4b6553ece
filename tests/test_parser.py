# =============================================================================
# test_parser.py - Parser / Code Generator Tests
# =============================================================================
# Tests for line parsing and addressing-mode resolution.
#
# Test coverage includes:
#   - Line kinds: start address, label, instruction, text directive, blank
#   - Operand shapes and the mode priority order
#   - Label recording and deferred references
#   - Syntax and semantic error conditions
# =============================================================================

import logging

import pytest

from c64asm.assembler.codegen import AssemblyImage
from c64asm.assembler.lexer import Lexer
from c64asm.assembler.parser import Parser
from c64asm.errors import (
    AssemblySyntaxError,
    DuplicateSymbolError,
    InvalidOperandError,
    MalformedLiteralError,
    UnknownMnemonicError,
    UnmappableCharacterError,
)


# =============================================================================
# Helper Functions
# =============================================================================

def parse(source: str, strict_labels: bool = False) -> Parser:
    """Run the scanning pass only (no fixups) and return the parser."""
    image = AssemblyImage(source_lines=source.split("\n"))
    parser = Parser(Lexer(source), image, strict_labels=strict_labels)
    parser.parse()
    parser.image = image
    return parser


def code(source: str) -> bytes:
    """Bytes emitted by the scanning pass (label operands left as zeros)."""
    return parse(source).image.to_bytes()


# =============================================================================
# Line Kind Tests
# =============================================================================

class TestLines:
    """Test the recognised line kinds."""

    def test_start_address(self):
        parser = parse("* = $C000")
        assert parser.image.start_address == 0xC000
        assert len(parser.image) == 0

    def test_start_address_without_spaces(self):
        assert parse("*=$0801").image.start_address == 0x0801

    def test_blank_lines_skipped(self):
        assert code("\n\n    inx\n\n") == bytes([0xE8])

    def test_whitespace_only_line(self):
        assert code("    inx\n    \n    iny") == bytes([0xE8, 0xC8])

    def test_comment_lines(self):
        assert code("; header\n    inx ; bump\n    ; note") == bytes([0xE8])

    def test_label_line(self):
        parser = parse("    inx\nloop\n    iny")
        assert parser.labels["loop"].code_position == 1
        assert parser.labels["loop"].line == 2

    def test_labels_case_sensitive(self):
        parser = parse("Loop\nloop\n    nop")
        assert set(parser.labels) == {"Loop", "loop"}

    def test_tab_indent(self):
        assert code("\tinx") == bytes([0xE8])

    def test_mnemonic_case_insensitive(self):
        assert code("    INX\n    Iny") == bytes([0xE8, 0xC8])

    def test_text_directive(self):
        assert code('    .text "HELLO"') == bytes([0x48, 0x45, 0x4C, 0x4C, 0x4F])

    def test_text_directive_punctuation(self):
        assert code('    .text "1, 2!"') == bytes([0x31, 0x2C, 0x20, 0x32, 0x21])

    def test_screen_directive(self):
        assert code('    .screen "HI @0"') == bytes([0x08, 0x09, 0x20, 0x00, 0x30])

    def test_empty_string(self):
        assert code('    .text ""') == b""


# =============================================================================
# Addressing Mode Tests
# =============================================================================

class TestAddressingModes:
    """Test operand shapes and their encodings."""

    @pytest.mark.parametrize("line,expected", [
        ("    inx", [0xE8]),
        ("    asl", [0x0A]),
        ("    lda #$41", [0xA9, 0x41]),
        ("    lda $fb", [0xA5, 0xFB]),
        ("    lda $fb,x", [0xB5, 0xFB]),
        ("    ldx $fb,y", [0xB6, 0xFB]),
        ("    lda $d020", [0xAD, 0x20, 0xD0]),
        ("    sta $0400,x", [0x9D, 0x00, 0x04]),
        ("    lda $0400,y", [0xB9, 0x00, 0x04]),
        ("    lda $FB,X", [0xB5, 0xFB]),
        ("    jmp $c000", [0x4C, 0x00, 0xC0]),
        ("    jsr $ffd2", [0x20, 0xD2, 0xFF]),
        ("    lda $00fb", [0xAD, 0xFB, 0x00]),
    ])
    def test_literal_operands(self, line, expected):
        assert code(line) == bytes(expected)

    def test_zeropage_preferred_for_two_digits(self):
        """Two hex digits always select zeropage, even as $00nn fits absolute."""
        assert code("    sta $02") == bytes([0x85, 0x02])

    def test_jmp_star_points_at_itself(self):
        assert code("* = $4000\n    nop\n    jmp *") == bytes([0xEA, 0x4C, 0x01, 0x40])

    def test_label_operand_emits_placeholder(self):
        parser = parse("    lda msg,x\nmsg")
        assert parser.image.to_bytes() == bytes([0xBD, 0x00, 0x00])
        ref = parser.references[0]
        assert ref.label == "msg"
        assert ref.patch_position == 1
        assert ref.source_row == 1
        assert not ref.is_relative
        assert not ref.is_branch_adjusted

    def test_branch_label_is_relative(self):
        parser = parse("loop\n    bne loop")
        assert parser.image.to_bytes() == bytes([0xD0, 0x00])
        ref = parser.references[0]
        assert ref.is_relative
        assert ref.is_branch_adjusted
        assert ref.patch_position == 1

    def test_jump_label_is_branch_adjusted(self):
        parser = parse("    jsr print\nprint\n    rts")
        ref = parser.references[0]
        assert not ref.is_relative
        assert ref.is_branch_adjusted

    def test_already_defined_label_still_deferred(self):
        parser = parse("data\n    lda data")
        assert len(parser.references) == 1

    def test_byte_rows(self):
        parser = parse("start\n    ldx #$00\n\n    lda msg,x\nmsg")
        assert parser.image.byte_source_rows == [2, 2, 4, 4, 4]


# =============================================================================
# Label Redefinition Tests
# =============================================================================

class TestLabelRedefinition:

    def test_redefinition_overwrites(self, caplog):
        with caplog.at_level(logging.WARNING, logger="c64asm"):
            parser = parse("lab\n    nop\nlab\n    nop")
        assert parser.labels["lab"].code_position == 1
        assert "redefined" in caplog.text

    def test_strict_redefinition_fails(self):
        with pytest.raises(DuplicateSymbolError) as exc_info:
            parse("lab\n    nop\nlab", strict_labels=True)
        assert exc_info.value.diagnostic == "3:1:duplicate label 'lab'"


# =============================================================================
# Error Tests
# =============================================================================

class TestParserErrors:
    """Test syntax and semantic errors."""

    def test_unknown_mnemonic(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            parse("    foo")
        assert exc_info.value.diagnostic == "1:5:unknown instruction 'FOO'"

    def test_short_start_address(self):
        with pytest.raises(MalformedLiteralError) as exc_info:
            parse("* = $400")
        assert exc_info.value.diagnostic == "1:5:start address must be 2 bytes long"

    def test_start_address_missing_equals(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            parse("* $4000")
        assert exc_info.value.message == "expected '='"

    def test_immediate_wrong_length(self):
        with pytest.raises(MalformedLiteralError):
            parse("    lda #$1")

    def test_three_digit_address(self):
        with pytest.raises(MalformedLiteralError):
            parse("    lda $123")

    def test_mode_not_supported(self):
        with pytest.raises(InvalidOperandError) as exc_info:
            parse("    sta #$41")
        assert exc_info.value.diagnostic == "1:5:invalid operand"
        assert "zeropage" in exc_info.value.hint

    def test_index_not_supported(self):
        """LDA has no zeropage-y mode; the index is never dropped."""
        with pytest.raises(InvalidOperandError):
            parse("    lda $10,y")

    def test_missing_operand(self):
        with pytest.raises(InvalidOperandError):
            parse("    lda")

    def test_bad_index_register(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            parse("    lda msg,z")
        assert exc_info.value.message == "expected 'x' or 'y'"

    def test_text_after_label(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            parse("loop nop")
        assert exc_info.value.diagnostic == "1:6:expected '\\n'"

    def test_directive_in_column_one(self):
        with pytest.raises(AssemblySyntaxError):
            parse('.text "HI"')

    def test_unknown_directive(self):
        with pytest.raises(AssemblySyntaxError):
            parse('    .byte "HI"')

    def test_unmappable_character(self):
        with pytest.raises(UnmappableCharacterError) as exc_info:
            parse('    .text "Hi"')
        assert exc_info.value.diagnostic == "1:11:unknown character 'i'"

    def test_trailing_tokens(self):
        with pytest.raises(AssemblySyntaxError):
            parse("    lda #$41 $42")

    def test_immediate_without_hex(self):
        with pytest.raises(AssemblySyntaxError) as exc_info:
            parse("    lda #msg")
        assert exc_info.value.message == "expected hexadecimal value"

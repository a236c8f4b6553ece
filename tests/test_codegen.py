"""
Unit Tests for the Code Image and Fixup Pass
============================================

Covers the text code pages, AssemblyImage byte handling and the
resolution of deferred label references.
"""

import logging

import pytest

from c64asm.assembler.codegen import (
    AssemblyImage,
    Label,
    PETSCII_PAGE,
    SCREEN_CODE_PAGE,
    UnresolvedReference,
    encode_char,
    resolve_references,
)
from c64asm.errors import UnresolvedSymbolError


# =============================================================================
# Code Page Tests
# =============================================================================

class TestCodePages:
    """Test PETSCII and screen code mapping."""

    def test_page_sizes(self):
        assert len(PETSCII_PAGE) == 64
        assert len(SCREEN_CODE_PAGE) == 64

    @pytest.mark.parametrize("char,code", [
        (" ", 32), ("0", 48), ("A", 65), ("Z", 90), ("'", 39), ("[", 91),
        ("£", 92), ("↑", 94), ("←", 95),
    ])
    def test_petscii(self, char, code):
        assert encode_char(char, "text") == code

    @pytest.mark.parametrize("char,code", [
        ("@", 0), ("A", 1), ("Z", 26), ("←", 31), (" ", 32), ("0", 48), ("?", 63),
    ])
    def test_screen_codes(self, char, code):
        assert encode_char(char, "screen") == code

    def test_lowercase_unmapped(self):
        assert encode_char("a", "text") is None
        assert encode_char("a", "screen") is None

    def test_multi_char_unmapped(self):
        assert encode_char("AB", "text") is None
        assert encode_char("", "text") is None


# =============================================================================
# Assembly Image Tests
# =============================================================================

class TestAssemblyImage:

    def test_empty(self):
        image = AssemblyImage()
        assert len(image) == 0
        assert image.start_address == 0
        assert image.to_bytes() == b""

    def test_emit_tracks_rows(self):
        image = AssemblyImage()
        image.emit(0xA9, 3)
        image.emit(0x41, 3)
        image.emit(0xE8, 4)
        assert image.to_bytes() == bytes([0xA9, 0x41, 0xE8])
        assert image.byte_source_rows == [3, 3, 4]

    def test_emit_masks_to_byte(self):
        image = AssemblyImage()
        image.emit(-11, 1)
        assert image.bytes[0] == 0xF5

    def test_emit_word_little_endian(self):
        image = AssemblyImage()
        image.emit_word(0xD020, 1)
        assert image.to_bytes() == bytes([0x20, 0xD0])
        assert image.byte_source_rows == [1, 1]

    def test_patch_word(self):
        image = AssemblyImage()
        image.emit(0x4C, 1)
        image.emit_word(0, 1)
        image.patch_word(1, 0xC000)
        assert image.to_bytes() == bytes([0x4C, 0x00, 0xC0])
        assert len(image.byte_source_rows) == 3

    def test_address_of(self):
        image = AssemblyImage(start_address=0x4000)
        assert image.address_of(0x10) == 0x4010

    def test_write_binary(self, tmp_path):
        image = AssemblyImage()
        image.emit(0x60, 1)
        path = tmp_path / "out.bin"
        image.write_binary(path)
        assert path.read_bytes() == bytes([0x60])


# =============================================================================
# Fixup Pass Tests
# =============================================================================

class TestResolveReferences:
    """Test patching of deferred references."""

    def make_image(self, size: int, start: int = 0x4000) -> AssemblyImage:
        image = AssemblyImage(start_address=start)
        for _ in range(size):
            image.emit(0, 1)
        return image

    def test_absolute(self):
        image = self.make_image(20)
        labels = {"msg": Label("msg", 16)}
        resolve_references(image, labels, [UnresolvedReference("msg", 3, 1)])
        assert image.bytes[3:5] == bytes([0x10, 0x40])

    def test_absolute_branch_adjusted(self):
        image = self.make_image(20)
        labels = {"sub": Label("sub", 16)}
        refs = [UnresolvedReference("sub", 1, 1, is_branch_adjusted=True)]
        resolve_references(image, labels, refs)
        assert image.bytes[1:3] == bytes([0x0F, 0x40])

    def test_relative_backward(self):
        image = self.make_image(20)
        labels = {"next": Label("next", 2)}
        refs = [UnresolvedReference("next", 12, 1, is_relative=True, is_branch_adjusted=True)]
        resolve_references(image, labels, refs)
        assert image.bytes[12] == 0xF5

    def test_relative_forward(self):
        image = self.make_image(20)
        labels = {"skip": Label("skip", 5)}
        refs = [UnresolvedReference("skip", 1, 1, is_relative=True)]
        resolve_references(image, labels, refs)
        assert image.bytes[1] == 0x03

    def test_relative_ignores_start_address(self):
        low = self.make_image(20, start=0x0000)
        high = self.make_image(20, start=0xC000)
        labels = {"next": Label("next", 2)}
        for image in (low, high):
            resolve_references(
                image, labels, [UnresolvedReference("next", 12, 1, is_relative=True)]
            )
        assert low.bytes == high.bytes

    def test_out_of_range_truncated_with_warning(self, caplog):
        image = self.make_image(300)
        labels = {"far": Label("far", 250)}
        refs = [UnresolvedReference("far", 1, 7, is_relative=True)]
        with caplog.at_level(logging.WARNING, logger="c64asm"):
            resolve_references(image, labels, refs)
        assert image.bytes[1] == (250 - 1 - 1) & 0xFF
        assert "out of range" in caplog.text

    def test_unresolved(self):
        image = self.make_image(4)
        image.source_lines = ["    bne nxt"]
        labels = {"next": Label("next", 0)}
        refs = [UnresolvedReference("nxt", 1, 1, is_relative=True)]
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            resolve_references(image, labels, refs)
        error = exc_info.value
        assert error.diagnostic == "1:unresolved label 'nxt'"
        assert error.hint == "did you mean 'next'?"
        assert error.source_line == "    bne nxt"

    def test_first_unresolved_reported(self):
        image = self.make_image(6)
        refs = [
            UnresolvedReference("one", 0, 2),
            UnresolvedReference("two", 2, 5),
        ]
        with pytest.raises(UnresolvedSymbolError) as exc_info:
            resolve_references(image, {}, refs)
        assert exc_info.value.symbol == "one"

"""
6502 Code Image and Fixup Pass
==============================

This module holds the data the parser builds while it scans the source,
and the second pass that completes it.

Two-Pass Design
---------------
Pass 1 (scanning, in the parser)
    Real bytes are emitted as each line is parsed. When an operand names a
    label, the instruction's length is still known from the operand's shape
    (a label always gets word-sized absolute encoding, or one byte for a
    relative branch), so placeholder zero bytes are emitted and an
    UnresolvedReference records where to patch.

Pass 2 (fixup, resolve_references)
    After the whole source has been scanned the symbol table is complete.
    Every recorded reference is looked up and its placeholder bytes are
    overwritten. No instruction changes length in this pass, which is what
    makes patch-only fixups sufficient.

Address Arithmetic
------------------
Labels record byte offsets into the image, not addresses, because the
start address may be set anywhere in the source.

    absolute:  address = start_address + label.code_position
               (minus 1 for branch-adjusted references)
               patched low byte first

    relative:  offset = (label.code_position - patch_position - 1) & $FF
               The displacement counts from the byte after the operand, and
               the start address cancels out of the subtraction.

Relative offsets outside -128..+127 are truncated to eight bits without an
error; a warning is logged.

Text Code Pages
---------------
.text strings use PETSCII codes 32-95, .screen strings use screen codes
0-63. Both pages have 64 entries.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional
import difflib
import logging

from c64asm.errors import SourceLocation, UnresolvedSymbolError

if TYPE_CHECKING:
    from c64asm.assembler.listing import ListingFormat

logger = logging.getLogger(__name__)


# =============================================================================
# Text Code Pages
# =============================================================================

# PETSCII codes 32..95
PETSCII_PAGE = " !\"#$%&'()*+,-./0123456789:;<=>?@ABCDEFGHIJKLMNOPQRSTUVWXYZ[£]↑←"
PETSCII_BASE = 32

# Screen codes 0..63
SCREEN_CODE_PAGE = "@ABCDEFGHIJKLMNOPQRSTUVWXYZ[£]↑← !\"#$%&'()*+,-./0123456789:;<=>?"
SCREEN_CODE_BASE = 0

# Directive name -> (page, code of first entry)
CODE_PAGES: dict[str, tuple[str, int]] = {
    "text": (PETSCII_PAGE, PETSCII_BASE),
    "screen": (SCREEN_CODE_PAGE, SCREEN_CODE_BASE),
}


def encode_char(char: str, directive: str) -> Optional[int]:
    """
    Map one character through the code page of a text directive.

    Args:
        char: A single character
        directive: "text" (PETSCII) or "screen" (screen codes)

    Returns:
        The byte value, or None if the character is not in the page
    """
    page, base = CODE_PAGES[directive]
    if len(char) != 1:
        return None
    index = page.find(char)
    if index < 0:
        return None
    return base + index


# =============================================================================
# Symbol Table Entries
# =============================================================================

@dataclass
class Label:
    """
    Symbol table entry.

    Attributes:
        name: Label name, case-sensitive
        code_position: Offset of the next byte to be emitted when the label
                       was defined
        line: Source row of the definition
    """
    name: str
    code_position: int
    line: int = 0


@dataclass
class UnresolvedReference:
    """
    A label use whose bytes must be patched after scanning.

    Attributes:
        label: Referenced label name
        patch_position: Offset of the first placeholder byte
        source_row: Row of the referencing instruction
        is_relative: One-byte branch displacement instead of a word address
        is_branch_adjusted: Subtract one from a resolved absolute address
    """
    label: str
    patch_position: int
    source_row: int
    is_relative: bool = False
    is_branch_adjusted: bool = False


# =============================================================================
# Assembly Image
# =============================================================================

@dataclass
class AssemblyImage:
    """
    The machine code produced by one assembly run.

    Bytes and their source rows are only ever appended together through
    emit(), so both sequences always have the same length.

    Attributes:
        start_address: Load address of the first byte (set by "* = $nnnn")
        bytes: The machine code
        byte_source_rows: Source row that produced each byte
        source_lines: The source text split into rows, for listings
    """
    start_address: int = 0
    bytes: bytearray = field(default_factory=bytearray)
    byte_source_rows: list[int] = field(default_factory=list)
    source_lines: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.bytes)

    def emit(self, value: int, row: int) -> None:
        """Append one byte, tagged with the source row that produced it."""
        self.bytes.append(value & 0xFF)
        self.byte_source_rows.append(row)

    def emit_word(self, value: int, row: int) -> None:
        """Append a 16-bit value, low byte first."""
        self.emit(value & 0xFF, row)
        self.emit((value >> 8) & 0xFF, row)

    def patch_byte(self, position: int, value: int) -> None:
        """Overwrite an already emitted byte."""
        self.bytes[position] = value & 0xFF

    def patch_word(self, position: int, value: int) -> None:
        """Overwrite two already emitted bytes with a little-endian word."""
        self.patch_byte(position, value)
        self.patch_byte(position + 1, value >> 8)

    def address_of(self, offset: int) -> int:
        """Memory address of a byte offset within the image."""
        return (self.start_address + offset) & 0xFFFF

    def to_bytes(self) -> bytes:
        """Return the machine code as an immutable bytes object."""
        return bytes(self.bytes)

    def to_string(self, fmt: Optional["ListingFormat"] = None) -> str:
        """Render the image as a listing (see c64asm.assembler.listing)."""
        from c64asm.assembler.listing import ListingFormat, format_listing
        return format_listing(self, fmt or ListingFormat())

    def write_binary(self, filepath: str | Path) -> None:
        """Write the raw machine code, without load address, to a file."""
        Path(filepath).write_bytes(self.to_bytes())


# =============================================================================
# Fixup Pass
# =============================================================================

def resolve_references(
    image: AssemblyImage,
    labels: dict[str, Label],
    references: list[UnresolvedReference],
) -> None:
    """
    Patch every deferred label reference in the image.

    References are processed in the order they were recorded. The first
    reference to an undefined label aborts the pass.

    Args:
        image: Image holding the placeholder bytes
        labels: Complete symbol table
        references: Deferred references recorded while scanning

    Raises:
        UnresolvedSymbolError: If a referenced label was never defined
    """
    for ref in references:
        label = labels.get(ref.label)
        if label is None:
            raise UnresolvedSymbolError(
                ref.label,
                SourceLocation(ref.source_row),
                source_line=_source_line(image, ref.source_row),
                similar_symbols=difflib.get_close_matches(ref.label, list(labels)),
            )

        if ref.is_relative:
            offset = label.code_position - ref.patch_position - 1
            if offset < -128 or offset > 127:
                logger.warning(
                    f"{ref.source_row}: branch to '{ref.label}' is out of range "
                    f"(offset {offset}), truncated to ${offset & 0xFF:02X}"
                )
            image.patch_byte(ref.patch_position, offset)
            logger.debug(
                f"Patched branch to '{ref.label}' at offset {ref.patch_position}: "
                f"${offset & 0xFF:02X}"
            )
        else:
            address = image.start_address + label.code_position
            if ref.is_branch_adjusted:
                address -= 1
            image.patch_word(ref.patch_position, address)
            logger.debug(
                f"Patched address of '{ref.label}' at offset {ref.patch_position}: "
                f"${address & 0xFFFF:04X}"
            )


def _source_line(image: AssemblyImage, row: int) -> Optional[str]:
    """Source text of a 1-indexed row, if the image carries it."""
    if 1 <= row <= len(image.source_lines):
        return image.source_lines[row - 1]
    return None

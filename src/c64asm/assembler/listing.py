"""
Listing Renderer
================

Renders an AssemblyImage as human-readable text. Two layouts exist:

Source-matched (match_source_code=True)
    One output row per source row, up to the last row that produced code.
    Each row holds the bytes that row produced, optionally prefixed by the
    address of its first byte and followed by the source text in column 20:

        4000: A2 00                 ldx #$00
        4002: BD 10 40              lda msg,x
        4005: 9D 00 04              sta $0400,x

    With the source shown, bytes that would run past column 16 are
    replaced by a single ".." marker.

Hex dump (match_source_code=False)
    Fixed-width rows of max_bytes_per_row bytes, each starting with "$":

        $4000: A2 00 BD 10 40 9D 00 04
        $4008: E8 E0 13 D0 F5 4C 0D 40
"""

from dataclasses import dataclass

from c64asm.assembler.codegen import AssemblyImage


# Column at which source text starts in a source-matched listing
SOURCE_COLUMN = 20

# Bytes are shown while the cursor is left of this column
BYTES_END_COLUMN = 16

# The ".." elision marker fits while the cursor is left of this column
ELISION_END_COLUMN = 18


@dataclass
class ListingFormat:
    """
    Layout options for format_listing().

    Attributes:
        include_address: Prefix each row with the address of its first byte
        match_source_code: One row per source row instead of a hex dump
        include_source_code: Append the source text (source-matched only)
        max_bytes_per_row: Row width of the hex dump (hex dump only)
    """
    include_address: bool = True
    match_source_code: bool = True
    include_source_code: bool = True
    max_bytes_per_row: int = 8


def format_listing(image: AssemblyImage, fmt: ListingFormat | None = None) -> str:
    """
    Render an image as text.

    Args:
        image: The assembled image
        fmt: Layout options (defaults to ListingFormat())

    Returns:
        The listing; an empty string for an empty image
    """
    fmt = fmt or ListingFormat()
    if fmt.match_source_code:
        return _format_matched(image, fmt)
    return _format_hex_dump(image, fmt)


def _format_matched(image: AssemblyImage, fmt: ListingFormat) -> str:
    parts: list[str] = []
    row = 1
    col = 1
    count = len(image)
    if count == 0:
        return ""

    for i in range(count + 1):
        # One step past the end flushes the row of the last byte
        byte_row = image.byte_source_rows[i] if i < count else image.byte_source_rows[-1] + 1

        new_row = i == 0
        while row < byte_row:
            if fmt.include_source_code:
                if col < SOURCE_COLUMN:
                    parts.append(" " * (SOURCE_COLUMN - col))
                parts.append(_source_text(image, row))
            parts.append("\n")
            col = 1
            row += 1
            new_row = True

        if i == count:
            break

        if new_row and fmt.include_address:
            parts.append(f"{image.address_of(i):04X}: ")
            col += 6

        if not fmt.include_source_code or col < BYTES_END_COLUMN:
            parts.append(f"{image.bytes[i]:02X} ")
            col += 3
        elif col < ELISION_END_COLUMN:
            parts.append(".. ")
            col += 3

    return "".join(parts)


def _format_hex_dump(image: AssemblyImage, fmt: ListingFormat) -> str:
    width = max(1, fmt.max_bytes_per_row)
    parts: list[str] = []
    for i, value in enumerate(image.bytes):
        if i % width == 0:
            parts.append("\n$")
            if fmt.include_address:
                parts.append(f"{image.address_of(i):04X}: ")
        parts.append(f"{value:02X} ")
    return "".join(parts).strip()


def _source_text(image: AssemblyImage, row: int) -> str:
    if 1 <= row <= len(image.source_lines):
        return image.source_lines[row - 1]
    return ""

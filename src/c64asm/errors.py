"""
c64asm Error Hierarchy
======================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from C64AsmError, allowing callers to catch every
assembler-related error with a single except clause if desired.

Exception Hierarchy
-------------------
C64AsmError (base)
└── AssemblerError (located assembly errors)
    ├── LexicalError - unterminated string, malformed hex literal
    ├── AssemblySyntaxError - expected token or delimiter not found
    ├── SemanticError - well-formed source that cannot be encoded
    │   ├── MalformedLiteralError - wrong number of hex digits
    │   ├── UnknownMnemonicError - instruction not in the opcode table
    │   ├── InvalidOperandError - no addressing mode matches the operand
    │   ├── UnmappableCharacterError - character outside the code page
    │   └── DuplicateSymbolError - label defined twice (strict mode only)
    └── UnresolvedSymbolError - label referenced but never defined

Design Philosophy
-----------------
Every assembly error is fatal to the run that raised it. The pipeline stops
at the first error; there is no recovery or resynchronisation.

Each error carries a SourceLocation and renders a one-line diagnostic:

    row:col:message
    row:message          (when only the row is known)

The str() of an error is the longer, human-oriented form with the source
line and a caret under the offending column:

    3:5: error: unknown instruction 'FOO'
        foo
        ^
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class C64AsmError(Exception):
    """
    Base exception for all c64asm errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch every assembler-related error with a single except clause:

        try:
            assembler.assemble_file("demo.asm")
        except C64AsmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source text for error reporting.

    Attributes:
        line: Row number (1-indexed)
        column: Column number (1-indexed), or None when only the row is known
    """
    line: int
    column: Optional[int] = None

    def __str__(self) -> str:
        """Format as 'row:col' (or just 'row') for diagnostics."""
        if self.column is None:
            return f"{self.line}"
        return f"{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(C64AsmError):
    """
    Base exception for all assembly errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text of the offending row (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def diagnostic(self) -> str:
        """The one-line 'row:col:message' form used in diagnostics output."""
        if self.location is None:
            return self.message
        return f"{self.location}:{self.message}"

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            9:9: error: unresolved label 'nxt'
                bne nxt
                    ^
            hint: did you mean 'next'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LexicalError(AssemblerError):
    """
    Source text that cannot be split into tokens.

    Examples:
        - Unterminated string literal: .text "HELLO
        - '$' not followed by any hexadecimal digit
    """
    pass


class AssemblySyntaxError(AssemblerError):
    """
    Token stream that does not fit the line grammar.

    Examples:
        - Missing '=' after '*'
        - Missing line terminator after a label
        - Something other than 'x' or 'y' after an operand comma
    """
    pass


class SemanticError(AssemblerError):
    """
    Grammatically valid source that cannot be encoded.

    The subclasses name the specific reason.
    """
    pass


class MalformedLiteralError(SemanticError):
    """
    A hex literal with the wrong number of digits for its use.

    The start address must be exactly 4 digits (one word) and an
    immediate value exactly 2 digits (one byte):

        * = $400     ; error: start address must be 2 bytes long
            lda #$1  ; error: immediate value must be 1 byte long
    """
    pass


class UnknownMnemonicError(SemanticError):
    """
    Identifier in instruction position that is not a 6502 mnemonic.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"unknown instruction '{mnemonic}'",
            location=location,
            source_line=source_line,
        )


class InvalidOperandError(SemanticError):
    """
    Operand whose shape matches no addressing mode the instruction supports.

    Example:
        sta #$41    ; STA has no immediate mode
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.valid_modes = valid_modes or []

        hint = None
        if self.valid_modes:
            hint = f"{mnemonic} supports: {', '.join(self.valid_modes)}"

        super().__init__(
            "invalid operand",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnmappableCharacterError(SemanticError):
    """
    Character in a .text/.screen string that has no code in the page.
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"unknown character '{char}'",
            location=location,
            source_line=source_line,
        )


class DuplicateSymbolError(SemanticError):
    """
    Label defined more than once.

    Only raised when strict label checking is enabled; by default a
    redefinition silently replaces the earlier label.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnresolvedSymbolError(AssemblerError):
    """
    Reference to a label that is never defined.

    Raised by the fixup pass, after the whole source has been scanned,
    so only the source row of the reference is known. Similar label
    names are offered as a hint to catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        hint = None
        if self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unresolved label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Diagnostics Accumulator
# =============================================================================

class Diagnostics:
    """
    Accumulates rendered diagnostics for one assembly run.

    Since every error is fatal, a failed run normally carries exactly one
    entry. The accumulator keeps the line-per-error text format so callers can
    show it verbatim.

    Example:
        diagnostics = Diagnostics()
        try:
            ...
        except AssemblerError as e:
            diagnostics.add(e)
        if diagnostics.has_errors():
            print(diagnostics.text())
    """

    def __init__(self):
        self.errors: list[AssemblerError] = []

    def add(self, error: AssemblerError) -> None:
        """Record an error."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Return True if any errors have been recorded."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of recorded errors."""
        return len(self.errors)

    def text(self) -> str:
        """Return every diagnostic as 'row:col:message', one per line."""
        return "".join(f"{error.diagnostic}\n" for error in self.errors)

    def report(self) -> str:
        """
        Format all errors for display, with source context.

        Returns:
            Formatted string with all errors and a summary line
        """
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Forget all recorded errors."""
        self.errors.clear()

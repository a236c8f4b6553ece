"""
6502 Assembly Language Lexer
============================

This module implements a lexer (tokenizer) for the column-sensitive 6502
assembly dialect understood by c64asm. It converts source text into a
stream of tokens that the parser pulls one at a time.

Token Types
-----------
- IDENTIFIER: Labels, mnemonics, directive names, index registers (x, y)
- HEX: Hexadecimal literal; "$" followed by hex digits, stored without "$"
- STRING: Double-quoted string, contents taken verbatim
- DELIMITER: Any other single character, including "\\n"
- EOF: End of input

The lexer does not give hex literals a numeric value. The number of digits
is significant to the parser (2 digits = byte, 4 digits = word), so the
digit string is kept as written.

Column Sensitivity
------------------
Spaces and tabs are insignificant everywhere except in column 1. A line
that starts with a blank produces a single " " (or "\\t") DELIMITER token,
which the parser reads as "this line carries an instruction or directive".
A line whose first character is not blank starts with a label or the "*"
of an address-set directive. The rule is implemented with an explicit
``at_line_start`` flag so it can be tested on its own.

Comments
--------
A semicolon starts a comment that runs to end of line. Comments never
become tokens.

Example
-------
>>> from c64asm.assembler.lexer import Lexer
>>> lexer = Lexer("loop\\n    lda #$41 ; load 'A'")
>>> token = lexer.next()
>>> while token.type is not TokenType.EOF:
...     print(token)
...     token = lexer.next()
Token(IDENTIFIER, 'loop', 1:1)
Token(DELIMITER, '\\n', 1:5)
Token(DELIMITER, ' ', 2:1)
Token(IDENTIFIER, 'lda', 2:5)
Token(DELIMITER, '#', 2:9)
Token(HEX, '41', 2:10)
Token(DELIMITER, '\\n', 2:24)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from c64asm.errors import AssemblerError, AssemblySyntaxError, LexicalError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types of the 6502 assembly dialect."""

    IDENTIFIER = auto()  # Labels, mnemonics, directive names
    HEX = auto()         # $-prefixed hexadecimal literal
    STRING = auto()      # Double-quoted string "..."
    DELIMITER = auto()   # Any other single character
    EOF = auto()         # End of input


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source text.

    Attributes:
        type: The TokenType classification
        value: The token text (hex digits without "$", string without quotes)
        line: Row of the token's first character (1-indexed)
        column: Column of the token's first character (1-indexed)
    """
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        if self.type is TokenType.EOF:
            return f"Token(EOF, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.line, self.column)

    def is_delimiter(self, char: str) -> bool:
        """True if this is the given delimiter character."""
        return self.type is TokenType.DELIMITER and self.value == char


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Pull-model tokenizer for 6502 assembly source.

    Tokens are produced lazily by next(); the parser never needs more than
    the one token it currently holds.

    Usage:
        lexer = Lexer(source_text)
        token = lexer.next()
        while token.type is not TokenType.EOF:
            ...
            token = lexer.next()

    Attributes:
        source: The text being tokenized (trailing blanks removed, newline
                appended)
        lines: The caller's source split into rows, for error context
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    BLANKS = " \t"

    def __init__(self, source: str):
        """
        Initialize the lexer with source text.

        Trailing whitespace is dropped and a final newline is appended so
        that the last line is always terminated. Leading text is kept as
        written so that token rows match the caller's line numbers.

        Args:
            source: The assembly source text to tokenize
        """
        self.source = source.rstrip() + "\n"
        self.lines = source.split("\n")

        self._pos = 0
        self._line = 1
        self._column = 1

        # True until the first character of the current row is consumed
        self.at_line_start = True

        self._last_token: Optional[Token] = None

    # =========================================================================
    # Public Interface
    # =========================================================================

    def next(self) -> Token:
        """
        Produce the next token.

        Once input is exhausted an EOF token is returned, and returned
        again on every further call.

        Raises:
            LexicalError: For an unterminated string or a "$" without digits
        """
        while self._skip_comment() or self._skip_whitespace():
            pass

        token = self._scan_token()
        self._last_token = token
        return token

    def tokenize(self) -> Iterator[Token]:
        """
        Generate all tokens, ending with (and including) EOF.

        Raises:
            LexicalError: If the source cannot be tokenized
        """
        while True:
            token = self.next()
            yield token
            if token.type is TokenType.EOF:
                return

    def source_line(self, row: int) -> Optional[str]:
        """Return the text of a 1-indexed source row, if it exists."""
        if 1 <= row <= len(self.lines):
            return self.lines[row - 1]
        return None

    def error(
        self,
        message: str,
        error_class: type[AssemblerError] = AssemblySyntaxError,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> AssemblerError:
        """
        Create a located error for the most recent token.

        The row and column default to those of the last token produced.
        The error is returned, not raised, so callers write
        ``raise lexer.error(...)``.

        Args:
            message: Error description
            error_class: AssemblerError subclass to instantiate
            line: Override row
            column: Override column
        """
        if line is None:
            line = self._last_token.line if self._last_token else self._line
        if column is None:
            column = self._last_token.column if self._last_token else self._column
        return error_class(
            message,
            SourceLocation(line, column),
            source_line=self.source_line(line),
        )

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """
        Consume and return the current character, advancing position.

        Updates row, column and the line-start flag.
        """
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self.at_line_start = True
        else:
            self._column += 1
            self.at_line_start = False

        return char

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        """
        Skip spaces and tabs, except in column 1.

        Returns:
            True if any whitespace was skipped
        """
        if self.at_line_start:
            return False

        skipped = False
        # Note: '' in BLANKS is True, so the empty end-of-input peek is excluded
        while self._peek() and self._peek() in self.BLANKS:
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """
        Skip a semicolon comment up to (not including) the newline.

        Returns:
            True if a comment was skipped
        """
        if self._peek() != ";":
            return False
        while not self._at_end() and self._peek() != "\n":
            self._advance()
        return True

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan the next token from source."""
        start_line = self._line
        start_column = self._column

        if self._at_end():
            return Token(TokenType.EOF, "", start_line, start_column)

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char == "$":
            return self._scan_hex(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        self._advance()
        return Token(TokenType.DELIMITER, char, start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier (label, mnemonic or directive name).

        Identifiers start with a letter or underscore and continue with
        letters, digits and underscores.
        """
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return Token(TokenType.IDENTIFIER, "".join(chars), start_line, start_column)

    def _scan_hex(self, start_line: int, start_column: int) -> Token:
        """Scan a hexadecimal literal with $ prefix."""
        self._advance()  # consume $

        chars = []
        while self._peek() and self._peek() in string.hexdigits:
            chars.append(self._advance())

        if not chars:
            raise LexicalError(
                "expected hexadecimal digits after '$'",
                SourceLocation(start_line, start_column),
                source_line=self.source_line(start_line),
            )
        return Token(TokenType.HEX, "".join(chars), start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """
        Scan a double-quoted string literal.

        The contents are taken verbatim; there are no escape sequences.
        """
        self._advance()  # consume opening "

        chars = []
        while not self._at_end() and self._peek() != "\n":
            char = self._advance()
            if char == '"':
                return Token(TokenType.STRING, "".join(chars), start_line, start_column)
            chars.append(char)

        raise LexicalError(
            "unterminated string literal",
            SourceLocation(start_line, start_column),
            source_line=self.source_line(start_line),
        )

"""
6502 Assembly Language Parser and Code Generator
================================================

This module implements the recursive-descent parser. It pulls tokens from
the lexer one line at a time and emits machine code straight into an
AssemblyImage as each line is recognised; there is no intermediate syntax
tree.

Line Grammar
------------
```
line     := "*" "=" HEX newline                        ; set start address
          | IDENTIFIER newline                          ; label (column 1)
          | indent IDENTIFIER operand newline           ; instruction
          | indent "." ("text"|"screen") STRING newline ; text directive
operand  := "#" HEX
          | IDENTIFIER [ "," ("x"|"y") ]
          | HEX [ "," ("x"|"y") ]
          | "*"
          | (empty)
```

"indent" is the blank DELIMITER token the lexer produces for a line that
starts with a space or tab.

Addressing Mode Resolution
--------------------------
An operand is first classified by its shape, then matched against the
instruction's opcodes in a fixed priority order. The first mode that fits
the shape and has an opcode wins:

| Priority | Operand shape    | Modes tried (by index suffix)                   |
|----------|------------------|-------------------------------------------------|
| 1        | (empty)          | implied, accumulator                            |
| 2        | #$nn             | immediate                                       |
| 3        | $nn[,x/,y]       | zeropage-x / zeropage-y / zeropage              |
| 4        | $nnnn[,x/,y]     | absolute-x / absolute-y / absolute, jump-abs.   |
| 5        | label[,x/,y]     | absolute-x / absolute-y / absolute, jump-abs.,  |
|          |                  | jump-relative                                   |
| 6        | *                | jump-absolute to the opcode's own address       |

A label's value is unknown while scanning, so a label operand always gets
word-sized encoding (one byte for a relative branch): two zero bytes are
emitted and an UnresolvedReference is recorded for the fixup pass.
"""

from typing import Mapping, Optional
import logging

from c64asm.errors import (
    AssemblerError,
    AssemblySyntaxError,
    DuplicateSymbolError,
    InvalidOperandError,
    MalformedLiteralError,
    SourceLocation,
    UnknownMnemonicError,
    UnmappableCharacterError,
)
from c64asm.assembler.lexer import Lexer, Token, TokenType
from c64asm.assembler.opcodes import AddressingMode, InstructionRecord, INSTRUCTION_TABLE
from c64asm.assembler.codegen import (
    AssemblyImage,
    CODE_PAGES,
    Label,
    UnresolvedReference,
    encode_char,
)

logger = logging.getLogger(__name__)


# Modes tried for a word-sized operand, by index register
_ABSOLUTE_MODES: dict[Optional[str], tuple[AddressingMode, ...]] = {
    "x": (AddressingMode.ABSOLUTE_X,),
    "y": (AddressingMode.ABSOLUTE_Y,),
    None: (AddressingMode.ABSOLUTE, AddressingMode.JUMP_ABSOLUTE),
}

# Modes tried for a byte-sized operand, by index register
_ZEROPAGE_MODES: dict[Optional[str], AddressingMode] = {
    "x": AddressingMode.ZEROPAGE_X,
    "y": AddressingMode.ZEROPAGE_Y,
    None: AddressingMode.ZEROPAGE,
}


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses 6502 assembly and generates code in a single scan.

    The parser owns the symbol table and the list of deferred references
    for one run; the instruction table is shared and only read.

    Usage:
        image = AssemblyImage(source_lines=source.split("\\n"))
        parser = Parser(Lexer(source), image)
        parser.parse()
        resolve_references(image, parser.labels, parser.references)

    Attributes:
        labels: Label name -> Label, filled while scanning
        references: Label uses to patch after scanning
    """

    def __init__(
        self,
        lexer: Lexer,
        image: AssemblyImage,
        instructions: Mapping[str, InstructionRecord] = INSTRUCTION_TABLE,
        strict_labels: bool = False,
    ):
        """
        Initialize the parser.

        Args:
            lexer: Token source for this run
            image: Image that receives the emitted bytes
            instructions: Mnemonic -> InstructionRecord lookup
            strict_labels: Raise DuplicateSymbolError on label redefinition
                           instead of replacing the earlier label
        """
        self._lexer = lexer
        self._image = image
        self._instructions = instructions
        self._strict_labels = strict_labels
        self._token: Optional[Token] = None

        self.labels: dict[str, Label] = {}
        self.references: list[UnresolvedReference] = []

    def parse(self) -> None:
        """
        Parse the whole token stream, emitting code into the image.

        Raises:
            AssemblerError: On the first lexical, syntax or semantic error
        """
        self._advance()
        while not self._at_end():
            # Skip blank lines
            if self._check_delimiter("\n"):
                self._advance()
                continue
            self._parse_line()

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if at end of token stream."""
        return self._token.type is TokenType.EOF

    def _advance(self) -> Token:
        """Consume the current token, pull the next one, return the consumed one."""
        token = self._token
        self._token = self._lexer.next()
        return token

    def _check(self, token_type: TokenType) -> bool:
        """Check if the current token has the given type."""
        return self._token.type is token_type

    def _check_delimiter(self, char: str) -> bool:
        """Check if the current token is the given delimiter."""
        return self._token.is_delimiter(char)

    def _match_delimiter(self, char: str) -> Optional[Token]:
        """Consume the current token if it is the given delimiter."""
        if self._check_delimiter(char):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Expect a token type, raise a syntax error if not found."""
        if not self._check(token_type):
            raise self._error(message)
        return self._advance()

    def _expect_delimiter(self, char: str) -> Token:
        """Expect a delimiter, raise a syntax error if not found."""
        if not self._check_delimiter(char):
            shown = char.replace("\n", "\\n").replace("\t", "\\t")
            raise self._error(f"expected '{shown}'")
        return self._advance()

    def _error(
        self,
        message: str,
        error_class: type[AssemblerError] = AssemblySyntaxError,
        token: Optional[Token] = None,
    ) -> AssemblerError:
        """Build a located error at a token (default: the current one)."""
        token = token or self._token
        return error_class(
            message,
            token.location,
            source_line=self._lexer.source_line(token.line),
        )

    # =========================================================================
    # Code Emission
    # =========================================================================

    def _emit(self, value: int) -> None:
        """Emit one byte tagged with the row of the current token."""
        self._image.emit(value, self._token.line)

    def _emit_word(self, value: int) -> None:
        """Emit a little-endian word tagged with the row of the current token."""
        self._image.emit_word(value, self._token.line)

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_line(self) -> None:
        """Parse one source line, starting at its first token."""
        if self._check_delimiter("*"):
            self._parse_start_address()
        elif self._check(TokenType.IDENTIFIER):
            self._define_label(self._advance())
            self._expect_delimiter("\n")
        elif self._check_delimiter(" ") or self._check_delimiter("\t"):
            self._advance()
            if self._check(TokenType.IDENTIFIER):
                self._parse_instruction(self._advance())
            elif self._match_delimiter("."):
                self._parse_text_directive()
            elif not self._check_delimiter("\n"):
                raise self._error("expected instruction or directive")
            self._expect_delimiter("\n")
        else:
            raise self._error("expected label or instruction")

    def _parse_start_address(self) -> None:
        """Parse '* = $nnnn' and set the image's start address."""
        self._advance()  # consume *
        self._expect_delimiter("=")
        token = self._expect(TokenType.HEX, "expected hexadecimal start address")
        if len(token.value) != 4:
            raise self._error(
                "start address must be 2 bytes long", MalformedLiteralError, token
            )
        self._image.start_address = int(token.value, 16)
        logger.debug(f"Start address set to ${self._image.start_address:04X}")
        self._expect_delimiter("\n")

    def _define_label(self, token: Token) -> None:
        """Bind a label to the current end of the image."""
        name = token.value
        previous = self.labels.get(name)
        if previous is not None:
            if self._strict_labels:
                raise DuplicateSymbolError(
                    name,
                    token.location,
                    original_location=SourceLocation(previous.line),
                    source_line=self._lexer.source_line(token.line),
                )
            logger.warning(
                f"{token.line}: label '{name}' redefined "
                f"(previously defined on line {previous.line})"
            )

        self.labels[name] = Label(name, len(self._image), token.line)
        logger.debug(f"Label '{name}' at offset {len(self._image)}")

    def _parse_text_directive(self) -> None:
        """Parse '.text "..."' or '.screen "..."' and emit one byte per character."""
        name_token = self._expect(TokenType.IDENTIFIER, "expected 'text' or 'screen'")
        directive = name_token.value.lower()
        if directive not in CODE_PAGES:
            raise self._error("expected 'text' or 'screen'", token=name_token)

        string_token = self._expect(TokenType.STRING, "expected string literal")
        for char in string_token.value:
            value = encode_char(char, directive)
            if value is None:
                raise UnmappableCharacterError(
                    char,
                    string_token.location,
                    source_line=self._lexer.source_line(string_token.line),
                )
            self._emit(value)

    # =========================================================================
    # Instruction Parsing
    # =========================================================================

    def _parse_instruction(self, mnemonic_token: Token) -> None:
        """Look up a mnemonic and encode it with its operand."""
        mnemonic = mnemonic_token.value.upper()
        record = self._instructions.get(mnemonic)
        if record is None:
            raise UnknownMnemonicError(
                mnemonic,
                mnemonic_token.location,
                source_line=self._lexer.source_line(mnemonic_token.line),
            )
        self._parse_operand(record, mnemonic_token)

    def _parse_index(self) -> Optional[str]:
        """Parse an optional ',x' or ',y' suffix and return 'x', 'y' or None."""
        if not self._match_delimiter(","):
            return None
        if self._check(TokenType.IDENTIFIER) and self._token.value.lower() in ("x", "y"):
            return self._advance().value.lower()
        raise self._error("expected 'x' or 'y'")

    def _parse_operand(self, record: InstructionRecord, mnemonic_token: Token) -> None:
        """
        Parse the operand of an instruction and emit its encoding.

        The operand's tokens are consumed first; the encoding is then chosen
        by the priority order described in the module docstring.

        Raises:
            MalformedLiteralError: Hex literal with an unusable digit count
            InvalidOperandError: No addressing mode fits the operand
        """
        if self._check_delimiter("\n"):
            # Next token stays in place; the caller consumes the newline
            if self._emit_first(record, (AddressingMode.IMPLIED, AddressingMode.ACCUMULATOR)):
                return

        elif self._match_delimiter("#"):
            token = self._expect(TokenType.HEX, "expected hexadecimal value")
            if len(token.value) != 2:
                raise self._error(
                    "immediate value must be 1 byte long", MalformedLiteralError, token
                )
            if self._emit_first(record, (AddressingMode.IMMEDIATE,)):
                self._emit(int(token.value, 16))
                return

        elif self._check(TokenType.HEX):
            token = self._advance()
            index = self._parse_index()
            value = int(token.value, 16)
            if len(token.value) == 2:
                if self._emit_first(record, (_ZEROPAGE_MODES[index],)):
                    self._emit(value)
                    return
            elif len(token.value) == 4:
                if self._emit_first(record, _ABSOLUTE_MODES[index]):
                    self._emit_word(value)
                    return
            else:
                raise self._error(
                    "address must be 1 or 2 bytes long", MalformedLiteralError, token
                )

        elif self._check(TokenType.IDENTIFIER):
            token = self._advance()
            index = self._parse_index()
            if self._emit_label_reference(record, token, index):
                return

        elif self._match_delimiter("*"):
            if self._emit_first(record, (AddressingMode.JUMP_ABSOLUTE,)):
                # The opcode is already in the image: point back at it
                self._emit_word(self._image.start_address + len(self._image) - 1)
                return

        raise InvalidOperandError(
            record.mnemonic,
            mnemonic_token.location,
            source_line=self._lexer.source_line(mnemonic_token.line),
            valid_modes=[str(mode) for mode in record.modes],
        )

    def _emit_first(
        self,
        record: InstructionRecord,
        modes: tuple[AddressingMode, ...],
    ) -> Optional[AddressingMode]:
        """
        Emit the opcode of the first supported mode in priority order.

        Returns:
            The chosen mode, or None if the instruction supports none of them
        """
        for mode in modes:
            opcode = record.opcode(mode)
            if opcode is not None:
                self._emit(opcode)
                return mode
        return None

    def _emit_label_reference(
        self,
        record: InstructionRecord,
        token: Token,
        index: Optional[str],
    ) -> bool:
        """
        Emit an instruction whose operand is a label.

        Placeholder bytes are emitted and an UnresolvedReference is recorded
        for the fixup pass, even when the label is already defined.

        Returns:
            True if a mode was found and code emitted
        """
        modes = _ABSOLUTE_MODES[index]
        if index is None:
            modes = modes + (AddressingMode.JUMP_RELATIVE,)

        mode = self._emit_first(record, modes)
        if mode is None:
            return False

        is_relative = mode is AddressingMode.JUMP_RELATIVE
        reference = UnresolvedReference(
            label=token.value,
            patch_position=len(self._image),
            source_row=token.line,
            is_relative=is_relative,
            is_branch_adjusted=mode in (AddressingMode.JUMP_ABSOLUTE, AddressingMode.JUMP_RELATIVE),
        )
        self.references.append(reference)
        logger.debug(
            f"Deferred {mode} reference to '{token.value}' at offset {reference.patch_position}"
        )

        self._emit(0)
        if not is_relative:
            self._emit(0)
        return True

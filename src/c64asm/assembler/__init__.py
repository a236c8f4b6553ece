"""
6502 Assembler for the Commodore 64
===================================

This module provides an assembler for the MOS 6502 (6510) microprocessor
with a small, column-sensitive source dialect.

Main Components
---------------
- **Assembler**: Main assembler class that keeps the results of a run
- **assemble**: One-call entry point returning an AssemblyResult
- **Lexer**: Tokenizes assembly source into tokens
- **Parser**: Parses lines and generates code in the same scan
- **AssemblyImage**: The generated bytes, their source rows and start address
- **format_listing**: Renders an image as a listing or hex dump

Assembly Process
----------------
1. **Scanning (Lexer + Parser)**:
   - Pull tokens one line at a time
   - Emit machine code for each instruction and text directive
   - Record labels and placeholder bytes for label operands

2. **Fixup (resolve_references)**:
   - Patch every placeholder with the label's final address or branch
     offset

Source Dialect
--------------
```
* = $4000            ; start address
loop                 ; labels start in column 1
    lda msg,x        ; instructions are indented
    bne loop
msg
    .text "HI"       ; PETSCII string (.screen for screen codes)
```

Example Usage
-------------
>>> from c64asm.assembler import assemble
>>> result = assemble("* = $c000\\n    inc $d020\\n    jmp *\\n")
>>> result.image.to_bytes().hex()
'ee20d04c03c0'
"""

from c64asm.assembler.assembler import (
    Assembler,
    AssemblyResult,
    AssembleResult,
    assemble,
    assemble6502,
    assemble_file,
)
from c64asm.assembler.lexer import Lexer, Token, TokenType
from c64asm.assembler.parser import Parser
from c64asm.assembler.codegen import (
    AssemblyImage,
    Label,
    UnresolvedReference,
    resolve_references,
)
from c64asm.assembler.listing import ListingFormat, format_listing
from c64asm.assembler.opcodes import (
    AddressingMode,
    InstructionRecord,
    INSTRUCTION_TABLE,
    MNEMONICS,
    BRANCH_INSTRUCTIONS,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "AssemblyResult",
    "AssembleResult",
    "assemble",
    "assemble6502",
    "assemble_file",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    # Code image
    "AssemblyImage",
    "Label",
    "UnresolvedReference",
    "resolve_references",
    # Listing
    "ListingFormat",
    "format_listing",
    # Opcodes
    "AddressingMode",
    "InstructionRecord",
    "INSTRUCTION_TABLE",
    "MNEMONICS",
    "BRANCH_INSTRUCTIONS",
]

"""
c64asm - 6502 Assembler for the Commodore 64
============================================

This package assembles MOS 6502 source code written in the compact dialect
used by classic C64 cross-assemblers into raw machine code, together
with the tools around it.

Main Components
---------------
- **assembler**: The assembler itself (c64asm)
    Converts assembly source (.asm) to a raw binary, a listing and a
    symbol table

- **disassembler**: Reference disassembler (c64disasm)
    Decodes raw 6502 machine code with the same opcode table

Quick Start
-----------
Assemble a program:
    >>> from c64asm import assemble
    >>> result = assemble(source)
    >>> if result.success:
    ...     data = result.image.to_bytes()
    ... else:
    ...     print(result.diagnostics)

Keep the results around and write them out:
    >>> from c64asm import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("demo.asm")
    >>> asm.write_binary("demo.bin")

Or use the command-line tools:
    $ c64asm demo.asm -o demo.bin -l demo.lst
    $ c64disasm demo.bin -a 0x4000

Version History
---------------
1.0.0 - Initial release with assembler, listing output and disassembler
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from c64asm.assembler import (
    Assembler,
    AssemblyResult,
    AssembleResult,
    AssemblyImage,
    ListingFormat,
    assemble,
    assemble6502,
    format_listing,
)
from c64asm.disassembler import MOS6502Disassembler, DisassembledInstruction
from c64asm.errors import (
    C64AsmError,
    SourceLocation,
    AssemblerError,
    LexicalError,
    AssemblySyntaxError,
    SemanticError,
    MalformedLiteralError,
    UnknownMnemonicError,
    InvalidOperandError,
    UnmappableCharacterError,
    DuplicateSymbolError,
    UnresolvedSymbolError,
    Diagnostics,
)

__all__ = [
    # Version info
    "__version__",
    # Assembler
    "Assembler",
    "AssemblyResult",
    "AssembleResult",
    "AssemblyImage",
    "ListingFormat",
    "assemble",
    "assemble6502",
    "format_listing",
    # Disassembler
    "MOS6502Disassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "C64AsmError",
    "SourceLocation",
    "AssemblerError",
    "LexicalError",
    "AssemblySyntaxError",
    "SemanticError",
    "MalformedLiteralError",
    "UnknownMnemonicError",
    "InvalidOperandError",
    "UnmappableCharacterError",
    "DuplicateSymbolError",
    "UnresolvedSymbolError",
    "Diagnostics",
]

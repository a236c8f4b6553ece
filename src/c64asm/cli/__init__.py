"""
c64asm Command-Line Interface
=============================

This package provides the command-line tools:

- **c64asm**: 6502 assembler
- **c64disasm**: 6502 disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["c64asm", "c64disasm"]

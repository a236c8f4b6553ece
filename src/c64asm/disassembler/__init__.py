"""
c64asm Disassembler Module
==========================

Reference disassembler for 6502 machine code, built on the assembler's
instruction table.

Usage:
    from c64asm.disassembler import MOS6502Disassembler

    disasm = MOS6502Disassembler()
    instructions = disasm.disassemble(code, start_address=0xC000)
"""

from .mos6502 import MOS6502Disassembler, DisassembledInstruction

__all__ = [
    "MOS6502Disassembler",
    "DisassembledInstruction",
]

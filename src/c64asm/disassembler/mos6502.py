"""
MOS 6502 Disassembler
=====================

Disassembles 6502 machine code into assembly text. It decodes with the
same instruction table the assembler encodes with, so it doubles as a
check that assembled code means what was intended.

Architecture:
    - 8-bit data bus, 16-bit address bus
    - Registers: A, X, Y (8-bit), SP (8-bit, page 1), PC (16-bit)
    - Little-endian byte ordering (least significant byte first)

Addressing Modes:
    - IMPLIED / ACCUMULATOR: No operand (NOP, RTS, ASL)
    - IMMEDIATE: Literal byte (#$nn)
    - ZEROPAGE(_X/_Y): Address $00-$FF, optionally indexed
    - ABSOLUTE(_X/_Y): Full 16-bit address, optionally indexed
    - INDIRECT, INDIRECT_X, INDIRECT_Y: Pointer operands
    - JUMP_ABSOLUTE: JMP/JSR target
    - JUMP_RELATIVE: Branch with signed 8-bit displacement

Usage:
    disasm = MOS6502Disassembler()

    # Disassemble from bytes
    instructions = disasm.disassemble(code, start_address=0xC000, count=10)

    # Disassemble single instruction
    instr = disasm.disassemble_one(code, address=0xC000)
    print(f"{instr.address:04X}: {instr.mnemonic} {instr.operand_str}")
"""

from dataclasses import dataclass
from typing import Optional

from c64asm.assembler.opcodes import INSTRUCTION_TABLE, AddressingMode, instruction_size


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled 6502 instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The opcode byte
        mnemonic: The instruction mnemonic (e.g., "LDA", "JSR")
        mode: The addressing mode used
        operand_bytes: Raw operand bytes (may be empty)
        operand_str: Formatted operand string for display
        size: Total instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (branch displacement, known address)
    """
    address: int
    opcode: int
    mnemonic: str
    mode: AddressingMode
    operand_bytes: bytes
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    def __str__(self) -> str:
        """Format as assembly line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes)
        # Pad hex bytes to consistent width (max 3 bytes = 8 chars with spaces)
        hex_bytes = hex_bytes.ljust(8)

        if self.operand_str:
            asm = f"{self.mnemonic} {self.operand_str}"
        else:
            asm = self.mnemonic

        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {asm:<16} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "mode": str(self.mode),
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# Operand templates for modes whose operand is a plain byte or word
_BYTE_FORMATS: dict[AddressingMode, str] = {
    AddressingMode.IMMEDIATE: "#${:02X}",
    AddressingMode.ZEROPAGE: "${:02X}",
    AddressingMode.ZEROPAGE_X: "${:02X},X",
    AddressingMode.ZEROPAGE_Y: "${:02X},Y",
    AddressingMode.INDIRECT_X: "(${:02X},X)",
    AddressingMode.INDIRECT_Y: "(${:02X}),Y",
}

_WORD_FORMATS: dict[AddressingMode, str] = {
    AddressingMode.ABSOLUTE: "${:04X}",
    AddressingMode.ABSOLUTE_X: "${:04X},X",
    AddressingMode.ABSOLUTE_Y: "${:04X},Y",
    AddressingMode.INDIRECT: "(${:04X})",
    AddressingMode.JUMP_ABSOLUTE: "${:04X}",
}


# =============================================================================
# 6502 Disassembler
# =============================================================================

class MOS6502Disassembler:
    """
    Disassembler for 6502 machine code.

    This class builds a reverse lookup table from the assembler's
    INSTRUCTION_TABLE to decode instructions from their opcode byte.
    Every opcode in the table belongs to exactly one (mnemonic, mode) pair.

    Attributes:
        _reverse_table: Maps opcode byte to (mnemonic, mode, size)
        _symbol_table: Optional symbol table for address annotation
    """

    def __init__(self, symbol_table: Optional[dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Optional dict mapping addresses to symbol names.
                         Used to annotate disassembly with meaningful labels.
        """
        self._symbol_table = symbol_table or {}
        self._reverse_table = self._build_reverse_table()

    def _build_reverse_table(self) -> dict[int, tuple[str, AddressingMode, int]]:
        """
        Build reverse lookup table: opcode -> (mnemonic, mode, size).

        Returns:
            Dictionary mapping opcode bytes to instruction info tuples.
        """
        reverse = {}
        for mnemonic, record in INSTRUCTION_TABLE.items():
            for mode in record.modes:
                reverse[record.opcode(mode)] = (mnemonic, mode, instruction_size(mode))
        return reverse

    def disassemble_one(
        self,
        data: bytes,
        address: int = 0,
        offset: int = 0
    ) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction (for display and branch targets)
            offset: Offset into data buffer where instruction starts

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If offset is beyond the end of data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]

        if opcode not in self._reverse_table:
            # Unknown opcode - return as data byte
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=".BYTE",
                mode=AddressingMode.IMPLIED,
                operand_bytes=bytes(),
                operand_str=f"${opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="unknown opcode"
            )

        mnemonic, mode, size = self._reverse_table[opcode]

        if offset + size > len(data):
            # Partial instruction - return what we have
            partial = data[offset:]
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=mnemonic,
                mode=mode,
                operand_bytes=bytes(),
                operand_str="???",
                size=len(partial),
                raw_bytes=bytes(partial),
                comment="incomplete instruction"
            )

        raw_bytes = data[offset:offset + size]
        operand_bytes = raw_bytes[1:]

        operand_str, comment = self._format_operand(mode, operand_bytes, address, size)

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=mnemonic,
            mode=mode,
            operand_bytes=bytes(operand_bytes),
            operand_str=operand_str,
            size=size,
            raw_bytes=bytes(raw_bytes),
            comment=comment
        )

    def _format_operand(
        self,
        mode: AddressingMode,
        operand_bytes: bytes,
        address: int,
        size: int
    ) -> tuple[str, str]:
        """
        Format the operand string based on addressing mode.

        Returns:
            Tuple of (operand_string, comment_string)
        """
        if mode in (AddressingMode.IMPLIED, AddressingMode.ACCUMULATOR):
            return "", ""

        if mode is AddressingMode.JUMP_RELATIVE:
            # Displacement is signed 8-bit, relative to the next instruction
            disp = operand_bytes[0]
            if disp >= 0x80:
                disp -= 256
            target = (address + size + disp) & 0xFFFF
            comment = f"+{disp}" if disp >= 0 else f"{disp}"
            return f"${target:04X}", self._symbol_table.get(target, comment)

        if mode in _BYTE_FORMATS:
            value = operand_bytes[0]
            operand_str = _BYTE_FORMATS[mode].format(value)
            if mode is AddressingMode.IMMEDIATE:
                comment = f"'{chr(value)}'" if 0x20 <= value < 0x7F else ""
                return operand_str, comment
            return operand_str, self._symbol_table.get(value, "")

        # Word operands are little-endian
        value = operand_bytes[0] | (operand_bytes[1] << 8)
        return _WORD_FORMATS[mode].format(value), self._symbol_table.get(value, "")

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
        max_bytes: Optional[int] = None
    ) -> list[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing machine code
            start_address: Memory address of first byte
            count: Maximum number of instructions to disassemble (None = all)
            max_bytes: Maximum number of bytes to process (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0
        address = start_address

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            if max_bytes is not None and offset >= max_bytes:
                break

            instr = self.disassemble_one(data, address, offset)
            result.append(instr)

            offset += instr.size
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None
    ) -> str:
        """
        Disassemble and return formatted text output, one instruction per line.
        """
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)

    def add_symbol(self, address: int, name: str) -> None:
        """Add a symbol to the symbol table."""
        self._symbol_table[address] = name

    def add_symbols(self, symbols: dict[int, str]) -> None:
        """
        Add multiple symbols to the symbol table.

        Args:
            symbols: Dictionary mapping addresses to names
        """
        self._symbol_table.update(symbols)

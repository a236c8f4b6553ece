"""
MOS 6502/6510 Instruction Set Definition
========================================

This module defines the documented 6502 instruction set (as used by the
6510 in the Commodore 64) with one opcode per supported addressing mode.
The 6502 is little-endian: 16-bit operands are stored low byte first.

Addressing Modes
----------------
Fourteen addressing modes are distinguished. Their column abbreviations
match the classic reference tables:

| Mode           | Abbr | Syntax       | Size | Example           |
|----------------|------|--------------|------|-------------------|
| IMPLIED        | **   | (none)       | 1    | INX -> $E8        |
| IMMEDIATE      | IM   | #$nn         | 2    | LDA #$41          |
| ZEROPAGE       | ZP   | $nn          | 2    | LDA $FB           |
| ZEROPAGE_X     | ZX   | $nn,x        | 2    | LDA $FB,x         |
| ZEROPAGE_Y     | ZY   | $nn,y        | 2    | LDX $FB,y         |
| ABSOLUTE       | AB   | $nnnn        | 3    | STA $D020         |
| ABSOLUTE_X     | AX   | $nnnn,x      | 3    | STA $0400,x       |
| ABSOLUTE_Y     | AY   | $nnnn,y      | 3    | LDA $0400,y       |
| INDIRECT       | IN   | ($nnnn)      | 3    | JMP ($0314)       |
| INDIRECT_X     | IX   | ($nn,x)      | 2    | LDA ($FB,x)       |
| INDIRECT_Y     | IY   | ($nn),y      | 2    | LDA ($FB),y       |
| JUMP_RELATIVE  | JR   | label        | 2    | BNE loop          |
| JUMP_ABSOLUTE  | JA   | label / $nnnn| 3    | JSR $FFD2         |
| ACCUMULATOR    | AC   | (none)       | 1    | ASL               |

The indirect modes are part of the table (the disassembler decodes them)
even though the source grammar has no syntax for them.

Record Shape
------------
Every InstructionRecord carries all fourteen slots. A mode the instruction
does not support holds the sentinel None; no slot is ever left out. The
table is built once at import time and exposed as a read-only mapping, so
independent assembly runs may share it freely.

Reference
---------
- MOS Technology MCS6500 Microcomputer Family Programming Manual
- https://www.masswerk.at/6502/6502_instruction_set.html
"""

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping, Optional


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """
    6502 addressing modes.

    Each addressing mode determines how the operand is interpreted
    and affects the instruction encoding and size.
    """
    IMPLIED = auto()        # No operand (INX, RTS)
    IMMEDIATE = auto()      # #$nn literal byte
    ZEROPAGE = auto()       # $nn
    ZEROPAGE_X = auto()     # $nn,x
    ZEROPAGE_Y = auto()     # $nn,y
    ABSOLUTE = auto()       # $nnnn
    ABSOLUTE_X = auto()     # $nnnn,x
    ABSOLUTE_Y = auto()     # $nnnn,y
    INDIRECT = auto()       # ($nnnn)
    INDIRECT_X = auto()     # ($nn,x)
    INDIRECT_Y = auto()     # ($nn),y
    JUMP_RELATIVE = auto()  # Branch displacement (signed 8-bit)
    JUMP_ABSOLUTE = auto()  # JMP/JSR target address
    ACCUMULATOR = auto()    # Operates on A (ASL, LSR, ROL, ROR)

    def __str__(self) -> str:
        """Return human-readable name for error messages."""
        return self.name.lower().replace("_", "-")


# Operand bytes following the opcode, per mode
_OPERAND_SIZES: dict[AddressingMode, int] = {
    AddressingMode.IMPLIED: 0,
    AddressingMode.ACCUMULATOR: 0,
    AddressingMode.IMMEDIATE: 1,
    AddressingMode.ZEROPAGE: 1,
    AddressingMode.ZEROPAGE_X: 1,
    AddressingMode.ZEROPAGE_Y: 1,
    AddressingMode.INDIRECT_X: 1,
    AddressingMode.INDIRECT_Y: 1,
    AddressingMode.JUMP_RELATIVE: 1,
    AddressingMode.ABSOLUTE: 2,
    AddressingMode.ABSOLUTE_X: 2,
    AddressingMode.ABSOLUTE_Y: 2,
    AddressingMode.INDIRECT: 2,
    AddressingMode.JUMP_ABSOLUTE: 2,
}


def operand_size(mode: AddressingMode) -> int:
    """Number of operand bytes that follow the opcode in this mode."""
    return _OPERAND_SIZES[mode]


def instruction_size(mode: AddressingMode) -> int:
    """Total encoded size (opcode plus operand) in this mode."""
    return 1 + _OPERAND_SIZES[mode]


# =============================================================================
# Instruction Record
# =============================================================================

@dataclass(frozen=True)
class InstructionRecord:
    """
    Opcodes of one mnemonic, one slot per addressing mode.

    The dataclass is frozen and the opcode mapping is read-only, so a
    record cannot change after the table is built.

    Attributes:
        mnemonic: Upper-case three-letter mnemonic (e.g., "LDA")
        description: Short description of the operation
        opcodes: All fourteen modes, each mapped to an opcode byte or None
    """
    mnemonic: str
    description: str
    opcodes: Mapping[AddressingMode, Optional[int]]

    def opcode(self, mode: AddressingMode) -> Optional[int]:
        """Return the opcode for a mode, or None if unsupported."""
        return self.opcodes[mode]

    def supports(self, mode: AddressingMode) -> bool:
        """Return True if the instruction has an opcode for this mode."""
        return self.opcodes[mode] is not None

    @property
    def modes(self) -> list[AddressingMode]:
        """Supported modes in declaration order."""
        return [mode for mode in AddressingMode if self.opcodes[mode] is not None]

    def __repr__(self) -> str:
        supported = ", ".join(
            f"{mode.name}=${self.opcodes[mode]:02X}" for mode in self.modes
        )
        return f"InstructionRecord({self.mnemonic}: {supported})"


def _record(mnemonic: str, description: str, **opcodes: int) -> InstructionRecord:
    """
    Build a record from keyword opcodes named after AddressingMode members.

    Modes not given are filled with the None sentinel.
    """
    slots: dict[AddressingMode, Optional[int]] = {mode: None for mode in AddressingMode}
    for name, opcode in opcodes.items():
        slots[AddressingMode[name.upper()]] = opcode
    return InstructionRecord(mnemonic, description, MappingProxyType(slots))


# =============================================================================
# Instruction Table
# =============================================================================
# Master table of the 56 documented 6502 mnemonics.
# Key: mnemonic
# Value: InstructionRecord with all fourteen addressing-mode slots
# =============================================================================

_RECORDS: tuple[InstructionRecord, ...] = (
    # Load / store
    _record("LDA", "Load Accu with Memory",
            immediate=0xA9, zeropage=0xA5, zeropage_x=0xB5, absolute=0xAD,
            absolute_x=0xBD, absolute_y=0xB9, indirect_x=0xA1, indirect_y=0xB1),
    _record("LDX", "Load Index X",
            immediate=0xA2, zeropage=0xA6, zeropage_y=0xB6, absolute=0xAE,
            absolute_y=0xBE),
    _record("LDY", "Load Index Y",
            immediate=0xA0, zeropage=0xA4, zeropage_x=0xB4, absolute=0xAC,
            absolute_x=0xBC),
    _record("STA", "Store Accu in Memory",
            zeropage=0x85, zeropage_x=0x95, absolute=0x8D, absolute_x=0x9D,
            absolute_y=0x99, indirect_x=0x81, indirect_y=0x91),
    _record("STX", "Store Index X in Memory",
            zeropage=0x86, zeropage_y=0x96, absolute=0x8E),
    _record("STY", "Store Index Y in Memory",
            zeropage=0x84, zeropage_x=0x94, absolute=0x8C),

    # Arithmetic and logic
    _record("ADC", "Add Memory to Accu with Carry",
            immediate=0x69, zeropage=0x65, zeropage_x=0x75, absolute=0x6D,
            absolute_x=0x7D, absolute_y=0x79, indirect_x=0x61, indirect_y=0x71),
    _record("SBC", "Subtract Memory from Accu with Borrow",
            immediate=0xE9, zeropage=0xE5, zeropage_x=0xF5, absolute=0xED,
            absolute_x=0xFD, absolute_y=0xF9, indirect_x=0xE1, indirect_y=0xF1),
    _record("AND", "AND Memory with Accu",
            immediate=0x29, zeropage=0x25, zeropage_x=0x35, absolute=0x2D,
            absolute_x=0x3D, absolute_y=0x39, indirect_x=0x21, indirect_y=0x31),
    _record("ORA", "OR Memory with Accu",
            immediate=0x09, zeropage=0x05, zeropage_x=0x15, absolute=0x0D,
            absolute_x=0x1D, absolute_y=0x19, indirect_x=0x01, indirect_y=0x11),
    _record("EOR", "Exclusive-OR Memory with Accu",
            immediate=0x49, zeropage=0x45, zeropage_x=0x55, absolute=0x4D,
            absolute_x=0x5D, absolute_y=0x59, indirect_x=0x41, indirect_y=0x51),
    _record("BIT", "Test Bits in Memory with Accu",
            zeropage=0x24, absolute=0x2C),

    # Compare
    _record("CMP", "Compare Memory with Accu",
            immediate=0xC9, zeropage=0xC5, zeropage_x=0xD5, absolute=0xCD,
            absolute_x=0xDD, absolute_y=0xD9, indirect_x=0xC1, indirect_y=0xD1),
    _record("CPX", "Compare Memory and Index X",
            immediate=0xE0, zeropage=0xE4, absolute=0xEC),
    _record("CPY", "Compare Memory and Index Y",
            immediate=0xC0, zeropage=0xC4, absolute=0xCC),

    # Increment / decrement
    _record("INC", "Increment Memory by One",
            zeropage=0xE6, zeropage_x=0xF6, absolute=0xEE, absolute_x=0xFE),
    _record("DEC", "Decrement Memory by One",
            zeropage=0xC6, zeropage_x=0xD6, absolute=0xCE, absolute_x=0xDE),
    _record("INX", "Increment Index X by One", implied=0xE8),
    _record("INY", "Increment Index Y by One", implied=0xC8),
    _record("DEX", "Decrement Index X by One", implied=0xCA),
    _record("DEY", "Decrement Index Y by One", implied=0x88),

    # Shifts and rotates
    _record("ASL", "Shift Left One Bit",
            zeropage=0x06, zeropage_x=0x16, absolute=0x0E, absolute_x=0x1E,
            accumulator=0x0A),
    _record("LSR", "Shift One Bit Right",
            zeropage=0x46, zeropage_x=0x56, absolute=0x4E, absolute_x=0x5E,
            accumulator=0x4A),
    _record("ROL", "Rotate One Bit Left",
            zeropage=0x26, zeropage_x=0x36, absolute=0x2E, absolute_x=0x3E,
            accumulator=0x2A),
    _record("ROR", "Rotate One Bit Right",
            zeropage=0x66, zeropage_x=0x76, absolute=0x6E, absolute_x=0x7E,
            accumulator=0x6A),

    # Branches
    _record("BCC", "Branch on Carry Clear", jump_relative=0x90),
    _record("BCS", "Branch on Carry Set", jump_relative=0xB0),
    _record("BEQ", "Branch on Result Zero", jump_relative=0xF0),
    _record("BNE", "Branch on Result not Zero", jump_relative=0xD0),
    _record("BMI", "Branch on Result Minus", jump_relative=0x30),
    _record("BPL", "Branch on Result Plus", jump_relative=0x10),
    _record("BVC", "Branch on Overflow Clear", jump_relative=0x50),
    _record("BVS", "Branch on Overflow Set", jump_relative=0x70),

    # Jumps and subroutines
    _record("JMP", "Jump to New Location", indirect=0x6C, jump_absolute=0x4C),
    _record("JSR", "Jump to New Location, Save Return Address", jump_absolute=0x20),
    _record("RTS", "Return From Subroutine", implied=0x60),
    _record("RTI", "Return From Interrupt", implied=0x40),
    _record("BRK", "Force Break", implied=0x00),

    # Stack
    _record("PHA", "Push Accu on Stack", implied=0x48),
    _record("PHP", "Push Processor Status on Stack", implied=0x08),
    _record("PLA", "Pull Accu from Stack", implied=0x68),
    _record("PLP", "Pull Processor Status from Stack", implied=0x28),

    # Register transfers
    _record("TAX", "Transfer Accu to Index X", implied=0xAA),
    _record("TAY", "Transfer Accu to Index Y", implied=0xA8),
    _record("TSX", "Transfer Stack Pointer to Index X", implied=0xBA),
    _record("TXA", "Transfer Index X to Accu", implied=0x8A),
    _record("TXS", "Transfer Index X to Stack Pointer", implied=0x9A),
    _record("TYA", "Transfer Index Y to Accu", implied=0x98),

    # Status flags
    _record("CLC", "Clear Carry Flag", implied=0x18),
    _record("CLD", "Clear Decimal Mode", implied=0xD8),
    _record("CLI", "Clear Interrupt Disable Bit", implied=0x58),
    _record("CLV", "Clear Overflow Flag", implied=0xB8),
    _record("SEC", "Set Carry Flag", implied=0x38),
    _record("SED", "Set Decimal Mode", implied=0xF8),
    _record("SEI", "Set Interrupt Disable Status", implied=0x78),

    _record("NOP", "No Operation", implied=0xEA),
)

INSTRUCTION_TABLE: Mapping[str, InstructionRecord] = MappingProxyType(
    {record.mnemonic: record for record in _RECORDS}
)


# =============================================================================
# Instruction Set Reference Lists
# =============================================================================

# Set of all valid mnemonics
MNEMONICS: frozenset[str] = frozenset(INSTRUCTION_TABLE)

# Instructions that use relative addressing
BRANCH_INSTRUCTIONS: frozenset[str] = frozenset(
    record.mnemonic for record in _RECORDS
    if record.supports(AddressingMode.JUMP_RELATIVE)
)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction(mnemonic: str) -> Optional[InstructionRecord]:
    """
    Look up an instruction record by mnemonic.

    Args:
        mnemonic: The instruction mnemonic, in any case (e.g., "lda")

    Returns:
        InstructionRecord if found, None for an unknown mnemonic
    """
    return INSTRUCTION_TABLE.get(mnemonic.upper())


def is_valid_instruction(mnemonic: str) -> bool:
    """Check if a mnemonic is a documented 6502 instruction."""
    return mnemonic.upper() in MNEMONICS


def is_branch_instruction(mnemonic: str) -> bool:
    """Check if an instruction is a branch (uses relative addressing)."""
    return mnemonic.upper() in BRANCH_INSTRUCTIONS

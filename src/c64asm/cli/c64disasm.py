"""
c64disasm - 6502 Disassembler Command-Line Interface
====================================================

This module implements the command-line interface for the 6502
disassembler. Input is raw machine code without a load address, such as
the binary written by c64asm.

Usage Examples
--------------
Disassemble machine code:
    $ c64disasm demo.bin

With base address:
    $ c64disasm demo.bin --address 0xC000

Annotate with the labels from an assembly run:
    $ c64disasm demo.bin -a '$C000' -s demo.sym

Limit number of instructions:
    $ c64disasm demo.bin --count 20

Output to file:
    $ c64disasm demo.bin -o listing.asm
"""

import sys
from pathlib import Path
from typing import Optional

import click

from c64asm import __version__
from c64asm.disassembler import MOS6502Disassembler
from c64asm.cli.errors import ExitCode, handle_cli_exception, setup_logging


def parse_address(ctx: click.Context, param: click.Parameter, value: str) -> int:
    """Parse an address given as 0x-hex, $-hex or decimal."""
    try:
        if value.lower().startswith("0x"):
            address = int(value, 16)
        elif value.startswith("$"):
            address = int(value[1:], 16)
        else:
            address = int(value)
    except ValueError:
        raise click.BadParameter(f"invalid address '{value}'")

    if not 0 <= address <= 0xFFFF:
        raise click.BadParameter("address must be 0-65535 (0x0000-0xFFFF)")
    return address


def read_symbol_file(path: Path) -> dict[int, str]:
    """
    Read a symbol file written by c64asm ('name $AAAA' per line).

    Returns:
        Dictionary mapping addresses to names
    """
    symbols = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        fields = line.split()
        if len(fields) != 2 or not fields[1].startswith("$"):
            continue
        symbols[int(fields[1][1:], 16)] = fields[0]
    return symbols


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    callback=parse_address,
    help="Base address for disassembly (hex with 0x or $ prefix, or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Symbol file from c64asm for address annotations",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c64disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: int,
    count: Optional[int],
    symbols: Optional[Path],
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble 6502 machine code.

    INPUT_FILE is the raw binary file to disassemble.

    \b
    Examples:
        c64disasm demo.bin --address 0xC000
        c64disasm demo.bin --count 20 -o listing.asm
    """
    setup_logging(verbose)

    try:
        data = input_file.read_bytes()
        symbol_table = read_symbol_file(symbols) if symbols else {}
    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${address:04X}", err=True)

    output_lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        f"; Base address: ${address:04X}",
        "",
    ]

    disasm = MOS6502Disassembler(symbol_table=symbol_table)
    instructions = disasm.disassemble(data, start_address=address, count=count)

    for instr in instructions:
        if no_bytes:
            # Compact format
            if instr.operand_str:
                line = f"${instr.address:04X}: {instr.mnemonic} {instr.operand_str}"
            else:
                line = f"${instr.address:04X}: {instr.mnemonic}"
            if instr.comment:
                line += f"  ; {instr.comment}"
            output_lines.append(line)
        else:
            output_lines.append(str(instr))

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except Exception as e:
            handle_cli_exception(e, verbose=verbose)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()

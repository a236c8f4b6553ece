"""
c64asm - 6502 Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the 6502 assembler.

Usage Examples
--------------
Basic assembly:
    $ c64asm demo.asm

With output file:
    $ c64asm demo.asm -o demo.bin

Generate all output files:
    $ c64asm demo.asm -o demo.bin -l demo.lst -s demo.sym

Print a hex dump of the code:
    $ c64asm demo.asm --hex

Verbose mode:
    $ c64asm -v demo.asm
"""

from pathlib import Path
from typing import Optional

import click

from c64asm import __version__
from c64asm.assembler import Assembler, ListingFormat
from c64asm.cli.errors import handle_cli_exception, setup_logging


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
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Print a hex dump of the generated code",
)
@click.option(
    "--strict-labels",
    is_flag=True,
    help="Treat a redefined label as an error instead of a warning",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="c64asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    show_hex: bool,
    strict_labels: bool,
    verbose: bool,
) -> None:
    """
    Assemble 6502 source code for the Commodore 64.

    INPUT_FILE is the assembly source file (.asm) to assemble.

    The output is the raw machine code without a load address; the start
    address is set in the source with "* = $nnnn".

    \b
    Examples:
        c64asm demo.asm              # Outputs demo.bin
        c64asm demo.asm -o out.bin   # Specify output file
        c64asm demo.asm -l demo.lst  # Also write a listing
    """
    setup_logging(verbose)

    output_file = output if output is not None else input_file.with_suffix(".bin")

    asm = Assembler(verbose=verbose, strict_labels=strict_labels)

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        asm.assemble_file(input_file)

        asm.write_binary(output_file)
        if verbose:
            click.echo(f"Wrote {len(asm.get_code())} bytes to {output_file}")

        # Write optional auxiliary files
        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if show_hex and asm.get_code():
            click.echo(asm.get_listing(ListingFormat(match_source_code=False)))

        if verbose:
            click.echo(
                f"Assembly complete: {len(asm.get_code())} bytes at ${asm.get_origin():04X}"
            )
            click.echo(f"Defined {len(asm.get_symbols())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()

"""
6502 Assembler - Main Interface
===============================

This module provides the entry points for assembling 6502 source code. It
coordinates the lexer, the parser (which generates code as it scans) and
the fixup pass.

Two calling styles are offered:

- assemble() never raises for bad source. It returns an AssemblyResult
  that says whether the run succeeded and carries either the image or the
  diagnostics text.
- Assembler.assemble_string() raises the first AssemblerError, in the way
  most Python APIs report failure.

Example Usage
-------------
>>> from c64asm import assemble
>>>
>>> result = assemble('''* = $c000
...     lda #$01
...     sta $d020
...     rts
... ''')
>>> result.success
True
>>> result.image.to_bytes().hex()
'a9018d20d060'

>>> from c64asm import Assembler
>>>
>>> asm = Assembler()
>>> asm.assemble_file("demo.asm")
>>> asm.write_binary("demo.bin")
>>> asm.write_listing("demo.lst")

Command-Line Usage
------------------
    $ c64asm demo.asm -o demo.bin -l demo.lst -s demo.sym

Options:
    -o, --output FILE      Output binary file
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate symbol file
    --hex                  Print a hex dump of the code
    --strict-labels        Reject label redefinition
    -v, --verbose          Verbose output
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from c64asm.errors import AssemblerError, Diagnostics
from c64asm.assembler.lexer import Lexer
from c64asm.assembler.parser import Parser
from c64asm.assembler.codegen import AssemblyImage, Label, resolve_references
from c64asm.assembler.listing import ListingFormat, format_listing

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

@dataclass
class AssemblyResult:
    """
    Outcome of one assemble() call.

    Exactly one of image and error is set.

    Attributes:
        success: True if the source assembled without error
        image: The assembled image (success only)
        diagnostics: 'row:col:message' lines, empty on success
        error: The error that stopped the run (failure only)
    """
    success: bool
    image: Optional[AssemblyImage] = None
    diagnostics: str = ""
    error: Optional[AssemblerError] = None


@dataclass
class AssembleResult:
    """
    Flat result of assemble6502(), shaped for display next to the source.

    Attributes:
        error: True if assembly failed
        error_string: Diagnostics text, empty on success
        machine_code: The code bytes, or None on failure
        machine_code_address: Start address of the code
        stringified_code: Source-matched listing of the code
    """
    error: bool
    error_string: str = ""
    machine_code: Optional[bytes] = None
    machine_code_address: int = 0
    stringified_code: str = ""


# =============================================================================
# Pipeline
# =============================================================================

def _assemble_source(
    source: str,
    strict_labels: bool = False,
) -> tuple[AssemblyImage, dict[str, Label]]:
    """
    Run the full pipeline: scan and emit, then patch label references.

    Returns:
        The finished image and the symbol table

    Raises:
        AssemblerError: On the first error in any stage
    """
    image = AssemblyImage(source_lines=source.split("\n"))
    parser = Parser(Lexer(source), image, strict_labels=strict_labels)
    parser.parse()
    resolve_references(image, parser.labels, parser.references)

    logger.debug(
        f"Assembled {len(image)} bytes at ${image.start_address:04X} "
        f"({len(parser.labels)} labels, {len(parser.references)} references)"
    )
    return image, parser.labels


def assemble(source: str, strict_labels: bool = False) -> AssemblyResult:
    """
    Assemble source code into an image, reporting errors in the result.

    Args:
        source: Assembly source code
        strict_labels: Treat label redefinition as an error

    Returns:
        An AssemblyResult; never raises for invalid source
    """
    try:
        image, _ = _assemble_source(source, strict_labels)
    except AssemblerError as e:
        diagnostics = Diagnostics()
        diagnostics.add(e)
        logger.debug(f"Assembly failed: {e.diagnostic}")
        return AssemblyResult(success=False, diagnostics=diagnostics.text(), error=e)
    return AssemblyResult(success=True, image=image)


def assemble6502(source: str) -> AssembleResult:
    """
    Assemble source code and return a flat, display-ready result.

    The listing uses the default ListingFormat: addresses, one row per
    source row, source text included.
    """
    result = assemble(source)
    if not result.success:
        return AssembleResult(error=True, error_string=result.diagnostics)

    image = result.image
    return AssembleResult(
        error=False,
        machine_code=image.to_bytes(),
        machine_code_address=image.start_address,
        stringified_code=format_listing(image, ListingFormat()),
    )


# =============================================================================
# Assembler Class
# =============================================================================

class Assembler:
    """
    Main 6502 assembler class.

    Holds the outcome of the most recent run so that code, symbols and
    listing can be queried and written out after assembling.

    Attributes:
        verbose: If True, log progress messages at INFO level
        strict_labels: If True, label redefinition is an error
    """

    def __init__(self, verbose: bool = False, strict_labels: bool = False):
        """
        Initialize the assembler.

        Args:
            verbose: Log progress messages
            strict_labels: Raise DuplicateSymbolError on label redefinition
        """
        self._verbose = verbose
        self._strict_labels = strict_labels

        self._image: Optional[AssemblyImage] = None
        self._labels: dict[str, Label] = {}
        self._diagnostics = Diagnostics()
        self._source_file: Optional[Path] = None

    @property
    def verbose(self) -> bool:
        return self._verbose

    @property
    def strict_labels(self) -> bool:
        return self._strict_labels

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble(self, source: str) -> AssemblyResult:
        """
        Assemble source code, reporting errors in the returned result.

        On failure the previous image is discarded and the error is kept
        for get_error_report().
        """
        try:
            self.assemble_string(source)
        except AssemblerError as e:
            return AssemblyResult(success=False, diagnostics=self._diagnostics.text(), error=e)
        return AssemblyResult(success=True, image=self._image)

    def assemble_string(self, source: str) -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code

        Returns:
            Generated machine code as bytes

        Raises:
            AssemblerError: If assembly fails
        """
        self._image = None
        self._labels = {}
        self._diagnostics.clear()

        try:
            image, labels = _assemble_source(source, self._strict_labels)
        except AssemblerError as e:
            self._diagnostics.add(e)
            raise

        self._image = image
        self._labels = labels

        if self._verbose:
            logger.info(
                f"Generated {len(image)} bytes at ${image.start_address:04X}, "
                f"{len(labels)} labels"
            )
        return image.to_bytes()

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Args:
            filepath: Path to assembly source file

        Returns:
            Generated machine code as bytes

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath

        if self._verbose:
            logger.info(f"Assembling {filepath}...")

        return self.assemble_string(filepath.read_text(encoding="utf-8"))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def _require_image(self) -> AssemblyImage:
        if self._image is None:
            raise RuntimeError("no successful assembly run")
        return self._image

    def get_image(self) -> Optional[AssemblyImage]:
        """Return the image of the last successful run, or None."""
        return self._image

    def get_code(self) -> bytes:
        """
        Get the generated machine code.

        Returns:
            Machine code as bytes (empty if nothing has been assembled)
        """
        if self._image is None:
            return b""
        return self._image.to_bytes()

    def get_origin(self) -> int:
        """Get the start address of the generated code."""
        if self._image is None:
            return 0
        return self._image.start_address

    def get_symbols(self) -> dict[str, int]:
        """
        Get the symbol table.

        Returns:
            Dictionary mapping label names to addresses
        """
        if self._image is None:
            return {}
        start = self._image.start_address
        return {name: (start + label.code_position) & 0xFFFF for name, label in self._labels.items()}

    def get_listing(self, fmt: Optional[ListingFormat] = None) -> str:
        """
        Get the assembly listing as a string.

        Args:
            fmt: Layout options (defaults to the source-matched listing)
        """
        return format_listing(self._require_image(), fmt)

    def write_listing(self, filepath: str | Path, fmt: Optional[ListingFormat] = None) -> None:
        """
        Write assembly listing file.

        Args:
            filepath: Output file path
            fmt: Layout options
        """
        listing = self.get_listing(fmt)
        Path(filepath).write_text(listing + "\n", encoding="utf-8")

        if self._verbose:
            logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file, one 'name $AAAA' line per label, sorted by name.

        Args:
            filepath: Output file path
        """
        self._require_image()
        lines = [f"{name} ${address:04X}" for name, address in sorted(self.get_symbols().items())]
        Path(filepath).write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")

        if self._verbose:
            logger.info(f"Wrote symbols to {filepath}")

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write raw binary output (machine code only, no load address).

        Args:
            filepath: Output file path
        """
        image = self._require_image()
        image.write_binary(filepath)

        if self._verbose:
            logger.info(f"Wrote {len(image)} bytes to {filepath}")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        """Check if the last run produced errors."""
        return self._diagnostics.has_errors()

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            Error report string, with source context for each error
        """
        return self._diagnostics.report()


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble_file(filepath: str | Path, strict_labels: bool = False) -> bytes:
    """
    Convenience function to assemble a file.

    Args:
        filepath: Path to source file
        strict_labels: Treat label redefinition as an error

    Returns:
        Generated machine code

    Raises:
        AssemblerError: If assembly fails
    """
    asm = Assembler(strict_labels=strict_labels)
    return asm.assemble_file(filepath)

"""
chip8dis - CHIP-8 Disassembler Command-Line Interface
=====================================================

Disassembles a CHIP-8 ROM image into a listing. Words that do not decode
to an instruction (sprite data, padding) are shown as DW directives.

Usage Examples
--------------
Disassemble a ROM loaded at the usual $200:
    $ chip8dis pong.ch8

Limit number of instructions:
    $ chip8dis pong.ch8 --count 20

Output to file:
    $ chip8dis pong.ch8 -o pong.lst

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import sys
from pathlib import Path
from typing import Optional

import click

from chip8_emu import __version__
from chip8_emu.cli.errors import parse_address
from chip8_emu.emulator import PROGRAM_START, disassemble_word


def disassemble_bytes(
    data: bytes,
    base_address: int = PROGRAM_START,
    count: Optional[int] = None,
    show_bytes: bool = True,
) -> list[str]:
    """
    Disassemble raw bytes as consecutive 16-bit words.

    A trailing odd byte is emitted as a DB directive.
    """
    lines = []
    for offset in range(0, len(data) - 1, 2):
        if count is not None and len(lines) >= count:
            return lines
        opcode = (data[offset] << 8) | data[offset + 1]
        text = disassemble_word(opcode)
        address = base_address + offset
        if show_bytes:
            lines.append(f"${address:03X}: {opcode:04X}  {text}")
        else:
            lines.append(f"${address:03X}: {text}")

    if len(data) % 2 and (count is None or len(lines) < count):
        address = base_address + len(data) - 1
        lines.append(f"${address:03X}: {data[-1]:02X}    DB ${data[-1]:02X}")
    return lines


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
    default="0x200",
    help="Load address of the first byte (hex with 0x or $ prefix, or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw opcode words from output",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="chip8dis")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    no_bytes: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 ROM.

    INPUT_FILE is the binary ROM image.

    Examples:

        # Full listing
        chip8dis pong.ch8

        # First 20 instructions, written to a file
        chip8dis pong.ch8 --count 20 -o pong.lst
    """
    try:
        base_address = parse_address(address)
    except click.BadParameter as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if not 0 <= base_address <= 0xFFF:
        click.echo("Error: Address must be 0-4095 (0x000-0xFFF)", err=True)
        sys.exit(1)

    data = input_file.read_bytes()
    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(1)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:03X}", err=True)

    output_lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        f"; Base address: ${base_address:03X}",
        "",
    ]
    instructions = disassemble_bytes(
        data, base_address=base_address, count=count, show_bytes=not no_bytes
    )
    output_lines.extend(instructions)

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding="utf-8")
            if verbose:
                click.echo(f"Output written to: {output}", err=True)
        except IOError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(1)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()

"""
chip8run - Headless CHIP-8 Runner
=================================

Loads a ROM, runs it for a stretch of simulated time and prints what ended
up on the display. Nothing waits on the wall clock: each frame hands the
emulator a fixed 1000/fps milliseconds, so runs are reproducible when a
seed is given.

Usage Examples
--------------
Run a ROM for one simulated second at 600 instructions per second:
    $ chip8run ibm_logo.ch8

Run five seconds at 1000 Hz with key 5 held, save a screenshot:
    $ chip8run pong.ch8 --duration 5000 --cps 1000 --key 5 --screenshot pong.png

Fixed-rate mode (10 instructions per 1/60 s frame):
    $ chip8run maze.ch8 --tick-mode

Stop at an address and dump registers:
    $ chip8run test.ch8 --break 0x228 --registers

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import dataclasses
import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from chip8_emu import __version__
from chip8_emu.cli.errors import handle_cli_exception, parse_address
from chip8_emu.emulator import BreakReason, Emulator, EmulatorConfig

STOP_REASONS = (BreakReason.PC_BREAKPOINT, BreakReason.MEMORY_WRITE)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-c", "--cps",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Instructions per second (default: 600, or CHIP8_FREQUENCY)",
)
@click.option(
    "-d", "--duration",
    type=click.FloatRange(min=0),
    default=1000.0,
    show_default=True,
    help="Simulated run time in milliseconds",
)
@click.option(
    "-f", "--fps",
    type=click.IntRange(min=1),
    default=60,
    show_default=True,
    help="Host frames per simulated second",
)
@click.option(
    "-t", "--tick-mode",
    is_flag=True,
    help="Use fixed-rate tick() frames instead of the fractional scheduler",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the RND instruction",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    help="Hex key (0-F) held for the whole run; may be repeated",
)
@click.option(
    "-b", "--break",
    "breaks",
    multiple=True,
    help="Stop before executing this address; may be repeated",
)
@click.option(
    "-s", "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Save the final display as a PNG image",
)
@click.option(
    "-z", "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Screenshot pixel scale",
)
@click.option(
    "--cache-decoded",
    is_flag=True,
    help="Cache decoded instructions (invalidated on writes)",
)
@click.option(
    "-r", "--registers",
    is_flag=True,
    help="Print register values after the run",
)
@click.option(
    "--no-display",
    is_flag=True,
    help="Do not print the display",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="chip8run")
def main(
    rom_file: Path,
    cps: Optional[float],
    duration: float,
    fps: int,
    tick_mode: bool,
    seed: Optional[int],
    keys: Tuple[str, ...],
    breaks: Tuple[str, ...],
    screenshot: Optional[Path],
    scale: int,
    cache_decoded: bool,
    registers: bool,
    no_display: bool,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM headlessly and print the display.

    ROM_FILE is the program image, loaded at $200.

    Examples:

        # One simulated second
        chip8run ibm_logo.ch8

        # Hold key 5, run 5 s at 1000 Hz, save a screenshot
        chip8run pong.ch8 -d 5000 -c 1000 -k 5 -s pong.png
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = EmulatorConfig.from_env()
        overrides = {}
        if cps is not None:
            overrides["frequency"] = cps
        if seed is not None:
            overrides["seed"] = seed
        if cache_decoded:
            overrides["cache_decoded"] = True
        config = dataclasses.replace(config, **overrides)

        emu = Emulator(config)
        emu.load_rom(rom_file)

        for key in keys:
            emu.press_key(key)
        for address in breaks:
            emu.add_breakpoint(parse_address(address))

        frame_ms = 1000.0 / fps
        frames = round(duration / frame_ms)

        if verbose:
            mode = "tick" if tick_mode else f"{config.frequency:g} Hz"
            click.echo(f"Running {rom_file.name}: {frames} frames, {mode}", err=True)

        stopped = None
        for _ in range(frames):
            event = emu.tick() if tick_mode else emu.run(frame_ms)
            if event.reason in STOP_REASONS:
                stopped = event
                break

        if not no_display:
            click.echo(emu.display_text)

        if stopped:
            click.echo(f"Stopped: {stopped}")

        if registers:
            regs = emu.registers
            v_line = " ".join(f"V{index:X}={regs[f'v{index:x}']:02X}" for index in range(16))
            click.echo(v_line)
            click.echo(
                f"PC={regs['pc']:04X} I={regs['i']:04X} "
                f"DT={regs['dt']:02X} ST={regs['st']:02X} SP={regs['sp']}"
            )

        if screenshot:
            screenshot.write_bytes(emu.render_display(scale=scale))
            if verbose:
                click.echo(f"Screenshot written to: {screenshot}", err=True)

        if verbose:
            click.echo(
                f"Executed {emu.total_steps} steps, "
                f"{emu.total_timer_events} timer events",
                err=True,
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Emulation")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()

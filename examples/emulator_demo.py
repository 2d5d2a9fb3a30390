#!/usr/bin/env python3
"""
CHIP-8 Emulator Demo
====================

This script demonstrates how to use the emulator to:
1. Build a small program in memory
2. Run it against the fractional scheduler
3. Stop on a breakpoint and inspect registers
4. Take a screenshot

Usage:
    python examples/emulator_demo.py

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from pathlib import Path
from chip8_emu.emulator import BreakReason, Emulator, EmulatorConfig


def assemble(*opcodes: int) -> bytes:
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


# Draws the 16 font glyphs in two rows of eight, then spins.
#
# $200: LD V0, $00      glyph index
# $202: LD V1, $04      x
# $204: LD V2, $04      y
# $206: LD F, V0
# $208: DRW V1, V2, 5
# $20A: ADD V0, $01
# $20C: ADD V1, $07
# $20E: SE V0, $08
# $210: JP $216
# $212: LD V1, $04
# $214: LD V2, $0C
# $216: SE V0, $10
# $218: JP $206
# $21A: JP $21A
GLYPHS = assemble(
    0x6000, 0x6104, 0x6204,
    0xF029, 0xD125,
    0x7001, 0x7107,
    0x3008, 0x1216,
    0x6104, 0x620C,
    0x3010, 0x1206,
    0x121A,
)


def main():
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Create an emulator instance
    # ==========================================================================
    print("Creating CHIP-8 emulator at 600 Hz...")
    emu = Emulator(EmulatorConfig(frequency=600, seed=1))
    emu.load_program(GLYPHS, name="glyphs")

    # ==========================================================================
    # 2. Stop after the first row
    # ==========================================================================
    emu.add_breakpoint(0x212)
    event = emu.run_steps(1000)
    if event.reason == BreakReason.PC_BREAKPOINT:
        print(f"\nFirst row drawn, stopped at ${event.address:04X}")
        print(f"  V0 (next glyph) = {emu.registers['v0']}")
        for line in emu.disassemble_at(event.address, 3):
            print(f"  {line}")
    emu.clear_breakpoints()

    # ==========================================================================
    # 3. Run one simulated second in 60 frames
    # ==========================================================================
    for _ in range(60):
        emu.run(1000 / 60)

    print(f"\nExecuted {emu.total_steps} steps, {emu.total_timer_events} timer events")
    print()
    print(emu.display.get_text(on="#", off=" "))

    # ==========================================================================
    # 4. Screenshot
    # ==========================================================================
    screenshot = output_dir / "glyphs.png"
    screenshot.write_bytes(emu.render_display(scale=8))
    print(f"\nScreenshot saved to {screenshot}")


if __name__ == "__main__":
    main()

"""
CHIP-8 Emulator
===============

An interpreter for the CHIP-8 virtual machine with a decoupled
scheduling model.

This package provides:

- **Interpreter**: All 35 CHIP-8 instructions with VF flag semantics
- **Memory**: 4KB flat address space with explicit bounds errors
- **Display**: 64x32 XOR sprite surface with collision reporting
- **Keyboard**: 16-key hex keypad state
- **Clock**: Fixed instruction rate and 60 Hz timers from irregular frames
- **Debugging**: Breakpoints, write watchpoints, access counters

Quick Start
-----------

Basic usage::

    >>> from chip8_emu.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(frequency=600))
    >>> emu.load_rom("maze.ch8")
    >>> for _ in range(120):
    ...     emu.run(1000 / 60)
    >>> print(emu.display_text)

With debugging::

    >>> emu.add_breakpoint(0x20A)
    >>> event = emu.run_steps(10_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:04X}")

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `cpu.py`: Interpreter state and instruction execution
- `instructions.py`: Opcode decoding and disassembly
- `clock.py`: Fractional-rate scheduler
- `memory.py`: Memory and access-counting memory
- `display.py`: Display surface
- `keyboard.py`: Keypad state
- `font.py`: Built-in hex font
- `breakpoints.py`: Debugging support

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig, MAX_PROGRAM_SIZE

# Interpreter
from .cpu import Chip8CPU, CPUState, CYCLES_PER_TICK, NUM_REGISTERS
from .instructions import Instruction, Op, decode, disassemble, disassemble_word

# Scheduling
from .clock import Clock, ClockTicks, DEFAULT_FREQUENCY, TIMER_PERIOD_MS

# Collaborators
from .memory import Memory, WatchedMemory, MEMORY_SIZE, PROGRAM_START, FONT_START
from .display import Display
from .keyboard import Keyboard, NUM_KEYS, parse_key
from .font import FONT, GLYPH_SIZE

# Debugging support
from .breakpoints import BreakpointManager, BreakEvent, BreakReason

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",
    "MAX_PROGRAM_SIZE",

    # Interpreter
    "Chip8CPU",
    "CPUState",
    "CYCLES_PER_TICK",
    "NUM_REGISTERS",
    "Instruction",
    "Op",
    "decode",
    "disassemble",
    "disassemble_word",

    # Scheduling
    "Clock",
    "ClockTicks",
    "DEFAULT_FREQUENCY",
    "TIMER_PERIOD_MS",

    # Memory
    "Memory",
    "WatchedMemory",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "FONT_START",

    # Display and keyboard
    "Display",
    "Keyboard",
    "NUM_KEYS",
    "parse_key",

    # Font
    "FONT",
    "GLYPH_SIZE",

    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
]

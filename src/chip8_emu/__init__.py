"""
chip8-emu - CHIP-8 Virtual Machine Emulator
===========================================

CHIP-8 is a small interpreted language from the late 1970s: 35 two-byte
instructions, sixteen 8-bit registers, 4KB of memory, a 64x32 monochrome
display, a 16-key hex keypad and two 60 Hz countdown timers.

Main Components
---------------
- **emulator**: Interpreter, memory, display, keyboard and scheduler
- **cli**: Headless runner (chip8run) and disassembler (chip8dis)

Quick Start
-----------
Run a ROM for one simulated second:
    >>> from chip8_emu import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom("ibm_logo.ch8")
    >>> for _ in range(60):
    ...     emu.run(1000 / 60)
    >>> print(emu.display_text)

Or use the command-line tools:
    $ chip8run ibm_logo.ch8 --duration 1000
    $ chip8dis ibm_logo.ch8

Version History
---------------
1.0.0 - Initial release with interpreter, scheduler and CLI tools

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_emu.errors import (
    Chip8Error,
    ProgramLoadError,
    EmulatorFatalError,
    FatalErrorKind,
    UnknownOpcodeError,
    StackUnderflowError,
    AddressOutOfRangeError,
)

from chip8_emu.emulator import (
    Emulator,
    EmulatorConfig,
    Chip8CPU,
    Clock,
    Memory,
    Display,
    Keyboard,
    BreakReason,
)

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "Chip8Error",
    "ProgramLoadError",
    "EmulatorFatalError",
    "FatalErrorKind",
    "UnknownOpcodeError",
    "StackUnderflowError",
    "AddressOutOfRangeError",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "Chip8CPU",
    "Clock",
    "Memory",
    "Display",
    "Keyboard",
    "BreakReason",
]

"""
CHIP-8 Emulator Command-Line Interface
======================================

This package provides command-line tools:

- **chip8run**: Headless ROM runner
- **chip8dis**: CHIP-8 disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

__all__ = ["chip8run", "chip8dis"]

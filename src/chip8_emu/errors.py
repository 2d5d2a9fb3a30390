"""
CHIP-8 Emulator Error Hierarchy
===============================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing callers to catch every
emulator-related error with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── ProgramLoadError - ROM missing, empty, or too large for program space
└── EmulatorFatalError - execution cannot continue
    ├── UnknownOpcodeError - opcode not in the instruction table
    ├── StackUnderflowError - RET with an empty call stack
    └── AddressOutOfRangeError - computed address outside memory

Fatal errors are never recovered from inside the interpreter. They carry
the program counter and opcode of the instruction that triggered them so
the host can report exactly where a ROM went wrong:

    $0204: error: unknown opcode $0123

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all emulator errors.

        try:
            emu.run(16.7)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


class ProgramLoadError(Chip8Error):
    """
    A program could not be placed into memory.

    Raised when a ROM file is empty or does not fit between the program
    start address and the end of memory.
    """
    pass


# =============================================================================
# Fatal Execution Errors
# =============================================================================

class FatalErrorKind(Enum):
    """The three ways execution can fail."""
    UNKNOWN_OPCODE = "unknown opcode"
    STACK_UNDERFLOW = "stack underflow"
    ADDRESS_OUT_OF_RANGE = "address out of range"


class EmulatorFatalError(Chip8Error):
    """
    Base exception for errors that halt the interpreter.

    Attributes:
        kind: Which fatal condition occurred
        message: Description of the failure
        pc: Address of the instruction that failed (if known)
        opcode: The 16-bit opcode being executed (if known)
    """

    kind: FatalErrorKind

    def __init__(
        self,
        message: str,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.pc = pc
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format as '$PC: error: message'.

        Example output:
            $0204: error: unknown opcode $0123
        """
        if self.pc is not None:
            return f"${self.pc:04X}: error: {self.message}"
        return f"error: {self.message}"

    def with_context(self, pc: int, opcode: Optional[int]) -> "EmulatorFatalError":
        """
        Attach instruction context to an error raised below the CPU.

        Memory raises without knowing which instruction caused the access;
        the CPU fills in the location on the way out.
        """
        if self.pc is None:
            self.pc = pc
        if self.opcode is None:
            self.opcode = opcode
        self.args = (self._format_message(),)
        return self


class UnknownOpcodeError(EmulatorFatalError):
    """Opcode not covered by the instruction table."""

    kind = FatalErrorKind.UNKNOWN_OPCODE

    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__(f"unknown opcode ${opcode:04X}", pc=pc, opcode=opcode)


class StackUnderflowError(EmulatorFatalError):
    """Return executed with an empty call stack."""

    kind = FatalErrorKind.STACK_UNDERFLOW

    def __init__(self, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("return with empty call stack", pc=pc, opcode=opcode)


class AddressOutOfRangeError(EmulatorFatalError):
    """
    A computed address fell outside the memory space.

    Attributes:
        address: The offending address
        size: Size of the memory that rejected it
    """

    kind = FatalErrorKind.ADDRESS_OUT_OF_RANGE

    def __init__(
        self,
        address: int,
        size: int,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.address = address
        self.size = size
        super().__init__(
            f"address ${address:04X} outside memory (size ${size:04X})",
            pc=pc,
            opcode=opcode,
        )

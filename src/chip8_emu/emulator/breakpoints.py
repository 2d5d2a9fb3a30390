"""
Breakpoint and Watchpoint System
================================

Debugging support for the emulator:
- PC breakpoints (stop before the instruction at an address executes)
- Memory write watchpoints (stop after an instruction writes an address)

The BreakpointManager is wired into the CPU's on_instruction and
on_memory_write hooks by the Emulator, and records a BreakEvent each time
a condition triggers.

Example usage:

    >>> emu = Emulator()
    >>> emu.add_breakpoint(0x20A)
    >>> event = emu.run_steps(1000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:04X}")

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set


class BreakReason(Enum):
    """Why execution stopped."""
    NONE = auto()             # No specific reason
    PC_BREAKPOINT = auto()    # PC reached a breakpoint address
    MEMORY_WRITE = auto()     # Memory write watchpoint triggered
    STEP = auto()             # Single-step completed
    TICK = auto()             # Fixed-rate frame completed
    MAX_STEPS = auto()        # Step budget exhausted
    TIME_ELAPSED = auto()     # Scheduler consumed the elapsed time
    WAITING_FOR_KEY = auto()  # Program is blocked on Fx0A


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC or memory address involved (if applicable)
        value: Value written (watchpoints only)
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    value: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:04X}"
            case BreakReason.MEMORY_WRITE:
                return f"Write ${self.value:02X} to ${self.address:04X}"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.TICK:
                return "Frame complete"
            case BreakReason.MAX_STEPS:
                return "Maximum steps reached"
            case BreakReason.TIME_ELAPSED:
                return "Elapsed time consumed"
            case BreakReason.WAITING_FOR_KEY:
                return "Waiting for key"
            case _:
                return "Unknown"


class BreakpointManager:
    """
    Central debugging controller.

    Holds breakpoint and watchpoint addresses and turns hook callbacks into
    BreakEvents. After a hit, the next check at the same PC is allowed
    through so that resuming does not stop on the same breakpoint forever.
    """

    def __init__(self):
        self._breakpoints: Set[int] = set()
        self._write_watchpoints: Set[int] = set()
        self._last_event: Optional[BreakEvent] = None
        self._resume_pc: Optional[int] = None

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Most recent break event, if any."""
        return self._last_event

    @property
    def breakpoint_count(self) -> int:
        return len(self._breakpoints)

    @property
    def watchpoint_count(self) -> int:
        return len(self._write_watchpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Stop before executing the instruction at address."""
        self._breakpoints.add(address)

    def remove_breakpoint(self, address: int) -> None:
        self._breakpoints.discard(address)

    def has_breakpoint(self, address: int) -> bool:
        return address in self._breakpoints

    def list_breakpoints(self) -> List[int]:
        return sorted(self._breakpoints)

    # =========================================================================
    # Watchpoints
    # =========================================================================

    def add_write_watchpoint(self, address: int) -> None:
        """Stop after an instruction writes to address."""
        self._write_watchpoints.add(address)

    def remove_write_watchpoint(self, address: int) -> None:
        self._write_watchpoints.discard(address)

    def list_write_watchpoints(self) -> List[int]:
        return sorted(self._write_watchpoints)

    # =========================================================================
    # State
    # =========================================================================

    def clear_event(self) -> None:
        """Forget the last event."""
        self._last_event = None

    def clear_resume(self) -> None:
        """Re-arm the breakpoint last passed through."""
        self._resume_pc = None

    def clear_all(self) -> None:
        """Remove all breakpoints and watchpoints."""
        self._breakpoints.clear()
        self._write_watchpoints.clear()
        self._last_event = None
        self._resume_pc = None

    # =========================================================================
    # Hook Callbacks
    # =========================================================================

    def check_instruction(self, pc: int, opcode: int) -> bool:
        """
        CPU on_instruction hook.

        Returns:
            True to continue, False to stop before this instruction
        """
        if pc in self._breakpoints:
            if self._resume_pc == pc:
                self._resume_pc = None
                return True
            self._resume_pc = pc
            self._last_event = BreakEvent(BreakReason.PC_BREAKPOINT, address=pc)
            return False
        self._resume_pc = None
        return True

    def check_memory_write(self, address: int, value: int) -> bool:
        """
        CPU on_memory_write hook.

        Returns:
            True to continue, False to request a stop
        """
        if address in self._write_watchpoints:
            self._last_event = BreakEvent(
                BreakReason.MEMORY_WRITE, address=address, value=value
            )
            return False
        return True

"""
CHIP-8 Emulator - Main Orchestrator
===================================

This module provides the main `Emulator` class that ties the interpreter
to its memory, display, keyboard, scheduler and debugger, and offers a
clean, high-level API for running and testing programs.

The Emulator class:
- Initializes all components and reloads the font on reset
- Loads programs from bytes or ROM files at $200
- Supports three execution modes:
    step()            one instruction
    tick()            one 1/60 s frame at a fixed instructions-per-frame rate
    run(elapsed_ms)   fractional scheduling against a configured frequency
- Integrates breakpoints and write watchpoints
- Logs and re-raises fatal execution errors with ROM and PC context

Example usage:
    >>> from chip8_emu.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(frequency=700))
    >>> emu.load_rom("pong.ch8")
    >>> for _ in range(60):
    ...     emu.run(16.667)
    >>> print(emu.display_text)

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from chip8_emu.errors import AddressOutOfRangeError, EmulatorFatalError, ProgramLoadError
from .breakpoints import BreakEvent, BreakpointManager, BreakReason
from .clock import DEFAULT_FREQUENCY, Clock
from .cpu import CYCLES_PER_TICK, Chip8CPU
from .display import Display
from .font import FONT
from .instructions import disassemble_word
from .keyboard import Keyboard
from .memory import FONT_START, MEMORY_SIZE, PROGRAM_START, Memory, WatchedMemory

logger = logging.getLogger(__name__)

MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        frequency: Instruction rate for run(), in steps per second (600)
        cycles_per_tick: Steps per tick() frame (10, i.e. 600 Hz at 60 fps)
        seed: Seed for the RND instruction; None for nondeterministic
        cache_decoded: Cache decoded instructions per address
        watch_memory: Count reads and writes per address

    Example:
        >>> config = EmulatorConfig(frequency=1000, seed=42)
    """
    frequency: float = DEFAULT_FREQUENCY
    cycles_per_tick: int = CYCLES_PER_TICK
    seed: Optional[int] = None
    cache_decoded: bool = False
    watch_memory: bool = False

    @classmethod
    def from_env(cls) -> "EmulatorConfig":
        """
        Create EmulatorConfig from environment variables.

        Environment variables (all optional):
            CHIP8_FREQUENCY: Instruction rate (float)
            CHIP8_CYCLES_PER_TICK: Steps per tick (integer)
            CHIP8_SEED: Random seed (integer)
            CHIP8_CACHE_DECODED: "1"/"true"/"yes" to enable the decode cache

        Invalid values are ignored and the default is kept.
        """
        values = {}

        if frequency := os.environ.get("CHIP8_FREQUENCY"):
            try:
                if float(frequency) > 0:
                    values["frequency"] = float(frequency)
            except ValueError:
                logger.warning(f"Ignoring invalid CHIP8_FREQUENCY={frequency!r}")

        if cycles := os.environ.get("CHIP8_CYCLES_PER_TICK"):
            try:
                values["cycles_per_tick"] = int(cycles)
            except ValueError:
                logger.warning(f"Ignoring invalid CHIP8_CYCLES_PER_TICK={cycles!r}")

        if seed := os.environ.get("CHIP8_SEED"):
            try:
                values["seed"] = int(seed)
            except ValueError:
                logger.warning(f"Ignoring invalid CHIP8_SEED={seed!r}")

        if cache := os.environ.get("CHIP8_CACHE_DECODED"):
            values["cache_decoded"] = cache.strip().lower() in ("1", "true", "yes", "on")

        return cls(**values)


class Emulator:
    """
    CHIP-8 emulator with instrumentation support.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        memory: 4KB memory (WatchedMemory if config.watch_memory)
        display: 64x32 display surface
        keyboard: 16-key keypad
        cpu: The interpreter
        clock: Fractional scheduler used by run()
        breakpoints: The breakpoint/watchpoint manager
        last_error: The most recent fatal error, if any

    Example:
        >>> emu = Emulator()
        >>> emu.load_program(bytes([0x60, 0x2A, 0x12, 0x02]))
        >>> emu.step()
        >>> emu.cpu.v[0]
        42
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        display: Optional[Display] = None,
        keyboard: Optional[Keyboard] = None,
    ):
        """
        Initialize the emulator and reset it to power-on state.

        Args:
            config: EmulatorConfig; defaults to 600 Hz, 10 steps per tick
            display: Display to draw on (a new one by default)
            keyboard: Keyboard to read (a new one by default)
        """
        self.config = config or EmulatorConfig()

        self.memory = WatchedMemory() if self.config.watch_memory else Memory()
        self.display = display or Display()
        self.keyboard = keyboard or Keyboard()

        self.cpu = Chip8CPU(
            self.memory,
            self.display,
            self.keyboard,
            rng=random.Random(self.config.seed),
            cache_decoded=self.config.cache_decoded,
        )
        self.clock = Clock(self.config.frequency)
        self.breakpoints = BreakpointManager()

        self.cpu.on_instruction = self.breakpoints.check_instruction
        self.cpu.on_memory_write = self.breakpoints.check_memory_write

        self.last_error: Optional[EmulatorFatalError] = None
        self._program_name = "<none>"
        self._total_steps = 0
        self._total_timer_events = 0

        self.reset()

    # =========================================================================
    # Program Loading
    # =========================================================================

    def reset(self) -> None:
        """
        Reset emulator to power-on state.

        - CPU registers, timers and stack cleared, PC = $200
        - Memory zeroed and font reloaded at $000
        - Display cleared, scheduler remainders dropped

        Calling reset() twice in a row gives the same state as calling it
        once. Loaded programs are erased; load again after resetting.
        """
        self.cpu.reset()
        self.memory.reset()
        self.memory.write_sequence(FONT_START, FONT)
        self.display.clear()
        self.clock.reset()
        if isinstance(self.memory, WatchedMemory):
            self.memory.reset_counters()
        self.breakpoints.clear_event()
        self.last_error = None
        self._total_steps = 0
        self._total_timer_events = 0
        logger.debug("Emulator reset")

    def load_program(self, data: bytes, name: str = "<bytes>") -> None:
        """
        Write a program into memory at $200.

        Args:
            data: Raw program bytes
            name: Label used in log messages and error reports

        Raises:
            ProgramLoadError: If data is empty or exceeds program space
        """
        if not data:
            raise ProgramLoadError(f"Program {name} is empty")
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramLoadError(
                f"Program {name} is {len(data)} bytes; "
                f"at most {MAX_PROGRAM_SIZE} bytes fit at ${PROGRAM_START:03X}"
            )

        self.memory.write_sequence(PROGRAM_START, data)
        self.cpu.invalidate(PROGRAM_START, len(data))
        self._program_name = name
        logger.debug(f"Loaded {len(data)} bytes from {name} at ${PROGRAM_START:03X}")

    def load_rom(self, path: Union[str, Path]) -> None:
        """
        Load a ROM file at $200.

        Raises:
            ProgramLoadError: If the file is missing, empty or too large
        """
        path = Path(path)
        if not path.is_file():
            raise ProgramLoadError(f"ROM file not found: {path}")
        self.load_program(path.read_bytes(), name=path.name)
        logger.info(f"Loaded ROM {path.name}")

    @property
    def program_name(self) -> str:
        return self._program_name

    # =========================================================================
    # Execution Control
    # =========================================================================

    def _step_cpu(self) -> bool:
        """Execute one CPU step, logging fatal errors with ROM context."""
        try:
            executed = self.cpu.step()
        except EmulatorFatalError as error:
            self.last_error = error
            logger.error(f"{self._program_name}: {error}")
            raise
        if executed:
            self._total_steps += 1
        return executed

    def _execute_steps(self, count: int) -> Optional[BreakEvent]:
        """
        Run up to count steps.

        Returns:
            The BreakEvent if a breakpoint or watchpoint stopped execution,
            None if all steps ran
        """
        for _ in range(count):
            if not self._step_cpu():
                event = self.breakpoints.last_event
                logger.warning(f"{self._program_name}: {event}")
                return event
            if self.cpu.take_memory_break():
                event = self.breakpoints.last_event
                logger.warning(f"{self._program_name}: {event}")
                return event
        return None

    def _decrement_timers(self, count: int) -> None:
        for _ in range(count):
            self.cpu.decrement_timers()
        self._total_timer_events += count

    def step(self) -> BreakEvent:
        """
        Execute a single instruction, ignoring breakpoints.

        Returns:
            BreakEvent with reason STEP (or WAITING_FOR_KEY) and the new PC
        """
        saved_hook = self.cpu.on_instruction
        self.cpu.on_instruction = None
        try:
            self._step_cpu()
        finally:
            self.cpu.on_instruction = saved_hook
        self.cpu.take_memory_break()
        self.breakpoints.clear_resume()

        reason = BreakReason.WAITING_FOR_KEY if self.cpu.waiting_for_key else BreakReason.STEP
        return BreakEvent(reason, address=self.cpu.pc, message=f"Step to ${self.cpu.pc:04X}")

    def tick(self) -> BreakEvent:
        """
        Run one fixed-rate frame.

        Executes config.cycles_per_tick steps, then decrements both timers
        once. Intended to be called exactly 60 times per second.
        """
        event = self._execute_steps(self.config.cycles_per_tick)
        if event:
            return event
        self._decrement_timers(1)
        return BreakEvent(BreakReason.TICK, address=self.cpu.pc)

    def run(self, elapsed_ms: float) -> BreakEvent:
        """
        Advance emulation by elapsed host time.

        The scheduler converts elapsed_ms into whole steps at
        config.frequency and whole 60 Hz timer events, carrying fractions
        to the next call. Steps run first, then timer events.

        If a breakpoint or watchpoint stops execution, the remaining steps
        and this call's timer events are dropped.

        Args:
            elapsed_ms: Milliseconds since the previous call

        Returns:
            BreakEvent with reason TIME_ELAPSED, or the break that stopped it
        """
        ticks = self.clock.advance(elapsed_ms)
        event = self._execute_steps(ticks.steps)
        if event:
            return event
        self._decrement_timers(ticks.timer_events)
        return BreakEvent(
            BreakReason.TIME_ELAPSED,
            address=self.cpu.pc,
            message=f"Ran {ticks.steps} steps, {ticks.timer_events} timer events",
        )

    def run_steps(self, max_steps: int) -> BreakEvent:
        """
        Run up to max_steps instructions without touching the timers.

        Returns:
            The break event, or MAX_STEPS if the budget ran out
        """
        event = self._execute_steps(max_steps)
        if event:
            return event
        return BreakEvent(
            BreakReason.MAX_STEPS,
            address=self.cpu.pc,
            message=f"Reached max steps ({max_steps})",
        )

    def run_until_pc(self, address: int, max_steps: int = 100_000) -> bool:
        """
        Run until PC reaches a specific address.

        Returns:
            True if address was reached, False if max_steps ran out first
        """
        was_set = self.breakpoints.has_breakpoint(address)
        if not was_set:
            self.breakpoints.add_breakpoint(address)

        try:
            event = self.run_steps(max_steps)
            return event.reason == BreakReason.PC_BREAKPOINT and event.address == address
        finally:
            if not was_set:
                self.breakpoints.remove_breakpoint(address)

    # =========================================================================
    # Breakpoint Management (delegates to BreakpointManager)
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Stop before executing the instruction at address."""
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        self.breakpoints.remove_breakpoint(address)

    def add_watchpoint(self, address: int) -> None:
        """Stop after any instruction writes to address."""
        self.breakpoints.add_write_watchpoint(address)

    def clear_breakpoints(self) -> None:
        """Remove all breakpoints and watchpoints."""
        self.breakpoints.clear_all()

    # =========================================================================
    # Keyboard Input
    # =========================================================================

    def press_key(self, key: Union[int, str]) -> None:
        """Hold a keypad key (0-F)."""
        self.keyboard.key_down(key)

    def release_key(self, key: Union[int, str]) -> None:
        self.keyboard.key_up(key)

    # =========================================================================
    # Display Output
    # =========================================================================

    @property
    def display_text(self) -> str:
        """Display as text, '#' for set pixels and '.' for unset."""
        return self.display.get_text()

    def render_display(self, scale: int = 8) -> bytes:
        """Render display to PNG bytes."""
        return self.display.render_image(scale=scale)

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        return self.memory.read_sequence(address, count)

    def write_byte(self, address: int, value: int) -> None:
        """Write a byte from the host side, dropping stale decodes."""
        self.memory.write(address, value)
        self.cpu.invalidate(address)

    def write_bytes(self, address: int, data: bytes) -> None:
        self.memory.write_sequence(address, data)
        self.cpu.invalidate(address, len(data))

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        Current register values.

        Returns:
            Dictionary with keys v0-vf, i, pc, dt, st, sp
        """
        result = {f"v{index:x}": value for index, value in enumerate(self.cpu.v)}
        result.update({
            "i": self.cpu.i,
            "pc": self.cpu.pc,
            "dt": self.cpu.delay_timer,
            "st": self.cpu.sound_timer,
            "sp": len(self.cpu.stack),
        })
        return result

    @property
    def total_steps(self) -> int:
        """Instructions (including key-wait polls) executed since reset."""
        return self._total_steps

    @property
    def total_timer_events(self) -> int:
        """60 Hz timer events applied since reset."""
        return self._total_timer_events

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """
        Disassemble instructions starting at address.

        Stops early at the end of memory. Words that are not valid
        instructions are shown as DW directives. Reads a snapshot, so
        access counters are left alone.
        """
        if address < 0:
            raise AddressOutOfRangeError(address, self.memory.size)
        data = self.memory.dump()
        result = []
        addr = address
        for _ in range(count):
            if addr + 1 >= self.memory.size:
                break
            opcode = (data[addr] << 8) | data[addr + 1]
            result.append(f"${addr:03X}: {opcode:04X}  {disassemble_word(opcode)}")
            addr += 2
        return result

    def __repr__(self) -> str:
        return (
            f"Emulator(program={self._program_name}, "
            f"pc=${self.cpu.pc:04X}, steps={self._total_steps})"
        )

"""
Emulator Integration Tests
==========================

Tests for the complete emulator system, verifying that all components
work together correctly.

These tests ensure:
- Reset and font loading
- Program loading from bytes and ROM files
- The three execution modes (step, tick, run)
- Fatal error propagation and logging
- Configuration from the environment
- Display output and state inspection

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import logging

import pytest

from chip8_emu.emulator import (
    Emulator,
    EmulatorConfig,
    BreakReason,
    Display,
    Keyboard,
    WatchedMemory,
    FONT,
    MAX_PROGRAM_SIZE,
)
from chip8_emu.errors import (
    AddressOutOfRangeError,
    ProgramLoadError,
    StackUnderflowError,
    UnknownOpcodeError,
)


def words(*opcodes: int) -> bytes:
    """Encode instruction words big-endian."""
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


# $200: ADD V0, $01
# $202: JP $200
COUNTER = words(0x7001, 0x1200)

FRAME_MS = 1000 / 60


@pytest.fixture
def emu():
    """Create a default emulator."""
    return Emulator()


# =============================================================================
# Reset and Loading
# =============================================================================

class TestReset:
    """Test power-on state."""

    def test_font_loaded(self, emu):
        """The hex font sits at $000 after reset."""
        assert emu.read_bytes(0x000, 80) == bytes(FONT)

    def test_reset_idempotent(self, emu):
        """Resetting twice gives the same state as resetting once."""
        emu.load_program(COUNTER)
        emu.run_steps(25)
        emu.reset()
        first = (emu.memory.dump(), emu.registers, emu.display_text)
        emu.reset()
        assert (emu.memory.dump(), emu.registers, emu.display_text) == first

    def test_reset_clears_program_and_counters(self, emu):
        """Reset erases the program and zeroes the counters."""
        emu.load_program(COUNTER)
        emu.run(FRAME_MS)
        emu.reset()
        assert emu.read_byte(0x200) == 0
        assert emu.total_steps == 0
        assert emu.total_timer_events == 0
        assert emu.cpu.pc == 0x200


class TestLoading:
    """Test program loading."""

    def test_load_program(self, emu):
        """Programs are written at $200."""
        emu.load_program(COUNTER, name="counter")
        assert emu.read_bytes(0x200, 4) == COUNTER
        assert emu.program_name == "counter"

    def test_empty_program(self, emu):
        """An empty program is rejected."""
        with pytest.raises(ProgramLoadError):
            emu.load_program(b"")

    def test_largest_program(self, emu):
        """A program filling all of $200-$FFF fits."""
        emu.load_program(bytes([0xAA]) * MAX_PROGRAM_SIZE)
        assert emu.read_byte(0xFFF) == 0xAA

    def test_program_too_large(self, emu):
        """One byte too many is rejected before anything is written."""
        with pytest.raises(ProgramLoadError):
            emu.load_program(bytes([0xAA]) * (MAX_PROGRAM_SIZE + 1))
        assert emu.read_byte(0x200) == 0

    def test_load_rom(self, emu, tmp_path):
        """ROM files load by path."""
        rom = tmp_path / "counter.ch8"
        rom.write_bytes(COUNTER)
        emu.load_rom(rom)
        assert emu.program_name == "counter.ch8"
        assert emu.read_bytes(0x200, 4) == COUNTER

    def test_load_rom_missing(self, emu, tmp_path):
        """A missing ROM raises ProgramLoadError."""
        with pytest.raises(ProgramLoadError, match="not found"):
            emu.load_rom(tmp_path / "missing.ch8")


# =============================================================================
# Execution Modes
# =============================================================================

class TestExecution:
    """Test step, tick and run."""

    def test_step(self, emu):
        """step() executes one instruction."""
        emu.load_program(COUNTER)
        event = emu.step()
        assert event.reason == BreakReason.STEP
        assert event.address == 0x202
        assert emu.cpu.v[0] == 1

    def test_step_waiting_for_key(self, emu):
        """step() reports a pending key wait."""
        emu.load_program(words(0xF00A))
        event = emu.step()
        assert event.reason == BreakReason.WAITING_FOR_KEY
        emu.press_key(4)
        assert emu.step().reason == BreakReason.STEP
        assert emu.cpu.v[0] == 4

    def test_tick(self, emu):
        """60 ticks run 600 steps and 60 timer events."""
        emu.load_program(words(0x603C, 0xF015) + COUNTER)
        emu.write_bytes(0x206, words(0x1204))
        for _ in range(60):
            assert emu.tick().reason == BreakReason.TICK
        assert emu.total_steps == 600
        assert emu.total_timer_events == 60
        assert emu.cpu.delay_timer == 0

    def test_run_one_second(self, emu):
        """One simulated second at 600 Hz in 60 frames."""
        emu.load_program(COUNTER)
        for _ in range(60):
            event = emu.run(FRAME_MS)
            assert event.reason == BreakReason.TIME_ELAPSED
        assert emu.total_steps == 600
        assert emu.total_timer_events == 60
        assert emu.cpu.v[0] == 300 & 0xFF

    def test_run_irregular_frame_length(self, emu):
        """60 calls of 16.667 ms give 600 steps (+-1) and 60 timer events."""
        emu.load_program(COUNTER)
        for _ in range(60):
            emu.run(16.667)
        assert 599 <= emu.total_steps <= 601
        assert emu.total_timer_events == 60

    def test_run_custom_frequency(self):
        """The step rate follows config.frequency."""
        emu = Emulator(EmulatorConfig(frequency=1200))
        emu.load_program(COUNTER)
        emu.run(100)
        assert emu.total_steps == 120

    def test_run_steps_leaves_timers(self, emu):
        """run_steps never decrements timers."""
        emu.load_program(words(0x6010, 0xF015, 0x1204))
        event = emu.run_steps(50)
        assert event.reason == BreakReason.MAX_STEPS
        assert emu.cpu.delay_timer == 0x10

    def test_seeded_runs_match(self):
        """Same seed, same program, same registers."""
        program = words(0xC0FF, 0xC1FF, 0xC2FF, 0xC3FF)
        results = []
        for _ in range(2):
            emu = Emulator(EmulatorConfig(seed=42))
            emu.load_program(program)
            emu.run_steps(4)
            results.append(emu.registers)
        assert results[0] == results[1]

    def test_injected_display_and_keyboard(self):
        """Caller-supplied display and keyboard are used."""
        display = Display()
        keyboard = Keyboard()
        keyboard.key_down(7)
        emu = Emulator(display=display, keyboard=keyboard)
        # LD V1, $07; SKP V1; JP $202; LD F, V1; DRW V0, V0, 5
        emu.load_program(words(0x6107, 0xE19E, 0x1202, 0xF129, 0xD005))
        emu.run_steps(4)
        assert display.lit_pixels > 0


# =============================================================================
# Errors
# =============================================================================

class TestErrors:
    """Test fatal error handling."""

    def test_unknown_opcode_propagates(self, emu, caplog):
        """Fatal errors are logged with the program name and re-raised."""
        emu.load_program(words(0x6000, 0xFFFF), name="bad.ch8")
        with caplog.at_level(logging.ERROR, logger="chip8_emu"):
            with pytest.raises(UnknownOpcodeError) as exc_info:
                emu.run_steps(10)
        assert exc_info.value.pc == 0x202
        assert emu.last_error is exc_info.value
        assert "bad.ch8" in caplog.text
        assert "$0202" in caplog.text

    def test_reset_clears_last_error(self, emu):
        """reset() forgets the last error."""
        emu.load_program(words(0x00EE))
        with pytest.raises(StackUnderflowError):
            emu.step()
        emu.reset()
        assert emu.last_error is None


# =============================================================================
# Configuration
# =============================================================================

class TestConfig:
    """Test EmulatorConfig."""

    def test_defaults(self):
        """Defaults match 600 Hz and 10 steps per frame."""
        config = EmulatorConfig()
        assert config.frequency == 600
        assert config.cycles_per_tick == 10
        assert config.seed is None
        assert config.cache_decoded is False

    def test_from_env(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("CHIP8_FREQUENCY", "1000")
        monkeypatch.setenv("CHIP8_CYCLES_PER_TICK", "12")
        monkeypatch.setenv("CHIP8_SEED", "7")
        monkeypatch.setenv("CHIP8_CACHE_DECODED", "yes")
        config = EmulatorConfig.from_env()
        assert config.frequency == 1000.0
        assert config.cycles_per_tick == 12
        assert config.seed == 7
        assert config.cache_decoded is True

    def test_from_env_invalid(self, monkeypatch, caplog):
        """Invalid values keep the default and log a warning."""
        monkeypatch.setenv("CHIP8_CYCLES_PER_TICK", "many")
        monkeypatch.delenv("CHIP8_FREQUENCY", raising=False)
        with caplog.at_level(logging.WARNING, logger="chip8_emu"):
            config = EmulatorConfig.from_env()
        assert config.cycles_per_tick == 10
        assert "CHIP8_CYCLES_PER_TICK" in caplog.text

    def test_watch_memory(self):
        """watch_memory swaps in counting memory."""
        emu = Emulator(EmulatorConfig(watch_memory=True))
        assert isinstance(emu.memory, WatchedMemory)
        assert emu.memory.total_writes == 0
        emu.load_program(COUNTER)
        emu.run_steps(2)
        assert emu.memory.reads[0x200] == 1
        assert emu.memory.reads[0x202] == 1

    def test_cache_sees_host_writes(self):
        """Host writes through the emulator drop stale decodes."""
        emu = Emulator(EmulatorConfig(cache_decoded=True))
        emu.load_program(COUNTER)
        emu.run_steps(2)
        emu.write_bytes(0x200, words(0x7005))
        emu.run_steps(1)
        assert emu.cpu.v[0] == 6


# =============================================================================
# Inspection
# =============================================================================

class TestInspection:
    """Test display output, registers and disassembly."""

    def test_display_text(self, emu):
        """Drawn glyphs appear in the text view."""
        emu.load_program(words(0xF029, 0xD005))
        emu.run_steps(2)
        lines = emu.display_text.splitlines()
        assert len(lines) == 32
        assert lines[0].startswith("####.")

    def test_render_display(self, emu):
        """render_display returns PNG bytes."""
        assert emu.render_display(scale=2)[:4] == b"\x89PNG"

    def test_registers(self, emu):
        """registers exposes every register by name."""
        emu.load_program(words(0x6A2F, 0xA123, 0x2300))
        emu.run_steps(3)
        regs = emu.registers
        assert regs["va"] == 0x2F
        assert regs["i"] == 0x123
        assert regs["pc"] == 0x300
        assert regs["sp"] == 1
        assert set(regs) >= {f"v{n:x}" for n in range(16)} | {"dt", "st"}

    def test_disassemble_at(self, emu):
        """disassemble_at lists address, word and mnemonic."""
        emu.load_program(words(0x6A2F, 0xFFFF))
        lines = emu.disassemble_at(0x200, 2)
        assert lines == ["$200: 6A2F  LD VA, $2F", "$202: FFFF  DW $FFFF"]

    def test_disassemble_at_leaves_counters(self):
        """Disassembly does not count as program reads."""
        emu = Emulator(EmulatorConfig(watch_memory=True))
        emu.load_program(COUNTER)
        emu.disassemble_at(0x200, 2)
        assert emu.memory.total_reads == 0

    def test_disassemble_at_negative(self, emu):
        with pytest.raises(AddressOutOfRangeError):
            emu.disassemble_at(-2, 1)

    def test_disassemble_at_end_of_memory(self, emu):
        """Disassembly stops at the end of memory."""
        assert len(emu.disassemble_at(0xFFC, 10)) == 2

    def test_repr(self, emu):
        emu.load_program(COUNTER, name="counter")
        assert "counter" in repr(emu)

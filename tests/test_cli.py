"""
CLI Tests
=========

Tests for the chip8run and chip8dis command-line tools, driven through
click's CliRunner.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from click.testing import CliRunner

from chip8_emu.cli.chip8dis import disassemble_bytes, main as chip8dis
from chip8_emu.cli.chip8run import main as chip8run
from chip8_emu.cli.errors import ExitCode, parse_address


def words(*opcodes: int) -> bytes:
    """Encode instruction words big-endian."""
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


# $200: LD F, V0
# $202: DRW V0, V0, 5
# $204: JP $204
GLYPH_ROM = words(0xF029, 0xD005, 0x1204)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def glyph_rom(tmp_path):
    """ROM that draws the 0 glyph and spins."""
    path = tmp_path / "glyph.ch8"
    path.write_bytes(GLYPH_ROM)
    return path


# =============================================================================
# Address Parsing
# =============================================================================

class TestParseAddress:
    """Test address argument parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("0x200", 0x200),
        ("$2A0", 0x2A0),
        ("512", 512),
    ])
    def test_formats(self, text, expected):
        assert parse_address(text) == expected

    def test_invalid(self):
        import click

        with pytest.raises(click.BadParameter):
            parse_address("zz")


# =============================================================================
# chip8run
# =============================================================================

class TestRunCLI:
    """Tests for the chip8run CLI tool."""

    def test_help(self, runner):
        """Help describes the tool."""
        result = runner.invoke(chip8run, ["--help"])
        assert result.exit_code == 0
        assert "Run a CHIP-8 ROM" in result.output

    def test_version(self, runner):
        result = runner.invoke(chip8run, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_prints_display(self, runner, glyph_rom):
        """The final display is printed as text."""
        result = runner.invoke(chip8run, [str(glyph_rom)])
        assert result.exit_code == ExitCode.SUCCESS
        lines = result.output.splitlines()
        assert lines[0].startswith("####.")
        assert lines[1].startswith("#..#.")

    def test_tick_mode(self, runner, glyph_rom):
        """Fixed-rate mode gives the same picture."""
        result = runner.invoke(chip8run, [str(glyph_rom), "--tick-mode", "-d", "100"])
        assert result.exit_code == 0
        assert result.output.startswith("####.")

    def test_registers(self, runner, glyph_rom):
        """--registers prints the register file."""
        result = runner.invoke(chip8run, [str(glyph_rom), "--registers", "--no-display"])
        assert result.exit_code == 0
        assert "PC=0204" in result.output
        assert "V0=00" in result.output
        assert "####" not in result.output

    def test_breakpoint(self, runner, glyph_rom):
        """--break stops the run and reports where."""
        result = runner.invoke(chip8run, [str(glyph_rom), "--break", "$202", "--no-display"])
        assert result.exit_code == 0
        assert "Stopped: Breakpoint at $0202" in result.output

    def test_screenshot(self, runner, glyph_rom, tmp_path):
        """--screenshot writes a PNG."""
        png = tmp_path / "shot.png"
        result = runner.invoke(chip8run, [str(glyph_rom), "-s", str(png), "-z", "2"])
        assert result.exit_code == 0
        assert png.read_bytes()[:4] == b"\x89PNG"

    def test_keys(self, runner, tmp_path):
        """Held keys satisfy a key wait."""
        rom = tmp_path / "wait.ch8"
        # LD V3, K; LD F, V3; DRW V0, V0, 5; JP $206
        rom.write_bytes(words(0xF30A, 0xF329, 0xD005, 0x1206))
        result = runner.invoke(chip8run, [str(rom), "-k", "1", "-r", "--no-display"])
        assert result.exit_code == 0
        assert "V3=01" in result.output

    def test_invalid_key(self, runner, glyph_rom):
        """An invalid key is an argument error."""
        result = runner.invoke(chip8run, [str(glyph_rom), "-k", "G"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_fatal_error(self, runner, tmp_path):
        """A fatal execution error exits with the emulation error code."""
        rom = tmp_path / "bad.ch8"
        rom.write_bytes(words(0xFFFF))
        result = runner.invoke(chip8run, [str(rom)])
        assert result.exit_code == ExitCode.EMULATION_ERROR
        assert "Emulation error: $0200: error: unknown opcode $FFFF" in result.output

    def test_empty_rom(self, runner, tmp_path):
        """An empty ROM is a load error."""
        rom = tmp_path / "empty.ch8"
        rom.write_bytes(b"")
        result = runner.invoke(chip8run, [str(rom)])
        assert result.exit_code == ExitCode.EMULATION_ERROR

    def test_missing_rom(self, runner, tmp_path):
        """click rejects a missing ROM path."""
        result = runner.invoke(chip8run, [str(tmp_path / "missing.ch8")])
        assert result.exit_code == 2

    def test_env_frequency(self, runner, glyph_rom):
        """CHIP8_FREQUENCY is honored when --cps is not given."""
        result = runner.invoke(
            chip8run,
            [str(glyph_rom), "-v", "--no-display"],
            env={"CHIP8_FREQUENCY": "300"},
        )
        assert result.exit_code == 0
        assert "300 Hz" in result.output


# =============================================================================
# chip8dis
# =============================================================================

class TestDisassemblerCLI:
    """Tests for the chip8dis CLI tool."""

    def test_help(self, runner):
        result = runner.invoke(chip8dis, ["--help"])
        assert result.exit_code == 0
        assert "Disassemble a CHIP-8 ROM" in result.output

    def test_basic_disassembly(self, runner, glyph_rom):
        """Each word is listed with address and mnemonic."""
        result = runner.invoke(chip8dis, [str(glyph_rom)])
        assert result.exit_code == 0
        assert "$200: F029  LD F, V0" in result.output
        assert "$202: D005  DRW V0, V0, 5" in result.output
        assert "$204: 1204  JP $204" in result.output

    def test_data_words(self, runner, tmp_path):
        """Undecodable words are shown as data."""
        rom = tmp_path / "data.ch8"
        rom.write_bytes(bytes([0xFF, 0xFF, 0x00]))
        result = runner.invoke(chip8dis, [str(rom)])
        assert result.exit_code == 0
        assert "DW $FFFF" in result.output
        assert "$202: 00    DB $00" in result.output

    def test_address_and_count(self, runner, glyph_rom):
        """--address rebases the listing and --count limits it."""
        result = runner.invoke(chip8dis, [str(glyph_rom), "-a", "0x300", "-c", "1"])
        assert result.exit_code == 0
        assert "$300: F029" in result.output
        assert "$302" not in result.output

    def test_no_bytes(self, runner, glyph_rom):
        result = runner.invoke(chip8dis, [str(glyph_rom), "--no-bytes"])
        assert "$200: LD F, V0" in result.output

    def test_output_file(self, runner, glyph_rom, tmp_path):
        """-o writes the listing to a file."""
        out = tmp_path / "glyph.lst"
        result = runner.invoke(chip8dis, [str(glyph_rom), "-o", str(out)])
        assert result.exit_code == 0
        text = out.read_text()
        assert text.startswith("; Disassembly of glyph.ch8")
        assert "DRW V0, V0, 5" in text

    def test_bad_address(self, runner, glyph_rom):
        result = runner.invoke(chip8dis, [str(glyph_rom), "-a", "nope"])
        assert result.exit_code == 1

    def test_disassemble_bytes(self):
        """The listing helper works on raw bytes."""
        lines = disassemble_bytes(GLYPH_ROM, show_bytes=False)
        assert lines == ["$200: LD F, V0", "$202: DRW V0, V0, 5", "$204: JP $204"]

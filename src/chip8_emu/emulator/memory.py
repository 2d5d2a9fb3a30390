"""
Memory Subsystem for CHIP-8 Emulator
====================================

Memory Map:
    $000-$04F  Built-in font (16 glyphs x 5 bytes), reloaded on reset
    $050-$1FF  Reserved, unused by the interpreter
    $200-$FFF  Program space (ROMs are loaded at $200)

Addresses are never masked or wrapped. Any access outside the 4KB space
raises AddressOutOfRangeError instead of silently corrupting state.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import Iterable

from chip8_emu.errors import AddressOutOfRangeError


MEMORY_SIZE = 0x1000
FONT_START = 0x000
PROGRAM_START = 0x200


class Memory:
    """
    Flat byte-addressable memory.

    Attributes:
        size: Number of addressable bytes
    """

    def __init__(self, size: int = MEMORY_SIZE):
        """
        Initialize memory.

        Args:
            size: Number of bytes (at least 4096 for CHIP-8 programs)
        """
        self.size = size
        self._data = bytearray(size)

    def _check(self, address: int, count: int = 1) -> None:
        """Raise if [address, address + count) leaves memory."""
        if address < 0 or address >= self.size:
            raise AddressOutOfRangeError(address, self.size)
        end = address + count - 1
        if end >= self.size:
            raise AddressOutOfRangeError(end, self.size)

    def reset(self) -> None:
        """Zero every byte."""
        self._data = bytearray(self.size)

    def read(self, address: int) -> int:
        """
        Read byte from memory.

        Args:
            address: Byte address

        Returns:
            Byte value at address

        Raises:
            AddressOutOfRangeError: If address is outside memory
        """
        self._check(address)
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """
        Write byte to memory.

        Args:
            address: Byte address
            value: Byte value to write (masked to 8 bits)

        Raises:
            AddressOutOfRangeError: If address is outside memory
        """
        self._check(address)
        self._data[address] = value & 0xFF

    def write_sequence(self, start: int, data: Iterable[int]) -> None:
        """
        Write consecutive bytes starting at start.

        The whole range is validated before anything is written.
        """
        data = bytes(value & 0xFF for value in data)
        if not data:
            return
        self._check(start, len(data))
        self._data[start:start + len(data)] = data

    def read_sequence(self, start: int, count: int) -> bytes:
        """Read count consecutive bytes starting at start."""
        if count <= 0:
            return b""
        self._check(start, count)
        return bytes(self._data[start:start + count])

    def dump(self) -> bytes:
        """Copy of the full memory contents."""
        return bytes(self._data)


class WatchedMemory(Memory):
    """
    Memory that counts reads and writes per address.

    Useful for finding hot loops and self-modifying code. Counters survive
    reset() so a host can clear them on its own schedule.

    Attributes:
        reads: Read count per address
        writes: Write count per address
    """

    def __init__(self, size: int = MEMORY_SIZE):
        super().__init__(size)
        self.reads = [0] * size
        self.writes = [0] * size

    def reset_counters(self) -> None:
        """Zero all access counters."""
        self.reads = [0] * self.size
        self.writes = [0] * self.size

    def read(self, address: int) -> int:
        value = super().read(address)
        self.reads[address] += 1
        return value

    def write(self, address: int, value: int) -> None:
        super().write(address, value)
        self.writes[address] += 1

    def write_sequence(self, start: int, data: Iterable[int]) -> None:
        data = bytes(value & 0xFF for value in data)
        super().write_sequence(start, data)
        for address in range(start, start + len(data)):
            self.writes[address] += 1

    def read_sequence(self, start: int, count: int) -> bytes:
        data = super().read_sequence(start, count)
        for address in range(start, start + len(data)):
            self.reads[address] += 1
        return data

    @property
    def total_reads(self) -> int:
        return sum(self.reads)

    @property
    def total_writes(self) -> int:
        return sum(self.writes)

"""
CHIP-8 Interpreter
==================

Fetch-decode-execute core for the CHIP-8 virtual machine.

Machine state:
- V0-VF: 16 general-purpose 8-bit registers (VF doubles as the flag
  register for carry, borrow, shifted-out bit and sprite collision)
- I: 16-bit index register used as a base pointer by memory and draw ops
- PC: program counter, starts at $200, advanced by 2 per fetch
- Call stack: unbounded list of return addresses
- Delay and sound timers: 8-bit, decremented at 60 Hz toward zero

Each step() reads the big-endian word at PC, advances PC by 2, decodes
it (see instructions.py) and executes it against memory, display and
keyboard. The CPU never touches the host clock; tick() and the Clock in
clock.py decide how many steps run per unit of real time.

Wait-for-key (Fx0A) is a polled state: while waiting, each step() checks
the keyboard once and does nothing else. The key is stored into the
register named by the instruction that started the wait.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from chip8_emu.errors import (
    EmulatorFatalError,
    StackUnderflowError,
)
from .font import GLYPH_SIZE
from .instructions import Instruction, Op, decode
from .memory import PROGRAM_START

NUM_REGISTERS = 16
CYCLES_PER_TICK = 10


class MemoryProtocol(Protocol):
    """Memory interface consumed by the CPU."""

    def read(self, address: int) -> int:
        ...

    def write(self, address: int, value: int) -> None:
        ...

    def write_sequence(self, start: int, data: Sequence[int]) -> None:
        ...

    def read_sequence(self, start: int, count: int) -> bytes:
        ...


class DisplayProtocol(Protocol):
    """Display interface consumed by the CPU."""

    def clear(self) -> None:
        ...

    def draw_sprite(self, x: int, y: int, bits: Sequence[bool]) -> bool:
        ...


class KeyboardProtocol(Protocol):
    """Input interface consumed by the CPU."""

    def is_pressed(self, key: int) -> bool:
        ...

    def first_pressed_key(self) -> Optional[int]:
        ...


@dataclass
class CPUState:
    """
    Complete interpreter state.

    Attributes:
        v: Registers V0-VF (8-bit each)
        pc: Program counter
        i: Index register (16-bit)
        delay_timer: Delay timer (8-bit)
        sound_timer: Sound timer (8-bit)
        stack: Return addresses, most recent last
        waiting_for_key: True while an Fx0A instruction is pending
        key_register: Register that receives the key when the wait ends
    """
    v: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    pc: int = PROGRAM_START
    i: int = 0
    delay_timer: int = 0
    sound_timer: int = 0
    stack: List[int] = field(default_factory=list)
    waiting_for_key: bool = False
    key_register: int = 0


class Chip8CPU:
    """
    CHIP-8 interpreter with instrumentation hooks.

    Hooks:
    - on_instruction(pc, opcode) -> bool: called before each instruction;
      return False to stop without executing it (breakpoints)
    - on_memory_write(address, value) -> bool: called after each write the
      program makes; return False to request a stop (watchpoints)

    Decoded-instruction cache:
        With cache_decoded=True, decoded instructions are kept per address.
        Entries covering a written address are dropped on every write made
        through the CPU; writes made from outside must call invalidate().

    Example:
        >>> cpu = Chip8CPU(memory, display, keyboard)
        >>> cpu.reset()
        >>> cpu.step()
        True
        >>> print(f"PC=${cpu.pc:04X} V0=${cpu.v[0]:02X}")
    """

    def __init__(
        self,
        memory: MemoryProtocol,
        display: DisplayProtocol,
        keyboard: KeyboardProtocol,
        rng: Optional[random.Random] = None,
        cache_decoded: bool = False,
    ):
        """
        Initialize the CPU.

        Args:
            memory: Memory the program lives in
            display: Surface for CLS and DRW
            keyboard: Keypad for SKP, SKNP and LD Vx, K
            rng: Random source for RND (default: unseeded random.Random)
            cache_decoded: Cache decoded instructions by address
        """
        self.memory = memory
        self.display = display
        self.keyboard = keyboard
        self.rng = rng or random.Random()
        self.cache_decoded = cache_decoded
        self.state = CPUState()

        self._decode_cache: Dict[int, Instruction] = {}

        self.on_instruction: Optional[Callable[[int, int], bool]] = None
        self.on_memory_write: Optional[Callable[[int, int], bool]] = None

        self._memory_break_requested: bool = False

    # ========================================
    # Register Properties
    # ========================================

    @property
    def v(self) -> List[int]:
        """Registers V0-VF. Writers must keep values in 0-255."""
        return self.state.v

    @property
    def vf(self) -> int:
        """Flag register VF."""
        return self.state.v[0xF]

    @property
    def pc(self) -> int:
        """Program counter."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value

    @property
    def i(self) -> int:
        """Index register (16-bit)."""
        return self.state.i

    @i.setter
    def i(self, value: int) -> None:
        self.state.i = value & 0xFFFF

    @property
    def delay_timer(self) -> int:
        return self.state.delay_timer

    @delay_timer.setter
    def delay_timer(self, value: int) -> None:
        self.state.delay_timer = value & 0xFF

    @property
    def sound_timer(self) -> int:
        return self.state.sound_timer

    @sound_timer.setter
    def sound_timer(self, value: int) -> None:
        self.state.sound_timer = value & 0xFF

    @property
    def stack(self) -> List[int]:
        """Call stack, most recent return address last."""
        return self.state.stack

    @property
    def waiting_for_key(self) -> bool:
        return self.state.waiting_for_key

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is running (the buzzer is on)."""
        return self.state.sound_timer > 0

    def set_register(self, index: int, value: int) -> None:
        """Set Vx, wrapping the value to 8 bits."""
        self.state.v[index] = value & 0xFF

    # ========================================
    # Reset
    # ========================================

    def reset(self) -> None:
        """
        Reset CPU to power-on state.

        Clears registers, I, timers, stack and wait state, sets PC to $200
        and drops the decoded-instruction cache.
        """
        self.state = CPUState()
        self._decode_cache.clear()
        self._memory_break_requested = False

    # ========================================
    # Decoded-Instruction Cache
    # ========================================

    def invalidate(self, start: int, count: int = 1) -> None:
        """
        Drop cached instructions overlapping [start, start + count).

        An instruction cached at address a covers a and a+1, so a write to
        address w stales the entries at w-1 and w.
        """
        if not self._decode_cache or count <= 0:
            return
        for address in range(start - 1, start + count):
            self._decode_cache.pop(address, None)

    @property
    def decode_cache_size(self) -> int:
        return len(self._decode_cache)

    # ========================================
    # Memory Access
    # ========================================

    def _fetch(self, address: int) -> Instruction:
        """Read and decode the instruction word at address."""
        if self.cache_decoded:
            cached = self._decode_cache.get(address)
            if cached is not None:
                return cached

        hi = self.memory.read(address)
        lo = self.memory.read(address + 1)
        instruction = decode((hi << 8) | lo)

        if self.cache_decoded:
            self._decode_cache[address] = instruction
        return instruction

    def _after_write(self, start: int, data: Sequence[int]) -> None:
        """Invalidate cached decodes and run watch hooks for a write."""
        self.invalidate(start, len(data))
        if self.on_memory_write:
            for offset, value in enumerate(data):
                if not self.on_memory_write(start + offset, value):
                    self._memory_break_requested = True

    def _write_sequence(self, start: int, data: Sequence[int]) -> None:
        self.memory.write_sequence(start, data)
        self._after_write(start, data)

    def take_memory_break(self) -> bool:
        """Return and clear the watchpoint stop request."""
        requested = self._memory_break_requested
        self._memory_break_requested = False
        return requested

    # ========================================
    # Execution
    # ========================================

    def step(self) -> bool:
        """
        Execute one fetch-decode-execute cycle.

        While waiting for a key, polls the keyboard instead of fetching.

        Returns:
            False if on_instruction vetoed the instruction, True otherwise

        Raises:
            EmulatorFatalError: On unknown opcode, stack underflow or an
                out-of-range address. The error carries the PC and opcode.
        """
        if self.state.waiting_for_key:
            key = self.keyboard.first_pressed_key()
            if key is not None:
                self.set_register(self.state.key_register, key)
                self.state.waiting_for_key = False
            return True

        pc = self.state.pc
        instruction = None
        try:
            instruction = self._fetch(pc)

            if self.on_instruction:
                if not self.on_instruction(pc, instruction.opcode):
                    return False

            self.state.pc = pc + 2
            self.execute(instruction)
        except EmulatorFatalError as error:
            opcode = instruction.opcode if instruction else None
            raise error.with_context(pc, opcode)

        return True

    def decrement_timers(self) -> None:
        """The 60 Hz timer event: count each nonzero timer down by one."""
        if self.state.delay_timer > 0:
            self.state.delay_timer -= 1
        if self.state.sound_timer > 0:
            self.state.sound_timer -= 1

    def tick(self, cycles_per_tick: int = CYCLES_PER_TICK) -> bool:
        """
        Run one 1/60 s frame in fixed-rate mode.

        Executes cycles_per_tick steps, then decrements the timers once.
        Assumes the caller invokes tick() 60 times per second.

        Returns:
            False if a hook stopped execution part way (timers untouched)
        """
        for _ in range(cycles_per_tick):
            if not self.step():
                return False
        self.decrement_timers()
        return True

    def execute(self, instruction: Instruction) -> None:
        """
        Execute a decoded instruction.

        PC has already been advanced past the instruction. Flag-setting ALU
        operations write VF before the result, so when the target is VF
        itself the result wins.
        """
        v = self.state.v
        x = instruction.x
        y = instruction.y
        kk = instruction.kk

        match instruction.op:
            # ============================================
            # Control Flow
            # ============================================
            case Op.SYS:
                pass
            case Op.CLS:
                self.display.clear()
            case Op.RET:
                if not self.state.stack:
                    raise StackUnderflowError()
                self.state.pc = self.state.stack.pop()
            case Op.JP:
                self.state.pc = instruction.addr
            case Op.CALL:
                self.state.stack.append(self.state.pc)
                self.state.pc = instruction.addr
            case Op.JP_V0:
                self.state.pc = instruction.addr + v[0]

            # ============================================
            # Conditional Skips
            # ============================================
            case Op.SE_VB:
                if v[x] == kk:
                    self.state.pc += 2
            case Op.SNE_VB:
                if v[x] != kk:
                    self.state.pc += 2
            case Op.SE_VV:
                if v[x] == v[y]:
                    self.state.pc += 2
            case Op.SNE_VV:
                if v[x] != v[y]:
                    self.state.pc += 2
            case Op.SKP:
                if self.keyboard.is_pressed(v[x]):
                    self.state.pc += 2
            case Op.SKNP:
                if not self.keyboard.is_pressed(v[x]):
                    self.state.pc += 2

            # ============================================
            # Register Loads and ALU
            # ============================================
            case Op.LD_VB:
                v[x] = kk
            case Op.ADD_VB:
                v[x] = (v[x] + kk) & 0xFF
            case Op.LD_VV:
                v[x] = v[y]
            case Op.OR:
                v[x] |= v[y]
            case Op.AND:
                v[x] &= v[y]
            case Op.XOR:
                v[x] ^= v[y]
            case Op.ADD_VV:
                result = v[x] + v[y]
                v[0xF] = 1 if result > 0xFF else 0
                v[x] = result & 0xFF
            case Op.SUB:
                vx, vy = v[x], v[y]
                v[0xF] = 1 if vx > vy else 0
                v[x] = (vx - vy) & 0xFF
            case Op.SHR:
                vx = v[x]
                v[0xF] = vx & 0x01
                v[x] = vx >> 1
            case Op.SUBN:
                # Target is Vy, not Vx
                vx, vy = v[x], v[y]
                v[0xF] = 1 if vy > vx else 0
                v[y] = (vy - vx) & 0xFF
            case Op.SHL:
                vx = v[x]
                v[0xF] = 1 if vx & 0x80 else 0
                v[x] = (vx << 1) & 0xFF
            case Op.RND:
                v[x] = self.rng.getrandbits(8) & kk

            # ============================================
            # Index Register
            # ============================================
            case Op.LD_I:
                self.state.i = instruction.addr
            case Op.ADD_IV:
                result = self.state.i + v[x]
                v[0xF] = 1 if result > 0xFFFF else 0
                self.state.i = result & 0xFFFF
            case Op.LD_FV:
                self.state.i = v[x] * GLYPH_SIZE

            # ============================================
            # Display
            # ============================================
            case Op.DRW:
                rows = self.memory.read_sequence(self.state.i, instruction.n)
                bits = [bool(row & (0x80 >> bit)) for row in rows for bit in range(8)]
                collided = self.display.draw_sprite(v[x], v[y], bits)
                v[0xF] = 1 if collided else 0

            # ============================================
            # Timers and Keyboard Wait
            # ============================================
            case Op.LD_VDT:
                v[x] = self.state.delay_timer
            case Op.LD_DTV:
                self.state.delay_timer = v[x]
            case Op.LD_STV:
                self.state.sound_timer = v[x]
            case Op.LD_VK:
                self.state.waiting_for_key = True
                self.state.key_register = x

            # ============================================
            # Memory Transfers
            # ============================================
            case Op.LD_BV:
                value = v[x]
                self._write_sequence(
                    self.state.i,
                    [value // 100, (value // 10) % 10, value % 10],
                )
            case Op.LD_IV:
                self._write_sequence(self.state.i, v[:x + 1])
            case Op.LD_VI:
                data = self.memory.read_sequence(self.state.i, x + 1)
                v[:x + 1] = list(data)

    def __repr__(self) -> str:
        return (
            f"Chip8CPU(pc=${self.state.pc:04X}, i=${self.state.i:04X}, "
            f"sp={len(self.state.stack)})"
        )

"""MachineState: the mutable data of one loaded TOY program.

State Components:
    - Registers: R[0]-R[F], each None (uninitialized) or a signed 16-bit int
    - Memory: 256 cells, each None or an Instruction (code and data share
      one address space)
    - PC: program counter, starts at 0x10
    - Console input: FIFO of 16-bit values consumed by loads from 0xFF
    - Console output: append-only log of values stored to 0xFF
    - Lifecycle flags: running, reset, finished, errored, plus the last error

R[0] always reads as 0. The execution engine borrows a state for exactly one
instruction at a time; the controller owns it for the program's lifetime.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional

from .decoder import (
    DecodedLine,
    Instruction,
    WORD_MAX,
    WORD_MIN,
    address_to_hex,
    word_to_hex,
)
from .errors import ErrorKind, MachineFault


REGISTER_COUNT = 0x10
MEMORY_SIZE = 0x100
INITIAL_PC = 0x10
IO_ADDRESS = 0xFF
UNINITIALIZED_DISPLAY = "????"


@dataclass
class MachineState:
    """Registers, memory, console queues and lifecycle flags.

    Attributes:
        registers: 16 register values (None when never written)
        memory: 256 memory cells (None when never written)
        pc: Program counter
        console_in: Pending console input, consumed front first
        console_out: Values written to the console, oldest first
        current_instruction: Instruction at the PC when last fetched
        running: A run loop is active
        reset: State is pristine (nothing executed since load/reset)
        finished: Program halted or stopped on an error
        errored: The last run ended with an error
        error_message: Text of the last error
        error_kind: Kind of the last error
        error_address: Address of the instruction that failed
    """
    registers: List[Optional[int]] = field(
        default_factory=lambda: [0] + [None] * (REGISTER_COUNT - 1)
    )
    memory: List[Optional[Instruction]] = field(
        default_factory=lambda: [None] * MEMORY_SIZE
    )
    pc: int = INITIAL_PC
    console_in: Deque[int] = field(default_factory=deque)
    console_out: List[int] = field(default_factory=list)
    current_instruction: Optional[Instruction] = None
    running: bool = False
    reset: bool = True
    finished: bool = False
    errored: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_address: Optional[int] = None

    def get_register(self, index: int) -> int:
        """Read a register.

        Raises:
            MachineFault: REGISTER_UNINITIALIZED if it was never written
        """
        value = self.registers[index]
        if value is None:
            raise MachineFault(ErrorKind.REGISTER_UNINITIALIZED)
        return value

    def set_register(self, index: int, value: int) -> None:
        """Write a register. Writes to R[0] are dropped; it stays 0."""
        if not WORD_MIN <= value <= WORD_MAX:
            raise MachineFault(ErrorKind.OVERFLOW)
        if index != 0:
            self.registers[index] = value

    def is_initialized(self, index: int) -> bool:
        return self.registers[index] is not None

    def read_memory(self, address: int) -> int:
        """Read a memory cell as a 16-bit value.

        Raises:
            MachineFault: MEMORY_UNINITIALIZED if it was never written
        """
        cell = self.memory[address]
        if cell is None:
            raise MachineFault(ErrorKind.MEMORY_UNINITIALIZED)
        return cell.word

    def write_memory(self, address: int, value: int) -> None:
        """Store a value as a freshly encoded instruction."""
        self.memory[address] = Instruction.from_word(value)

    def load_lines(self, lines: Iterable[DecodedLine]) -> None:
        """Place each decoded line's instruction at its address."""
        for line in lines:
            self.memory[line.address] = line.to_instruction()
        self.current_instruction = self.memory[self.pc]

    @property
    def pc_hex(self) -> str:
        return address_to_hex(self.pc)

    def snapshot(self) -> dict:
        """Create a point-in-time copy of the state for observers.

        Returns:
            Dictionary of registers, console queues, PC and lifecycle flags
        """
        return {
            "registers": list(self.registers),
            "pc": self.pc,
            "console_in": list(self.console_in),
            "console_out": list(self.console_out),
            "running": self.running,
            "reset": self.reset,
            "finished": self.finished,
            "errored": self.errored,
            "error_message": self.error_message,
            # Note: memory excluded from snapshot for efficiency
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - 16 registers, R[0] is 0, every value within 16-bit bounds
            - 256 memory cells
            - PC within memory
        """
        if len(self.registers) != REGISTER_COUNT or self.registers[0] != 0:
            return False
        for value in self.registers:
            if value is not None and not WORD_MIN <= value <= WORD_MAX:
                return False

        if len(self.memory) != MEMORY_SIZE:
            return False

        return 0 <= self.pc < MEMORY_SIZE

    def dump_registers(self) -> List[str]:
        """Register display lines, e.g. ``"3 00FF"`` or ``"4 ????"``."""
        return [
            f"{index:X} {_display_word(value)}"
            for index, value in enumerate(self.registers)
        ]

    def dump_memory(self) -> List[str]:
        """Memory display lines, e.g. ``"10 7101"`` or ``"11 ????"``."""
        return [
            f"{index:02X} {cell.hex if cell is not None else UNINITIALIZED_DISPLAY}"
            for index, cell in enumerate(self.memory)
        ]

    def console_in_hex(self) -> List[str]:
        return [word_to_hex(value) for value in self.console_in]

    def console_out_hex(self) -> List[str]:
        return [word_to_hex(value) for value in self.console_out]

    def dump_registers_dict(self) -> Dict[str, Optional[str]]:
        """Get register values keyed by name, rendered as hex."""
        return {
            f"R[{index:X}]": (word_to_hex(value) if value is not None else None)
            for index, value in enumerate(self.registers)
        }

    def __str__(self) -> str:
        """Human-readable state representation."""
        regs = " ".join(
            f"R[{index:X}]={_display_word(value)}"
            for index, value in enumerate(self.registers)
        )
        return f"PC={self.pc_hex} {regs}{' FINISHED' if self.finished else ''}"


def _display_word(value: Optional[int]) -> str:
    return word_to_hex(value) if value is not None else UNINITIALIZED_DISPLAY


def create_initial_state(lines: Iterable[DecodedLine]) -> MachineState:
    """Create a fresh state with a program loaded into memory.

    Args:
        lines: Decoded program lines

    Returns:
        MachineState with each line's instruction at its address and PC at 0x10
    """
    state = MachineState()
    state.load_lines(lines)
    return state

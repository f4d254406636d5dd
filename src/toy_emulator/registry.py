"""OpcodeRegistry: execution engine for TOY instructions.

Each of the sixteen opcodes is a frozen handler that mutates a borrowed
MachineState for exactly one instruction and reports how the program
counter should move.

Opcodes:
    0: halt
    1: R[d] <- R[s] + R[t]
    2: R[d] <- R[s] - R[t]
    3: R[d] <- R[s] & R[t]
    4: R[d] <- R[s] ^ R[t]
    5: R[d] <- R[s] << R[t]
    6: R[d] <- R[s] >> R[t]
    7: R[d] <- addr
    8: R[d] <- M[addr]          (addr FF reads the console)
    9: M[addr] <- R[d]          (addr FF writes the console)
    A: R[d] <- M[R[t]]
    B: M[R[t]] <- R[d]
    C: if (R[d] == 0) goto addr
    D: if (R[d] > 0) goto addr
    E: goto R[d]
    F: R[d] <- PC + 1; goto addr

Every handler is ``(Instruction, MachineState) -> ExecuteStatus``. Failures
are raised as MachineFault and turned into an ExecuteResult by ``execute``,
which is the only entry point callers use.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .decoder import Instruction, to_signed16, word_to_hex
from .errors import ErrorKind, MachineFault
from .state import IO_ADDRESS, MEMORY_SIZE, MachineState


logger = logging.getLogger(__name__)

# Targets accepted by opcode E. Checked on their own rather than through the
# memory bounds check; some TOY emulators accept 01-100 here instead.
JUMP_REGISTER_TARGETS = range(0x00, 0x100)

SHIFT_MAGNITUDES = range(0x0, 0x10)

NO_OP_CODE = "1000"

Handler = Callable[[Instruction, MachineState], "ExecuteStatus"]


class ExecuteStatus(Enum):
    """How the program counter moves after an instruction."""

    CONTINUE = "continue"        # caller increments PC
    JUMPED = "jumped"            # PC already set by the instruction
    HALTED = "halted"            # program finished
    NEEDS_INPUT = "needs_input"  # console read with empty input; nothing changed


@dataclass
class ExecuteResult:
    """Result of executing one instruction.

    Attributes:
        status: PC movement, or None when the instruction failed
        error_kind: Kind of failure
        error: Failure message
    """
    status: Optional[ExecuteStatus]
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class ConsoleInputNeeded(Exception):
    """Raised by a console read when no input is queued."""


def writes_d(instruction: Instruction) -> bool:
    """Check whether the instruction assigns to R[d]."""
    return instruction.opcode in "12345678A" or (
        instruction.opcode == "F" and instruction.d != "0"
    )


def needs_d(instruction: Instruction) -> bool:
    return instruction.opcode in "9BCDE"


def needs_s(instruction: Instruction) -> bool:
    return instruction.opcode in "123456"


def needs_t(instruction: Instruction) -> bool:
    return instruction.opcode in "123456AB"


def needs_input(instruction: Instruction, state: MachineState) -> bool:
    """Check whether the instruction would read from the console.

    Opcode 8 reads the console when addr is FF; opcode A when R[t] holds
    00FF. An uninitialized R[t] is reported as not needing input so the
    fault surfaces when the instruction executes.
    """
    if instruction.opcode == "8":
        return instruction.address == IO_ADDRESS
    if instruction.opcode == "A":
        return state.registers[instruction.source_t] == IO_ADDRESS
    return False


class OpcodeRegistry:
    """Verified registry of opcode handlers.

    The registry is frozen after initialization to ensure
    no runtime modifications can occur.

    Attributes:
        _handlers: Dictionary mapping opcode digits to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all sixteen opcode handlers."""
        self._handlers: Dict[str, Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        """Register all opcode handlers."""
        self.register("0", self._op_halt)

        # Arithmetic and logic
        self.register("1", self._op_add)
        self.register("2", self._op_subtract)
        self.register("3", self._op_and)
        self.register("4", self._op_xor)
        self.register("5", self._op_left_shift)
        self.register("6", self._op_right_shift)

        # Data movement
        self.register("7", self._op_load_address)
        self.register("8", self._op_load)
        self.register("9", self._op_store)
        self.register("A", self._op_load_indirect)
        self.register("B", self._op_store_indirect)

        # Control flow
        self.register("C", self._op_branch_zero)
        self.register("D", self._op_branch_positive)
        self.register("E", self._op_jump_register)
        self.register("F", self._op_jump_and_link)

    def register(self, opcode: str, handler: Handler) -> None:
        """Register a handler for an opcode digit.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if opcode in self._handlers:
            raise ValueError(f"Handler already registered: {opcode}")
        self._handlers[opcode] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications."""
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_opcodes(self) -> set:
        return set(self._handlers.keys())

    def execute(self, instruction: Instruction, state: MachineState) -> ExecuteResult:
        """Execute one instruction against a machine state.

        R[0] is forced back to 0 first. The R[0] write check and the
        uninitialized register check run before any numeric work.

        Args:
            instruction: Instruction to execute
            state: State borrowed for the duration of this call

        Returns:
            ExecuteResult with a status, or an error kind and message
        """
        state.registers[0] = 0
        handler = self._handlers[instruction.opcode]

        try:
            self._check_registers(instruction, state)
            status = handler(instruction, state)
        except MachineFault as fault:
            return ExecuteResult(None, fault.kind, fault.message)
        except ConsoleInputNeeded:
            return ExecuteResult(ExecuteStatus.NEEDS_INPUT)

        return ExecuteResult(status)

    def _check_registers(self, instruction: Instruction, state: MachineState) -> None:
        if writes_d(instruction) and instruction.d == "0":
            if instruction.hex != NO_OP_CODE:
                raise MachineFault(ErrorKind.REGISTER_INDEX_OUT_OF_BOUNDS)

        if (
            needs_d(instruction) and not state.is_initialized(instruction.dest)
            or needs_s(instruction) and not state.is_initialized(instruction.source_s)
            or needs_t(instruction) and not state.is_initialized(instruction.source_t)
        ):
            raise MachineFault(ErrorKind.REGISTER_UNINITIALIZED)

    # =========================================================================
    # Arithmetic and Logic
    # =========================================================================

    def _op_add(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        return self._alu(instruction, state, lambda a, b: a + b)

    def _op_subtract(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        return self._alu(instruction, state, lambda a, b: a - b)

    def _op_and(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        return self._alu(instruction, state, lambda a, b: a & b)

    def _op_xor(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        return self._alu(instruction, state, lambda a, b: a ^ b)

    def _op_left_shift(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        """Shifted-out bits are discarded; the result wraps to 16 bits."""
        return self._shift(instruction, state, lambda a, b: to_signed16(a << b))

    def _op_right_shift(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        """Arithmetic shift: the sign bit is copied in from the left."""
        return self._shift(instruction, state, lambda a, b: a >> b)

    def _shift(self, instruction: Instruction, state: MachineState, operation) -> ExecuteStatus:
        if state.get_register(instruction.source_t) not in SHIFT_MAGNITUDES:
            raise MachineFault(ErrorKind.SHIFT_MAGNITUDE_OUT_OF_BOUNDS)
        return self._alu(instruction, state, operation)

    def _alu(self, instruction: Instruction, state: MachineState, operation) -> ExecuteStatus:
        operand1 = state.get_register(instruction.source_s)
        operand2 = state.get_register(instruction.source_t)
        # set_register rejects results outside 16 signed bits
        state.set_register(instruction.dest, operation(operand1, operand2))
        return ExecuteStatus.CONTINUE

    # =========================================================================
    # Data Movement
    # =========================================================================

    def _op_load_address(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        state.set_register(instruction.dest, instruction.address)
        return ExecuteStatus.CONTINUE

    def _op_load(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        value = self._load(instruction.address, state)
        state.set_register(instruction.dest, value)
        return ExecuteStatus.CONTINUE

    def _op_store(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        self._store(instruction.address, state.get_register(instruction.dest), state)
        return ExecuteStatus.CONTINUE

    def _op_load_indirect(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        address = state.get_register(instruction.source_t)
        value = self._load(address, state)
        state.set_register(instruction.dest, value)
        return ExecuteStatus.CONTINUE

    def _op_store_indirect(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        address = state.get_register(instruction.source_t)
        self._store(address, state.get_register(instruction.dest), state)
        return ExecuteStatus.CONTINUE

    def _load(self, address: int, state: MachineState) -> int:
        """Read M[address], taking the next console value when address is FF.

        A console value is cached at M[FF] as well.

        Raises:
            MachineFault: MEMORY_ADDRESS_OUT_OF_BOUNDS, MEMORY_UNINITIALIZED
            ConsoleInputNeeded: address is FF and no input is queued
        """
        if not 0 <= address < MEMORY_SIZE:
            raise MachineFault(ErrorKind.MEMORY_ADDRESS_OUT_OF_BOUNDS)

        if address == IO_ADDRESS:
            if not state.console_in:
                raise ConsoleInputNeeded()
            value = state.console_in.popleft()
            state.write_memory(IO_ADDRESS, value)
            return value

        return state.read_memory(address)

    def _store(self, address: int, value: int, state: MachineState) -> None:
        """Write M[address], echoing to the console when address is FF."""
        if not 0 <= address < MEMORY_SIZE:
            raise MachineFault(ErrorKind.MEMORY_ADDRESS_OUT_OF_BOUNDS)

        if address == IO_ADDRESS:
            state.console_out.append(value)
            logger.info("output: %s", word_to_hex(value))

        state.write_memory(address, value)

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _op_branch_zero(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        if state.get_register(instruction.dest) == 0:
            state.pc = instruction.address
            return ExecuteStatus.JUMPED
        return ExecuteStatus.CONTINUE

    def _op_branch_positive(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        if state.get_register(instruction.dest) > 0:
            state.pc = instruction.address
            return ExecuteStatus.JUMPED
        return ExecuteStatus.CONTINUE

    def _op_jump_register(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        new_pc = state.get_register(instruction.dest)
        if new_pc not in JUMP_REGISTER_TARGETS:
            raise MachineFault(ErrorKind.PROGRAM_COUNTER_OUT_OF_BOUNDS)
        state.pc = new_pc
        return ExecuteStatus.JUMPED

    def _op_jump_and_link(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        # F0xx is a plain goto
        if instruction.d != "0":
            state.set_register(instruction.dest, state.pc + 1)
        state.pc = instruction.address
        return ExecuteStatus.JUMPED

    # =========================================================================
    # Special
    # =========================================================================

    def _op_halt(self, instruction: Instruction, state: MachineState) -> ExecuteStatus:
        return ExecuteStatus.HALTED


# Singleton registry instance
_registry: Optional[OpcodeRegistry] = None


def get_registry() -> OpcodeRegistry:
    """Get the singleton opcode registry instance."""
    global _registry
    if _registry is None:
        _registry = OpcodeRegistry()
    return _registry


def execute(instruction: Instruction, state: MachineState) -> ExecuteResult:
    """Execute one instruction with the shared registry."""
    return get_registry().execute(instruction, state)

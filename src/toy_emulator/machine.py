"""ToyMachine: run/stop/reset controller for a loaded TOY program.

Pipeline:
    SOURCE -> DECODE -> VALIDATE -> LOAD -> FETCH -> EXECUTE -> STATE
                                             ^                    |
                                             +----- observer <----+

``run()`` blocks until the program halts, fails, runs out of console input
or is stopped. It is meant to be called on a worker thread while an
observer (a UI, a logger, a test) reads the state between steps. ``stop()``
is the one call that may come from another thread; it sets a flag that is
checked after the current instruction completes.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .decoder import (
    DecodedLine,
    Instruction,
    address_to_hex,
    parse_console_input,
    parse_program,
    word_to_hex,
)
from .errors import ErrorKind, InvalidProgramError
from .formatter import describe, instruction_display
from .registry import ExecuteStatus, OpcodeRegistry, get_registry, needs_input
from .state import MEMORY_SIZE, MachineState, create_initial_state
from .validator import validate


Observer = Callable[["ToyMachine"], None]


@dataclass
class StepRecord:
    """Single entry in the execution trace.

    Attributes:
        address: Address the instruction was fetched from
        instruction: Hex code of the instruction (None if memory was empty)
        description: Semantic description of the instruction
        status: How the PC moved (None when the step failed)
        error: Error message if the step failed
    """
    address: int
    instruction: Optional[str]
    description: str
    status: Optional[ExecuteStatus]
    error: Optional[str] = None


class ToyMachine:
    """Controller owning one loaded program and its MachineState.

    Attributes:
        registry: OpcodeRegistry executing instructions
        observer: Callback invoked after every step and lifecycle change
        logger: Sink for execution traces and lifecycle messages
        keep_trace: Whether to record a StepRecord per executed step
        lines: Decoded lines of the loaded program
        state: Current machine state (None until a program is loaded)
        trace: Recorded steps since the last load or reset
    """

    def __init__(
        self,
        observer: Optional[Observer] = None,
        logger: Optional[logging.Logger] = None,
        keep_trace: bool = False,
    ):
        self.registry: OpcodeRegistry = get_registry()
        self.observer = observer
        self.logger = logger or logging.getLogger(__name__)
        self.keep_trace = keep_trace
        self.lines: List[DecodedLine] = []
        self.state: Optional[MachineState] = None
        self.trace: List[StepRecord] = []
        self._stop_requested = False

    # =========================================================================
    # Loading
    # =========================================================================

    def load_program(self, source: str) -> None:
        """Load a program from source text.

        Lines that are not well formed are ignored.

        Raises:
            InvalidProgramError: If the program fails validation
        """
        self.load_lines(parse_program(source))

    def load_lines(self, lines: Iterable[DecodedLine]) -> None:
        """Load a program from decoded lines.

        Raises:
            InvalidProgramError: If the program fails validation
        """
        lines = list(lines)
        result = validate(lines)
        if not result.valid:
            self.logger.warning("Program rejected: %s", result.reason)
            raise InvalidProgramError(result)

        self.lines = lines
        self.state = create_initial_state(lines)
        self.trace = []
        self._stop_requested = False
        self.logger.info("Loaded %d lines", len(lines))
        self._notify()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def run(self) -> None:
        """Run until halt, error, console input starvation or stop().

        Does nothing if the program is already running or has finished.

        Raises:
            RuntimeError: If no program is loaded
        """
        state = self._require_state()
        if state.running:
            return
        if state.finished:
            self.logger.info("Program has finished; reset it to run again")
            return

        state.reset = False
        state.running = True
        self._stop_requested = False
        self.logger.info("Running from %s", state.pc_hex)

        try:
            while True:
                record = self._step()
                if record is None:
                    break
                self._notify()
                if state.finished or self._stop_requested:
                    break
        finally:
            state.running = False

        self._notify()

    def step(self) -> Optional[StepRecord]:
        """Execute a single instruction.

        Returns:
            StepRecord, or None if the instruction is waiting for console input

        Raises:
            RuntimeError: If no program is loaded, it is running, or it has finished
        """
        state = self._require_state()
        if state.running:
            raise RuntimeError("Program is running")
        if state.finished:
            raise RuntimeError("Program has finished")

        state.reset = False
        record = self._step()
        self._notify()
        return record

    def stop(self) -> None:
        """Ask a running program to stop after its current instruction."""
        if self.state is not None and self.state.running:
            self._stop_requested = True
            self.logger.info("Stop requested")

    def reset(self) -> bool:
        """Clear all state and reload the program into memory.

        Returns:
            False if the program is running and was left untouched
        """
        state = self._require_state()
        if state.running:
            self.logger.warning("Cannot reset a running program")
            return False

        self.state = create_initial_state(self.lines)
        self.trace = []
        self._stop_requested = False
        self.logger.info("Program reset")
        self._notify()
        return True

    def feed_input(self, text: str) -> int:
        """Queue console input.

        Args:
            text: Free-form text; runs of hex digits become 16-bit values

        Returns:
            Number of values queued
        """
        state = self._require_state()
        values = parse_console_input(text)
        state.console_in.extend(values)
        if values:
            state.reset = False
            self.logger.info("input: %s", " ".join(word_to_hex(v) for v in values))
        self._notify()
        return len(values)

    # =========================================================================
    # Execution
    # =========================================================================

    def _step(self) -> Optional[StepRecord]:
        """Fetch and execute the instruction at the PC.

        Returns None, leaving the state untouched, when the instruction
        needs console input that has not arrived.
        """
        state = self.state
        address = state.pc
        instruction = state.memory[address]
        state.current_instruction = instruction

        if instruction is None:
            kind = ErrorKind.INSTRUCTION_UNINITIALIZED
            self._record_error(address, kind, kind.default_message)
            return self._record(address, None, None, state.error_message)

        if not state.console_in and needs_input(instruction, state):
            self.logger.info("Waiting for input at %s", address_to_hex(address))
            return None

        self.logger.debug(
            "%s: %s (%s)", address_to_hex(address), describe(instruction), instruction.hex
        )
        result = self.registry.execute(instruction, state)

        if not result.ok:
            self._record_error(address, result.error_kind, result.error)
            return self._record(address, instruction, None, state.error_message)

        if result.status is ExecuteStatus.NEEDS_INPUT:
            return None

        if result.status is ExecuteStatus.CONTINUE:
            if address + 1 >= MEMORY_SIZE:
                kind = ErrorKind.PROGRAM_COUNTER_OUT_OF_BOUNDS
                self._record_error(address, kind, kind.default_message)
                return self._record(address, instruction, None, state.error_message)
            state.pc = address + 1
        elif result.status is ExecuteStatus.HALTED:
            state.finished = True
            self.logger.info("Halted at %s", address_to_hex(address))

        return self._record(address, instruction, result.status)

    def _record_error(self, address: int, kind: ErrorKind, message: str) -> None:
        state = self.state
        state.error_kind = kind
        state.error_address = address
        state.error_message = f"Error at line {address_to_hex(address)}:\n{message}"
        state.errored = True
        state.finished = True
        self.logger.warning("Error at line %s: %s", address_to_hex(address), message)

    def _record(
        self,
        address: int,
        instruction: Optional[Instruction],
        status: Optional[ExecuteStatus],
        error: Optional[str] = None,
    ) -> StepRecord:
        record = StepRecord(
            address=address,
            instruction=instruction.hex if instruction is not None else None,
            description=describe(instruction) if instruction is not None else "",
            status=status,
            error=error,
        )
        if self.keep_trace:
            self.trace.append(record)
        return record

    def _notify(self) -> None:
        if self.observer is not None:
            self.observer(self)

    def _require_state(self) -> MachineState:
        if self.state is None:
            raise RuntimeError("No program loaded")
        return self.state

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_register(self, index: int) -> Optional[int]:
        """Get the value of R[index] (None if uninitialized)."""
        return self._require_state().registers[index]

    @property
    def registers(self) -> List[Optional[int]]:
        return list(self._require_state().registers)

    @property
    def memory(self) -> List[Optional[Instruction]]:
        return list(self._require_state().memory)

    @property
    def pc(self) -> int:
        return self._require_state().pc

    @property
    def pc_hex(self) -> str:
        return self._require_state().pc_hex

    @property
    def current_instruction(self) -> Optional[Instruction]:
        return self._require_state().current_instruction

    @property
    def current_instruction_display(self) -> str:
        return instruction_display(self.current_instruction)

    @property
    def console_input(self) -> List[str]:
        return self._require_state().console_in_hex()

    @property
    def console_output(self) -> List[str]:
        return self._require_state().console_out_hex()

    @property
    def is_running(self) -> bool:
        return self.state is not None and self.state.running

    @property
    def is_reset(self) -> bool:
        return self.state is not None and self.state.reset

    @property
    def is_finished(self) -> bool:
        return self.state is not None and self.state.finished

    @property
    def error_occurred(self) -> bool:
        return self.state is not None and self.state.errored

    @property
    def error_message(self) -> Optional[str]:
        return self.state.error_message if self.state is not None else None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.state.error_kind if self.state is not None else None

    @property
    def halted(self) -> bool:
        """Finished by executing a halt instruction rather than an error."""
        return self.is_finished and not self.error_occurred

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 60)
        print("TOY EXECUTION TRACE")
        print("=" * 60)

        for record in self.trace:
            code = record.instruction or "????"
            line = f"{address_to_hex(record.address)}: {code}   {record.description}"
            if record.error:
                line += f"   ERROR: {record.error.splitlines()[-1]}"
            print(line)

        print("=" * 60)

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with final PC, registers, console output and flags
        """
        state = self._require_state()
        return {
            "pc": state.pc_hex,
            "halted": self.halted,
            "finished": state.finished,
            "registers": state.dump_registers_dict(),
            "console_output": state.console_out_hex(),
            "pending_input": state.console_in_hex(),
            "error": state.error_message,
            "trace_length": len(self.trace),
        }

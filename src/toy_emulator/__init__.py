"""TOY Emulator: a 16-register, 256-word educational machine.

This package decodes TOY source text into typed instructions, validates
programs, executes them against a machine state with exact 16-bit
semantics, and renders instructions as readable descriptions.

Architecture:
    TEXT -> DECODE -> VALIDATE -> LOAD -> FETCH -> EXECUTE -> STATE
                                                     |
                                              [OpcodeRegistry]

Modules:
    decoder: Source line grammar, Instruction records, 16-bit word helpers
    state: MachineState for registers, memory, console queues and flags
    registry: Frozen opcode handlers (the execution engine)
    validator: Structural checks before a program may run
    formatter: Instruction descriptions and canonical source layout
    machine: ToyMachine run/stop/reset controller
    toyfile: Reading, reformatting and writing program files
"""

__version__ = "0.1.0"

from .errors import ErrorKind, InvalidProgramError, MachineFault, ToyError
from .decoder import DecodedLine, Instruction, InstructionFormat, decode, parse_program
from .state import MachineState
from .registry import ExecuteResult, ExecuteStatus, OpcodeRegistry, execute
from .validator import ValidationResult, validate
from .formatter import describe, reformat
from .machine import StepRecord, ToyMachine
from .toyfile import ToyFile

__all__ = [
    "ErrorKind",
    "ToyError",
    "MachineFault",
    "InvalidProgramError",
    "DecodedLine",
    "Instruction",
    "InstructionFormat",
    "decode",
    "parse_program",
    "MachineState",
    "OpcodeRegistry",
    "ExecuteResult",
    "ExecuteStatus",
    "execute",
    "ValidationResult",
    "validate",
    "describe",
    "reformat",
    "ToyMachine",
    "StepRecord",
    "ToyFile",
]

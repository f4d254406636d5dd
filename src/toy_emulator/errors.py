"""Error kinds for the TOY machine.

Every failure the machine can report is one member of the closed
``ErrorKind`` enumeration. A member carries its category and its default
message as data, so callers branch on the kind rather than on a class
hierarchy.

Categories:
    uninitialized: something was read before it was ever written
    out_of_bounds: an index, address or magnitude left its legal range
    overflow: an arithmetic result does not fit in 16 signed bits
    structural: the program text cannot be loaded at all
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of machine and program errors."""

    REGISTER_UNINITIALIZED = (
        "uninitialized",
        "A register referenced is undefined",
    )
    MEMORY_UNINITIALIZED = (
        "uninitialized",
        "A memory address referenced is undefined",
    )
    INSTRUCTION_UNINITIALIZED = (
        "uninitialized",
        "Line is undefined",
    )
    OVERFLOW = (
        "overflow",
        "The result of an operation was not between -32768 and 32767",
    )
    SHIFT_MAGNITUDE_OUT_OF_BOUNDS = (
        "out_of_bounds",
        "An invalid shift magnitude was used; shift magnitudes must be between 0000 and 000F",
    )
    PROGRAM_COUNTER_OUT_OF_BOUNDS = (
        "out_of_bounds",
        "An instruction attempted to set an invalid program counter value; must be between 00 and FF",
    )
    REGISTER_INDEX_OUT_OF_BOUNDS = (
        "out_of_bounds",
        "An instruction attempted to change R[0]",
    )
    MEMORY_ADDRESS_OUT_OF_BOUNDS = (
        "out_of_bounds",
        "An instruction attempted to store to or load from and invalid memory address; must be between 00 and FF",
    )
    EMPTY_PROGRAM = (
        "structural",
        "Program does not contain any valid TOY code",
    )
    DUPLICATE_ADDRESSES = (
        "structural",
        "Program contains duplicate line numbers",
    )
    UNSORTED_ADDRESSES = (
        "structural",
        "Program's lines are not in order",
    )

    def __init__(self, category: str, default_message: str):
        self.category = category
        self.default_message = default_message


class ToyError(Exception):
    """Base class for errors raised across the package's API boundaries."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None):
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)


class MachineFault(ToyError):
    """Raised inside an opcode handler; converted to an ExecuteResult by the registry."""


class InvalidProgramError(ToyError):
    """Raised when a program fails validation and cannot be loaded.

    Attributes:
        result: The ValidationResult describing the failure
    """

    def __init__(self, result):
        self.result = result
        super().__init__(result.error_kind, result.reason)

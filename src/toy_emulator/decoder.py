"""Decoder: source text lines to typed TOY instructions.

A TOY source line has the shape ``AA: CCCC comment`` where ``AA`` is a
two-digit hex address and ``CCCC`` a four-digit hex instruction code.
Anything after the code is free text. Lines that do not have this shape are
not part of the program; ``parse_program`` drops them.

Instruction code layout:
    digit 0: opcode (selects the format)
    digit 1: d
    digit 2: s
    digit 3: t
    digits 2-3: addr

All functions here are pure. Values travel through the machine as Python
ints in the 16-bit two's-complement range [-32768, 32767]; the helpers at the
bottom convert between that form and four-digit hex words.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


LINE_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}): ([0-9A-Fa-f]{4})(.*)$")
NON_HEX_PATTERN = re.compile(r"[^0-9A-F]+")

WORD_MIN = -(2**15)
WORD_MAX = (2**15) - 1
WORD_DIGITS = 4


class InstructionFormat(Enum):
    """Operand layouts shared by groups of opcodes."""

    ALU = 1            # 1-6: R[d] <- R[s] op R[t]
    MEM_CTRL = 2       # 7, 8, 9, C, D, F: d plus an 8-bit addr
    INDIRECT = 3       # A, B: address taken from R[t]
    JUMP_REGISTER = 4  # E
    HALT = 5           # 0


ALU_OPCODES = frozenset("123456")
INDIRECT_OPCODES = frozenset("AB")
MEM_CTRL_OPCODES = frozenset("789CDF")


@dataclass(frozen=True)
class DecodedLine:
    """One well-formed source line.

    Attributes:
        address: Memory address the line loads into (0-255)
        raw_instruction: Four hex digits, case as written
        trailing_comment: Whatever followed the instruction code
    """
    address: int
    raw_instruction: str
    trailing_comment: str = ""

    def to_instruction(self) -> "Instruction":
        return to_instruction(self)


@dataclass(frozen=True)
class Instruction:
    """A decoded TOY instruction.

    Operand fields hold single uppercase hex digits; ``addr`` holds two.
    Integer views of the fields are exposed as properties.
    """
    format: InstructionFormat
    opcode: str
    d: str
    s: str
    t: str
    addr: str

    @classmethod
    def from_hex(cls, code: str) -> "Instruction":
        """Build an instruction from a four-digit hex code."""
        code = code.upper()
        opcode = code[0]
        if opcode in ALU_OPCODES:
            fmt = InstructionFormat.ALU
        elif opcode in INDIRECT_OPCODES:
            fmt = InstructionFormat.INDIRECT
        elif opcode in MEM_CTRL_OPCODES:
            fmt = InstructionFormat.MEM_CTRL
        elif opcode == "E":
            fmt = InstructionFormat.JUMP_REGISTER
        else:
            fmt = InstructionFormat.HALT
        return cls(fmt, opcode, code[1], code[2], code[3], code[2:4])

    @classmethod
    def from_word(cls, value: int) -> "Instruction":
        """Re-encode a 16-bit value as the instruction it would read as."""
        return cls.from_hex(word_to_hex(value))

    @property
    def dest(self) -> int:
        return int(self.d, 16)

    @property
    def source_s(self) -> int:
        return int(self.s, 16)

    @property
    def source_t(self) -> int:
        return int(self.t, 16)

    @property
    def address(self) -> int:
        return int(self.addr, 16)

    @property
    def hex(self) -> str:
        return self.opcode + self.d + self.s + self.t

    @property
    def word(self) -> int:
        """The instruction's code read as a signed 16-bit value."""
        return hex_to_word(self.hex)

    def __str__(self) -> str:
        return self.hex


def is_well_formed(text: str) -> bool:
    """Check whether a line matches the canonical TOY line grammar."""
    return LINE_PATTERN.match(text) is not None


def decode(text: str) -> Optional[DecodedLine]:
    """Split a well-formed line into address, instruction code and comment.

    Args:
        text: One line of source text

    Returns:
        DecodedLine, or None if the line is not well formed
    """
    match = LINE_PATTERN.match(text)
    if match is None:
        return None
    return DecodedLine(
        address=int(match.group(1), 16),
        raw_instruction=match.group(2),
        trailing_comment=match.group(3),
    )


def to_instruction(line: DecodedLine) -> Instruction:
    """Classify a decoded line's instruction code into an Instruction."""
    return Instruction.from_hex(line.raw_instruction)


def parse_program(source: str) -> List[DecodedLine]:
    """Decode every well-formed line of a source text, in file order.

    Blank lines, comments and anything else that does not match the line
    grammar are skipped.

    Args:
        source: Full program text

    Returns:
        List of DecodedLine entries
    """
    lines = []
    for text in source.splitlines():
        decoded = decode(text)
        if decoded is not None:
            lines.append(decoded)
    return lines


def parse_console_input(text: str) -> List[int]:
    """Turn free-form console text into 16-bit values.

    The text is split on every run of non-hex characters. Each remaining
    run of hex digits is cut into four-digit chunks from the left and the
    last, shorter chunk is padded with leading zeros. ``"12 34"`` gives
    ``[0x0012, 0x0034]`` and ``"123456"`` gives ``[0x1234, 0x0056]``.

    Args:
        text: Raw console input

    Returns:
        Values in input order (empty if nothing parseable was given)
    """
    values = []
    for part in NON_HEX_PATTERN.split(text.upper()):
        for start in range(0, len(part), WORD_DIGITS):
            chunk = part[start:start + WORD_DIGITS]
            values.append(hex_to_word(chunk.rjust(WORD_DIGITS, "0")))
    return values


def to_signed16(value: int) -> int:
    """Wrap an integer to the 16-bit two's-complement range."""
    value &= 0xFFFF
    return value - 0x10000 if value > WORD_MAX else value


def hex_to_word(text: str) -> int:
    """Parse up to four hex digits as a signed 16-bit value."""
    return to_signed16(int(text, 16))


def word_to_hex(value: int) -> str:
    """Render a 16-bit value as four uppercase hex digits."""
    return format(value & 0xFFFF, "04X")


def address_to_hex(address: int) -> str:
    """Render a memory address as two uppercase hex digits."""
    return format(address, "02X")

"""Formatter: semantic descriptions and canonical layout for TOY source.

``describe`` renders what an instruction does, collapsing degenerate forms
the way a reader would: ``1200`` becomes ``R[2] <- 0000``, ``3111`` becomes
``no-op`` and ``82FF`` becomes ``read R[2]``.

``reformat`` rewrites a program's text so every code line reads
``AA: CCCC   description`` padded to LINE_WIDTH columns. Reformatting is
idempotent: the trailing text of a code line is always regenerated.
"""

from typing import Callable, Dict, Iterable, List, Optional

from .decoder import DecodedLine, Instruction, address_to_hex, decode


LINE_WIDTH = 41
DESCRIPTION_GAP = "   "
CODE_START = 0x10
UNINITIALIZED_INSTRUCTION = "???? (Uninitialised Instruction)"


def _reg(digit: str) -> str:
    return f"R[{digit}]"


def _add(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    if i.s == "0":
        if i.t == "0":
            return f"{_reg(i.d)} <- 0000"
        return f"{_reg(i.d)} <- {_reg(i.t)}"
    if i.t == "0":
        return f"{_reg(i.d)} <- {_reg(i.s)}"
    return f"{_reg(i.d)} <- {_reg(i.s)} + {_reg(i.t)}"


def _subtract(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    if i.s == "0":
        if i.t == "0":
            return f"{_reg(i.d)} <- 0000"
        return f"{_reg(i.d)} <- -{_reg(i.t)}"
    if i.t == "0":
        return f"{_reg(i.d)} <- {_reg(i.s)}"
    return f"{_reg(i.d)} <- {_reg(i.s)} - {_reg(i.t)}"


def _and(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    if i.s == "0" or i.t == "0":
        return f"{_reg(i.d)} <- 0000"
    if i.s == i.t:
        if i.d == i.s:
            return "no-op"
        return f"{_reg(i.d)} <- {_reg(i.s)}"
    return f"{_reg(i.d)} <- {_reg(i.s)} & {_reg(i.t)}"


def _xor(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    if i.s == "0":
        if i.t == "0":
            return f"{_reg(i.d)} <- 0000"
        return f"{_reg(i.d)} <- {_reg(i.t)}"
    if i.t == "0":
        return f"{_reg(i.d)} <- {_reg(i.s)}"
    return f"{_reg(i.d)} <- {_reg(i.s)} ^ {_reg(i.t)}"


def _shift(symbol: str) -> Callable[[Instruction], str]:
    def describe_shift(i: Instruction) -> str:
        if i.d == "0":
            return "no-op"
        if i.s == "0":
            return f"{_reg(i.d)} <- 0000"
        if i.t == "0":
            if i.d == i.s:
                return "no-op"
            return f"{_reg(i.d)} <- {_reg(i.s)}"
        return f"{_reg(i.d)} <- {_reg(i.s)} {symbol} {_reg(i.t)}"
    return describe_shift


def _load_address(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    return f"{_reg(i.d)} <- 00{i.addr}"


def _load(i: Instruction) -> str:
    if i.addr == "FF":
        return f"read {_reg(i.d)}"
    if i.d == "0":
        return "no-op"
    return f"{_reg(i.d)} <- M[{i.addr}]"


def _store(i: Instruction) -> str:
    if i.addr == "FF":
        return f"write {_reg(i.d)}"
    return f"M[{i.addr}] <- {_reg(i.d)}"


def _load_indirect(i: Instruction) -> str:
    if i.d == "0":
        return "no-op"
    return f"{_reg(i.d)} <- M[{_reg(i.t)}]"


def _store_indirect(i: Instruction) -> str:
    return f"M[{_reg(i.t)}] <- {_reg(i.d)}"


def _branch_zero(i: Instruction) -> str:
    # R[0] == 0 always holds
    if i.d == "0":
        return f"goto {i.addr}"
    return f"if ({_reg(i.d)} == 0) goto {i.addr}"


def _branch_positive(i: Instruction) -> str:
    # R[0] > 0 never holds
    if i.d == "0":
        return "no-op"
    return f"if ({_reg(i.d)} > 0) goto {i.addr}"


def _jump_register(i: Instruction) -> str:
    return f"goto {_reg(i.d)}"


def _jump_and_link(i: Instruction) -> str:
    if i.d == "0":
        return f"goto {i.addr}"
    return f"{_reg(i.d)} <- PC; goto {i.addr}"


_DESCRIBERS: Dict[str, Callable[[Instruction], str]] = {
    "0": lambda i: "halt",
    "1": _add,
    "2": _subtract,
    "3": _and,
    "4": _xor,
    "5": _shift("<<"),
    "6": _shift(">>"),
    "7": _load_address,
    "8": _load,
    "9": _store,
    "A": _load_indirect,
    "B": _store_indirect,
    "C": _branch_zero,
    "D": _branch_positive,
    "E": _jump_register,
    "F": _jump_and_link,
}


def describe(instruction: Instruction) -> str:
    """Describe what an instruction does, e.g. ``R[1] <- R[2] + R[3]``."""
    return _DESCRIBERS[instruction.opcode](instruction)


def describe_line(line: DecodedLine) -> str:
    """Describe a decoded line; lines below 0x10 hold constants, not code."""
    if line.address < CODE_START:
        return f"constant 0x{line.raw_instruction.upper()}"
    return describe(line.to_instruction())


def format_line(text: str) -> str:
    """Rewrite one source line in canonical form.

    Code lines become ``AA: CCCC   description`` left-justified to
    LINE_WIDTH columns. Any other line is returned unchanged.
    """
    line = decode(text)
    if line is None:
        return text
    formatted = (
        f"{address_to_hex(line.address)}: {line.raw_instruction}"
        f"{DESCRIPTION_GAP}{describe_line(line)}"
    )
    return formatted.ljust(LINE_WIDTH)


def reformat(lines: Iterable[str]) -> List[str]:
    """Rewrite every code line of a program; comment lines pass through."""
    return [format_line(text) for text in lines]


def instruction_display(instruction: Optional[Instruction]) -> str:
    """Render an instruction as ``"CCCC (description)"`` for status displays."""
    if instruction is None:
        return UNINITIALIZED_INSTRUCTION
    return f"{instruction.hex} ({describe(instruction)})"

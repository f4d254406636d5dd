"""Structural validation of a decoded program before it may run."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .decoder import DecodedLine, address_to_hex
from .errors import ErrorKind


@dataclass
class ValidationResult:
    """Outcome of validating a program.

    Attributes:
        valid: Whether the program may be loaded
        error_kind: EMPTY_PROGRAM, DUPLICATE_ADDRESSES or UNSORTED_ADDRESSES
        reason: Human-readable reason for the failure
        duplicates: Duplicated addresses, in the order first repeated
    """
    valid: bool
    error_kind: Optional[ErrorKind] = None
    reason: Optional[str] = None
    duplicates: List[int] = field(default_factory=list)


def validate(lines: Sequence[DecodedLine]) -> ValidationResult:
    """Check that a program is runnable.

    Checks, in order:
        - the program has at least one line
        - no address appears twice (every duplicate is listed)
        - addresses appear in ascending order as written

    Args:
        lines: Decoded program lines in file order

    Returns:
        ValidationResult
    """
    if not lines:
        return ValidationResult(
            False, ErrorKind.EMPTY_PROGRAM, ErrorKind.EMPTY_PROGRAM.default_message
        )

    seen = []
    duplicates = []
    for line in lines:
        if line.address in seen:
            if line.address not in duplicates:
                duplicates.append(line.address)
        else:
            seen.append(line.address)

    if duplicates:
        listed = ", ".join(address_to_hex(address) for address in duplicates)
        return ValidationResult(
            False,
            ErrorKind.DUPLICATE_ADDRESSES,
            f"{ErrorKind.DUPLICATE_ADDRESSES.default_message}: {listed}",
            duplicates,
        )

    if seen != sorted(seen):
        return ValidationResult(
            False,
            ErrorKind.UNSORTED_ADDRESSES,
            ErrorKind.UNSORTED_ADDRESSES.default_message,
        )

    return ValidationResult(True)

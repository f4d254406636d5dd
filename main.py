#!/usr/bin/env python3
"""TOY Emulator Command Line Interface.

Run or reformat TOY programs.

Usage:
    python main.py --program programs/sum.toy --input "0003 0004"
    python main.py --program programs/sum.toy --format
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from toy_emulator import InvalidProgramError, ToyFile, ToyMachine


class StepLimit:
    """Observer that stops a running machine after a number of steps."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        self.steps = 0
        self.exceeded = False

    def __call__(self, machine: ToyMachine) -> None:
        if not machine.is_running:
            return
        self.steps += 1
        if self.steps >= self.max_steps:
            self.exceeded = True
            machine.stop()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="TOY Emulator: 16-register, 256-word educational machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a program, feeding console input
    python main.py --program programs/sum.toy --input "0003 0004"

    # Run with a full execution trace
    python main.py --program programs/sum.toy --trace

    # Rewrite a program file with generated descriptions
    python main.py --program programs/sum.toy --format
        """
    )

    parser.add_argument(
        "--program", "-p",
        type=str,
        required=True,
        help="Path to TOY program file"
    )
    parser.add_argument(
        "--input", "-i",
        action="append",
        default=[],
        help="Console input (hex words separated by any non-hex text). Repeatable"
    )
    parser.add_argument(
        "--format",
        action="store_true",
        help="Rewrite the program file in canonical form instead of running it"
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=100000,
        help="Stop after this many instructions (0 for no limit). Default: 100000"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print registers and memory after running"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every executed instruction"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (console output only)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    program_path = Path(args.program)
    if not program_path.exists():
        print(f"Error: Program file not found: {args.program}")
        return 1
    toy_file = ToyFile.from_path(program_path)

    if args.format:
        toy_file.format().write()
        if not args.quiet:
            print(f"{toy_file.name} was successfully formatted")
        return 0

    limit = StepLimit(args.max_steps) if args.max_steps > 0 else None
    machine = ToyMachine(observer=limit, keep_trace=args.trace)

    try:
        machine.load_lines(toy_file.to_program())
    except InvalidProgramError as e:
        print(f"Error: {e.message}")
        return 1

    for text in args.input:
        machine.feed_input(text)

    if not args.quiet:
        print(f"Loading program: {args.program}")
        print("-" * 60)

    machine.run()

    for value in machine.console_output:
        print(value)

    if args.trace:
        machine.print_trace()

    if args.dump:
        print("\n".join(machine.state.dump_registers()))
        print("\n".join(machine.state.dump_memory()))

    if not args.quiet:
        print("-" * 60)
        summary = machine.get_summary()
        print(f"PC: {summary['pc']}")
        print(f"Halted: {summary['halted']}")
        if summary["error"]:
            print(summary["error"])
        elif limit is not None and limit.exceeded:
            print(f"Stopped after {args.max_steps} steps")
        elif not machine.is_finished:
            print(f"Waiting for input at {machine.pc_hex}")

    # Return exit code based on halted state
    return 0 if machine.halted else 1


if __name__ == "__main__":
    sys.exit(main())

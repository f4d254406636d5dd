"""Tests for the TOY line decoder."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from toy_emulator.decoder import (
    DecodedLine,
    Instruction,
    InstructionFormat,
    address_to_hex,
    decode,
    hex_to_word,
    is_well_formed,
    parse_console_input,
    parse_program,
    to_instruction,
    to_signed16,
    word_to_hex,
)


class TestLineGrammar:
    """Test recognition of well-formed source lines."""

    @pytest.mark.parametrize("text", [
        "10: 7101",
        "10: 7101   R[1] <- 0001",
        "ff: abcd",
        "0A: 0000 anything at all",
    ])
    def test_well_formed(self, text):
        """Two hex digits, colon, space, four hex digits, then anything."""
        assert is_well_formed(text) is True

    @pytest.mark.parametrize("text", [
        "",
        "program Sum",
        "10:7101",
        "10 : 7101",
        "1: 7101",
        "10: 710",
        "10: 71G1",
        " 10: 7101",
    ])
    def test_not_well_formed(self, text):
        """Anything else is not code."""
        assert is_well_formed(text) is False
        assert decode(text) is None


class TestDecode:
    """Test splitting lines into DecodedLine records."""

    def test_decode_fields(self):
        """Address is parsed as hex; code and comment are kept verbatim."""
        line = decode("1a: 8aFF   read R[A]")
        assert line == DecodedLine(0x1A, "8aFF", "   read R[A]")

    def test_decode_without_comment(self):
        """A bare line has an empty trailing comment."""
        assert decode("FF: 0000").trailing_comment == ""

    def test_parse_program_skips_other_lines(self):
        """Only well-formed lines become part of the program."""
        source = "program X\n\n10: 7101\n// note\n11: 0000 halt\n"
        lines = parse_program(source)
        assert [line.address for line in lines] == [0x10, 0x11]


class TestToInstruction:
    """Test opcode classification and operand extraction."""

    @pytest.mark.parametrize("code,fmt", [
        ("1234", InstructionFormat.ALU),
        ("6234", InstructionFormat.ALU),
        ("A234", InstructionFormat.INDIRECT),
        ("B234", InstructionFormat.INDIRECT),
        ("7234", InstructionFormat.MEM_CTRL),
        ("8234", InstructionFormat.MEM_CTRL),
        ("9234", InstructionFormat.MEM_CTRL),
        ("C234", InstructionFormat.MEM_CTRL),
        ("D234", InstructionFormat.MEM_CTRL),
        ("F234", InstructionFormat.MEM_CTRL),
        ("E234", InstructionFormat.JUMP_REGISTER),
        ("0234", InstructionFormat.HALT),
    ])
    def test_formats(self, code, fmt):
        """Each opcode maps to its operand format."""
        assert Instruction.from_hex(code).format is fmt

    def test_operands_uppercased(self):
        """Operand digits are normalized to uppercase."""
        instruction = to_instruction(DecodedLine(0x10, "1abc"))
        assert instruction.opcode == "1"
        assert (instruction.d, instruction.s, instruction.t) == ("A", "B", "C")
        assert instruction.addr == "BC"
        assert instruction.hex == "1ABC"

    def test_integer_views(self):
        """Operands are available as integers."""
        instruction = Instruction.from_hex("9CFF")
        assert instruction.dest == 12
        assert instruction.address == 255
        assert instruction.source_s == 15
        assert instruction.source_t == 15

    def test_total_over_all_codes(self):
        """Every four-digit code decodes and re-encodes to itself."""
        for value in range(0x10000):
            code = format(value, "04X")
            assert to_instruction(decode(f"10: {code}")).hex == code

    def test_word_round_trip(self):
        """An instruction's word re-encodes to the same instruction."""
        instruction = Instruction.from_hex("FFFF")
        assert instruction.word == -1
        assert Instruction.from_word(instruction.word) == instruction


class TestWordHelpers:
    """Test 16-bit value conversions."""

    def test_to_signed16(self):
        assert to_signed16(0x7FFF) == 32767
        assert to_signed16(0x8000) == -32768
        assert to_signed16(0x10001) == 1

    def test_hex_to_word(self):
        assert hex_to_word("FFFF") == -1
        assert hex_to_word("0041") == 0x41

    def test_word_to_hex(self):
        assert word_to_hex(-1) == "FFFF"
        assert word_to_hex(255) == "00FF"
        assert word_to_hex(-32768) == "8000"

    def test_address_to_hex(self):
        assert address_to_hex(5) == "05"
        assert address_to_hex(0xAB) == "AB"


class TestConsoleInput:
    """Test parsing of free-form console input."""

    def test_separated_words(self):
        """Words separated by any non-hex text are parsed in order."""
        assert parse_console_input("12 34") == [0x12, 0x34]

    def test_long_run_is_chunked(self):
        """A long run is cut into four-digit chunks, last one padded."""
        assert parse_console_input("123456") == [0x1234, 0x0056]

    def test_lowercase_and_negative(self):
        """Lowercase digits are accepted; values are signed."""
        assert parse_console_input("ffff") == [-1]

    def test_hex_letters_inside_words(self):
        """Hex letters inside ordinary words are still read as input."""
        assert parse_console_input("hello?!") == [0xE]

    def test_nothing_parseable(self):
        """Text without hex digits yields nothing."""
        assert parse_console_input("  , ; ") == []

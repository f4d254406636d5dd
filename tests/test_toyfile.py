"""Tests for TOY program files."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from toy_emulator import ToyFile


SOURCE = "program Demo\n00: 0005\n10: 8100 load\n11: 0000\n"


class TestToyFile:
    """Test reading, formatting and writing program files."""

    def test_from_path(self, tmp_path):
        path = tmp_path / "demo.toy"
        path.write_text(SOURCE)
        toy_file = ToyFile.from_path(path)
        assert toy_file.lines[0] == "program Demo"
        assert toy_file.name == "demo.toy"
        assert [line.address for line in toy_file.to_program()] == [0x00, 0x10, 0x11]

    def test_format_and_write(self, tmp_path):
        path = tmp_path / "demo.toy"
        path.write_text(SOURCE)
        ToyFile.from_path(path).format().write()
        lines = path.read_text().splitlines()
        assert lines[0] == "program Demo"
        assert lines[1] == "00: 0005   constant 0x0005".ljust(41)
        assert lines[2] == "10: 8100   R[1] <- M[00]".ljust(41)
        assert path.read_text().endswith("\n")

    def test_format_does_not_modify_original(self):
        toy_file = ToyFile.from_text(SOURCE)
        toy_file.format()
        assert toy_file.lines[2] == "10: 8100 load"

    def test_write_without_path(self):
        with pytest.raises(ValueError):
            ToyFile.from_text(SOURCE).write()

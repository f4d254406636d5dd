"""Tests for MachineState dataclass."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from toy_emulator.decoder import DecodedLine, Instruction
from toy_emulator.errors import ErrorKind, MachineFault
from toy_emulator.state import (
    INITIAL_PC,
    MEMORY_SIZE,
    REGISTER_COUNT,
    MachineState,
    create_initial_state,
)


class TestMachineStateCreation:
    """Test MachineState initialization and defaults."""

    def test_default_state(self):
        """Only R[0] is initialized; memory is empty; PC starts at 10."""
        state = MachineState()
        assert state.pc == INITIAL_PC
        assert state.registers[0] == 0
        assert state.registers[1:] == [None] * (REGISTER_COUNT - 1)
        assert state.memory == [None] * MEMORY_SIZE
        assert list(state.console_in) == []
        assert state.console_out == []
        assert state.reset is True
        assert state.running is False
        assert state.finished is False
        assert state.errored is False

    def test_create_initial_state(self):
        """create_initial_state loads each line at its address."""
        lines = [DecodedLine(0x00, "0005"), DecodedLine(0x10, "8100")]
        state = create_initial_state(lines)
        assert state.memory[0x00].hex == "0005"
        assert state.memory[0x10].hex == "8100"
        assert state.current_instruction.hex == "8100"


class TestMachineStateValidation:
    """Test state validation."""

    def test_valid_state(self):
        """Fresh state passes validation."""
        assert MachineState().validate() is True

    def test_nonzero_r0(self):
        """R[0] must hold 0."""
        state = MachineState()
        state.registers[0] = 1
        assert state.validate() is False

    def test_register_out_of_range(self):
        """Register values must fit in 16 signed bits."""
        state = MachineState()
        state.registers[3] = 40000
        assert state.validate() is False

    def test_pc_out_of_range(self):
        """PC must address memory."""
        assert MachineState(pc=0x100).validate() is False


class TestRegisterAccess:
    """Test register reads and writes."""

    def test_uninitialized_read(self):
        """Reading a never-written register faults."""
        with pytest.raises(MachineFault) as excinfo:
            MachineState().get_register(5)
        assert excinfo.value.kind is ErrorKind.REGISTER_UNINITIALIZED

    def test_write_then_read(self):
        state = MachineState()
        state.set_register(5, -2)
        assert state.get_register(5) == -2

    def test_write_r0_dropped(self):
        """R[0] keeps its value of 0."""
        state = MachineState()
        state.set_register(0, 7)
        assert state.get_register(0) == 0

    def test_write_overflow(self):
        """Values outside 16 signed bits fault with OVERFLOW."""
        with pytest.raises(MachineFault) as excinfo:
            MachineState().set_register(1, 32768)
        assert excinfo.value.kind is ErrorKind.OVERFLOW


class TestMemoryAccess:
    """Test memory reads and writes."""

    def test_uninitialized_read(self):
        with pytest.raises(MachineFault) as excinfo:
            MachineState().read_memory(0x20)
        assert excinfo.value.kind is ErrorKind.MEMORY_UNINITIALIZED

    def test_write_encodes_instruction(self):
        """Stored values become instructions, keeping memory uniformly typed."""
        state = MachineState()
        state.write_memory(0x20, -1)
        assert state.memory[0x20] == Instruction.from_hex("FFFF")
        assert state.read_memory(0x20) == -1


class TestDisplay:
    """Test display helpers."""

    def test_dump_registers(self):
        state = MachineState()
        state.set_register(3, 255)
        dump = state.dump_registers()
        assert dump[0] == "0 0000"
        assert dump[3] == "3 00FF"
        assert dump[15] == "F ????"

    def test_dump_memory(self):
        state = create_initial_state([DecodedLine(0x10, "7101")])
        dump = state.dump_memory()
        assert len(dump) == MEMORY_SIZE
        assert dump[0x10] == "10 7101"
        assert dump[0x11] == "11 ????"

    def test_snapshot_is_a_copy(self):
        """Snapshots do not change when the state does."""
        state = MachineState()
        snapshot = state.snapshot()
        state.set_register(1, 9)
        state.console_out.append(1)
        assert snapshot["registers"][1] is None
        assert snapshot["console_out"] == []

    def test_str(self):
        state = MachineState()
        assert str(state).startswith("PC=10 R[0]=0000 R[1]=????")

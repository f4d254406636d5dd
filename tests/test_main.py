"""Tests for the command line interface."""

import shutil
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from main import main


PROGRAMS = ROOT / "programs"


class TestMain:
    """Test running and formatting from the command line."""

    def test_run(self, capsys):
        code = main(["--program", str(PROGRAMS / "sum.toy"), "--input", "2 3", "--quiet"])
        assert code == 0
        assert capsys.readouterr().out.split() == ["0005"]

    def test_waiting_for_input(self, capsys):
        code = main(["--program", str(PROGRAMS / "sum.toy")])
        assert code == 1
        assert "Waiting for input at 10" in capsys.readouterr().out

    def test_step_limit(self, tmp_path, capsys):
        path = tmp_path / "loop.toy"
        path.write_text("10: C010\n")
        code = main(["--program", str(path), "--max-steps", "50"])
        assert code == 1
        assert "Stopped after 50 steps" in capsys.readouterr().out

    def test_invalid_program(self, tmp_path, capsys):
        path = tmp_path / "bad.toy"
        path.write_text("10: 0000\n10: 0000\n")
        assert main(["--program", str(path)]) == 1
        assert "duplicate line numbers: 10" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--program", str(tmp_path / "missing.toy")]) == 1

    def test_format(self, tmp_path):
        path = tmp_path / "sum.toy"
        shutil.copy(PROGRAMS / "sum.toy", path)
        assert main(["--program", str(path), "--format", "--quiet"]) == 0
        lines = path.read_text().splitlines()
        assert lines[0] == "program Sum"
        assert lines[4] == "10: 8AFF   read R[A]".ljust(41)

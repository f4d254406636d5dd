"""Plain-text TOY program files."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .decoder import DecodedLine, decode
from .formatter import reformat


@dataclass
class ToyFile:
    """The lines of a TOY source file, comments and all.

    Attributes:
        lines: Every line of the file, without line terminators
        path: Where the file was read from
    """
    lines: List[str] = field(default_factory=list)
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ToyFile":
        path = Path(path)
        return cls(path.read_text().splitlines(), path)

    @classmethod
    def from_text(cls, text: str) -> "ToyFile":
        return cls(text.splitlines())

    @property
    def name(self) -> str:
        return self.path.name if self.path is not None else "<memory>"

    def to_program(self) -> List[DecodedLine]:
        """Decode the well-formed lines; everything else is dropped."""
        return [line for line in map(decode, self.lines) if line is not None]

    def format(self) -> "ToyFile":
        """Return a copy with every code line in canonical form."""
        return ToyFile(reformat(self.lines), self.path)

    def text(self) -> str:
        return "".join(line + "\n" for line in self.lines)

    def write(self, path: Union[str, Path, None] = None) -> Path:
        """Write the lines back to disk, one per line.

        Args:
            path: Destination (defaults to the file's own path)

        Returns:
            Path written

        Raises:
            ValueError: If no path is given and the file has none
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("No path to write to")
        target.write_text(self.text())
        return target

import os
from dataclasses import dataclass, replace
from typing import Tuple


def _file_identity(path: str):
    """Device and inode for an existing file, the normalized absolute path otherwise."""
    try:
        stat = os.stat(path)
    except OSError:
        return os.path.normcase(os.path.abspath(path))
    return stat.st_dev, stat.st_ino


def _same_file(first: str, second: str) -> bool:
    if first == second:
        return True
    try:
        return os.path.samefile(first, second)
    except OSError:
        return os.path.normcase(os.path.abspath(first)) == os.path.normcase(os.path.abspath(second))


@dataclass(frozen=True, eq=False)
class SourceLocation:
    """
    Immutable file:line:column triple. Line and column are 1-based.

    Two locations are equal when both name the same physical file (so
    'a/../x.txt' and 'x.txt' compare equal) and line and column match.
    """
    file: str
    line: int
    column: int

    def offset(self, columns: int) -> 'SourceLocation':
        """Returns a copy moved right by `columns` on the same line."""
        return replace(self, column=self.column + columns)

    def line_col(self) -> Tuple[int, int]:
        return self.line, self.column

    def __eq__(self, other) -> bool:
        if not isinstance(other, SourceLocation):
            return NotImplemented
        return (self.line == other.line and self.column == other.column
                and _same_file(self.file, other.file))

    def __hash__(self) -> int:
        return hash((_file_identity(self.file), self.line, self.column))

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


# --- Matched fragment ---

@dataclass(frozen=True)
class Fragment:
    location: SourceLocation
    text: str

    def __repr__(self) -> str:
        return f"Fragment({repr(self.text)}, Ln {self.location.line}, Col {self.location.column})"

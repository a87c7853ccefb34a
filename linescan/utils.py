import json
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional, Tuple

from linescan.tokens import SourceLocation


def invariant(condition: bool, message: str = "invariant violated"):
    if not condition:
        raise InvariantViolation(message)


class InvariantViolation(AssertionError):
    """Internal contract broken by the scanner itself; not meant to be recovered from."""


# Fifo Exceptions
class FifoException(InvariantViolation):
    pass

class BufferFullException(FifoException):
    def __init__(self, capacity: int):
        super().__init__(f"push on full buffer (capacity {capacity})")

class BufferEmptyException(FifoException):
    def __init__(self):
        super().__init__("pop on empty buffer")

class InvalidCountException(FifoException):
    def __init__(self, count: int, size: int):
        super().__init__(f"invalid pop count {count} (size {size})")

class InvalidOffsetException(FifoException):
    def __init__(self, offset: int, size: int):
        super().__init__(f"invalid peek offset {offset} (size {size})")


class ScannerException(Exception):
    def __init__(self, message, position: SourceLocation):
        self.position: SourceLocation = position
        self.message = message
        super().__init__(f'{self.position}: ERROR {message}')


class ErrorType(Enum):
    NESTED_BLOCK_COMMENT = "Nested block comment"
    UNEXPECTED_EOF = "Unexpected end of input"
    GROUP_COUNT = "Unexpected number of matched groups"

    def __str__(self):
        return self.name


class LexicalException(ScannerException):
    def __init__(self, error_type: ErrorType, position: SourceLocation, doing: Optional[str] = None):
        self.error_type = error_type
        self.doing = doing
        message = error_type.value
        if doing:
            message = f"{message} while matching '{escape(doing)}'"
        super().__init__(message, position)

    @property
    def location(self) -> SourceLocation:
        return self.position


class FatalIOException(Exception):
    """
    Reading failed after the source was opened. Scanning cannot continue
    without producing garbage; the embedding application decides whether
    to log and exit or to propagate.
    """
    def __init__(self, file_name: str, line: int, cause: Exception):
        self.file_name = file_name
        self.line = line
        self.cause = cause
        super().__init__(f"{file_name}:{line}: FATAL read failed: {cause}")


@dataclass
class Config:
    lookahead: int = 16
    file_buffer_size: int = 1 << 20
    encoding: str = "utf-8"
    compressed_suffixes: Tuple[str, ...] = (".gz",)
    block_comment: Tuple[str, str] = ("/*", "*/")
    line_comment: str = "//"

    def __post_init__(self):
        # JSON only knows lists
        self.compressed_suffixes = tuple(self.compressed_suffixes)
        self.block_comment = tuple(self.block_comment)
        if self.lookahead <= 0:
            raise ValueError(f"lookahead must be positive, got {self.lookahead}")
        # 0 and 1 mean unbuffered and line buffered to open()
        if self.file_buffer_size < 2:
            raise ValueError(f"file_buffer_size must be at least 2, got {self.file_buffer_size}")
        if len(self.block_comment) != 2:
            raise ValueError(f"block_comment needs an opener and a closer, got {self.block_comment}")
        if not all(self.block_comment) or not self.line_comment:
            raise ValueError(f"comment delimiters must not be empty, got {self.block_comment} and {self.line_comment!r}")

    @staticmethod
    def from_json_file(path: str) -> 'Config':
        with open(path, 'r') as f:
            data = json.load(f)
        known = {f.name for f in fields(Config)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return Config(**data)


ESCAPES = {
    '\n': '\\n',
    '\t': '\\t',
    '\\': '\\\\',
}


def escape(text: str) -> str:
    """Makes newlines, tabs and backslashes visible, e.g. for diagnostics."""
    return ''.join(ESCAPES.get(char, char) for char in text)

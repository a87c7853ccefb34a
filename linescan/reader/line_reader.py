import gzip
import io
import logging
import os
import re
from collections import deque
from typing import Deque, Iterable, Iterator, List, Optional, Pattern, Sequence, TextIO, Tuple, Union

from linescan.tokens import Fragment, SourceLocation
from linescan.utils import (
    Config,
    ErrorType,
    FatalIOException,
    LexicalException,
    invariant,
)

logger = logging.getLogger(__name__)

EOF: Optional[str] = None
NL = '\n'

PatternLike = Union[str, Pattern[str]]


class LineReader:
    """
    Reads a file one physical line at a time for line-oriented scanning.

    The current line is held with a trailing NL sentinel and a cursor into
    it. Lookahead, substring and pattern matching only ever see the current
    line; `next` and `accept` move on to the following lines. Groups
    captured by a pattern are queued as Fragments, each stamped with the
    location it was found at, until the caller drains them.
    """

    def __init__(self, file_name: str, config: Optional[Config] = None):
        self._config = config if config else Config()
        self._file_name = file_name
        self._line_num: int = 0
        self._line: str = ""
        self._pos: int = 0
        self._eof: bool = False
        self._remainder: Optional[str] = None
        self._match: Optional[re.Match] = None
        self._matched: Deque[Fragment] = deque()
        self._stream: Optional[TextIO] = self._open()

        try:
            self._load_next_line()
        except Exception:
            self.close()
            raise

    def _open(self) -> TextIO:
        if self._file_name.endswith(self._config.compressed_suffixes):
            logger.debug("Opening %s with gzip decompression", self._file_name)
            return gzip.open(self._file_name, "rt", encoding=self._config.encoding)

        buffer_size = min(max(os.path.getsize(self._file_name), io.DEFAULT_BUFFER_SIZE),
                          self._config.file_buffer_size)
        logger.debug("Opening %s with a %d byte buffer", self._file_name, buffer_size)
        return open(self._file_name, "r", encoding=self._config.encoding, buffering=buffer_size)

    # --- Line buffer ---

    def _load_next_line(self) -> None:
        if self._eof:
            return
        line = self._stream.readline()
        self._remainder = None
        if line:
            self._line_num += 1
            self._pos = 0
            self._line = line if line.endswith(NL) else line + NL
        else:
            # Park on the NL of the last line so locations point at its end.
            self._eof = True
            self._line_num = max(self._line_num, 1)
            self._pos = max(self._length() - 1, 0)
            logger.debug("Reached end of %s after %d line(s)", self._file_name, self._line_num)
            self.close()

    def _next_line(self) -> None:
        try:
            self._load_next_line()
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed reading %s at line %d: %s", self._file_name, self._line_num, e)
            raise FatalIOException(self._file_name, self._line_num, e) from e

    def _length(self) -> int:
        return len(self._line)

    def la(self, n: int = 0) -> Optional[str]:
        """Looks n characters ahead within the current line. Returns NL at end of line, EOF at end of input."""
        invariant(n >= 0, f"negative lookahead {n}")
        if self._eof:
            return EOF
        pos = self._pos + n
        invariant(pos < self._length(), f"lookahead {n} beyond end of line {self._line_num}")
        return self._line[pos]

    def next(self) -> Optional[str]:
        """Returns the current character and advances, loading the next line when this one is used up."""
        char = self.la()
        if not self._eof:
            self._pos += 1
            self._remainder = None
            if self._pos >= self._length():
                self._next_line()
        return char

    def accept(self, n: int = 1) -> None:
        """Unconditionally accepts n characters. Can cross into the following line(s)."""
        if self._eof or n <= 0:
            return
        end = self._pos + n
        if end < self._length():
            self._pos = end
            self._remainder = None
        else:
            remaining = end - (self._length() - 1)
            self._pos = self._length() - 1
            for _ in range(remaining):
                self.next()

    def accept_on_match(self, text: str) -> bool:
        """Accepts `text` if the input continues with it. Nothing is consumed otherwise."""
        if len(text) == 1:
            match = text == self.la()
        else:
            match = text == self.substring(len(text))
        if match:
            self.accept(len(text))
        return match

    def substring(self, n: int) -> str:
        """
        Returns up to n characters starting at the cursor. Stops short of the
        NL sentinel, so the result never reaches into the next line.
        """
        invariant(n >= 0, f"negative substring length {n}")
        if self._eof:
            return ""
        end = min(self._pos + n, self._length() - 1)
        return self._line[self._pos:end] if end > self._pos else ""

    def set_remainder(self) -> str:
        """Captures the rest of the current line from the cursor on."""
        self._remainder = self.substring(self._length())
        return self._remainder

    @property
    def remainder(self) -> str:
        if self._remainder is None:
            return self.set_remainder()
        return self._remainder

    def replace(self, span: Sequence[int], text: str) -> None:
        """
        Replaces [span[0], span[1]) of the line buffer with `text`. The span
        is relative to the cursor; text already scanned is never touched.
        """
        start, end = span[0] + self._pos, span[1] + self._pos
        invariant(self._pos <= start <= end <= self._length(),
                  f"replace span {tuple(span)} outside line {self._line_num}")
        self._line = self._line[:start] + text + self._line[end:]
        if not self._line.endswith(NL):
            self._line += NL
        self._remainder = None

    # --- Pattern matching ---

    @staticmethod
    def _compile(pattern: PatternLike) -> Pattern[str]:
        return re.compile(pattern) if isinstance(pattern, str) else pattern

    def matches(self, pattern: PatternLike, text: Optional[str] = None) -> bool:
        """
        Matches the start of `text` (default: the line remainder) against
        `pattern`. The match need not cover the whole text.
        """
        search = self.remainder if text is None else text
        self._match = self._compile(pattern).match(search)
        return self._match is not None

    def match_save_accept(self, *patterns: PatternLike, counts: Union[int, Iterable[int], None] = None,
                          text: Optional[str] = None, save: bool = True) -> bool:
        """
        Tries each pattern in order against the remainder (or `text`) and
        stops at the first that matches. Its groups are queued as Fragments
        when `save` is set and the input is accepted past the whole match.

        Null groups are skipped, and so is a group starting at the same
        column as the previously queued one.

        Raises LexicalException(GROUP_COUNT) if `counts` (one count or several)
        is given and the number of non-null groups is not among them.
        """
        for pattern in patterns:
            if self.matches(pattern, text):
                break
        else:
            return False

        start = self.get_file_location()
        previous: Optional[SourceLocation] = None
        group_count = 0
        for group in range(1, self._match.re.groups + 1):
            offset = self._match.start(group)
            if offset < 0:
                continue
            group_count += 1
            if not save:
                continue
            location = start.offset(offset)
            if previous is None or location.column != previous.column:
                self._matched.append(Fragment(location, self._match.group(group)))
                previous = location

        if isinstance(counts, int):
            counts = (counts,)
        if counts is not None and group_count not in set(counts):
            raise self._lexical_error(ErrorType.GROUP_COUNT)

        self._accept_group(0)
        return True

    def match_accept(self, *patterns: PatternLike, text: Optional[str] = None) -> bool:
        """Like match_save_accept, but the groups are not queued."""
        return self.match_save_accept(*patterns, text=text, save=False)

    def _accept_group(self, group: int) -> None:
        if self._match is None:
            return
        end = self._match.end(group)
        if end > 0:
            self.accept(end)

    def get_matched(self, group: int = 0) -> Optional[str]:
        return self._match.group(group) if self._match else None

    def get_matched_group_count(self) -> int:
        return self._match.re.groups if self._match else 0

    def get_span(self, group: int = 0) -> Tuple[int, int]:
        invariant(self._match is not None, "no match to take a span from")
        return self._match.span(group)

    def save_match(self, group: int, save: bool = True) -> None:
        """Queues a group of the last match at the current location."""
        if save:
            self._matched.append(Fragment(self.get_file_location(), self._match.group(group)))

    def save_get(self, group: int) -> str:
        invariant(group <= self.get_matched_group_count(), f"no group {group} in last match")
        text = self.get_matched(group)
        self.save_match(group)
        return text

    # --- Pending fragments ---

    @property
    def pending(self) -> Tuple[Fragment, ...]:
        return tuple(self._matched)

    def pop_matched(self) -> Fragment:
        return self._matched.popleft()

    def drain_matched(self) -> List[Fragment]:
        drained = list(self._matched)
        self._matched.clear()
        return drained

    def clear_matched(self) -> None:
        self._matched.clear()

    # --- Comments ---

    def block_comment(self, keep: bool = False) -> Optional[str]:
        """
        Scans a block comment whose opener was already accepted, up to and
        including its closer. Returns the whole comment when `keep` is set.
        """
        opener, closer = self._config.block_comment
        self._match = None
        comment = [opener]
        while not self._eof:
            if self.accept_on_match(closer):
                comment.append(closer)
                break
            if self.substring(len(opener)) == opener:
                raise self._lexical_error(ErrorType.NESTED_BLOCK_COMMENT)
            char = self.next()
            if keep:
                comment.append(char)
        if self._eof:
            raise self._lexical_error(ErrorType.UNEXPECTED_EOF)
        return ''.join(comment) if keep else None

    def line_comment(self, keep: bool = False) -> Optional[str]:
        """Accepts the rest of the line, up to the NL, after an already accepted marker."""
        self._match = None
        rest = self.set_remainder()
        self.accept(len(rest))
        return self._config.line_comment + rest if keep else None

    def _lexical_error(self, error_type: ErrorType) -> LexicalException:
        doing = self.get_matched(0)
        self._accept_group(0)
        location = self.get_file_location()
        self._matched.clear()
        return LexicalException(error_type, location, doing)

    # --- Location ---

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def line(self) -> int:
        return self._line_num

    @property
    def column(self) -> int:
        return self._pos + 1

    def current_pos(self) -> Tuple[int, int]:
        """Returns the current (line, column) position."""
        return self.line, self.column

    def get_start_mark(self) -> Tuple[int, int]:
        return self.current_pos()

    def get_file_location(self) -> SourceLocation:
        return SourceLocation(self._file_name, self.line, self.column)

    def get_location(self) -> str:
        return str(self.get_file_location())

    def is_eof(self) -> bool:
        return self._eof

    def is_eol(self) -> bool:
        return self.la() == NL

    # --- Resource handling ---

    def close(self) -> None:
        if self._stream is not None:
            stream, self._stream = self._stream, None
            stream.close()
            logger.debug("Closed %s", self._file_name)

    def __enter__(self) -> 'LineReader':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[str]:
        """Yields the remaining characters, NL sentinels included."""
        while not self._eof:
            yield self.next()

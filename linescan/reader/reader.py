from typing import Optional, TextIO, Tuple

from linescan.reader.fifo import CharFifo
from linescan.utils import Config, FatalIOException, invariant

EOF: Optional[str] = None
EOL = '\n'

# --- Source Reader ---

class SourceReader:
    """
    Reads characters lazily from a text stream with a bounded lookahead
    window, drops carriage returns and tracks the position (line, column)
    of the next character to be accepted.
    """
    def __init__(self, source: TextIO, lookahead: Optional[int] = None, config: Optional[Config] = None):
        self._stream = source
        self._config = config if config else Config()
        self._fifo: CharFifo[Optional[str]] = CharFifo(lookahead if lookahead else self._config.lookahead)
        self._eof_reached: bool = False
        self.line: int = 1
        self.column: int = 1

    def _read(self) -> Optional[str]:
        """Returns the next character which is not a carriage return, or EOF."""
        if self._eof_reached:
            return EOF

        while True:
            try:
                char = self._stream.read(1)
            except (OSError, UnicodeDecodeError) as e:
                raise FatalIOException(getattr(self._stream, 'name', '<stream>'), self.line, e) from e

            if not char:
                self._eof_reached = True
                return EOF
            if char != '\r':
                return char

    def la(self, n: int = 0) -> Optional[str]:
        """Looks ahead n characters without consuming them. Returns EOF past the end."""
        invariant(0 <= n < self._fifo.capacity(), f"lookahead {n} outside window of {self._fifo.capacity()}")

        while self._fifo.size() <= n:
            if not self._fifo.is_empty() and self._fifo.peek(self._fifo.size() - 1) is EOF:
                return EOF
            char = self._read()
            self._fifo.push(char)
            if char is EOF:
                return EOF

        return self._fifo.peek(n)

    def accept(self, n: int = 1) -> Optional[str]:
        """
        Consumes n characters and returns the last one. Line and column are
        updated from that last character only.
        """
        if n > self._fifo.size():
            self.la(n - 1)

        char = self._fifo.pop(n)

        if char is EOF:
            # Position stays at the end of input
            return char

        if char == EOL:
            self.line += 1
            self.column = 1
        else:
            self.column += n

        return char

    def is_eof(self) -> bool:
        return self.la(0) is EOF

    def current_pos(self) -> Tuple[int, int]:
        """Returns the current (line, column) position."""
        return self.line, self.column

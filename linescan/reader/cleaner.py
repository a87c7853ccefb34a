from typing import List, Optional

from linescan.reader.line_reader import LineReader
from linescan.tokens import Fragment
from linescan.utils import Config

# --- Whitespace, Line Ending and Comment Handler ---

class Cleaner:
    """Moves a LineReader past everything that is not relevant to the lexer"""
    def __init__(self, reader: LineReader, config: Optional[Config] = None, keep_comments: bool = False):
        self._reader = reader
        self._config = config if config else Config()
        self._keep_comments = keep_comments

    def skip(self) -> List[Fragment]:
        """
        Accepts whitespace, line endings and comments until the reader sits
        on a significant character or at end of input. That character is
        not consumed. Returns the comments passed over when keeping them.
        """
        opener, _ = self._config.block_comment
        comments: List[Fragment] = []

        while not self._reader.is_eof():
            char = self._reader.la()

            # Skip Whitespace
            if char.isspace():
                self._reader.next()
                continue

            start = self._reader.get_file_location()
            if self._reader.accept_on_match(opener):
                text = self._reader.block_comment(self._keep_comments)
            elif self._reader.accept_on_match(self._config.line_comment):
                text = self._reader.line_comment(self._keep_comments)
            else:
                # Significant character
                break

            if self._keep_comments:
                comments.append(Fragment(start, text))

        return comments

    def peek_char(self, k: int = 0) -> Optional[str]:
        """Call reader la method"""
        return self._reader.la(k)

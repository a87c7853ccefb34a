import argparse
import logging
import sys
from typing import List, Optional, Sequence

from linescan.reader.cleaner import Cleaner
from linescan.reader.line_reader import LineReader
from linescan.tokens import Fragment
from linescan.utils import Config, FatalIOException, LexicalException, escape

logger = logging.getLogger("linescan")

DEFAULT_PATTERNS = [
    r'([A-Za-z_]\w*)',
    r'(\d+(?:\.\d+)?)',
]
# Anything else is reported one character at a time
FALLBACK_PATTERN = r'(\S)'


def scan(file_name: str, patterns: Sequence[str], config: Config, keep_comments: bool = False) -> List[Fragment]:
    """Returns the fragments captured by `patterns`, comments and whitespace skipped."""
    fragments: List[Fragment] = []
    with LineReader(file_name, config) as reader:
        cleaner = Cleaner(reader, config, keep_comments=keep_comments)
        while True:
            fragments.extend(cleaner.skip())
            if reader.is_eof():
                break

            start = reader.get_file_location()
            matched = reader.match_save_accept(*patterns, FALLBACK_PATTERN)
            captured = reader.drain_matched()
            if matched and not captured and reader.get_matched():
                # Pattern without groups
                captured = [Fragment(start, reader.get_matched())]
            fragments.extend(captured)
            if not matched or reader.current_pos() == start.line_col():
                fragments.append(Fragment(reader.get_file_location(), reader.next()))
    return fragments


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Scan a source file and print the matched fragments.")
    parser.add_argument('-f', '--file', type=str, required=True, help='Path to the input source file (.gz is decompressed)')
    parser.add_argument('-c', '--config', type=str, help='Path to the configuration file')
    parser.add_argument('-p', '--pattern', action='append', help='Regular expression whose groups are printed; may repeat')
    parser.add_argument('-k', '--keep-comments', action='store_true', help='Print comments as well')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if args.config:
        logger.info("Using config file: %s", args.config)
        try:
            config = Config.from_json_file(args.config)
        except (OSError, ValueError) as e:
            print(f"Failed to load config: {e}")
            return 1
    else:
        config = Config()

    try:
        fragments = scan(args.file, args.pattern or DEFAULT_PATTERNS, config, args.keep_comments)
    except LexicalException as e:
        print(e)
        return 1
    except FatalIOException as e:
        logger.error("%s", e)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading file: {e}")
        return 1

    for fragment in fragments:
        print(f"{fragment.location}\t{escape(fragment.text)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

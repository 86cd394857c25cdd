"""
Input delivery: line streams and input file discovery.

Dump files are read one line at a time; .bz2 files are decompressed on the fly.
"""

import bz2
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, TextIO, Tuple

logger = logging.getLogger(__name__)


class InputSelectionError(ValueError):
    """Raised when a requested input file number is out of range."""


def open_text(path: Path) -> TextIO:
    """Open a plain or .bz2 text file for reading."""
    if path.suffix == '.bz2':
        return bz2.open(path, 'rt', encoding='utf-8')
    return open(path, 'r', encoding='utf-8')


def with_last_flag(lines: Iterable[str]) -> Iterator[Tuple[str, bool]]:
    """
    Yield (line, is_last) pairs with trailing newlines removed.

    is_last is True only for the final line of the stream.
    """
    iterator = iter(lines)
    try:
        previous = next(iterator)
    except StopIteration:
        return

    for line in iterator:
        yield previous.rstrip('\r\n'), False
        previous = line
    yield previous.rstrip('\r\n'), True


def iter_lines(path: Path) -> Iterator[Tuple[str, bool]]:
    """Yield (line, is_last) for every line of a file."""
    with open_text(path) as f:
        yield from with_last_flag(f)


def list_input_files(directory: Path) -> List[Path]:
    """List regular files in directory, sorted by name."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Input directory not found: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file() and not p.name.startswith('.'))


def select_input_file(directory: Path, file_num: int) -> Path:
    """
    Pick the file_num-th (1-based) file of a directory listing.

    Raises:
        FileNotFoundError: directory does not exist
        InputSelectionError: file_num is outside the listing
    """
    files = list_input_files(directory)
    if file_num < 1 or file_num > len(files):
        raise InputSelectionError(
            f"File number {file_num} out of range: {directory} holds {len(files)} file(s)"
        )
    logger.debug(f"Selected input #{file_num}: {files[file_num - 1]}")
    return files[file_num - 1]

"""Argument and input handling shared by the CLI entry points."""

import argparse
import logging
from pathlib import Path
from typing import Iterator, Tuple

from wikisettle.progress_display import ProgressDisplay
from wikisettle.sources import iter_lines, select_input_file


def add_common_arguments(parser: argparse.ArgumentParser, input_help: str) -> None:
    parser.add_argument(
        'file_num',
        type=int,
        nargs='?',
        default=None,
        help='1-based position of the input file in its directory listing',
    )
    parser.add_argument(
        '--input',
        type=Path,
        default=None,
        help=input_help,
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML config file (default: ./wikisettle.yaml if present)',
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the live progress panel',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging',
    )


def configure_verbosity(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def resolve_input(args: argparse.Namespace, directory: Path) -> Tuple[Path, int]:
    """
    Pick the input file: --input wins, otherwise the file_num-th file of directory.

    Returns (path, file_num); file_num defaults to 1 with --input.

    Raises:
        FileNotFoundError: input file or directory missing
        InputSelectionError: file_num out of range
        ValueError: neither --input nor file_num given
    """
    if args.input is not None:
        if not args.input.exists():
            raise FileNotFoundError(f"Input file not found: {args.input}")
        return args.input, args.file_num or 1

    if args.file_num is None:
        raise ValueError("Give a file number or --input PATH")
    return select_input_file(directory, args.file_num), args.file_num


def counted_lines(path: Path, progress: ProgressDisplay) -> Iterator[Tuple[str, bool]]:
    """iter_lines(path) that also ticks a progress display."""
    for n, (line, is_last) in enumerate(iter_lines(path), 1):
        progress.update(Lines=n)
        yield line, is_last

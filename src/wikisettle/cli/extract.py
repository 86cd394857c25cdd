#!/usr/bin/env python3
"""
wsextract - cut Infobox settlement blocks out of raw wiki dump files.

Reads the Nth file of the configured raw directory (or --input) and writes
the included and excluded block streams to the pre-processed directories.

Usage:
    wsextract N [--input PATH] [--config PATH] [--no-progress] [-v]

Example:
    wsextract 1
    wsextract --input data/raw/enwiki-part1.txt.bz2 --no-progress
"""

import argparse
import logging
import sys
from typing import List, Optional

from wikisettle.cli.common import add_common_arguments, configure_verbosity, counted_lines, resolve_input
from wikisettle.config import ConfigError, load_config
from wikisettle.export import write_blocks
from wikisettle.extractor import TemplateExtractor
from wikisettle.progress_display import ProgressDisplay
from wikisettle.sources import InputSelectionError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Extract Infobox settlement templates from raw wiki dumps',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_common_arguments(parser, 'Raw dump file (.txt or .bz2) instead of a numbered file')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for wsextract."""
    args = parse_args(argv)
    configure_verbosity(args.verbose)

    try:
        config = load_config(args.config)
        input_path, file_num = resolve_input(args, config.raw_dir)
    except (FileNotFoundError, ConfigError, InputSelectionError, ValueError) as e:
        logger.error(str(e))
        return 1

    logger.info("Pre-processing started.")
    logger.info(f"  Input: {input_path}")

    extractor = TemplateExtractor()
    show_progress = config.progress and not args.no_progress
    with ProgressDisplay("Extracting infoboxes", enabled=show_progress) as progress:
        for line, is_last in counted_lines(input_path, progress):
            extractor.process_line(line)
            progress.update(
                Included=extractor.included.count,
                Excluded=extractor.excluded.count,
            )
            if is_last:
                break
    result = extractor.finish()

    write_blocks(result, config.included_dir, config.excluded_dir, file_num)

    logger.info("Pre-processing finished.")
    for line in result.summary_lines():
        logger.info(f"  ->  {line}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

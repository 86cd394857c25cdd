#!/usr/bin/env python3
"""
wsparse - parse extracted infobox blocks into settlement records.

Reads the Nth file of the configured included directory (or --input),
normalizes every block and writes parsed_infobox_<N>.json to the parsed
directory (or --output), then logs which records have unresolved fields.

Usage:
    wsparse N [--input PATH] [--output PATH] [--config PATH] [--no-progress] [-v]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wikisettle.cli.common import add_common_arguments, configure_verbosity, counted_lines, resolve_input
from wikisettle.config import Config, ConfigError, load_config
from wikisettle.countries import CountryResolver, CountryTables
from wikisettle.export import parsed_path, write_records
from wikisettle.normalizer import Normalizer
from wikisettle.parser import InfoboxParser, log_error_summary
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
        description='Parse extracted Infobox settlement blocks into JSON records',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_common_arguments(parser, 'Delimited block file instead of a numbered file')
    parser.add_argument(
        '--output',
        type=Path,
        default=None,
        help='Output JSON file (default: <parsed dir>/parsed_infobox_<N>.json)',
    )
    return parser.parse_args(argv)


def build_resolver(config: Config) -> CountryResolver:
    if config.countries_file is not None:
        return CountryResolver(CountryTables.from_yaml(config.countries_file))
    return CountryResolver()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for wsparse."""
    args = parse_args(argv)
    configure_verbosity(args.verbose)

    try:
        config = load_config(args.config)
        input_path, file_num = resolve_input(args, config.included_dir)
        resolver = build_resolver(config)
    except (FileNotFoundError, ConfigError, InputSelectionError, ValueError) as e:
        logger.error(str(e))
        return 1

    output_path = args.output or parsed_path(config.parsed_dir, file_num)

    logger.info("Parsing started.")
    logger.info(f"  Input: {input_path}")

    parser = InfoboxParser(Normalizer(resolver))
    show_progress = config.progress and not args.no_progress
    with ProgressDisplay("Parsing infoboxes", enabled=show_progress) as progress:
        for line, is_last in counted_lines(input_path, progress):
            parser.process_line(line)
            progress.update(Records=len(parser.store))
            if is_last:
                break
    result = parser.finish()

    logger.info("Parsing finished.")
    write_records(result.records, output_path)
    if result.dropped:
        logger.warning(f"  ->  {result.dropped} unterminated block(s) dropped")

    logger.info("  ->  error log:")
    log_error_summary(result.records)
    logger.info(f"  ->  execution time: {result.elapsed:.3f}s")
    return 0


if __name__ == '__main__':
    sys.exit(main())

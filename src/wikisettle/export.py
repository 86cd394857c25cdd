"""Writers for extracted block streams and parsed record maps."""

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import orjson

from wikisettle.extractor import ExtractionResult

logger = logging.getLogger(__name__)


def included_path(directory: Path, file_num: int, count: int) -> Path:
    return directory / f'infobox_{file_num}_{count}.txt'


def excluded_path(directory: Path, file_num: int, count: int) -> Path:
    return directory / f'infobox_{file_num}_excluded_{count}.txt'


def parsed_path(directory: Path, file_num: int) -> Path:
    return directory / f'parsed_infobox_{file_num}.json'


def write_blocks(
    result: ExtractionResult,
    included_dir: Path,
    excluded_dir: Path,
    file_num: int,
) -> Tuple[Path, Path]:
    """Write both delimited streams; file names carry the block counts."""
    included_dir.mkdir(parents=True, exist_ok=True)
    excluded_dir.mkdir(parents=True, exist_ok=True)

    out_included = included_path(included_dir, file_num, result.included_count)
    out_excluded = excluded_path(excluded_dir, file_num, result.excluded_count)

    out_included.write_text(result.included_text, encoding='utf-8')
    out_excluded.write_text(result.excluded_text, encoding='utf-8')

    logger.info(f"Wrote {result.included_count:,} included blocks to {out_included}")
    logger.info(f"Wrote {result.excluded_count:,} excluded blocks to {out_excluded}")
    return out_included, out_excluded


def write_records(records: Dict[str, Dict[str, Any]], output_path: Path) -> Path:
    """Write the record map as indented JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'wb') as f:
        f.write(orjson.dumps(records, option=orjson.OPT_INDENT_2))
    logger.info(f"Saved {len(records):,} records to {output_path}")
    return output_path


def read_records(path: Path) -> Dict[str, Dict[str, Any]]:
    """Load a record map written by write_records."""
    with open(path, 'rb') as f:
        return orjson.loads(f.read())

"""
Parsing of delimited infobox blocks into canonical settlement records.

Reads the extractor's output line by line:

    ====[START]==== (<id>)   opens record <id> (when none is active)
    | key = value            feeds every field family of the active record
    ====[END]====            normalizes and closes the active record

The result maps each record ID (as a string) to its canonical fields.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from wikisettle.fields import parse_fields
from wikisettle.normalizer import Normalizer
from wikisettle.records import RecordStore, SettlementRecord

logger = logging.getLogger(__name__)

START_LINE = re.compile(r'^====\[START\]====\s\((\d+)\)$')
END_LINE = re.compile(r'^====\[END\]====$')

MISSING_COUNTRY = 'missing country'


@dataclass
class ParseResult:
    """Canonical records of one run plus diagnostics."""

    records: Dict[str, Dict[str, Any]]
    dropped: int = 0
    lines_read: int = 0
    elapsed: float = 0.0


class InfoboxParser:
    """
    Line-driven parser over delimited infobox blocks.

    Usage:
        parser = InfoboxParser()
        for line in lines:
            parser.process_line(line)
        result = parser.finish()
    """

    def __init__(self, normalizer: Optional[Normalizer] = None):
        self.normalizer = normalizer if normalizer is not None else Normalizer()
        self.store = RecordStore()
        self.lines_read = 0
        self.dropped = 0
        self.start_time = time.time()
        self._finished: Optional[ParseResult] = None

    @property
    def active(self) -> Optional[SettlementRecord]:
        return self.store.active

    def process_line(self, line: str) -> None:
        """Feed one line (without trailing newline)."""
        self.lines_read += 1
        self._close_record(line)
        self._open_record(line)

        record = self.store.active
        if record is not None:
            parse_fields(record, line)

    def _open_record(self, line: str) -> None:
        if self.store.active is not None:
            return
        match = START_LINE.match(line)
        if not match:
            return
        block_id = int(match.group(1))
        if block_id != len(self.store):
            logger.debug(f"Block id {block_id} out of sequence (expected {len(self.store)})")
        self.store.open(block_id)

    def _close_record(self, line: str) -> None:
        record = self.store.active
        if record is None or not END_LINE.match(line):
            return
        self.normalizer.normalize(record)
        self.store.close_active()

    def finish(self) -> ParseResult:
        """End of input: drop an unclosed record and collect the results."""
        if self._finished is not None:
            return self._finished

        dropped = self.store.drop_active()
        if dropped is not None:
            self.dropped += 1
            logger.warning(f"Block {dropped.block_id} has no end marker; record dropped")

        records = {str(r.block_id): r.to_dict() for r in self.store.closed()}
        self._finished = ParseResult(
            records=records,
            dropped=self.dropped,
            lines_read=self.lines_read,
            elapsed=time.time() - self.start_time,
        )
        return self._finished

    def parse(self, lines: Iterable[str]) -> ParseResult:
        """Process plain lines and finish."""
        for line in lines:
            self.process_line(line.rstrip('\r\n'))
        return self.finish()

    def parse_stream(self, stream: Iterable[Tuple[str, bool]]) -> ParseResult:
        """Process (line, is_last) pairs, finishing on the last line."""
        for line, is_last in stream:
            self.process_line(line)
            if is_last:
                break
        return self.finish()


def summarize_errors(records: Dict[str, Dict[str, Any]]) -> Dict[str, List[str]]:
    """Map record ID -> failed fields, for records with at least one failure."""
    summary: Dict[str, List[str]] = {}
    for record_id, record in records.items():
        errors = []
        if not record.get('country'):
            errors.append(MISSING_COUNTRY)
        errors.extend(record.get('errors', []))
        if errors:
            summary[record_id] = errors
    return summary


def log_error_summary(records: Dict[str, Dict[str, Any]]) -> Dict[str, List[str]]:
    """Log one line per failing record, or 'no errors found'."""
    summary = summarize_errors(records)
    if not summary:
        logger.info("  -- no errors found.")
    for record_id, errors in summary.items():
        logger.info(f"  -- [{record_id}]: {', '.join(errors)}")
    return summary

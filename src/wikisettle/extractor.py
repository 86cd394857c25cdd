"""
Infobox settlement template extraction.

Scans raw wikitext line by line and cuts out every {{Infobox settlement ...}}
block by tracking "{{" / "}}" counts from the opening line onward. Each block
is classified as included (settlement_type names a capital, city, town or
metropolis) or excluded, and written to the matching stream wrapped in
markers:

    ====[START]==== (0)
    {{Infobox settlement
    | name = Springfield
    ...
    }}
    ====[END]====

Marker numbers count up from 0 separately in each stream.

Malformed templates that never balance are closed early when exactly one
"{{" is unmatched and the line starts with ''' (the bold lead sentence of
the article body). The offending line is replaced by "}}" and the block
number is recorded in the auto-closed list of its stream. A template still
open at end of input is dropped and logged.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from wikisettle.text import decode_entities

logger = logging.getLogger(__name__)

START_MARKER = '====[START]==== ({})'
END_MARKER = '====[END]===='
SYNTHETIC_CLOSE = '}}'
BOLD_LEAD = "'''"

OPENING_PATTERN = re.compile(r'^{{Infobox\s*settlement', re.IGNORECASE)
SETTLEMENT_TYPE_LINE = re.compile(r'\|\s*settlement_type\s*=', re.IGNORECASE)
INCLUDED_TYPE = re.compile(r'capital(?:\scity)?|city|town|metropolis', re.IGNORECASE)


class ExtractorState(Enum):
    IDLE = 'idle'
    IN_TEMPLATE = 'in_template'


@dataclass
class BlockStream:
    """One output stream (included or excluded) of delimited blocks."""

    name: str
    chunks: List[str] = field(default_factory=list)
    count: int = 0
    auto_closed: List[int] = field(default_factory=list)

    def emit(self, lines: List[str]) -> int:
        """Append a delimited block and return its number."""
        number = self.count
        self.chunks.append(START_MARKER.format(number) + '\n')
        self.chunks.extend(line + '\n' for line in lines)
        self.chunks.append(END_MARKER + '\n')
        self.count += 1
        return number

    @property
    def text(self) -> str:
        return ''.join(self.chunks)


@dataclass
class ExtractionResult:
    """Both output streams plus diagnostics for one input."""

    included_text: str
    excluded_text: str
    included_count: int
    excluded_count: int
    included_auto_closed: List[int]
    excluded_auto_closed: List[int]
    unterminated: int = 0
    lines_read: int = 0
    elapsed: float = 0.0

    @property
    def total_count(self) -> int:
        return self.included_count + self.excluded_count

    def summary_lines(self) -> List[str]:
        """Human-readable run report."""
        lines = [
            f'{self.total_count} infoboxes of type "settlement" found.',
            f'{self.included_count} infoboxes included.',
            f'{self.excluded_count} infoboxes excluded.',
        ]
        if self.included_auto_closed:
            ids = ', '.join(str(i) for i in self.included_auto_closed)
            lines.append(f'{len(self.included_auto_closed)} of the included infoboxes were closed automatically: {ids}')
        if self.excluded_auto_closed:
            ids = ', '.join(str(i) for i in self.excluded_auto_closed)
            lines.append(f'{len(self.excluded_auto_closed)} of the excluded infoboxes were closed automatically: {ids}')
        if self.unterminated:
            lines.append(f'{self.unterminated} unterminated infobox(es) dropped at end of input.')
        lines.append(f'execution time: {self.elapsed:.3f}s')
        return lines


class TemplateExtractor:
    """
    Line-driven state machine for Infobox settlement extraction.

    Usage:
        extractor = TemplateExtractor()
        for line in lines:
            extractor.process_line(line)
        result = extractor.finish()

    Or:
        result = TemplateExtractor().extract(lines)
    """

    def __init__(self):
        self.state = ExtractorState.IDLE
        self.included = BlockStream('included')
        self.excluded = BlockStream('excluded')

        self.open_braces = 0
        self.close_braces = 0
        self.include_block = False
        self.block_lines: List[str] = []
        self.block_start_line: Optional[int] = None

        self.lines_read = 0
        self.unterminated = 0
        self.start_time = time.time()
        self._finished: Optional[ExtractionResult] = None

    @property
    def in_template(self) -> bool:
        return self.state is ExtractorState.IN_TEMPLATE

    def process_line(self, raw_line: str) -> None:
        """Feed one line (without trailing newline)."""
        self.lines_read += 1
        line = decode_entities(raw_line)

        if OPENING_PATTERN.match(line):
            if self.in_template:
                logger.debug(
                    f"Line {self.lines_read}: new infobox opened before line "
                    f"{self.block_start_line}'s block closed, restarting"
                )
            self._open_block()

        if not self.in_template:
            return

        self.open_braces += line.count('{{')
        self.close_braces += line.count('}}')
        if SETTLEMENT_TYPE_LINE.search(line):
            self.include_block = bool(INCLUDED_TYPE.search(line))
        self.block_lines.append(line)

        if self.open_braces == self.close_braces:
            self._close_block(recovered=False)
        elif self.open_braces - self.close_braces == 1 and line.startswith(BOLD_LEAD):
            self.block_lines[-1] = SYNTHETIC_CLOSE
            self._close_block(recovered=True)

    def _open_block(self) -> None:
        self.state = ExtractorState.IN_TEMPLATE
        self.open_braces = 0
        self.close_braces = 0
        self.include_block = False
        self.block_lines = []
        self.block_start_line = self.lines_read

    def _close_block(self, recovered: bool) -> None:
        stream = self.included if self.include_block else self.excluded
        if recovered:
            stream.auto_closed.append(stream.count)
            logger.debug(
                f"Auto-closed {stream.name} infobox #{stream.count} "
                f"(opened at line {self.block_start_line})"
            )
        stream.emit(self.block_lines)

        self.state = ExtractorState.IDLE
        self.block_lines = []
        self.block_start_line = None

    def finish(self) -> ExtractionResult:
        """End of input: drop any open block and return the result."""
        if self._finished is not None:
            return self._finished

        if self.in_template:
            self.unterminated += 1
            logger.warning(
                f"Infobox opened at line {self.block_start_line} never closed; "
                f"dropped {len(self.block_lines)} line(s)"
            )
            self.state = ExtractorState.IDLE
            self.block_lines = []

        self._finished = ExtractionResult(
            included_text=self.included.text,
            excluded_text=self.excluded.text,
            included_count=self.included.count,
            excluded_count=self.excluded.count,
            included_auto_closed=list(self.included.auto_closed),
            excluded_auto_closed=list(self.excluded.auto_closed),
            unterminated=self.unterminated,
            lines_read=self.lines_read,
            elapsed=time.time() - self.start_time,
        )
        return self._finished

    def extract(self, lines: Iterable[str]) -> ExtractionResult:
        """Process plain lines and finish."""
        for line in lines:
            self.process_line(line.rstrip('\r\n'))
        return self.finish()

    def extract_stream(self, stream: Iterable[Tuple[str, bool]]) -> ExtractionResult:
        """Process (line, is_last) pairs, finishing on the last line."""
        for line, is_last in stream:
            self.process_line(line)
            if is_last:
                break
        return self.finish()

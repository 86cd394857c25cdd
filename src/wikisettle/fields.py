"""
Raw field extraction from infobox lines.

Every parser takes (record, line) and captures at most one raw key. A key
already captured is never overwritten, so the first occurrence in a block
wins. Each family also has a stop key: once it is captured the family is
not tried again for that record (e.g. no more population lines are read
after population_total). Population, area and density values must be
positive to be captured.

Subdivision names go through an ordered list of named strategies:

    {{flag|France}}                          -> France          (flag_template)
    [[United States]]                        -> United States   (plain_link)
    {{USA}}                                  -> USA             (code_template)
    {{flagicon|USA}}United States            -> USA             (trailing_template_arg)
    {{Flagu|United States|size=23px}}        -> United States   (first_template_arg)
    [[republic of ireland|ireland]]          -> ireland         (piped_link, shorter side)
    United Kingdom<!--the country-->         -> United Kingdom  (bare_text)
"""

import logging
import re
from typing import Callable, List, Optional, Pattern, Tuple, Union

from wikisettle.records import SettlementRecord
from wikisettle.text import strip_accents

logger = logging.getLogger(__name__)

Number = Union[int, float]

# Text run allowed in names and link targets: letters, digits, _, - . ' and spaces
TEXT_RUN = r"[-.'\w\s]+"

# Leader names: words of letters/dots/apostrophes separated by whitespace
PERSON_NAME = r"(?:\w[\w.']*)(?:\s+\w[\w.']*)*"


# =============================================================================
# Line patterns
# =============================================================================

NAME_LINE = re.compile(r'\|\s*((?:official_)?name)\s*=\s*(.*)', re.IGNORECASE)
SETTLEMENT_TYPE_LINE = re.compile(
    r'\|\s*settlement_type\s*=.*?(capital(?:\s+city)?|city|town|metropolis)', re.IGNORECASE
)
SUBDIVISION_TYPE_LINE = re.compile(r'\|\s*subdivision_type\s*=\s*(.*)', re.IGNORECASE)
SUBDIVISION_NAME_LINE = re.compile(r'\|\s*subdivision_name\s*=\s*(.*)', re.IGNORECASE)
LEADER_LINE = re.compile(r'\|\s*(leader_name[1-4]?)\s*=\s*(.*)', re.IGNORECASE)

POPULATION_LINE = re.compile(r'\|\s*(population_(?:total|urban|blank[12]))\s*=\s*(.*)', re.IGNORECASE)
AREA_LINE = re.compile(
    r'\|\s*(area_(?:total|urban|blank[12])_(?:km2|ha|sq_mi|acre))\s*=\s*(.*)', re.IGNORECASE
)
ELEVATION_LINE = re.compile(r'\|\s*(elevation(?:_max|_min)?_(?:m|ft))\s*=\s*(.*)', re.IGNORECASE)
DENSITY_LINE = re.compile(
    r'\|\s*(population_density(?:_urban|_blank[12])?_km2)\s*=\s*(.*)', re.IGNORECASE
)

# =============================================================================
# Value patterns
# =============================================================================

TEMPLATE_LAST_ARG = re.compile(r'\|(' + TEXT_RUN + r')}}')
LEADING_TEXT = re.compile(r'^' + TEXT_RUN)

LINK_DISPLAY = re.compile(r'\[\[[^\]]*\|(\w+(?:\s\w+)*)\]\]')
WORD_RUN = re.compile(r'(\w+(?:\s\w+)*)')

LEADER_VALUE = re.compile(r'(\[\[.+?\]\])|^(' + PERSON_NAME + r')')
LEADER_PIPED_LINK = re.compile(r'\[\[.+?\|(' + PERSON_NAME + r')\]\]')
LEADER_PLAIN_LINK = re.compile(r'\[\[(' + PERSON_NAME + r')\]\]')
LEADER_QUOTES = re.compile(r'["’]')
REJECTED_LEADER = 'mayor'

NUMBER_TOKEN = re.compile(r'(?:^|(?<=\s))([-+]?(?:\d+(?:\.\d+)?|\.\d+))')
AUTO_TOKEN = re.compile(r'\bauto\b', re.IGNORECASE)


# =============================================================================
# Value extraction
# =============================================================================


def extract_name(raw: str) -> str:
    """
    Clean a name value (accents already stripped).

    {{raise|0.2em|Guangzhou}} -> guangzhou
    Springfield<ref>...</ref> -> springfield
    """
    if raw.startswith('{{'):
        match = TEMPLATE_LAST_ARG.search(raw)
        name = match.group(1) if match else None
    else:
        match = LEADING_TEXT.match(raw)
        name = match.group(0) if match else None

    if not name or not name.strip():
        name = raw
    return name.strip().lower()


def extract_subdivision_type(raw: str) -> str:
    """
    [[List of sovereign states|Sovereign state]] -> sovereign state
    [[Country]] -> country
    """
    match = LINK_DISPLAY.search(raw) or WORD_RUN.search(raw)
    value = match.group(1) if match else raw
    return value.lower()


def _first_group(pattern: Pattern) -> Callable[[str], Optional[str]]:
    def strategy(term: str) -> Optional[str]:
        match = pattern.search(term)
        return match.group(1) if match else None
    return strategy


def shorter_link_side(term: str) -> Optional[str]:
    """[[A|B]] -> whichever of A, B is shorter (A on a tie)."""
    match = re.search(r'\[\[(' + TEXT_RUN + r')\|(' + TEXT_RUN + r')\]\]', term)
    if not match:
        return None
    target, display = match.group(1), match.group(2)
    return target if len(target) <= len(display) else display


SubdivisionStrategy = Tuple[str, Callable[[str], Optional[str]]]

SUBDIVISION_NAME_STRATEGIES: List[SubdivisionStrategy] = [
    ('flag_template', _first_group(re.compile(r'{{flag\|(' + TEXT_RUN + r')}}', re.IGNORECASE))),
    ('plain_link', _first_group(re.compile(r'\[\[(' + TEXT_RUN + r')\]\]'))),
    ('code_template', _first_group(re.compile(r'{{(\w{2,3})}}'))),
    ('trailing_template_arg', _first_group(re.compile(r'{{.*\|(' + TEXT_RUN + r')}}'))),
    ('first_template_arg', _first_group(re.compile(r'{{.*\|(' + TEXT_RUN + r')\|.*}}'))),
    ('piped_link', shorter_link_side),
    ('bare_text', _first_group(re.compile(r'(' + TEXT_RUN + r')'))),
]


def extract_subdivision_name(raw: str) -> str:
    """Apply SUBDIVISION_NAME_STRATEGIES in order; keep raw when none matches."""
    for name, strategy in SUBDIVISION_NAME_STRATEGIES:
        result = strategy(raw)
        if result and result.strip():
            logger.debug(f"Subdivision name via {name}: '{raw}' -> '{result.strip()}'")
            return result.strip()
    return raw


def extract_leader(raw: str) -> Optional[str]:
    """
    Pull a person name out of a leader value, or None.

    [[Jane Doe]] -> jane doe
    [[Jane Doe (politician)|Jane Doe]] -> jane doe
    John O'Neil<ref>...</ref> -> john o'neil
    """
    value = LEADER_QUOTES.sub('', strip_accents(raw))
    match = LEADER_VALUE.search(value)
    if not match:
        return None

    name = None
    if match.group(1):
        link = match.group(1)
        link_match = LEADER_PIPED_LINK.search(link) or LEADER_PLAIN_LINK.search(link)
        if link_match:
            name = link_match.group(1)
    if not name:
        name = match.group(2)

    if not name:
        return None
    name = name.lower()
    if REJECTED_LEADER in name:
        return None
    return name


def parse_number(raw: str) -> Optional[Number]:
    """
    First number token of a value, thousands separators removed.

    '1,234,567 (2020)' -> 1234567, '-28.5' -> -28.5, '{{formatnum:5}}' -> None
    """
    match = NUMBER_TOKEN.search(raw.replace(',', ''))
    if not match:
        return None
    token = match.group(1)
    if '.' in token:
        return float(token)
    return int(token)


def parse_density(raw: str) -> Optional[Union[Number, str]]:
    """Like parse_number, but also accepts the literal 'auto'."""
    number = parse_number(raw)
    if number is not None:
        return number
    if AUTO_TOKEN.search(raw):
        return 'auto'
    return None


# =============================================================================
# Line parsers
# =============================================================================


def parse_name(record: SettlementRecord, line: str) -> None:
    if not record.is_unset('name'):
        return
    match = NAME_LINE.search(line)
    if not match:
        return
    key = match.group(1).lower()
    raw = strip_accents(match.group(2)).strip()
    if raw and record.is_unset(key):
        record.capture(key, extract_name(raw))


def parse_settlement_type(record: SettlementRecord, line: str) -> None:
    if not record.is_unset('type'):
        return
    match = SETTLEMENT_TYPE_LINE.search(line)
    if match:
        record.capture('type', ' '.join(match.group(1).lower().split()))


def parse_subdivision_type(record: SettlementRecord, line: str) -> None:
    if not record.is_unset('subdivision_type'):
        return
    match = SUBDIVISION_TYPE_LINE.search(line)
    if match and match.group(1):
        record.capture('subdivision_type', extract_subdivision_type(match.group(1)))


def parse_subdivision_name(record: SettlementRecord, line: str) -> None:
    if not record.is_unset('subdivision_name'):
        return
    match = SUBDIVISION_NAME_LINE.search(line)
    if match and match.group(1):
        record.capture('subdivision_name', extract_subdivision_name(match.group(1)))


def parse_leader(record: SettlementRecord, line: str) -> None:
    if not record.is_unset('leader_name'):
        return
    match = LEADER_LINE.search(line)
    if not match or not match.group(2):
        return
    key = match.group(1).lower()
    if record.is_unset(key):
        record.capture(key, extract_leader(match.group(2)))


def _numeric_parser(
    pattern: Pattern,
    stop_key: str,
    convert: Callable[[str], Optional[Union[Number, str]]],
    positive_only: bool = False,
) -> Callable[[SettlementRecord, str], None]:
    """
    Build a parser for one numeric family.

    With positive_only, zero and negative numbers count as unparsed, so the
    key (and the family's stop key) stays open for a later line.
    """
    def parse(record: SettlementRecord, line: str) -> None:
        if not record.is_unset(stop_key):
            return
        match = pattern.search(line)
        if not match or not match.group(2):
            return
        key = match.group(1).lower()
        if not record.is_unset(key):
            return
        value = convert(match.group(2))
        if positive_only and isinstance(value, (int, float)) and value <= 0:
            return
        record.capture(key, value)
    return parse


parse_population = _numeric_parser(POPULATION_LINE, 'population_total', parse_number, positive_only=True)
parse_area = _numeric_parser(AREA_LINE, 'area_total_km2', parse_number, positive_only=True)
parse_elevation = _numeric_parser(ELEVATION_LINE, 'elevation_m', parse_number)
parse_population_density = _numeric_parser(
    DENSITY_LINE, 'population_density_km2', parse_density, positive_only=True
)

LINE_PARSERS: List[Callable[[SettlementRecord, str], None]] = [
    parse_name,
    parse_settlement_type,
    parse_subdivision_type,
    parse_subdivision_name,
    parse_leader,
    parse_population,
    parse_area,
    parse_elevation,
    parse_population_density,
]


def parse_fields(record: SettlementRecord, line: str) -> None:
    """Run every field family over one line of an active record."""
    for parser in LINE_PARSERS:
        parser(record, line)

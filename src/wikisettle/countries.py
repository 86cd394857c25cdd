"""
Country resolution for infobox subdivision names.

Resolves free text ("USA", "United States", "the Republic of Ireland") to a
canonical "name; code2; code3" string using read-only reference tables.

Reference tables are built once per process, either from the ISO 3166-1 data
shipped with pycountry or from a YAML file:

    countries:
      - name: united states
        alpha_2: us
        alpha_3: usa
      - name: ireland
        alpha_2: ie
        alpha_3: irl
    aliases:
      - name: united states of america
        alpha_3: usa

Aliases are other names of a listed country ("turkey" for "türkiye"). They
resolve to the canonical entry. The pycountry tables add every ISO official
name as an alias, plus the names in data/country_aliases.yaml.

All names and codes are stored lowercase.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pycountry
import yaml

from wikisettle.config import ConfigError

logger = logging.getLogger(__name__)

RESULT_SEPARATOR = '; '

DEFAULT_ALIASES_FILE = Path(__file__).parent / 'data' / 'country_aliases.yaml'


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Country reference file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def _read_rows(data: Any, path: Path, key: str, keys: Tuple[str, ...], required: bool) -> List[Tuple[str, ...]]:
    """Pull a list of mappings out of data[key] as tuples of the given keys."""
    rows = data.get(key) if isinstance(data, dict) else None
    if rows is None and not required:
        return []
    if not isinstance(rows, list):
        raise ConfigError(f"{path}: expected a top-level '{key}' list")

    out = []
    for i, row in enumerate(rows):
        try:
            out.append(tuple(row[k] for k in keys))
        except (KeyError, TypeError) as e:
            raise ConfigError(f"{path}: {key} #{i} needs {', '.join(keys)}") from e
    return out


def load_aliases(path: Path) -> List[Tuple[str, str]]:
    """Read (alias, alpha_3) pairs from a YAML file with an 'aliases' list."""
    return _read_rows(_read_yaml(path), path, 'aliases', ('name', 'alpha_3'), required=True)


@dataclass(frozen=True)
class CountryTables:
    """Immutable country reference tables shared by all resolution calls."""

    names: Tuple[str, ...]
    name_set: frozenset = field(repr=False)
    code2_to_name: Mapping[str, str] = field(repr=False)
    code3_to_name: Mapping[str, str] = field(repr=False)
    name_to_codes: Mapping[str, Tuple[str, ...]] = field(repr=False)
    aliases: Mapping[str, str] = field(repr=False)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Tuple[str, str, str]],
        aliases: Iterable[Tuple[str, str]] = (),
    ) -> 'CountryTables':
        """
        Build tables from (name, alpha_2, alpha_3) triples, keeping file order.

        aliases are (alias, alpha_3) pairs. An alias that repeats a canonical
        name or points at an unknown code is skipped.
        """
        names: List[str] = []
        code2: Dict[str, str] = {}
        code3: Dict[str, str] = {}
        reverse: Dict[str, Tuple[str, ...]] = {}

        for name, alpha_2, alpha_3 in entries:
            name = name.strip().lower()
            alpha_2 = alpha_2.strip().lower()
            alpha_3 = alpha_3.strip().lower()
            if name in reverse:
                logger.debug(f"Duplicate country name ignored: {name}")
                continue
            names.append(name)
            code2[alpha_2] = name
            code3[alpha_3] = name
            reverse[name] = (alpha_2, alpha_3)

        alias_map: Dict[str, str] = {}
        for alias, alpha_3 in aliases:
            alias = alias.strip().lower()
            target = code3.get(alpha_3.strip().lower())
            if target is None:
                logger.debug(f"Alias '{alias}' points at unknown code {alpha_3}; ignored")
                continue
            if alias in reverse or alias in alias_map:
                continue
            alias_map[alias] = target

        return cls(
            names=tuple(names),
            name_set=frozenset(names),
            code2_to_name=MappingProxyType(code2),
            code3_to_name=MappingProxyType(code3),
            name_to_codes=MappingProxyType(reverse),
            aliases=MappingProxyType(alias_map),
        )

    @classmethod
    def from_pycountry(cls, aliases_file: Optional[Path] = DEFAULT_ALIASES_FILE) -> 'CountryTables':
        """
        Build tables from pycountry's ISO 3166-1 list (common names preferred).

        ISO and official names become aliases, followed by the everyday
        English names in aliases_file.
        """
        entries = []
        aliases = []
        for country in pycountry.countries:
            name = getattr(country, 'common_name', None) or country.name
            entries.append((name, country.alpha_2, country.alpha_3))
            for other in (country.name, getattr(country, 'official_name', None)):
                if other and other != name:
                    aliases.append((other, country.alpha_3))

        if aliases_file is not None:
            aliases.extend(load_aliases(aliases_file))
        return cls.from_entries(entries, aliases)

    @classmethod
    def from_yaml(cls, path: Path) -> 'CountryTables':
        """
        Build tables from a YAML reference file.

        Raises:
            FileNotFoundError: path does not exist
            ConfigError: the file is not a 'countries' list of name/alpha_2/alpha_3
                mappings, or its optional 'aliases' list lacks name/alpha_3
        """
        data = _read_yaml(path)
        entries = _read_rows(data, path, 'countries', ('name', 'alpha_2', 'alpha_3'), required=True)
        aliases = _read_rows(data, path, 'aliases', ('name', 'alpha_3'), required=False)

        logger.info(f"Loaded {len(entries)} countries and {len(aliases)} aliases from {path}")
        return cls.from_entries(entries, aliases)


_default_tables: Optional[CountryTables] = None


def get_default_tables() -> CountryTables:
    """Get cached pycountry-based tables."""
    global _default_tables
    if _default_tables is None:
        _default_tables = CountryTables.from_pycountry()
    return _default_tables


class CountryResolver:
    """
    Resolves a free-text country term against CountryTables.

    Lookup order: code (terms of 3 chars or fewer), exact name or alias, then
    a linear substring scan over names and then aliases. The first match wins
    at every stage.
    """

    def __init__(self, tables: Optional[CountryTables] = None):
        self.tables = tables if tables is not None else get_default_tables()

    def format_result(self, country_name: str) -> str:
        codes = self.tables.name_to_codes.get(country_name, ())
        return RESULT_SEPARATOR.join([country_name, *codes])

    def country_from_code(self, code: Optional[str]) -> Optional[str]:
        """Resolve a 2- or 3-letter country code."""
        if not code or not isinstance(code, str):
            return None
        code = code.strip().lower()

        if len(code) == 2 and code in self.tables.code2_to_name:
            return self.format_result(self.tables.code2_to_name[code])

        if len(code) == 3 and code in self.tables.code3_to_name:
            return self.format_result(self.tables.code3_to_name[code])

        return None

    def search_country(self, term: str) -> Optional[str]:
        """Return the first canonical name contained in term, or containing it."""
        for country_name in self.tables.names:
            if country_name in term or term in country_name:
                logger.debug(f"Substring match: '{term}' -> '{country_name}'")
                return self.format_result(country_name)

        for alias, country_name in self.tables.aliases.items():
            if alias in term or term in alias:
                logger.debug(f"Substring match on alias: '{term}' -> '{alias}' ('{country_name}')")
                return self.format_result(country_name)

        logger.debug(f"No country found for '{term}'")
        return None

    def validate_country(self, term: Optional[str]) -> Optional[str]:
        """
        Resolve term to "name; code2; code3".

        Returns None when no stage matches; the caller keeps the raw term.
        """
        if not term or not isinstance(term, str):
            return None
        term = term.strip().lower()
        if not term:
            return None

        if len(term) <= 3:
            return self.country_from_code(term)

        if term in self.tables.name_set:
            return self.format_result(term)

        if term in self.tables.aliases:
            return self.format_result(self.tables.aliases[term])

        return self.search_country(term)

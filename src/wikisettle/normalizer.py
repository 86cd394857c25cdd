"""
Normalization of a record's raw fields into canonical values.

Runs once per record, when its block closes. Steps run in a fixed order and
each one deletes every raw key of its family:

    1. country            <- subdivision_name (resolved, or raw + error)
    2. name               <- name, else official_name
    3. population         <- population_{total,urban,blank1,blank2}, first present
    4. area_km2           <- area_{total,urban,blank1,blank2}_{km2,sq_mi,ha,acre}, first present
    5. elevation_m        <- elevation_m, elevation_ft, else max/min average
    6. population_density <- population_density_{blank2,blank1,urban}_km2, _km2,
                             last present; else population / area_km2
    7. leader             <- leader_name{4,3,2,1,}, last one not naming a mayor

A family that yields nothing appends its canonical field name to the record's
errors.
"""

import logging
from itertools import product
from typing import List, Optional, Tuple

from wikisettle.countries import CountryResolver
from wikisettle.fields import REJECTED_LEADER
from wikisettle.records import SettlementRecord
from wikisettle.units import CONVERSION_FAILED, convert_to_km2, convert_to_m

logger = logging.getLogger(__name__)

FAMILY_TYPES = ('total', 'urban', 'blank1', 'blank2')

POPULATION_KEYS: List[Tuple[str, str]] = [(f'population_{t}', t) for t in FAMILY_TYPES]

# Field suffix -> converter unit ('km2' needs no conversion)
AREA_UNITS = (('km2', 'km2'), ('sq_mi', 'sq-mi'), ('ha', 'ha'), ('acre', 'acre'))

AREA_KEYS: List[Tuple[str, str, str]] = [
    (f'area_{t}_{suffix}', t, unit)
    for t, (suffix, unit) in product(FAMILY_TYPES, AREA_UNITS)
]

ELEVATION_VARIANT_KEYS = (
    'elevation_ft',
    'elevation_max_m',
    'elevation_max_ft',
    'elevation_min_m',
    'elevation_min_ft',
)

DENSITY_KEYS = (
    'population_density_blank2_km2',
    'population_density_blank1_km2',
    'population_density_urban_km2',
    'population_density_km2',
)

LEADER_KEYS = ('leader_name4', 'leader_name3', 'leader_name2', 'leader_name1', 'leader_name')


def _pair_average(first: float, second: float) -> float:
    """Average of two values where a zero side takes the other side's value."""
    first = first or second
    second = second or first
    return (first + second) / 2


class Normalizer:
    """Collapses raw field variants of a record into canonical fields."""

    def __init__(self, resolver: Optional[CountryResolver] = None):
        self.resolver = resolver if resolver is not None else CountryResolver()

    def normalize(self, record: SettlementRecord) -> SettlementRecord:
        """Run all steps in order on an active record."""
        self.normalize_country(record)

        self.normalize_name(record)
        if not record.get('name'):
            record.add_error('name')

        self.normalize_population(record)
        if not record.get('population'):
            record.add_error('population')

        self.normalize_area(record)
        if not record.get('area_km2'):
            record.add_error('area_km2')

        self.normalize_elevation(record)
        if record.get('elevation_m') is None:
            record.add_error('elevation_m')

        self.normalize_population_density(record)
        if not record.get('population_density'):
            record.add_error('population_density')

        self.normalize_leader(record)
        if not record.get('leader'):
            record.add_error('leader')

        return record

    def normalize_country(self, record: SettlementRecord) -> None:
        raw = record.get('subdivision_name')
        country = self.resolver.validate_country(raw)

        if country:
            record.set_final('country', country)
        elif raw:
            record.set_final('country', raw)
            record.add_error('unrecognized country')
            logger.debug(f"Record {record.block_id}: unrecognized country '{raw}'")

        record.discard('subdivision_name')

    def normalize_name(self, record: SettlementRecord) -> None:
        if not record.get('name') and record.get('official_name'):
            record.set_final('name', record.get('official_name'))
        elif record.get('name'):
            record.set_final('name', record.get('name'))
        record.discard('official_name')

    def normalize_population(self, record: SettlementRecord) -> None:
        for key, family in POPULATION_KEYS:
            value = record.get(key)
            if value and value > 0:
                record.set_final('population', value)
                record.set_final('population_type', family)
                break
        record.discard(*(key for key, _ in POPULATION_KEYS))

    def normalize_area(self, record: SettlementRecord) -> None:
        for key, family, unit in AREA_KEYS:
            value = record.get(key)
            if not value or value <= 0:
                continue
            area = value if unit == 'km2' else convert_to_km2(unit, value)
            if area == CONVERSION_FAILED:
                continue
            record.set_final('area_km2', area)
            record.set_final('area_type', family)
            break
        record.discard(*(key for key, _, _ in AREA_KEYS))

    def normalize_elevation(self, record: SettlementRecord) -> None:
        elevation = record.get('elevation_m')

        if elevation is None and record.get('elevation_ft') is not None:
            converted = convert_to_m('ft', record.get('elevation_ft'))
            if converted != CONVERSION_FAILED:
                elevation = converted

        if elevation is None:
            avg_m = _pair_average(record.get('elevation_max_m', 0), record.get('elevation_min_m', 0))
            avg_ft = _pair_average(record.get('elevation_max_ft', 0), record.get('elevation_min_ft', 0))
            if avg_m > 0:
                elevation = round(avg_m, 2)
            elif avg_ft:
                converted = convert_to_m('ft', avg_ft)
                if converted != CONVERSION_FAILED:
                    elevation = converted

        if elevation is not None:
            record.set_final('elevation_m', round(elevation, 2))
        record.discard(*ELEVATION_VARIANT_KEYS)

    def normalize_population_density(self, record: SettlementRecord) -> None:
        density = None
        for key in DENSITY_KEYS:
            value = record.get(key)
            if value:
                density = value

        if not density:
            population = record.get('population')
            area = record.get('area_km2')
            same_family = record.get('population_type') == record.get('area_type')
            if population and area and same_family:
                density = round(population / area, 2)

        if density:
            record.set_final('population_density', density)
        record.discard(*DENSITY_KEYS)

    def normalize_leader(self, record: SettlementRecord) -> None:
        leader = None
        for key in LEADER_KEYS:
            value = record.get(key)
            if isinstance(value, str) and value and REJECTED_LEADER not in value:
                leader = value
        if leader:
            record.set_final('leader', leader)
        record.discard(*LEADER_KEYS)

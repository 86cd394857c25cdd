"""
Unit conversion for infobox measurements.

Areas are normalized to km2 and lengths to meters. Both converters return
CONVERSION_FAILED (-1) instead of raising when the unit is unknown or the
value is empty or zero.
"""

from typing import Union

Number = Union[int, float]

CONVERSION_FAILED = -1

TO_KM2 = {
    'sq-mi': 2.58998811,
    'ha': 0.01,
    'acre': 0.00404685642,
}

TO_M = {
    'ft': 0.3048,
}


def _convert(factors: dict, unit: str, value: Number) -> Number:
    if unit not in factors or not value:
        return CONVERSION_FAILED
    return round(value * factors[unit], 2)


def convert_to_km2(unit: str, value: Number) -> Number:
    """Convert an area in sq-mi, ha or acre to km2 (2 decimals)."""
    return _convert(TO_KM2, unit, value)


def convert_to_m(unit: str, value: Number) -> Number:
    """Convert a length in ft to meters (2 decimals)."""
    return _convert(TO_M, unit, value)

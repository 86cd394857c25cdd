"""Pytest configuration and shared fixtures."""
import pytest
import tempfile
from pathlib import Path

from wikisettle.countries import CountryResolver, CountryTables
from wikisettle.normalizer import Normalizer


SAMPLE_COUNTRIES = [
    ("United States", "US", "USA"),
    ("France", "FR", "FRA"),
    ("China", "CN", "CHN"),
    ("Ireland", "IE", "IRL"),
    ("United Kingdom", "GB", "GBR"),
    ("Germany", "DE", "DEU"),
]

COUNTRIES_YAML = """\
countries:
  - name: United States
    alpha_2: US
    alpha_3: USA
  - name: France
    alpha_2: FR
    alpha_3: FRA
  - name: Ireland
    alpha_2: IE
    alpha_3: IRL
"""

SPRINGFIELD_BLOCK = """\
====[START]==== (0)
{{Infobox settlement
| name = Springfield
| settlement_type = City
| population_total = 1,000
| area_total_km2 = 5
| elevation_m = 120
}}
====[END]====
"""

RAW_DUMP = """\
'''Paris''' is the capital of France.
{{Infobox settlement
| name = Paris
| settlement_type = [[Capital city]]
| subdivision_type = [[List of sovereign states|Country]]
| subdivision_name = {{flag|France}}
| leader_title = [[Mayor of Paris|Mayor]]
| leader_name = [[Anne Hidalgo]]
| area_total_km2 = 105.4
| population_total = 2,165,423
| population_density_km2 = auto
| elevation_m = 35
}}
Some article text.
{{Infobox settlement
| name = Little Hamlet
| settlement_type = Village
| population_total = 40
}}
{{Infobox settlement
| official_name = Cork
| settlement_type = City
| subdivision_name = [[Republic of Ireland|Ireland]]
| population_urban = 210,000
| area_urban_sq_mi = 72
| elevation_ft = 100
| leader_name1 = John Smith
| image = {{Photo|cork.jpg}}
'''Cork''' is a city in Ireland.
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def country_tables():
    """Small deterministic country reference tables."""
    return CountryTables.from_entries(SAMPLE_COUNTRIES)


@pytest.fixture
def resolver(country_tables):
    return CountryResolver(country_tables)


@pytest.fixture
def normalizer(resolver):
    return Normalizer(resolver)


@pytest.fixture
def countries_yaml(temp_dir):
    """YAML country reference file."""
    path = temp_dir / "countries.yaml"
    path.write_text(COUNTRIES_YAML, encoding="utf-8")
    return path


@pytest.fixture
def springfield_block():
    return SPRINGFIELD_BLOCK


@pytest.fixture
def raw_dump():
    return RAW_DUMP

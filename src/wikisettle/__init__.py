"""
wikisettle - settlement records from Infobox settlement templates.

Pipeline:
    raw wikitext -> extractor (delimited blocks) -> parser (raw fields)
                 -> normalizer (canonical record) -> JSON output

Modules:
    extractor: Brace-balanced template extraction with inclusion filtering
    fields: Per-family regex extraction of raw infobox fields
    normalizer: Collapse of field variants into canonical values
    parser: Line-driven parsing of delimited blocks into records
    countries: Country name/code resolution
    units: Area and length unit conversion
"""

__version__ = "0.1.0"

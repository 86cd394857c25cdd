"""
Command-line interface entry points for wikisettle.

Entry points:
- wsextract: Cut Infobox settlement blocks out of raw dump files
- wsparse: Parse extracted blocks into canonical settlement records
"""

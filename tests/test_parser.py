"""Tests for parsing delimited blocks into canonical records."""
import logging

import pytest

from wikisettle.extractor import TemplateExtractor
from wikisettle.parser import InfoboxParser, log_error_summary, summarize_errors


@pytest.fixture
def parser(normalizer):
    return InfoboxParser(normalizer)


@pytest.fixture
def extracted(raw_dump):
    return TemplateExtractor().extract(raw_dump.splitlines())


# =============================================================================
# Single block
# =============================================================================


class TestSingleBlock:
    """One START/END delimited block."""

    def test_springfield(self, parser, springfield_block):
        result = parser.parse(springfield_block.splitlines())

        assert result.records == {
            "0": {
                "name": "springfield",
                "type": "city",
                "population": 1000,
                "population_type": "total",
                "population_density": 200.0,
                "area_km2": 5,
                "area_type": "total",
                "elevation_m": 120,
                "errors": ["leader"],
            }
        }
        assert result.dropped == 0

    def test_output_key_order(self, parser, springfield_block):
        record = parser.parse(springfield_block.splitlines()).records["0"]
        assert list(record) == [
            "name",
            "type",
            "population",
            "population_type",
            "population_density",
            "area_km2",
            "area_type",
            "elevation_m",
            "errors",
        ]

    def test_lines_outside_blocks_ignored(self, parser):
        lines = [
            "| name = Outside",
            "====[START]==== (0)",
            "| name = Inside",
            "====[END]====",
            "| name = After",
        ]
        result = parser.parse(lines)
        assert result.records["0"]["name"] == "inside"

    def test_start_while_active_is_ignored(self, parser):
        lines = [
            "====[START]==== (0)",
            "| name = First",
            "====[START]==== (1)",
            "| population_total = 5",
            "====[END]====",
        ]
        result = parser.parse(lines)
        assert list(result.records) == ["0"]
        assert result.records["0"]["population"] == 5

    def test_block_ids_come_from_markers(self, parser):
        lines = ["====[START]==== (7)", "| name = Seven", "====[END]===="]
        result = parser.parse(lines)
        assert list(result.records) == ["7"]

    def test_records_are_closed(self, parser, springfield_block):
        parser.parse(springfield_block.splitlines())
        assert all(not record.is_active for record in parser.store)


# =============================================================================
# End of input
# =============================================================================


class TestEndOfInput:
    """Blocks without an END marker."""

    def test_unclosed_record_dropped(self, parser, caplog):
        lines = [
            "====[START]==== (0)",
            "| name = Done",
            "====[END]====",
            "====[START]==== (1)",
            "| name = Cut off",
        ]
        with caplog.at_level(logging.WARNING, logger="wikisettle.parser"):
            result = parser.parse(lines)

        assert list(result.records) == ["0"]
        assert result.dropped == 1
        assert "Block 1 has no end marker" in caplog.text

    def test_parse_stream_stops_at_last_line(self, parser, springfield_block):
        lines = springfield_block.splitlines()
        pairs = [(line, i == len(lines) - 1) for i, line in enumerate(lines)]
        pairs.append(("====[START]==== (1)", False))

        result = parser.parse_stream(pairs)
        assert list(result.records) == ["0"]
        assert result.dropped == 0
        assert result.lines_read == len(lines)

    def test_empty_input(self, parser):
        result = parser.parse([])
        assert result.records == {}


# =============================================================================
# Extractor output end to end
# =============================================================================


class TestExtractedDump:
    """Raw dump -> extractor -> parser."""

    def test_included_records(self, parser, extracted):
        records = parser.parse(extracted.included_text.splitlines()).records

        assert records["0"] == {
            "name": "paris",
            "type": "capital city",
            "subdivision_type": "country",
            "country": "france; fr; fra",
            "population": 2165423,
            "population_type": "total",
            "population_density": "auto",
            "area_km2": 105.4,
            "area_type": "total",
            "elevation_m": 35,
            "leader": "anne hidalgo",
            "errors": [],
        }

    def test_auto_closed_record(self, parser, extracted):
        cork = parser.parse(extracted.included_text.splitlines()).records["1"]

        assert cork["name"] == "cork"
        assert cork["type"] == "city"
        assert cork["country"] == "ireland; ie; irl"
        assert cork["population"] == 210000
        assert cork["population_type"] == "urban"
        assert cork["area_km2"] == 186.48
        assert cork["area_type"] == "urban"
        assert cork["population_density"] == round(210000 / 186.48, 2)
        assert cork["elevation_m"] == 30.48
        assert cork["leader"] == "john smith"
        assert cork["errors"] == []

    def test_excluded_records(self, parser, extracted):
        hamlet = parser.parse(extracted.excluded_text.splitlines()).records["0"]

        assert hamlet["name"] == "little hamlet"
        assert "type" not in hamlet
        assert hamlet["population"] == 40
        assert hamlet["errors"] == ["area_km2", "elevation_m", "population_density", "leader"]


# =============================================================================
# Error summary
# =============================================================================


class TestErrorSummary:
    """Per-record failure report."""

    def test_missing_country_added(self, parser, springfield_block):
        records = parser.parse(springfield_block.splitlines()).records
        assert summarize_errors(records) == {"0": ["missing country", "leader"]}

    def test_clean_records_left_out(self):
        records = {
            "0": {"country": "france; fr; fra", "errors": []},
            "1": {"errors": ["name"]},
        }
        assert summarize_errors(records) == {"1": ["missing country", "name"]}

    def test_log_lines(self, caplog):
        records = {"3": {"errors": ["leader"]}}
        with caplog.at_level(logging.INFO, logger="wikisettle.parser"):
            log_error_summary(records)
        assert "  -- [3]: missing country, leader" in caplog.text

    def test_no_errors(self, caplog):
        records = {"0": {"country": "france; fr; fra", "errors": []}}
        with caplog.at_level(logging.INFO, logger="wikisettle.parser"):
            summary = log_error_summary(records)
        assert summary == {}
        assert "  -- no errors found." in caplog.text

"""Tests for Infobox settlement template extraction."""
import logging

import pytest

from wikisettle.extractor import END_MARKER, ExtractorState, TemplateExtractor


def extract(text):
    return TemplateExtractor().extract(text.splitlines())


def blocks(stream_text):
    """Split a delimited stream into lists of inner lines."""
    result = []
    current = None
    for line in stream_text.splitlines():
        if line.startswith("====[START]===="):
            current = []
        elif line == END_MARKER:
            result.append(current)
            current = None
        elif current is not None:
            current.append(line)
    return result


class TestBraceBalance:
    """Closing on balanced brace counts."""

    def test_balanced_template_closes(self):
        """3 '{{' and 3 '}}' across the lines close the block normally."""
        text = "\n".join([
            "{{Infobox settlement",
            "| settlement_type = City",
            "| leader_name = {{nowrap|Jane Doe}}",
            "| population_total = {{formatnum:1000}}",
            "}}",
            "Article text {{cite}} after",
        ])
        result = extract(text)

        assert result.included_count == 1
        assert result.included_auto_closed == []
        assert blocks(result.included_text) == [text.splitlines()[:5]]

    def test_single_line_template(self):
        result = extract("{{Infobox settlement|name=X|settlement_type=town}}")
        assert result.included_count == 1

    def test_text_outside_templates_ignored(self):
        result = extract("{{Infobox person\n| name = Bob\n}}\nplain text")
        assert result.total_count == 0
        assert result.included_text == ""
        assert result.excluded_text == ""

    def test_opening_is_case_insensitive(self):
        result = extract("{{infobox Settlement\n| settlement_type = Town\n}}")
        assert result.included_count == 1

    def test_markers_and_counters(self):
        text = "\n".join([
            "{{Infobox settlement", "| settlement_type = City", "}}",
            "{{Infobox settlement", "| settlement_type = Town", "}}",
        ])
        result = extract(text)
        lines = result.included_text.splitlines()

        assert lines[0] == "====[START]==== (0)"
        assert lines[4] == "====[END]===="
        assert lines[5] == "====[START]==== (1)"
        assert result.included_text.endswith("====[END]====\n")


class TestInclusion:
    """Classification by settlement_type."""

    @pytest.mark.parametrize(
        "settlement_type",
        ["City", "[[Town]]", "Capital", "capital city", "Metropolis"],
    )
    def test_included_types(self, settlement_type):
        result = extract(f"{{{{Infobox settlement\n| settlement_type = {settlement_type}\n}}}}")
        assert result.included_count == 1
        assert result.excluded_count == 0

    @pytest.mark.parametrize("settlement_type", ["Village", "Hamlet", "[[Municipality]]"])
    def test_excluded_types(self, settlement_type):
        result = extract(f"{{{{Infobox settlement\n| settlement_type = {settlement_type}\n}}}}")
        assert result.included_count == 0
        assert result.excluded_count == 1

    def test_missing_settlement_type_is_excluded(self):
        result = extract("{{Infobox settlement\n| name = Nowhere\n}}")
        assert result.excluded_count == 1

    def test_latest_settlement_type_wins(self):
        text = "{{Infobox settlement\n| settlement_type = City\n| settlement_type = Village\n}}"
        result = extract(text)
        assert result.excluded_count == 1

    def test_streams_count_separately(self, raw_dump):
        result = extract(raw_dump)
        assert result.included_count == 2
        assert result.excluded_count == 1
        assert result.excluded_text.startswith("====[START]==== (0)\n")


class TestRecovery:
    """Closing malformed templates at the article's bold lead."""

    def test_bold_lead_closes_unbalanced_template(self):
        text = "\n".join([
            "{{Infobox settlement",
            "| settlement_type = Town",
            "| population_total = {{formatnum:5}}",
            "'''Foo''' is a town.",
        ])
        result = extract(text)

        assert result.included_count == 1
        assert result.included_auto_closed == [0]
        assert blocks(result.included_text) == [[
            "{{Infobox settlement",
            "| settlement_type = Town",
            "| population_total = {{formatnum:5}}",
            "}}",
        ]]

    def test_excluded_auto_closed_list(self):
        text = "{{Infobox settlement\n| settlement_type = Village\n'''Foo''' is a village."
        result = extract(text)
        assert result.excluded_auto_closed == [0]
        assert result.included_auto_closed == []

    def test_recovery_needs_exactly_one_open_brace(self):
        text = "\n".join([
            "{{Infobox settlement",
            "| image = {{Photo|x.jpg",
            "'''Foo''' is a town.",
            "}}",
            "}}",
        ])
        result = extract(text)
        assert result.excluded_auto_closed == []
        assert result.excluded_count == 1
        assert blocks(result.excluded_text)[0][-1] == "}}"
        assert len(blocks(result.excluded_text)[0]) == 5

    def test_auto_closed_ids_use_stream_counter(self, raw_dump):
        result = extract(raw_dump)
        assert result.included_auto_closed == [1]


class TestEndOfInput:
    """Blocks that never close."""

    def test_unterminated_block_dropped_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="wikisettle.extractor"):
            result = extract("{{Infobox settlement\n| settlement_type = City\n| name = X")

        assert result.total_count == 0
        assert result.unterminated == 1
        assert "never closed" in caplog.text

    def test_new_opening_restarts_block(self):
        text = "\n".join([
            "{{Infobox settlement",
            "| settlement_type = City",
            "{{Infobox settlement",
            "| settlement_type = Village",
            "}}",
        ])
        result = extract(text)
        assert result.included_count == 0
        assert result.excluded_count == 1
        assert blocks(result.excluded_text)[0][0] == "{{Infobox settlement"
        assert len(blocks(result.excluded_text)[0]) == 3

    def test_finish_is_idempotent(self):
        extractor = TemplateExtractor()
        extractor.process_line("{{Infobox settlement")
        first = extractor.finish()
        assert extractor.finish() is first
        assert extractor.state is ExtractorState.IDLE


class TestLineHandling:
    """Entity decoding and stream input."""

    def test_html_entities_decoded(self):
        text = "{{Infobox settlement\n| name = Saint Louis &amp; Co\n| settlement_type = City\n}}"
        result = extract(text)
        assert "| name = Saint Louis & Co" in result.included_text

    def test_encoded_braces_are_counted(self):
        text = "{{Infobox settlement\n| settlement_type = City\n&#125;&#125;"
        result = extract(text)
        assert result.included_count == 1

    def test_extract_stream_stops_at_last_line(self):
        pairs = [
            ("{{Infobox settlement", False),
            ("| settlement_type = City", False),
            ("}}", True),
            ("{{Infobox settlement", False),
        ]
        result = TemplateExtractor().extract_stream(pairs)
        assert result.included_count == 1
        assert result.unterminated == 0
        assert result.lines_read == 3

    def test_summary_lines(self, raw_dump):
        summary = extract(raw_dump).summary_lines()
        assert summary[0] == '3 infoboxes of type "settlement" found.'
        assert "1 of the included infoboxes were closed automatically: 1" in summary

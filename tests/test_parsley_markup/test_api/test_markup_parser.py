"""Tests for the public parse/render API.

Covers the module-level functions and the reusable MarkupParser class.
"""

import logging

import pytest

from parsley_markup.api import MarkupParser, parse_string, render
from parsley_markup.shared import (
    DEFAULT_HEADER,
    MarkupConfig,
    MismatchedTagError,
    ParserConfig,
    SerializerConfig,
    StrayContentError,
    UnterminatedTagError,
)
from parsley_markup.tree import Document


class TestSimpleFunctions:
    """Test Level 1: module-level parse_string and render."""

    def test_parse_string_basic(self) -> None:
        """Test parsing the shop document."""
        document = parse_string('<shop><item price="4.29">Cone</item></shop>')

        assert isinstance(document, Document)
        assert document.root.tag == "shop"
        items = document.get_elements_by_tag_name("item")
        assert len(items) == 1
        assert items[0].get_attr("price") == "4.29"
        assert items[0].data == "Cone"
        assert document.performance.processing_time_ms >= 0.0

    def test_parse_string_correlation_id(self) -> None:
        """Test the correlation ID reaches the document."""
        document = parse_string("<a/>", correlation_id="req-7")
        assert document.correlation_id == "req-7"

        from_config = parse_string("<a/>", ParserConfig(correlation_id="cfg-1"))
        assert from_config.correlation_id == "cfg-1"

    def test_parse_string_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test failures are logged and re-raised."""
        with caplog.at_level(logging.ERROR, logger="parsley_markup"):
            with pytest.raises(MismatchedTagError):
                parse_string("<a><b></c></a>")

        record = caplog.records[-1]
        assert record.getMessage() == "String parse failed"
        assert record.error_type == "MismatchedTagError"
        assert record.position["line"] == 1

    def test_parse_string_completion_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test successful parses log element counts."""
        with caplog.at_level(logging.INFO, logger="parsley_markup"):
            parse_string("<a><b/></a>")

        completed = [r for r in caplog.records if r.getMessage() == "String parse completed"]
        assert len(completed) == 1
        assert completed[0].element_count == 2
        assert completed[0].component == "parse_string"

    def test_render_node_and_document(self) -> None:
        """Test render accepts nodes and documents."""
        document = parse_string('<?xml version="1.0"?><a><b/></a>')

        assert render(document.root) == "<a>\n  <b/>\n</a>"
        assert render(document, include_header=True) == '<?xml version="1.0"?>\n<a>\n  <b/>\n</a>'

    def test_render_with_config(self) -> None:
        """Test the serializer configuration is honoured."""
        document = parse_string("<a><b/></a>")
        config = SerializerConfig(indent="", newline="", include_header=True)
        assert render(document.root, config=config) == DEFAULT_HEADER + "<a><b/></a>"

    def test_render_dispose(self) -> None:
        """Test disposing a document through render."""
        document = parse_string("<a><b/></a>")
        render(document, dispose=True)
        assert document.root is None


class TestMarkupParser:
    """Test Level 2: the configured MarkupParser."""

    def test_default_configuration(self) -> None:
        """Test defaults and initial statistics."""
        parser = MarkupParser()

        assert parser.config.name == "default"
        assert parser.statistics == {
            "total_parses": 0,
            "successful_parses": 0,
            "failed_parses": 0,
            "success_rate": 0.0,
            "total_renders": 0,
            "total_processing_time_ms": 0.0,
            "correlation_id": None,
        }

    def test_parse_and_render(self) -> None:
        """Test a parse/render cycle with the compact preset."""
        parser = MarkupParser(MarkupConfig.compact())
        document = parser.parse("<a> <b/> </a>")
        assert parser.render(document) == "<a><b/></a>"
        assert parser.render(document.root) == "<a><b/></a>"

    def test_statistics(self) -> None:
        """Test counters across successes and failures."""
        parser = MarkupParser(correlation_id="stats")
        parser.parse("<a/>")
        parser.parse("<a><b/></a>")
        with pytest.raises(UnterminatedTagError):
            parser.parse("<a>")
        parser.render(parser.parse("<c/>"))

        stats = parser.statistics
        assert stats["total_parses"] == 4
        assert stats["successful_parses"] == 3
        assert stats["failed_parses"] == 1
        assert stats["success_rate"] == 0.75
        assert stats["total_renders"] == 1
        assert stats["correlation_id"] == "stats"
        assert stats["total_processing_time_ms"] >= 0.0

    def test_reset_statistics(self) -> None:
        """Test counters return to zero."""
        parser = MarkupParser()
        parser.parse("<a/>")
        parser.reset_statistics()
        assert parser.statistics["total_parses"] == 0
        assert parser.statistics["total_renders"] == 0

    def test_reconfigure(self) -> None:
        """Test a new configuration applies to subsequent calls."""
        parser = MarkupParser()
        assert parser.parse("<a/>tail").root.tag == "a"

        parser.reconfigure(MarkupConfig.strict())
        assert parser.config.name == "strict"
        with pytest.raises(StrayContentError):
            parser.parse("<a/>tail")

    def test_override_configuration(self) -> None:
        """Test overrides flow into the components."""
        parser = MarkupParser(MarkupConfig().override(serializer__indent="\t"))
        document = parser.parse("<a><b/></a>")
        assert parser.render(document) == "<a>\n\t<b/>\n</a>"

"""Programmatic surface: parse text into a tree, render a tree into text.

Reading and writing files is left to the caller; this module only deals
with complete in-memory buffers.
"""

import time
from typing import Any, Dict, Optional, Union

from parsley_markup.serialization import Serializer
from parsley_markup.shared import (
    MarkupConfig,
    ParseError,
    ParserConfig,
    SerializerConfig,
    get_logger,
)
from parsley_markup.tokenization import MarkupTokenizer
from parsley_markup.tree import Document, Node, TreeBuilder

# Max length for content preview in logs
PREVIEW_LENGTH = 100
MS_PER_SECOND = 1000


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


def parse_string(
    text: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Document:
    """Parse a complete document held in memory.

    Args:
        text: Markup content
        config: Parser configuration (defaults to ``ParserConfig()``)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        Document with the root node, header and diagnostics

    Raises:
        ParseError: the document is structurally malformed

    Examples:
        >>> doc = parse_string('<shop><item price="4.29">Cone</item></shop>')
        >>> doc.root.first_child.get_attr("price")
        '4.29'
    """
    config = config or ParserConfig()
    correlation_id = correlation_id or config.correlation_id
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_string")

    logger.info(
        "Starting string parse operation",
        extra={"content_length": len(text), "preview": _preview(text)}
    )

    try:
        tokens = MarkupTokenizer(config, correlation_id).tokenize(text)
        document = TreeBuilder(config, correlation_id).build(tokens)
    except ParseError as e:
        logger.error(
            "String parse failed",
            extra={
                "error_type": type(e).__name__,
                "position": e.position,
                "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
            },
            exc_info=False
        )
        raise

    document.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

    logger.info(
        "String parse completed",
        extra={
            "element_count": document.performance.nodes_created,
            "has_header": document.has_header,
            "diagnostic_count": len(document.diagnostics),
            "processing_time_ms": document.performance.processing_time_ms,
        }
    )

    return document


def render(
    target: Union[Document, Node],
    include_header: Optional[bool] = None,
    dispose: bool = False,
    config: Optional[SerializerConfig] = None,
    correlation_id: Optional[str] = None
) -> str:
    """Render a document or node to text.

    Args:
        target: Parsed Document or any Node
        include_header: Emit a header line; defaults to ``config.include_header``
        dispose: Tear the tree down after rendering
        config: Serializer configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The rendered text
    """
    serializer = Serializer(config, correlation_id)
    if isinstance(target, Document):
        return serializer.render_document(target, include_header=include_header, dispose=dispose)
    return serializer.render(target, include_header=include_header, dispose=dispose)


class MarkupParser:
    """Reusable parser/serializer pair with shared configuration.

    Examples:
        >>> parser = MarkupParser(MarkupConfig.compact())
        >>> doc = parser.parse("<a> <b/> </a>")
        >>> parser.render(doc)
        '<a><b/></a>'
    """

    def __init__(
        self,
        config: Optional[MarkupConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or MarkupConfig.default()
        self.correlation_id = correlation_id or self.config.parser.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "markup_parser")

        self._build_components()

        self._parse_count = 0
        self._failed_parses = 0
        self._render_count = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "MarkupParser initialized",
            extra={"config_name": self.config.name}
        )

    def _build_components(self) -> None:
        self._tokenizer = MarkupTokenizer(self.config.parser, self.correlation_id)
        self._tree_builder = TreeBuilder(self.config.parser, self.correlation_id)
        self._serializer = Serializer(self.config.serializer, self.correlation_id)

    def parse(self, text: str) -> Document:
        """Parse ``text``; raises :class:`ParseError` on malformed input."""
        start_time = time.time()
        self._parse_count += 1

        try:
            document = self._tree_builder.build(self._tokenizer.tokenize(text))
        except ParseError as e:
            self._failed_parses += 1
            self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND
            self.logger.error(
                "Configured parse failed",
                extra={"error_type": type(e).__name__, "position": e.position},
                exc_info=False
            )
            raise

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        document.performance.processing_time_ms = processing_time
        self._total_processing_time += processing_time

        self.logger.info(
            "Configured parse completed",
            extra={
                "element_count": document.performance.nodes_created,
                "processing_time_ms": processing_time,
                "total_parses": self._parse_count,
            }
        )

        return document

    def render(
        self,
        target: Union[Document, Node],
        include_header: Optional[bool] = None,
        dispose: bool = False
    ) -> str:
        """Render with this parser's serializer configuration."""
        self._render_count += 1
        if isinstance(target, Document):
            return self._serializer.render_document(
                target, include_header=include_header, dispose=dispose
            )
        return self._serializer.render(target, include_header=include_header, dispose=dispose)

    def reconfigure(self, config: MarkupConfig) -> None:
        """Swap in a new configuration for subsequent calls."""
        self.config = config
        self._build_components()
        self.logger.info("Parser reconfigured", extra={"config_name": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        successful = self._parse_count - self._failed_parses
        return {
            "total_parses": self._parse_count,
            "successful_parses": successful,
            "failed_parses": self._failed_parses,
            "success_rate": (
                successful / self._parse_count if self._parse_count > 0 else 0.0
            ),
            "total_renders": self._render_count,
            "total_processing_time_ms": self._total_processing_time,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._failed_parses = 0
        self._render_count = 0
        self._total_processing_time = 0.0

        self.logger.info("Parser statistics reset")

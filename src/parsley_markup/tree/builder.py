"""Tree building for markup documents.

Converts the flat token sequence produced by
:class:`~parsley_markup.tokenization.MarkupTokenizer` into a :class:`Node`
tree by recursive descent: each open tag builds one node and consumes tokens
until its matching close tag. Structural problems abort the build with a
:class:`~parsley_markup.shared.ParseError`; no partial tree is ever returned.
"""

import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from parsley_markup.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    EmptyDocumentError,
    MaxDepthExceededError,
    MismatchedTagError,
    ParserConfig,
    PerformanceMetrics,
    StrayContentError,
    UnterminatedTagError,
    get_logger,
)
from parsley_markup.shared import strings
from parsley_markup.tokenization import Token, TokenizationResult, TokenType

from .node import Node

_ATTRIBUTE_PATTERN = re.compile(
    r"""([^\s=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"']+))?"""
)


def iter_attributes(body: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(key, value)`` pairs from a tag body, in source order.

    The leading tag name is skipped. Quoted values lose their quotes; a key
    without ``=`` yields an empty value.
    """
    _, remainder = strings.split_first(body)
    for match in _ATTRIBUTE_PATTERN.finditer(remainder):
        key, value = match.group(1), match.group(2) or ""
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        yield key, value


def parse_attributes(body: str) -> Dict[str, str]:
    """Parse the attributes of a tag body; later duplicates win."""
    attributes: Dict[str, str] = {}
    for key, value in iter_attributes(body):
        attributes[key] = value
    return attributes


@dataclass
class Document:
    """A parsed document: its root node plus what the parse learned on the way.

    The header (``<?xml ...?>``) is kept as text, never as a node.
    """

    root: Optional[Node] = None
    header: Optional[str] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    @property
    def has_header(self) -> bool:
        return self.header is not None

    @property
    def element_count(self) -> int:
        if self.root is None:
            return 0
        return sum(1 for _ in self.root.iter())

    def get_elements_by_tag_name(self, name: str) -> List[Node]:
        if self.root is None:
            return []
        return self.root.get_elements_by_tag_name(name)

    def get_elements_by_attr_name(self, key: str) -> List[Node]:
        if self.root is None:
            return []
        return self.root.get_elements_by_attr_name(key)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to the document."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def dispose(self) -> None:
        """Tear down the tree and forget the root."""
        if self.root is not None:
            self.root.dispose()
            self.root = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        result: Dict[str, Any] = {
            "element_count": self.element_count,
            "diagnostic_count": len(self.diagnostics),
        }
        if self.header is not None:
            result["header"] = self.header
        if self.root is not None:
            result["root"] = self.root.to_dict()
        return result


class TreeBuilder:
    """Builds a :class:`Document` from tokens.

    A builder keeps per-build state (the token cursor) and is therefore not
    safe to share between threads; it can be reused for successive builds.
    """

    COMPONENT = "tree_builder"

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "tree_builder")

        self._tokens: List[Token] = []
        self._cursor = 0
        self._nodes_created = 0
        self._document: Optional[Document] = None

    def build(self, tokens: Union[TokenizationResult, List[Token]]) -> Document:
        """Build a document tree.

        Args:
            tokens: Either a TokenizationResult or a plain list of tokens

        Returns:
            Document whose ``root`` is the first open tag of the input

        Raises:
            MismatchedTagError: a close tag does not match the open node
            UnterminatedTagError: tokens ran out while a node was open
            EmptyDocumentError: no open tag was found
            MaxDepthExceededError: nesting exceeds ``config.max_depth``
            StrayContentError: strict mode and content outside the root
        """
        start_time = time.time()

        if isinstance(tokens, TokenizationResult):
            token_list = tokens.tokens
            character_count = tokens.character_count
        else:
            token_list = list(tokens)
            character_count = 0

        self._tokens = token_list
        self._cursor = 0
        self._nodes_created = 0
        document = Document(correlation_id=self.correlation_id)
        self._document = document

        self.logger.debug(
            "Starting tree building",
            extra={"token_count": len(token_list)}
        )

        try:
            root_token = self._find_root_token()
            document.root = self._build_node(root_token, depth=1)
            self._check_trailing_content()
        finally:
            self._tokens = []
            self._document = None

        document.performance = PerformanceMetrics(
            processing_time_ms=(time.time() - start_time) * 1000,
            characters_processed=character_count,
            tokens_generated=len(token_list),
            nodes_created=self._nodes_created,
        )

        self.logger.debug(
            "Tree building completed",
            extra={
                "nodes_created": self._nodes_created,
                "diagnostic_count": len(document.diagnostics),
            }
        )

        return document

    def _next_token(self) -> Optional[Token]:
        if self._cursor >= len(self._tokens):
            return None
        token = self._tokens[self._cursor]
        self._cursor += 1
        return token

    def _find_root_token(self) -> Token:
        while True:
            token = self._next_token()
            if token is None:
                raise EmptyDocumentError("Document contains no element")
            if token.type in (TokenType.OPEN_TAG, TokenType.SELF_CLOSING_TAG):
                return token
            if token.type == TokenType.CLOSE_TAG:
                raise MismatchedTagError(
                    f"Close tag </{token.name}> without an open element",
                    token.position.to_dict(),
                )
            if token.type == TokenType.HEADER and self._document.header is None:
                if self.config.keep_header:
                    self._document.header = f"<{token.value}>"
                continue
            if token.type == TokenType.TEXT:
                self._stray_content(token, "before")
                continue
            self._note_skipped(token)

    def _build_node(self, token: Token, depth: int) -> Node:
        if depth > self.config.max_depth:
            raise MaxDepthExceededError(
                f"Nesting deeper than {self.config.max_depth} elements",
                token.position.to_dict(),
            )

        node = Node(token.name, self._get_attrs(token))
        self._nodes_created += 1

        if token.type == TokenType.SELF_CLOSING_TAG:
            node.self_closing = True
            node.closed = True
            return node

        while not node.closed:
            current = self._next_token()
            if current is None:
                raise UnterminatedTagError(
                    f"<{node.tag}> is never closed", token.position.to_dict()
                )

            if current.type in (TokenType.OPEN_TAG, TokenType.SELF_CLOSING_TAG):
                node.append_child(self._build_node(current, depth + 1))
            elif current.type == TokenType.TEXT:
                if node.has_data():
                    node.append_data(" " + current.value)
                else:
                    node.set_data(current.value)
            elif current.type == TokenType.CLOSE_TAG:
                if current.name != node.tag:
                    raise MismatchedTagError(
                        f"Expected </{node.tag}> but found </{current.name}>",
                        current.position.to_dict(),
                    )
                node.closed = True
            else:
                self._note_skipped(current)

        return node

    def _get_attrs(self, token: Token) -> Dict[str, str]:
        attributes: Dict[str, str] = {}
        for key, value in iter_attributes(token.value):
            if key in attributes:
                self._document.add_diagnostic(
                    DiagnosticSeverity.WARNING,
                    f"Duplicate attribute {key!r} on <{token.name}>; last value kept",
                    self.COMPONENT,
                    position=token.position.to_dict(),
                    details={"attribute": key, "discarded": attributes[key], "kept": value},
                )
            attributes[key] = value
        return attributes

    def _check_trailing_content(self) -> None:
        while True:
            token = self._next_token()
            if token is None:
                return
            if token.is_skipped:
                self._note_skipped(token)
            else:
                self._stray_content(token, "after")

    def _stray_content(self, token: Token, where: str) -> None:
        if token.type == TokenType.TEXT:
            label = "Text"
        elif token.type == TokenType.CLOSE_TAG:
            label = f"Tag </{token.value}>"
        else:
            label = f"Tag <{token.value}>"
        message = f"{label} {where} the root element"
        if self.config.strict:
            raise StrayContentError(message, token.position.to_dict())
        self.logger.warning(
            f"{message} ignored",
            extra={"position": token.position.to_dict()}
        )
        self._document.add_diagnostic(
            DiagnosticSeverity.WARNING,
            f"{message} ignored",
            self.COMPONENT,
            position=token.position.to_dict(),
        )

    def _note_skipped(self, token: Token) -> None:
        self.logger.debug(
            "Skipping non-element token",
            extra={"token_type": token.type.name}
        )
        self._document.add_diagnostic(
            DiagnosticSeverity.INFO,
            f"{token.type.name.replace('_', ' ').capitalize()} discarded",
            self.COMPONENT,
            position=token.position.to_dict(),
        )

"""Markup tokenizer.

Splits raw text on the ``<`` and ``>`` delimiters into a flat, ordered token
sequence. Tag bodies are classified (open, close, self-closing, comment,
declaration, header, processing instruction); text runs between tags are
whitespace-normalised, and whitespace-only runs are dropped.
"""

import re
import time
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from parsley_markup.shared import (
    MalformedTagError,
    ParserConfig,
    UnterminatedTagError,
    get_logger,
)
from parsley_markup.shared import strings

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"

_HEADER_PATTERN = re.compile(r"^\?xml(\s.*)?\?$", re.DOTALL)


class TokenType(Enum):
    """Token kinds produced by the tokenizer."""

    OPEN_TAG = auto()                # <name attr="v">
    SELF_CLOSING_TAG = auto()        # <name attr="v"/>
    CLOSE_TAG = auto()               # </name>
    TEXT = auto()                    # Text run between tags
    COMMENT = auto()                 # <!-- ... -->
    DECLARATION = auto()             # <!DOCTYPE ...> and other <!...>
    HEADER = auto()                  # <?xml ...?>
    PROCESSING_INSTRUCTION = auto()  # Any other <?...?>


TAG_TYPES = frozenset({TokenType.OPEN_TAG, TokenType.SELF_CLOSING_TAG, TokenType.CLOSE_TAG})
SKIPPED_TYPES = frozenset({
    TokenType.COMMENT,
    TokenType.DECLARATION,
    TokenType.HEADER,
    TokenType.PROCESSING_INSTRUCTION,
})


@dataclass
class TokenPosition:
    """Position of the first character of a token."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass
class Token:
    """A single token.

    ``value`` is the tag body with its markers removed (``<``, ``>``, the
    leading ``/`` of a close tag, the trailing ``/`` of a self-closing tag,
    the comment fences), or the normalised text of a text run. ``name`` is
    the tag name for the three tag kinds and empty otherwise.
    """

    type: TokenType
    value: str
    position: TokenPosition
    name: str = ""

    @property
    def is_tag(self) -> bool:
        return self.type in TAG_TYPES

    @property
    def is_skipped(self) -> bool:
        """True for tokens that never become part of the tree."""
        return self.type in SKIPPED_TYPES


@dataclass
class TokenizationResult:
    """Tokens of one document plus bookkeeping."""

    tokens: List[Token] = field(default_factory=list)
    character_count: int = 0
    processing_time_ms: float = 0.0

    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @property
    def type_distribution(self) -> Dict[str, int]:
        """Count tokens per type name."""
        distribution: Dict[str, int] = {}
        for token in self.tokens:
            distribution[token.type.name] = distribution.get(token.type.name, 0) + 1
        return distribution


class _PositionIndex:
    """Maps string offsets to 1-based line/column pairs."""

    def __init__(self, text: str) -> None:
        self._line_starts = [0]
        self._line_starts.extend(m.end() for m in re.finditer(r"\n", text))

    def at(self, offset: int) -> TokenPosition:
        line = bisect_right(self._line_starts, offset)
        column = offset - self._line_starts[line - 1] + 1
        return TokenPosition(line=line, column=column, offset=offset)


def classify_tag_body(body: str) -> TokenType:
    """Classify the text found between ``<`` and ``>``.

    Comments are recognised by the scanner before this is called, so a body
    starting with ``!`` is always some other declaration here.
    """
    if body.startswith("/"):
        return TokenType.CLOSE_TAG
    if body.startswith("!--"):
        return TokenType.COMMENT
    if body.startswith("!"):
        return TokenType.DECLARATION
    if body.startswith("?"):
        if _HEADER_PATTERN.match(body):
            return TokenType.HEADER
        return TokenType.PROCESSING_INSTRUCTION
    last = strings.last_non_space(body)
    if last >= 0 and body[last] == "/":
        return TokenType.SELF_CLOSING_TAG
    return TokenType.OPEN_TAG


def has_open_quote(body: str) -> bool:
    """True when a quoted value in ``body`` is never closed.

    Happens when a value contains ``>``, which always ends the tag body.
    """
    quote = None
    for char in body:
        if quote is None:
            if char in "\"'":
                quote = char
        elif char == quote:
            quote = None
    return quote is not None


class MarkupTokenizer:
    """Turns a complete document buffer into a flat token list.

    Examples:
        >>> result = MarkupTokenizer().tokenize('<a x="1">hi</a>')
        >>> [t.type.name for t in result.tokens]
        ['OPEN_TAG', 'TEXT', 'CLOSE_TAG']
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "markup_tokenizer")

    def tokenize(self, text: str) -> TokenizationResult:
        """Tokenize ``text``.

        Raises:
            UnterminatedTagError: a ``<`` or ``<!--`` is never closed
            MalformedTagError: a tag body carries no tag name or leaves a
                quoted value open
        """
        start_time = time.time()
        positions = _PositionIndex(text)
        tokens: List[Token] = []
        pos = 0
        length = len(text)

        while pos < length:
            lt = text.find("<", pos)
            if lt == -1:
                self._add_text(tokens, text[pos:], positions.at(pos))
                break
            if lt > pos:
                self._add_text(tokens, text[pos:lt], positions.at(pos))

            if text.startswith(COMMENT_OPEN, lt):
                end = text.find(COMMENT_CLOSE, lt + len(COMMENT_OPEN))
                if end == -1:
                    raise UnterminatedTagError(
                        "Unterminated comment", positions.at(lt).to_dict()
                    )
                tokens.append(Token(
                    type=TokenType.COMMENT,
                    value=text[lt + len(COMMENT_OPEN):end].strip(),
                    position=positions.at(lt),
                ))
                pos = end + len(COMMENT_CLOSE)
                continue

            gt = text.find(">", lt + 1)
            if gt == -1:
                raise UnterminatedTagError(
                    "Unterminated tag: missing '>'", positions.at(lt).to_dict()
                )
            tokens.append(self._make_tag_token(text[lt + 1:gt], positions.at(lt)))
            pos = gt + 1

        result = TokenizationResult(
            tokens=tokens,
            character_count=length,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

        self.logger.debug(
            "Tokenization completed",
            extra={
                "token_count": result.token_count,
                "character_count": length,
            }
        )

        return result

    def _add_text(self, tokens: List[Token], run: str, position: TokenPosition) -> None:
        if not run.strip():
            return
        value = strings.condense(run) if self.config.condense_text else run
        tokens.append(Token(type=TokenType.TEXT, value=strings.strip(value), position=position))

    def _make_tag_token(self, body: str, position: TokenPosition) -> Token:
        token_type = classify_tag_body(body)

        if token_type == TokenType.CLOSE_TAG:
            value = strings.strip(body, 1)
        elif token_type == TokenType.SELF_CLOSING_TAG:
            value = strings.strip(body, 0, strings.last_non_space(body))
        elif token_type in SKIPPED_TYPES:
            return Token(type=token_type, value=body.strip(), position=position)
        else:
            value = strings.strip(body)

        name = strings.split_one(value)
        if not name:
            raise MalformedTagError(f"Tag without a name: <{body}>", position.to_dict())
        if token_type != TokenType.CLOSE_TAG and has_open_quote(value):
            raise MalformedTagError(f"Unbalanced quote in tag: <{body}>", position.to_dict())

        return Token(type=token_type, value=value, position=position, name=name)

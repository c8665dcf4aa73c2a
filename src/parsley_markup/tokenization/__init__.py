"""Tokenization for markup parsing.

Key Components:
    MarkupTokenizer: Splits a document buffer into tag and text tokens
    Token: One tag body or text run with its position
    TokenType: Classification of tokens
    TokenPosition: Line/column/offset of a token
"""

from .tokenizer import (
    MarkupTokenizer,
    Token,
    TokenizationResult,
    TokenPosition,
    TokenType,
    classify_tag_body,
    has_open_quote,
)

__all__ = [
    "MarkupTokenizer",
    "Token",
    "TokenizationResult",
    "TokenPosition",
    "TokenType",
    "classify_tag_body",
    "has_open_quote",
]

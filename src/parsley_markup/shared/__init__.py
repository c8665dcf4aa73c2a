"""Shared utilities for markup parsing.

This module provides configuration objects, error types, diagnostics, logging
and the whitespace helpers used across the tokenizer, tree and serializer.
"""

from .config import (
    DEFAULT_HEADER,
    MarkupConfig,
    ParserConfig,
    SerializerConfig,
)
from .errors import (
    AttributeNotFoundError,
    ConfigError,
    ConfigValidationError,
    EmptyDocumentError,
    IndexOutOfRangeError,
    MalformedTagError,
    MaxDepthExceededError,
    MismatchedTagError,
    ParseError,
    ParsleyError,
    SelfClosingError,
    StrayContentError,
    TreeStructureError,
    UnrepresentableValueError,
    UnterminatedTagError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "DEFAULT_HEADER",
    "MarkupConfig",
    "ParserConfig",
    "SerializerConfig",
    "AttributeNotFoundError",
    "ConfigError",
    "ConfigValidationError",
    "EmptyDocumentError",
    "IndexOutOfRangeError",
    "MalformedTagError",
    "MaxDepthExceededError",
    "MismatchedTagError",
    "ParseError",
    "ParsleyError",
    "SelfClosingError",
    "StrayContentError",
    "TreeStructureError",
    "UnrepresentableValueError",
    "UnterminatedTagError",
    "CorrelationLogger",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]

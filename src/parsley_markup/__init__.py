"""Parsley markup.

A small in-memory document model for a simplified, well-formed subset of
XML: a linked tag/attribute/text tree, a tokenizing recursive-descent parser
that builds it from text, and a serializer that renders it back.

Progressive API Disclosure:
- Level 1: Simple functions - parse_string(), render()
- Level 2: Configured parser - MarkupParser class with MarkupConfig
- Level 3: Components - MarkupTokenizer, TreeBuilder, Serializer, Node
"""

__version__ = "0.1.0"
__author__ = "Parsley Markup Team"

from .api import MarkupParser, parse_string, render
from .serialization import Serializer
from .shared.config import MarkupConfig, ParserConfig, SerializerConfig
from .shared.errors import (
    AttributeNotFoundError,
    EmptyDocumentError,
    IndexOutOfRangeError,
    MismatchedTagError,
    ParseError,
    ParsleyError,
    SelfClosingError,
    TreeStructureError,
    UnrepresentableValueError,
    UnterminatedTagError,
)
from .tokenization import MarkupTokenizer
from .tree import Document, Node, TreeBuilder

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse_string",
    "render",

    # Level 2: Configured parser
    "MarkupParser",
    "MarkupConfig",
    "ParserConfig",
    "SerializerConfig",

    # Level 3: Components and data structures
    "Document",
    "MarkupTokenizer",
    "Node",
    "Serializer",
    "TreeBuilder",

    # Errors
    "AttributeNotFoundError",
    "EmptyDocumentError",
    "IndexOutOfRangeError",
    "MismatchedTagError",
    "ParseError",
    "ParsleyError",
    "SelfClosingError",
    "TreeStructureError",
    "UnrepresentableValueError",
    "UnterminatedTagError",
]

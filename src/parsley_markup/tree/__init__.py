"""Document tree for markup parsing.

Key Components:
    Node: Element with tag, attributes, data and linked children
    TreeBuilder: Recursive-descent construction of a tree from tokens
    Document: Parsed root node plus header, diagnostics and metrics
"""

from .builder import (
    Document,
    TreeBuilder,
    iter_attributes,
    parse_attributes,
)
from .node import Node, check_attr_value, check_data

__all__ = [
    "Document",
    "Node",
    "TreeBuilder",
    "check_attr_value",
    "check_data",
    "iter_attributes",
    "parse_attributes",
]

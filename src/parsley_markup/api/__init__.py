"""Public parse/render API."""

from .parser import MarkupParser, parse_string, render

__all__ = [
    "MarkupParser",
    "parse_string",
    "render",
]

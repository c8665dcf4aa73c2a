"""Exception hierarchy for the markup document model.

Structural parse failures abort the whole parse and are raised as
:class:`ParseError` subclasses. Attribute and data failures are local to a
single call. Lookups whose "not found" outcome is routine (``find_attr``,
``insert_child``, ``remove_child``) return booleans and never raise.
"""

from typing import Dict, Optional


class ParsleyError(Exception):
    """Base class for all errors raised by parsley_markup."""


class AttributeNotFoundError(ParsleyError, KeyError):
    """Raised by ``get_attr``/``remove_attr`` for a key the node does not hold."""

    def __init__(self, key: str, tag: Optional[str] = None) -> None:
        self.key = key
        self.tag = tag
        where = f" on <{tag}>" if tag else ""
        super().__init__(f"Attribute not found{where}: {key!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class IndexOutOfRangeError(ParsleyError, IndexError):
    """Raised by data operations given a position outside the node's data."""

    def __init__(self, index: int, length: int) -> None:
        self.index = index
        self.length = length
        super().__init__(f"Index {index} out of range for data of length {length}")


class SelfClosingError(ParsleyError, ValueError):
    """Raised when a self-closing node would receive children or data."""


class TreeStructureError(ParsleyError, ValueError):
    """Raised when a mutation would break the tree (cycles, empty tag names)."""


class UnrepresentableValueError(ParsleyError, ValueError):
    """Raised for data or attribute values that cannot be written back as markup.

    Entities are not decoded or encoded, so data may not contain ``<`` and an
    attribute value may not contain ``>`` or both quote characters.
    """


class ParseError(ParsleyError):
    """Base class for fatal parse failures.

    Attributes:
        position: line/column/offset of the offending token, when known
    """

    def __init__(self, message: str, position: Optional[Dict[str, int]] = None) -> None:
        self.position = position
        if position:
            message = f"{message} (line {position['line']}, column {position['column']})"
        super().__init__(message)


class MismatchedTagError(ParseError):
    """A close tag does not match the currently open node."""


class UnterminatedTagError(ParseError):
    """Input ended while a node (or a tag body) was still open."""


class EmptyDocumentError(ParseError):
    """The input contains no open tag at all."""


class MalformedTagError(ParseError):
    """A tag body has no usable tag name."""


class MaxDepthExceededError(ParseError):
    """Nesting went deeper than ``ParserConfig.max_depth``."""


class StrayContentError(ParseError):
    """Strict mode found text or elements outside the root element."""


class ConfigError(ParsleyError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Raised when configuration data cannot be turned into a valid config."""

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        self.field_name = field_name
        super().__init__(message)

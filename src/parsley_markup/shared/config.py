"""Configuration classes for markup parsing and rendering.

Component configurations are plain dataclasses validated in ``__post_init__``;
:class:`MarkupConfig` bundles them into one immutable object that can be
overridden field by field and round-tripped through JSON.
"""

import json
import sys
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .errors import ConfigValidationError

DEFAULT_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'

_COMPONENTS = ("parser", "serializer")

# Stack frames kept free for callers when capping the builder's recursion
RECURSION_HEADROOM = 200


@dataclass
class ParserConfig:
    """Configuration for tokenizing and tree building."""

    keep_header: bool = True       # Surface <?xml ...?> on Document.header
    condense_text: bool = True     # Collapse whitespace runs inside text
    strict: bool = False           # Reject content outside the root element
    max_depth: int = 500           # Maximum element nesting
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")
        limit = sys.getrecursionlimit() - RECURSION_HEADROOM
        if self.max_depth > limit:
            raise ValueError(
                f"max_depth must be <= {limit} (interpreter recursion limit minus headroom)"
            )


@dataclass
class SerializerConfig:
    """Configuration for rendering a tree back to text."""

    indent: str = "  "
    newline: str = "\n"
    default_header: str = DEFAULT_HEADER
    include_header: bool = False

    def __post_init__(self) -> None:
        """Validate serializer configuration."""
        if self.indent.strip():
            raise ValueError("indent must contain only whitespace")
        if self.newline not in ("", "\n", "\r\n"):
            raise ValueError("newline must be '', '\\n' or '\\r\\n'")
        if not (self.default_header.startswith("<?") and self.default_header.endswith("?>")):
            raise ValueError("default_header must look like '<?xml ...?>'")


@dataclass(frozen=True)
class MarkupConfig:
    """Bundled, immutable configuration for parser and serializer.

    Example:
        >>> config = MarkupConfig().override(serializer__indent="\\t")
        >>> config.serializer.indent
        '\\t'
    """

    parser: ParserConfig = field(default_factory=ParserConfig)
    serializer: SerializerConfig = field(default_factory=SerializerConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Re-run component validation and report it as a config error."""
        try:
            self.parser.__post_init__()
            self.serializer.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "MarkupConfig":
        """Create a new configuration with specific overrides.

        Nested fields use ``component__field`` notation, e.g.
        ``parser__strict=True``.
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS and isinstance(value, dict):
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        return {
            "parser": dict(vars(self.parser)),
            "serializer": dict(vars(self.serializer)),
            "name": self.name,
            "description": self.description,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MarkupConfig":
        """Create configuration from a dictionary produced by :meth:`to_dict`."""
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a mapping")

        try:
            return cls(
                parser=ParserConfig(**data.get("parser", {})),
                serializer=SerializerConfig(**data.get("serializer", {})),
                name=data.get("name"),
                description=data.get("description"),
            )
        except TypeError as e:
            raise ConfigValidationError(f"Invalid configuration field: {e}") from e
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "MarkupConfig":
        """Create configuration from a JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "MarkupConfig":
        """Lenient parsing, two-space indented output."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "MarkupConfig":
        """Reject any content outside the root element."""
        return cls(
            parser=ParserConfig(strict=True),
            name="strict",
            description="Fails on text or elements outside the root element",
        )

    @classmethod
    def compact(cls) -> "MarkupConfig":
        """Render without indentation or line breaks."""
        return cls(
            serializer=SerializerConfig(indent="", newline=""),
            name="compact",
            description="Single-line output without indentation",
        )

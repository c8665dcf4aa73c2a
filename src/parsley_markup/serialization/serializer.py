"""Rendering of node trees back to markup text.

The output is the structural inverse of the parser, not a byte-for-byte copy
of the original input: indentation and line breaks come from
:class:`~parsley_markup.shared.SerializerConfig`.
"""

import time
from typing import List, Optional

from parsley_markup.shared import SerializerConfig, get_logger
from parsley_markup.tree import Document, Node, check_attr_value, check_data


class Serializer:
    """Depth-first, pre-order renderer.

    Examples:
        >>> shop = Node("shop")
        >>> shop.append_child(Node("item", {"price": "4.29"}, data="Cone"))
        >>> print(Serializer().render(shop))
        <shop>
          <item price="4.29">Cone</item>
        </shop>
    """

    def __init__(
        self,
        config: Optional[SerializerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or SerializerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "serializer")

    def render(
        self,
        root: Node,
        include_header: Optional[bool] = None,
        header: Optional[str] = None,
        dispose: bool = False
    ) -> str:
        """Render ``root`` and its subtree.

        Args:
            root: Node to render; a node with an empty tag renders only its
                content, as a fragment
            include_header: Emit a header line first; defaults to
                ``config.include_header``
            header: Header text to emit instead of ``config.default_header``
            dispose: Tear the tree down after rendering

        Returns:
            The rendered text, without a trailing newline

        Raises:
            UnrepresentableValueError: a value written straight into
                ``Node.attributes`` cannot be rendered
        """
        start_time = time.time()
        if include_header is None:
            include_header = self.config.include_header

        lines: List[str] = []
        if include_header:
            lines.append(header or self.config.default_header)

        if root.tag:
            self._render_nodes([root], 0, lines)
        else:
            check_data(root.data)
            if root.data:
                lines.append(root.data)
            self._render_nodes(root.children, 0, lines)

        output = self.config.newline.join(lines)

        if dispose:
            root.dispose()

        self.logger.debug(
            "Rendering completed",
            extra={
                "output_size": len(output),
                "line_count": len(lines),
                "disposed": dispose,
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )

        return output

    def render_document(
        self,
        document: Document,
        include_header: Optional[bool] = None,
        dispose: bool = False
    ) -> str:
        """Render a parsed document, reusing its own header when it has one."""
        if document.root is None:
            raise ValueError("Document has no root to render")
        output = self.render(
            document.root,
            include_header=include_header,
            header=document.header,
        )
        if dispose:
            document.dispose()
        return output

    def _render_nodes(self, nodes: List[Node], level: int, lines: List[str]) -> None:
        """Render ``nodes`` as siblings at ``level`` using an explicit stack."""
        stack = [(node, level, False) for node in reversed(nodes)]
        while stack:
            node, depth, closing = stack.pop()
            indent = self.config.indent * depth

            if closing:
                lines.append(f"{indent}</{node.tag}>")
                continue

            opening = self._open_tag(node)
            check_data(node.data)

            if node.self_closing:
                lines.append(f"{indent}<{opening}/>")
                continue

            if not node.has_children():
                lines.append(f"{indent}<{opening}>{node.data}</{node.tag}>")
                continue

            lines.append(f"{indent}<{opening}>")
            if node.data:
                lines.append(self.config.indent * (depth + 1) + node.data)
            stack.append((node, depth, True))
            stack.extend((child, depth + 1, False) for child in reversed(node.children))

    @staticmethod
    def _open_tag(node: Node) -> str:
        parts = [node.tag]
        for key, value in node.attributes.items():
            check_attr_value(key, value)
            quote = "'" if '"' in value else '"'
            parts.append(f"{key}={quote}{value}{quote}")
        return " ".join(parts)

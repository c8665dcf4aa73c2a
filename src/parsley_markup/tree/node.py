"""Document tree node.

A :class:`Node` holds a tag name, an ordered attribute mapping, its own text
``data`` and links into the tree. Children form a doubly linked sibling
chain: the parent owns its children through ``first_child`` and the
``next_sibling`` references. ``parent`` is a plain back reference, so a
child keeps its whole tree alive; ``prev_sibling`` is weak because the
previous sibling is always reachable through the parent.

Invariants kept by every mutation:

* ``first_child`` is None exactly when ``last_child`` is None, exactly when
  the node has no children;
* every child's ``parent`` is the node whose chain it sits in;
* walking ``next_sibling`` from ``first_child`` ends at ``last_child`` and
  walking ``prev_sibling`` back ends at ``first_child``, without cycles;
* a self-closing node has no children and empty data;
* data never contains ``<`` and attribute values never contain ``>`` or
  both quote characters, so every tree can be rendered and parsed back;
* a detached node has no parent and no siblings.
"""

import weakref
from typing import Any, Dict, Iterator, List, Optional

from parsley_markup.shared import (
    AttributeNotFoundError,
    IndexOutOfRangeError,
    SelfClosingError,
    TreeStructureError,
    UnrepresentableValueError,
)


def _deref(ref: Optional["weakref.ReferenceType[Node]"]) -> Optional["Node"]:
    return ref() if ref is not None else None


def check_data(text: str) -> None:
    """Reject data that would be read back as markup."""
    if "<" in text:
        raise UnrepresentableValueError(f"Data cannot contain '<': {text!r}")


def check_attr_value(key: str, value: str) -> None:
    """Reject attribute values that no quoting can render unambiguously."""
    if ">" in value:
        raise UnrepresentableValueError(f"Attribute {key!r} cannot contain '>': {value!r}")
    if '"' in value and "'" in value:
        raise UnrepresentableValueError(
            f"Attribute {key!r} cannot contain both quote characters: {value!r}"
        )


class Node:
    """A single markup element.

    ``Node()`` (empty tag) is only meant as a synthetic document root; such a
    node cannot be attached beneath another node.

    Examples:
        >>> shop = Node("shop")
        >>> item = Node("item", {"price": "4.29"}, data="Cone")
        >>> shop.append_child(item)
        >>> shop.get_elements_by_tag_name("item")[0].get_attr("price")
        '4.29'
    """

    def __init__(
        self,
        tag: str = "",
        attributes: Optional[Dict[str, str]] = None,
        data: str = "",
        self_closing: bool = False,
    ) -> None:
        self.tag = tag
        self.attributes: Dict[str, str] = dict(attributes or {})
        for key, value in self.attributes.items():
            check_attr_value(key, value)
        self._data = ""
        self._self_closing = False

        # Parser state: set once the matching close tag was consumed
        self.closed = False

        self._parent: Optional[Node] = None
        self._prev: Optional["weakref.ReferenceType[Node]"] = None
        self._next: Optional[Node] = None
        self._first: Optional[Node] = None
        self._last: Optional[Node] = None

        self.self_closing = self_closing
        self.set_data(data)

    def __repr__(self) -> str:
        flags = " self_closing" if self._self_closing else ""
        return f"<Node {self.tag!r} attrs={len(self.attributes)}{flags}>"

    # ------------------------------------------------------------------
    # Tag and self-closing state

    def get_tag(self) -> str:
        return self.tag

    def set_tag(self, name: str) -> None:
        """Rename the node. Attached nodes need a non-empty name."""
        if not name and (self.has_parent() or self.has_children()):
            raise TreeStructureError("Tag name cannot be empty for an element node")
        self.tag = name

    @property
    def self_closing(self) -> bool:
        return self._self_closing

    @self_closing.setter
    def self_closing(self, value: bool) -> None:
        if value and (self._first is not None or self._data):
            raise SelfClosingError(
                f"<{self.tag}> has children or data and cannot be self-closing"
            )
        self._self_closing = bool(value)

    # ------------------------------------------------------------------
    # Attributes

    def get_attr(self, key: str) -> str:
        """Return the value stored under ``key``.

        Raises:
            AttributeNotFoundError: ``key`` is not an attribute of this node
        """
        try:
            return self.attributes[key]
        except KeyError:
            raise AttributeNotFoundError(key, self.tag) from None

    def find_attr(self, key: str) -> bool:
        return key in self.attributes

    def add_attr(self, key: str, value: str) -> None:
        """Insert or overwrite an attribute."""
        check_attr_value(key, value)
        self.attributes[key] = value

    def set_attr(self, key: str, value: str) -> None:
        """Overwrite an existing attribute; unknown keys are left alone.

        Use :meth:`add_attr` to create attributes.
        """
        if key in self.attributes:
            check_attr_value(key, value)
            self.attributes[key] = value

    def remove_attr(self, key: str) -> None:
        """Delete an attribute.

        Raises:
            AttributeNotFoundError: ``key`` is not an attribute of this node
        """
        try:
            del self.attributes[key]
        except KeyError:
            raise AttributeNotFoundError(key, self.tag) from None

    # ------------------------------------------------------------------
    # Data

    @property
    def data(self) -> str:
        return self._data

    @data.setter
    def data(self, text: str) -> None:
        self.set_data(text)

    @property
    def data_length(self) -> int:
        return len(self._data)

    def get_data(self) -> str:
        return self._data

    def has_data(self) -> bool:
        return bool(self._data)

    def _store_data(self, text: str) -> None:
        if text and self._self_closing:
            raise SelfClosingError(f"Self-closing <{self.tag}> cannot hold data")
        check_data(text)
        self._data = text

    def _check_index(self, index: int) -> None:
        if index < 0 or index > len(self._data):
            raise IndexOutOfRangeError(index, len(self._data))

    def set_data(self, text: str) -> None:
        self._store_data(text)

    def append_data(self, text: str) -> None:
        self._store_data(self._data + text)

    def insert_data(self, index: int, text: str) -> None:
        """Insert ``text`` before position ``index`` (``index == len`` appends)."""
        self._check_index(index)
        self._store_data(self._data[:index] + text + self._data[index:])

    def replace_data(self, old: str, new: str) -> None:
        """Replace the first occurrence of ``old``; no-op when absent or empty."""
        if old and old in self._data:
            self._store_data(self._data.replace(old, new, 1))

    def split_data(self, index: int) -> str:
        """Return the data from ``index`` to the end; the data is not modified."""
        self._check_index(index)
        return self._data[index:]

    def substring_data(self, index: int, count: Optional[int] = None) -> str:
        """Return ``count`` characters starting at ``index`` (to the end by default)."""
        self._check_index(index)
        if count is None:
            return self._data[index:]
        if count < 0:
            raise IndexOutOfRangeError(count, len(self._data))
        return self._data[index:index + count]

    def delete_data(self) -> None:
        self._data = ""

    # ------------------------------------------------------------------
    # Navigation (non-owning views)

    @property
    def parent(self) -> Optional["Node"]:
        return self._parent

    @property
    def prev_sibling(self) -> Optional["Node"]:
        return _deref(self._prev)

    @property
    def next_sibling(self) -> Optional["Node"]:
        return self._next

    @property
    def first_child(self) -> Optional["Node"]:
        return self._first

    @property
    def last_child(self) -> Optional["Node"]:
        return self._last

    def get_parent(self) -> Optional["Node"]:
        return self.parent

    def get_prev_sibling(self) -> Optional["Node"]:
        return self.prev_sibling

    def get_next_sibling(self) -> Optional["Node"]:
        return self._next

    def get_first_child(self) -> Optional["Node"]:
        return self._first

    def get_last_child(self) -> Optional["Node"]:
        return self._last

    def get_nth_child(self, n: int) -> Optional["Node"]:
        """Return the ``n``-th child (0-indexed) or None when out of range."""
        if n < 0:
            return None
        for index, child in enumerate(self.iter_children()):
            if index == n:
                return child
        return None

    def iter_children(self) -> Iterator["Node"]:
        child = self._first
        while child is not None:
            # Read the link first so callers may detach the yielded child
            following = child._next
            yield child
            child = following

    @property
    def children(self) -> List["Node"]:
        return list(self.iter_children())

    @property
    def child_count(self) -> int:
        return sum(1 for _ in self.iter_children())

    @property
    def depth(self) -> int:
        """Number of ancestors (a root has depth 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def is_first_child(self) -> bool:
        parent = self.parent
        return parent is not None and parent._first is self

    def is_last_child(self) -> bool:
        parent = self.parent
        return parent is not None and parent._last is self

    def has_children(self) -> bool:
        return self._first is not None and self._last is not None

    def has_parent(self) -> bool:
        return self.parent is not None

    # ------------------------------------------------------------------
    # Tree mutation

    def _check_attachable(self, node: "Node") -> None:
        if not isinstance(node, Node):
            raise TypeError("Child must be a Node instance")
        if self._self_closing:
            raise SelfClosingError(f"Self-closing <{self.tag}> cannot have children")
        if not node.tag:
            raise TreeStructureError("A node without a tag cannot become a child")
        ancestor: Optional[Node] = self
        while ancestor is not None:
            if ancestor is node:
                raise TreeStructureError(
                    f"Cannot attach <{node.tag}> beneath itself or its descendant"
                )
            ancestor = ancestor.parent

    def _detach(self, node: "Node") -> None:
        """Take ``node`` out of its current chain, if any."""
        parent = node.parent
        if parent is not None:
            parent._unlink(node)
        else:
            node._prev = None
            node._next = None

    def _unlink(self, child: "Node") -> None:
        prev = child.prev_sibling
        following = child._next

        if prev is None:
            self._first = following
        else:
            prev._next = following

        if following is None:
            self._last = prev
        else:
            following._prev = child._prev

        child._parent = None
        child._prev = None
        child._next = None

    def append_child(self, node: "Node") -> None:
        """Attach ``node`` as the last child, detaching it from any old parent."""
        self._check_attachable(node)
        self._detach(node)

        node._parent = self
        if self._last is None:
            self._first = node
        else:
            self._last._next = node
            node._prev = weakref.ref(self._last)
        self._last = node

    def prepend_child(self, node: "Node") -> None:
        """Attach ``node`` as the first child, detaching it from any old parent."""
        self._check_attachable(node)
        self._detach(node)

        node._parent = self
        if self._first is None:
            self._last = node
        else:
            self._first._prev = weakref.ref(node)
            node._next = self._first
        self._first = node

    def insert_child(self, anchor: "Node", node: "Node") -> bool:
        """Insert ``node`` immediately before ``anchor``.

        Returns:
            False if ``anchor`` is not a child of this node, else True
        """
        if not isinstance(anchor, Node) or anchor.parent is not self:
            return False
        if node is anchor:
            return True
        self._check_attachable(node)
        self._detach(node)

        prev = anchor.prev_sibling
        node._parent = self
        node._next = anchor
        node._prev = anchor._prev
        anchor._prev = weakref.ref(node)
        if prev is None:
            self._first = node
        else:
            prev._next = node
        return True

    def remove_child(self, anchor: "Node") -> bool:
        """Detach ``anchor``; the caller owns it afterwards.

        Returns:
            False if ``anchor`` is not a child of this node, else True
        """
        if not isinstance(anchor, Node) or anchor.parent is not self:
            return False
        self._unlink(anchor)
        return True

    def remove_first_child(self) -> bool:
        return self._first is not None and self.remove_child(self._first)

    def remove_last_child(self) -> bool:
        return self._last is not None and self.remove_child(self._last)

    def dispose(self) -> None:
        """Tear down this subtree, children before parents.

        The node is detached from its parent first. Uses an explicit stack so
        deep documents cannot exhaust the interpreter's recursion limit.
        """
        self._detach(self)
        stack = [(self, False)]
        while stack:
            node, children_done = stack.pop()
            if children_done:
                node._first = None
                node._last = None
                node._parent = None
                node._prev = None
                node._next = None
                node.attributes.clear()
                node._data = ""
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in node.iter_children())

    # ------------------------------------------------------------------
    # Queries

    def iter(self) -> Iterator["Node"]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            child = node._last
            while child is not None:
                stack.append(child)
                child = child.prev_sibling

    def get_elements_by_tag_name(self, name: str) -> List["Node"]:
        """All nodes of this subtree (self included) tagged ``name``, pre-order."""
        return [node for node in self.iter() if node.tag == name]

    def get_elements_by_attr_name(self, key: str) -> List["Node"]:
        """All nodes of this subtree (self included) holding attribute ``key``."""
        return [node for node in self.iter() if key in node.attributes]

    def structurally_equal(self, other: "Node") -> bool:
        """Compare tags, attributes, data, self-closing state and child order."""
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if (
                left.tag != right.tag
                or left.attributes != right.attributes
                or left._data != right._data
                or left._self_closing != right._self_closing
            ):
                return False
            left_children = left.children
            right_children = right.children
            if len(left_children) != len(right_children):
                return False
            pairs.extend(zip(left_children, right_children))
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert the subtree to a dictionary representation."""
        result = self._own_dict()
        stack = [(self, result)]
        while stack:
            node, entry = stack.pop()
            if node._first is None:
                continue
            entry["children"] = []
            for child in node.iter_children():
                child_entry = child._own_dict()
                entry["children"].append(child_entry)
                stack.append((child, child_entry))
        return result

    def _own_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "tag": self.tag,
            "attributes": dict(self.attributes),
        }
        if self._data:
            result["data"] = self._data
        if self._self_closing:
            result["self_closing"] = True
        return result

"""Tests for rendering trees back to markup."""

import pytest

from parsley_markup.api import parse_string
from parsley_markup.serialization import Serializer
from parsley_markup.shared import DEFAULT_HEADER, SerializerConfig, UnrepresentableValueError
from parsley_markup.tree import Document, Node


@pytest.fixture
def menu() -> Node:
    """A root with data, one self-closing child and one nested child."""
    root = Node("menu", {"day": "mon"}, data="Today")
    root.append_child(Node("dish", {"name": "soup"}, self_closing=True))
    dish = Node("dish", {"name": "kfc"}, data="KFC with ketchup")
    dish.append_child(Node("price", data="4.29"))
    root.append_child(dish)
    return root


class TestSerializer:
    """Test the rendered text layout."""

    def test_layout(self, menu: Node) -> None:
        """Test indentation, data lines and close tags."""
        assert Serializer().render(menu) == "\n".join([
            '<menu day="mon">',
            "  Today",
            '  <dish name="soup"/>',
            '  <dish name="kfc">',
            "    KFC with ketchup",
            "    <price>4.29</price>",
            "  </dish>",
            "</menu>",
        ])

    def test_leaf_renders_on_one_line(self) -> None:
        """Test childless elements keep data inline."""
        assert Serializer().render(Node("item", {"price": "4.29"}, data="Cone")) == (
            '<item price="4.29">Cone</item>'
        )
        assert Serializer().render(Node("empty")) == "<empty></empty>"

    def test_attribute_order_kept(self) -> None:
        """Test attributes render in stored order."""
        node = Node("x", self_closing=True)
        for key in ("z", "a", "m"):
            node.add_attr(key, key.upper())
        assert Serializer().render(node) == '<x z="Z" a="A" m="M"/>'

    def test_value_with_double_quote(self) -> None:
        """Test values holding '"' switch to single quotes."""
        node = Node("q", {"says": 'he said "hi"'}, self_closing=True)
        assert Serializer().render(node) == """<q says='he said "hi"'/>"""

    def test_default_header(self) -> None:
        """Test the configured header is emitted first."""
        output = Serializer().render(Node("a"), include_header=True)
        assert output == DEFAULT_HEADER + "\n<a></a>"

    def test_header_from_config(self) -> None:
        """Test include_header defaults to the configuration."""
        serializer = Serializer(SerializerConfig(include_header=True))
        assert serializer.render(Node("a")).startswith(DEFAULT_HEADER)
        assert not serializer.render(Node("a"), include_header=False).startswith("<?xml")

    def test_custom_header(self) -> None:
        """Test an explicit header replaces the default."""
        output = Serializer().render(Node("a"), include_header=True, header='<?xml version="1.1"?>')
        assert output.splitlines()[0] == '<?xml version="1.1"?>'

    def test_compact_and_crlf(self, menu: Node) -> None:
        """Test indentation and newline come from the configuration."""
        compact = Serializer(SerializerConfig(indent="", newline="")).render(menu)
        assert compact == (
            '<menu day="mon">Today<dish name="soup"/><dish name="kfc">'
            "KFC with ketchup<price>4.29</price></dish></menu>"
        )
        tabbed = Serializer(SerializerConfig(indent="\t", newline="\r\n")).render(menu)
        assert tabbed.split("\r\n")[3] == '\t<dish name="kfc">'

    def test_fragment_root(self) -> None:
        """Test an untagged root renders only its content."""
        root = Node()
        root.append_child(Node("a", self_closing=True))
        root.append_child(Node("b", data="x"))
        assert Serializer().render(root) == '<a/>\n<b>x</b>'

    def test_dispose_after_render(self, menu: Node) -> None:
        """Test the tree is torn down after rendering."""
        output = Serializer().render(menu, dispose=True)
        assert output.startswith("<menu")
        assert menu.first_child is None
        assert menu.attributes == {}


class TestRenderSafety:
    """Test output that could not be parsed back is never produced."""

    def test_attribute_mutated_in_place(self) -> None:
        """Test values written straight into the mapping are checked on render."""
        node = Node("q", {"a": "ok", "b": "1"}, self_closing=True)
        node.attributes["a"] = 'it\'s "x"'
        with pytest.raises(UnrepresentableValueError, match="both quote characters"):
            Serializer().render(node)

    def test_single_quote_kinds_round_trip(self) -> None:
        """Test each quote kind alone survives a round trip."""
        node = Node("q", {"a": "it's", "b": 'say "x"'}, self_closing=True)
        reparsed = parse_string(Serializer().render(node)).root
        assert reparsed.attributes == {"a": "it's", "b": 'say "x"'}
        assert node.structurally_equal(reparsed)

    def test_greater_than_in_data_round_trips(self) -> None:
        """Test '>' is allowed in data and parses back."""
        node = Node("math", data="1 > 0")
        assert parse_string(Serializer().render(node)).root.data == "1 > 0"

    def test_deep_tree(self) -> None:
        """Test rendering does not recurse."""
        root = Node("n", data="leaf")
        for _ in range(2999):
            parent = Node("n")
            parent.append_child(root)
            root = parent

        lines = Serializer().render(root).split("\n")

        assert len(lines) == 2 * 2999 + 1
        assert lines[2999] == "  " * 2999 + "<n>leaf</n>"
        assert lines[-1] == "</n>"
        root.dispose()


class TestRenderDocument:
    """Test rendering parsed documents."""

    def test_uses_parsed_header(self) -> None:
        """Test the document's own header is reused."""
        document = parse_string('<?xml version="1.0"?><a/>')
        output = Serializer().render_document(document, include_header=True)
        assert output == '<?xml version="1.0"?>\n<a/>'

    def test_falls_back_to_default_header(self) -> None:
        """Test documents without a header get the default one."""
        document = parse_string("<a/>")
        assert Serializer().render_document(document, include_header=True).startswith(DEFAULT_HEADER)

    def test_dispose_document(self) -> None:
        """Test dispose also forgets the root."""
        document = parse_string("<a><b/></a>")
        Serializer().render_document(document, dispose=True)
        assert document.root is None

    def test_missing_root(self) -> None:
        """Test empty documents cannot be rendered."""
        with pytest.raises(ValueError, match="no root"):
            Serializer().render_document(Document())


class TestRoundTrip:
    """Test rendering is the structural inverse of parsing."""

    @pytest.mark.parametrize(
        "text",
        [
            '<shop><item price="4.29">Cone</item></shop>',
            "<a><b/></a>",
            "<p>Hello <b>big</b> world</p>",
            """<q a='say "x"' b="1"><r/><r k="v">t</r></q>""",
            "<root>lead<x><y><z>deep</z></y></x></root>",
        ],
    )
    def test_parse_render_parse(self, text: str) -> None:
        """Test a rendered tree parses back to an equal structure."""
        first = parse_string(text).root
        for config in (SerializerConfig(), SerializerConfig(indent="", newline="")):
            second = parse_string(Serializer(config).render(first)).root
            assert first.structurally_equal(second)

    def test_shop_round_trip(self) -> None:
        """Test the shop document renders to the expected text."""
        root = parse_string('<shop><item price="4.29">Cone</item></shop>').root
        assert Serializer().render(root) == '<shop>\n  <item price="4.29">Cone</item>\n</shop>'

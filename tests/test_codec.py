"""
Tests for the term codec.
"""

import pytest

from rdf_mongostore.storage.codec import (
    EncodedTerm,
    MalformedDocument,
    NodeCache,
    Slot,
    decode,
    encode,
    encode_pattern,
)
from rdf_mongostore.terms import (
    ANY,
    DEFAULT_GRAPH,
    BlankNode,
    Literal,
    URI,
    Variable,
)

XSD_INT = URI("http://www.w3.org/2001/XMLSchema#integer")


class TestEncode:
    """Test encoding of bound terms into document fields."""

    def test_uri(self):
        assert encode(URI("http://ex/s"), Slot.SUBJECT) == {
            "subject": "http://ex/s",
            "s_type": "uri",
        }

    def test_blank_node(self):
        assert encode(BlankNode("b1"), Slot.OBJECT) == {
            "object": "b1",
            "o_type": "node",
        }

    def test_plain_literal_has_no_literal_field(self):
        assert encode(Literal("hello"), Slot.OBJECT) == {
            "object": "hello",
            "o_type": "literal",
        }

    def test_language_literal(self):
        assert encode(Literal("hello", language="en"), Slot.OBJECT) == {
            "object": "hello",
            "o_type": "literal_lang",
            "o_literal": "en",
        }

    def test_typed_literal(self):
        assert encode(Literal("42", datatype=XSD_INT), Slot.OBJECT) == {
            "object": "42",
            "o_type": "literal_type",
            "o_literal": str(XSD_INT),
        }

    def test_default_graph(self):
        expected = {"context": False, "c_type": "default"}
        assert encode(DEFAULT_GRAPH, Slot.GRAPH) == expected
        assert encode(None, Slot.GRAPH) == expected

    def test_named_graph(self):
        assert encode(URI("http://ex/g"), Slot.GRAPH) == {
            "context": "http://ex/g",
            "c_type": "uri",
        }

    def test_default_graph_outside_graph_slot_rejected(self):
        with pytest.raises(TypeError):
            encode(DEFAULT_GRAPH, Slot.SUBJECT)

    def test_empty_literal_is_kept(self):
        """An empty lexical form is a value, not an absent field."""
        assert encode(Literal(""), Slot.OBJECT) == {"object": "", "o_type": "literal"}

    def test_encoded_term_drops_none(self):
        fields = EncodedTerm(value="x", type="uri", literal=None).to_fields(Slot.PREDICATE)
        assert fields == {"predicate": "x", "p_type": "uri"}
        assert None not in fields.values()


class TestEncodePattern:
    """Test encoding of pattern slots into filter fields."""

    def test_wildcard_is_unconstrained(self):
        for slot in Slot:
            assert encode_pattern(ANY, slot) == {}

    def test_variable_on_graph_excludes_default(self):
        assert encode_pattern(Variable("g"), Slot.GRAPH) == {
            "c_type": {"$ne": "default"}
        }

    def test_variable_elsewhere_is_unconstrained(self):
        assert encode_pattern(Variable("s"), Slot.SUBJECT) == {}

    def test_default_graph_matches_bound_encoding(self):
        assert encode_pattern(DEFAULT_GRAPH, Slot.GRAPH) == encode(DEFAULT_GRAPH, Slot.GRAPH)

    def test_bound_term_is_equality(self):
        term = Literal("hi", language="fr")
        assert encode_pattern(term, Slot.OBJECT) == encode(term, Slot.OBJECT)


class TestDecode:
    """Test decoding of document fields back into terms."""

    @pytest.mark.parametrize(
        "term",
        [
            URI("http://ex/o"),
            BlankNode("n1"),
            Literal("plain"),
            Literal("bonjour", language="fr"),
            Literal("42", datatype=XSD_INT),
        ],
    )
    def test_round_trip(self, term):
        nodes = NodeCache()
        assert decode(encode(term, Slot.OBJECT), Slot.OBJECT, nodes) == term

    def test_default_graph_decodes_to_none(self):
        """The default graph comes back as "no graph", never DEFAULT_GRAPH."""
        assert decode(encode(DEFAULT_GRAPH, Slot.GRAPH), Slot.GRAPH) is None

    def test_missing_graph_tag_rejected(self):
        with pytest.raises(MalformedDocument, match="c_type"):
            decode({"subject": "x", "s_type": "uri"}, Slot.GRAPH)

    def test_missing_type_tag_rejected(self):
        with pytest.raises(MalformedDocument):
            decode({"subject": "x"}, Slot.SUBJECT)

    def test_unknown_type_tag_rejected(self):
        with pytest.raises(MalformedDocument, match="Unknown type tag"):
            decode({"object": "x", "o_type": "quoted"}, Slot.OBJECT)

    def test_language_literal_without_companion_rejected(self):
        with pytest.raises(MalformedDocument, match="o_literal"):
            decode({"object": "x", "o_type": "literal_lang"}, Slot.OBJECT)

    def test_typed_literal_without_companion_rejected(self):
        with pytest.raises(MalformedDocument, match="o_literal"):
            decode({"object": "x", "o_type": "literal_type"}, Slot.OBJECT)

    def test_missing_value_rejected(self):
        with pytest.raises(MalformedDocument, match="predicate"):
            decode({"p_type": "uri"}, Slot.PREDICATE)

    def test_default_tag_outside_graph_rejected(self):
        with pytest.raises(MalformedDocument):
            decode({"subject": False, "s_type": "default"}, Slot.SUBJECT)


class TestNodeCache:
    """Test blank node identity scoping."""

    def test_same_label_same_object_within_cache(self):
        nodes = NodeCache()
        doc = {"subject": "b7", "s_type": "node", "object": "b7", "o_type": "node"}
        first = decode(doc, Slot.SUBJECT, nodes)
        second = decode(doc, Slot.OBJECT, nodes)
        assert first is second
        assert "b7" in nodes
        assert len(nodes) == 1

    def test_separate_caches_do_not_share_objects(self):
        doc = {"subject": "b7", "s_type": "node"}
        a = decode(doc, Slot.SUBJECT, NodeCache())
        b = decode(doc, Slot.SUBJECT, NodeCache())
        assert a == b
        assert a is not b

"""Tests for the basic graph pattern query parser."""
import pytest

from rdf_proptable.errors import QueryParseError
from rdf_proptable.sparql.ast import Constant, TriplePattern, Variable
from rdf_proptable.sparql.parser import (
    RDF_TYPE,
    XSD_INTEGER,
    BGPQueryParser,
    escape_literal,
    parse_query,
)


@pytest.fixture
def parser():
    return BGPQueryParser()


class TestSelect:
    def test_select_variables(self, parser):
        query = parser.parse("SELECT ?s ?o WHERE { ?s <http://example.org/p> ?o }")
        assert query.projection == [Variable("s"), Variable("o")]
        assert not query.select_all
        assert not query.distinct
        assert query.patterns == [
            TriplePattern(Variable("s"), Constant("<http://example.org/p>"), Variable("o"))
        ]

    def test_select_star(self, parser):
        query = parser.parse("SELECT * { ?s ?p ?o }")
        assert query.select_all
        assert query.patterns[0].predicate == Variable("p")

    def test_distinct_and_case(self, parser):
        query = parser.parse("select distinct ?s where { ?s ?p ?o . }")
        assert query.distinct

    def test_dollar_variables(self, parser):
        query = parser.parse("SELECT $s WHERE { $s <http://p> $o }")
        assert query.projection == [Variable("s")]
        assert query.patterns[0].object == Variable("o")

    def test_comments_ignored(self, parser):
        query = parser.parse(
            "# find everything\n"
            "SELECT * WHERE {\n"
            "  ?s <http://example.org/p#frag> ?o . # trailing\n"
            "}"
        )
        assert query.patterns[0].predicate == Constant("<http://example.org/p#frag>")


class TestTriplesBlocks:
    def test_predicate_object_lists(self, parser):
        query = parser.parse("""
            PREFIX ex: <http://example.org/>
            SELECT * WHERE {
                ?person ex:name ?name ;
                        ex:knows ex:bob, ?friend .
                ex:bob ex:age 30
            }
        """)
        patterns = query.patterns
        assert len(patterns) == 4
        assert patterns[0] == TriplePattern(
            Variable("person"), Constant("<http://example.org/name>"), Variable("name")
        )
        assert patterns[1].object == Constant("<http://example.org/bob>")
        assert patterns[2].object == Variable("friend")
        assert patterns[3].subject == Constant("<http://example.org/bob>")
        assert patterns[3].object == Constant(f'"30"^^<{XSD_INTEGER}>')

    def test_groups(self, parser):
        query = parser.parse("""
            PREFIX ex: <http://example.org/>
            SELECT * WHERE { ?a ex:p ?b . ?b ex:q ?c . ?a ex:r ?d }
        """)
        groups = query.groups
        assert [len(group) for group in groups] == [2, 1]

    def test_rdf_type_keyword(self, parser):
        query = parser.parse("SELECT ?s WHERE { ?s a <http://example.org/Person> }")
        assert query.patterns[0].predicate == Constant(f"<{RDF_TYPE}>")

    def test_empty_pattern(self, parser):
        assert parser.parse("SELECT * WHERE { }").patterns == []


class TestTerms:
    def test_undeclared_prefix_kept_verbatim(self, parser):
        query = parser.parse("SELECT ?s WHERE { ?s ex:Name ?o }")
        assert query.patterns[0].predicate == Constant("ex:Name")

    def test_prefixes_recorded(self, parser):
        query = parser.parse("PREFIX : <http://example.org/> SELECT * WHERE { ?s :p ?o }")
        assert query.prefixes == {"": "http://example.org/"}
        assert query.patterns[0].predicate == Constant("<http://example.org/p>")

    def test_language_literal(self, parser):
        query = parser.parse('SELECT ?s WHERE { ?s <http://p> "chat"@fr }')
        assert query.patterns[0].object == Constant('"chat"@fr')

    def test_typed_literal_with_prefixed_datatype(self, parser):
        query = parser.parse(
            "PREFIX xsd: <http://www.w3.org/2001/XMLSchema#> "
            'SELECT ?s WHERE { ?s <http://p> "2024-01-01"^^xsd:date }'
        )
        assert query.patterns[0].object == Constant(
            '"2024-01-01"^^<http://www.w3.org/2001/XMLSchema#date>'
        )

    def test_single_quoted_literal(self, parser):
        query = parser.parse("SELECT ?s WHERE { ?s <http://p> 'Alice' }")
        assert query.patterns[0].object == Constant('"Alice"')

    def test_blank_node_label(self, parser):
        query = parser.parse("SELECT ?o WHERE { _:b1 <http://p> ?o }")
        assert query.patterns[0].subject == Constant("_:b1")

    def test_escape_literal(self):
        assert escape_literal('say "hi"\n') == 'say \\"hi\\"\\n'


class TestErrors:
    @pytest.mark.parametrize("text", [
        "",
        "SELECT ?s",
        "SELECT ?s WHERE { ?s <http://p> }",
        "SELECT ?s WHERE { ?s <http://p> ?o ",
        "ASK { ?s ?p ?o }",
        "SELECT ?s WHERE { ?s <http://p> ?o } LIMIT 5",
        'SELECT ?s WHERE { "lit" <http://p> ?o }',
    ])
    def test_invalid_queries(self, parser, text):
        with pytest.raises(QueryParseError):
            parser.parse(text)


class TestParseQuery:
    def test_cached_parser(self):
        first = parse_query("SELECT * WHERE { ?s ?p ?o }")
        second = parse_query("SELECT * WHERE { ?s ?p ?o }")
        assert first == second

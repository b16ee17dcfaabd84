"""
Tests for star pattern translation.

Generated SQL is executed on DuckDB against a property table built from a
small triple set, and compared with the answers computed directly from the
triples.
"""
import pytest

from rdf_proptable.config import TableConfig
from rdf_proptable.errors import PredicateNotFoundError, UnsupportedPatternError
from rdf_proptable.loader import PropertyTableLoader
from rdf_proptable.models import PredicateCatalog
from rdf_proptable.sparql.ast import Constant, PatternGroup, TriplePattern, Variable
from rdf_proptable.sparql.builder import SelectQuery, UnionQuery
from rdf_proptable.sparql.translator import TriplePatternTranslator
from rdf_proptable.storage.duckdb import DuckDBEngine
from rdf_proptable.storage.triples import TripleTable

EX = "http://example.org/"
ALICE, BOB, CAROL, DAVE = (f"<{EX}{n}>" for n in ("alice", "bob", "carol", "dave"))
NAME = f"<{EX}name>"
KNOWS = f"<{EX}knows>"
AGE = f"<{EX}age>"

TRIPLES = [
    (ALICE, NAME, '"Alice"'),
    (ALICE, KNOWS, BOB),
    (ALICE, KNOWS, CAROL),
    (BOB, NAME, '"Bob"'),
    (BOB, KNOWS, CAROL),
    (CAROL, AGE, '"30"'),
    (DAVE, KNOWS, ALICE),
]

S, P, O = Variable("s"), Variable("p"), Variable("o")


def pattern(subject, predicate, obj):
    def term(value):
        return value if isinstance(value, Variable) else Constant(value)
    return TriplePattern(term(subject), term(predicate), term(obj))


def build_store(engine, triples):
    TripleTable(engine).write_triples(triples)
    return PropertyTableLoader(engine).load().catalog


@pytest.fixture
def engine():
    with DuckDBEngine() as engine:
        yield engine


@pytest.fixture
def translator(engine):
    return TriplePatternTranslator(build_store(engine, TRIPLES))


def run(engine, translator, *patterns):
    query = translator.translate(PatternGroup.of(*patterns))
    return engine.query_frame(query.render())


class TestFixedPredicates:
    """Groups whose predicates are all bound."""

    def test_single_valued_variable_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, NAME, O))
        assert frame.columns == ["s", "o"]
        expected = {(s, o) for s, p, o in TRIPLES if p == NAME}
        assert set(frame.rows()) == expected
        assert frame.height == len(expected)

    def test_multivalued_variable_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, KNOWS, O))
        expected = {(s, o) for s, p, o in TRIPLES if p == KNOWS}
        assert set(frame.rows()) == expected
        assert frame.height == len(expected)

    def test_multivalued_constant_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, KNOWS, CAROL))
        assert frame.columns == ["s"]
        assert set(frame["s"].to_list()) == {ALICE, BOB}

    def test_single_valued_constant_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, NAME, '"Bob"'))
        assert frame["s"].to_list() == [BOB]

    def test_constant_subject(self, engine, translator):
        frame = run(engine, translator, pattern(ALICE, KNOWS, O))
        assert frame.columns == ["o"]
        assert set(frame["o"].to_list()) == {BOB, CAROL}

    def test_star_join(self, engine, translator):
        name, friend = Variable("name"), Variable("friend")
        frame = run(
            engine, translator,
            pattern(S, NAME, name),
            pattern(S, KNOWS, friend),
        )
        assert frame.columns == ["s", "name", "friend"]
        assert set(frame.rows()) == {
            (ALICE, '"Alice"', BOB),
            (ALICE, '"Alice"', CAROL),
            (BOB, '"Bob"', CAROL),
        }

    def test_two_unnests_cross_product(self, engine, translator):
        x, y = Variable("x"), Variable("y")
        frame = run(engine, translator, pattern(S, KNOWS, x), pattern(S, KNOWS, y))
        assert frame.height == 4 + 1 + 1

    def test_repeated_variable_becomes_condition(self, engine, translator):
        x = Variable("x")
        query = translator.translate(
            PatternGroup.of(pattern(S, KNOWS, x), pattern(S, KNOWS, x))
        )
        assert query.columns == ["s", "x"]
        assert '"u0"."v" = "u1"."v"' in query.render()
        frame = engine.query_frame(query.render())
        assert frame.height == 4

    def test_subject_equals_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, KNOWS, S))
        assert frame.height == 0

    def test_single_valued_filters_missing(self, engine, translator):
        query = translator.translate(PatternGroup.of(pattern(S, AGE, O)))
        assert '"pt"."http___example_org_age" IS NOT NULL' in query.render()
        assert engine.query_frame(query.render()).rows() == [(CAROL, '"30"')]

    def test_no_variables(self, engine, translator):
        frame = run(engine, translator, pattern(ALICE, NAME, '"Alice"'))
        assert frame.columns == ["_match"]
        assert frame.rows() == [(True,)]
        assert run(engine, translator, pattern(ALICE, NAME, '"Bob"')).height == 0

    def test_produces_select_query(self, translator):
        query = translator.translate(PatternGroup.of(pattern(S, NAME, O)))
        assert isinstance(query, SelectQuery)
        assert translator.to_sql(PatternGroup.of(pattern(S, NAME, O))) == query.render()


class TestUnboundPredicate:
    """Single-pattern groups with a variable predicate."""

    def test_reproduces_relation(self, engine):
        triples = [("<s1>", "<p1>", "<o1>"), ("<s1>", "<p2>", "<o2>"), ("<s2>", "<p1>", "<o3>")]
        translator = TriplePatternTranslator(build_store(engine, triples))
        query = translator.translate(PatternGroup.of(pattern(S, P, O)))
        assert isinstance(query, UnionQuery)
        frame = engine.query_frame(query.render())
        assert frame.columns == ["s", "p", "o"]
        assert frame.height == 3
        assert set(frame.rows()) == set(triples)

    def test_reproduces_relation_with_lists(self, engine, translator):
        frame = run(engine, translator, pattern(S, P, O))
        assert frame.height == len(TRIPLES)
        assert set(frame.rows()) == set(TRIPLES)

    def test_constant_subject(self, engine, translator):
        frame = run(engine, translator, pattern(ALICE, P, O))
        assert set(frame.rows()) == {(p, o) for s, p, o in TRIPLES if s == ALICE}

    def test_constant_object(self, engine, translator):
        frame = run(engine, translator, pattern(S, P, CAROL))
        assert set(frame.rows()) == {(ALICE, KNOWS), (BOB, KNOWS)}

    def test_single_predicate_catalog(self, engine):
        translator = TriplePatternTranslator(build_store(engine, [("<a>", "<p>", "<b>")]))
        sql = translator.to_sql(PatternGroup.of(pattern(S, P, O)))
        assert sql.startswith("SELECT DISTINCT ")
        assert engine.query_frame(sql).rows() == [("<a>", "<p>", "<b>")]

    def test_empty_catalog(self, engine):
        translator = TriplePatternTranslator(build_store(engine, []))
        sql = translator.to_sql(PatternGroup.of(pattern(S, P, O)))
        assert sql.endswith("WHERE FALSE")
        frame = engine.query_frame(sql)
        assert frame.columns == ["s", "p", "o"]
        assert frame.height == 0

    def test_multi_pattern_group_rejected(self, translator):
        group = PatternGroup.of(pattern(S, P, O), pattern(S, NAME, Variable("n")))
        with pytest.raises(UnsupportedPatternError):
            translator.translate(group)


class TestErrors:
    def test_unknown_predicate(self, translator):
        with pytest.raises(PredicateNotFoundError) as exc_info:
            translator.translate(PatternGroup.of(pattern(S, f"<{EX}unknown>", O)))
        assert exc_info.value.predicate == f"<{EX}unknown>"

    def test_dropped_predicate_reports_survivor(self, engine):
        translator = TriplePatternTranslator(build_store(engine, [
            ("<a>", "ex:Name", '"A"'),
            ("<b>", "ex:name", '"B"'),
        ]))
        with pytest.raises(PredicateNotFoundError) as exc_info:
            translator.translate(PatternGroup.of(pattern(S, "ex:name", O)))
        assert exc_info.value.replaced_by == "ex:Name"

        frame = engine.query_frame(translator.to_sql(PatternGroup.of(pattern(S, "ex:Name", O))))
        assert frame.rows() == [("<a>", '"A"')]

    def test_empty_catalog_fixed_predicate(self):
        translator = TriplePatternTranslator(PredicateCatalog())
        with pytest.raises(PredicateNotFoundError):
            translator.translate(PatternGroup.of(pattern(S, NAME, O)))


class TestTableNames:
    def test_custom_names(self, engine):
        tables = TableConfig(property_table="wide", subject_column="subj")
        translator = TriplePatternTranslator(
            PredicateCatalog(), tables
        )
        sql = translator.to_sql(PatternGroup.of(pattern(S, P, O)))
        assert 'FROM "wide" AS "pt"' in sql
        assert '"pt"."subj" AS "s"' in sql

"""
Basic graph pattern query parser using pyparsing.

Accepts the conjunctive subset of SPARQL SELECT that the property table can
answer:

    PREFIX ex: <http://example.org/>
    SELECT ?name ?friend WHERE {
        ?person ex:name ?name ;
                ex:knows ?friend, ex:bob .
    }

Bound terms are turned into the lexical forms used by N-Triples so they
compare equal to loaded data: full IRIs keep their angle brackets, prefixed
names with a declared prefix are expanded to <iri>, literals are re-quoted
with their language tag or datatype. Prefixed names without a declaration
are kept verbatim.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import pyparsing as pp
from pyparsing import (
    CaselessKeyword,
    Combine,
    DelimitedList,
    Group,
    Keyword,
    Literal as Lit,
    OneOrMore,
    Optional as Opt,
    QuotedString,
    Regex,
    Suppress,
    Word,
    ZeroOrMore,
    alphanums,
    alphas,
)

from rdf_proptable.errors import QueryParseError
from rdf_proptable.sparql.ast import (
    Constant,
    PatternGroup,
    Term,
    TriplePattern,
    Variable,
    group_by_subject,
)

RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
XSD_INTEGER = "http://www.w3.org/2001/XMLSchema#integer"


# Unresolved terms, produced by the grammar before prefixes are known

@dataclass(frozen=True)
class _IRIRef:
    text: str


@dataclass(frozen=True)
class _PrefixedName:
    prefix: str
    local: str


@dataclass(frozen=True)
class _LiteralTerm:
    value: str
    language: Optional[str] = None
    datatype: Optional[Union[_IRIRef, _PrefixedName]] = None


@dataclass(frozen=True)
class _BlankNode:
    label: str


@dataclass
class ParsedQuery:
    """A parsed SELECT over a basic graph pattern."""
    patterns: list[TriplePattern]
    projection: list[Variable] = field(default_factory=list)
    prefixes: dict[str, str] = field(default_factory=dict)
    distinct: bool = False

    @property
    def select_all(self) -> bool:
        return not self.projection

    @property
    def groups(self) -> list[PatternGroup]:
        return group_by_subject(self.patterns)


def escape_literal(value: str) -> str:
    """N-Triples escaping for the content of a quoted literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def resolve_term(term: Any, prefixes: dict[str, str]) -> Term:
    """Turn a grammar term into a Variable or a Constant in lexical form."""
    if isinstance(term, Variable):
        return term
    if isinstance(term, _IRIRef):
        return Constant(term.text)
    if isinstance(term, _PrefixedName):
        namespace = prefixes.get(term.prefix)
        if namespace is None:
            return Constant(f"{term.prefix}:{term.local}")
        return Constant(f"<{namespace}{term.local}>")
    if isinstance(term, _LiteralTerm):
        lexical = f'"{escape_literal(term.value)}"'
        if term.language:
            lexical += f"@{term.language}"
        elif term.datatype is not None:
            lexical += f"^^{resolve_term(term.datatype, prefixes).value}"
        return Constant(lexical)
    if isinstance(term, _BlankNode):
        return Constant(term.label)
    raise QueryParseError(f"Unexpected term in pattern: {term!r}")


class BGPQueryParser:
    """
    Parser for SELECT queries over a basic graph pattern.

    Supports:
    - PREFIX declarations and prefixed names
    - SELECT [DISTINCT] * or a variable list, optional WHERE keyword
    - Predicate-object lists (;) and object lists (,)
    - IRIs, 'a', variables, blank node labels, quoted literals with
      language tag or datatype, integer literals
    """

    def __init__(self):
        self._build_grammar()

    def _build_grammar(self):
        """Build the pyparsing grammar."""

        pp.ParserElement.enable_packrat()

        # =================================================================
        # Lexical tokens
        # =================================================================

        SELECT = CaselessKeyword("SELECT")
        WHERE = CaselessKeyword("WHERE")
        PREFIX = CaselessKeyword("PREFIX")
        DISTINCT = CaselessKeyword("DISTINCT")
        A = Keyword("a")

        LBRACE = Suppress(Lit("{"))
        RBRACE = Suppress(Lit("}"))
        DOT = Suppress(Lit("."))
        SEMI = Suppress(Lit(";"))
        STAR = Lit("*")

        # =================================================================
        # Terms
        # =================================================================

        def make_variable(tokens):
            return Variable(tokens[0][1:])

        variable = Combine(
            (Lit("?") | Lit("$")) + Word(alphas + "_", alphanums + "_")
        ).set_parse_action(make_variable)

        iri_text = Regex(r'<[^<>"{}|^`\\\s]*>')
        full_iri = iri_text.copy().set_parse_action(lambda tokens: _IRIRef(tokens[0]))

        pname_ns = Regex(r'(?:[A-Za-z][A-Za-z0-9_\-]*)?:')

        def make_prefixed_name(tokens):
            prefix, _, local = tokens[0].partition(":")
            return _PrefixedName(prefix, local)

        prefixed_name = Regex(
            r'(?:[A-Za-z][A-Za-z0-9_\-]*)?:(?:[A-Za-z0-9_](?:[A-Za-z0-9_.\-]*[A-Za-z0-9_\-])?)?'
        ).set_parse_action(make_prefixed_name)

        iri = full_iri | prefixed_name

        rdf_type = A.copy().set_parse_action(lambda tokens: _IRIRef(f"<{RDF_TYPE}>"))

        string_literal = (
            QuotedString('"', esc_char='\\') |
            QuotedString("'", esc_char='\\')
        )
        lang_tag = Regex(r'@[A-Za-z]+(?:-[A-Za-z0-9]+)*')
        datatype = Suppress(Lit("^^")) + iri

        def make_literal(tokens):
            value = tokens[0]
            if len(tokens) > 1:
                if isinstance(tokens[1], str) and tokens[1].startswith("@"):
                    return _LiteralTerm(value, language=tokens[1][1:])
                return _LiteralTerm(value, datatype=tokens[1])
            return _LiteralTerm(value)

        literal = (string_literal + Opt(lang_tag | datatype)).set_parse_action(make_literal)

        integer_literal = Regex(r'[+-]?\d+').set_parse_action(
            lambda tokens: _LiteralTerm(tokens[0], datatype=_IRIRef(f"<{XSD_INTEGER}>"))
        )

        blank_node = Regex(r'_:[A-Za-z0-9_]+').set_parse_action(
            lambda tokens: _BlankNode(tokens[0])
        )

        # =================================================================
        # Triples blocks
        # =================================================================

        subject = variable | blank_node | iri
        verb = variable | iri | rdf_type
        obj = variable | literal | integer_literal | blank_node | iri

        object_list = Group(DelimitedList(obj, delim=","))
        predicate_object = Group(verb + object_list)
        property_list = predicate_object + ZeroOrMore(SEMI + Opt(predicate_object))
        triples = Group(subject + Group(property_list)) + Opt(DOT)

        where_clause = (
            Opt(Suppress(WHERE)) + LBRACE + Group(ZeroOrMore(triples))("triples") + RBRACE
        )

        # =================================================================
        # Prologue and SELECT
        # =================================================================

        prefix_decl = Group(Suppress(PREFIX) + pname_ns + iri_text)

        projection = STAR | OneOrMore(variable)

        self.query = (
            Group(ZeroOrMore(prefix_decl))("prefixes") +
            Suppress(SELECT) +
            Opt(DISTINCT("distinct")) +
            Group(projection)("projection") +
            where_clause
        )

        self.query.ignore(Lit("#") + pp.rest_of_line)

    def parse(self, query_string: str) -> ParsedQuery:
        """
        Parse a query string.

        Raises:
            QueryParseError: If the query is malformed or uses unsupported syntax
        """
        try:
            result = self.query.parse_string(query_string, parse_all=True)
        except pp.ParseBaseException as e:
            raise QueryParseError(f"Invalid query: {e}") from e

        prefixes = {
            decl[0][:-1]: decl[1][1:-1]
            for decl in result.get("prefixes", [])
        }

        projection = [
            token for token in result["projection"] if isinstance(token, Variable)
        ]

        patterns: list[TriplePattern] = []
        for same_subject in result.get("triples", []):
            subject = resolve_term(same_subject[0], prefixes)
            for predicate_objects in same_subject[1]:
                predicate = resolve_term(predicate_objects[0], prefixes)
                for obj in predicate_objects[1]:
                    patterns.append(TriplePattern(
                        subject=subject,
                        predicate=predicate,
                        object=resolve_term(obj, prefixes),
                    ))

        return ParsedQuery(
            patterns=patterns,
            projection=projection,
            prefixes=prefixes,
            distinct="distinct" in result,
        )


# Module-level parser instance for convenience
_parser: Optional[BGPQueryParser] = None
_parser_lock = threading.Lock()


def parse_query(query_string: str) -> ParsedQuery:
    """
    Parse a basic graph pattern SELECT query.

    This is a convenience function that uses a cached parser instance.
    """
    global _parser
    with _parser_lock:
        if _parser is None:
            _parser = BGPQueryParser()
    return _parser.parse(query_string)

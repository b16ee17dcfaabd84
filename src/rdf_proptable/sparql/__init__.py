"""
Star pattern queries over the property table.
"""

from rdf_proptable.sparql.ast import (
    Variable,
    Constant,
    TriplePattern,
    PatternGroup,
    group_by_subject,
)
from rdf_proptable.sparql.parser import BGPQueryParser, ParsedQuery, parse_query
from rdf_proptable.sparql.translator import TriplePatternTranslator
from rdf_proptable.sparql.join_tree import NodeKind, PropertyTableNode, compute_node_data

__all__ = [
    "Variable",
    "Constant",
    "TriplePattern",
    "PatternGroup",
    "group_by_subject",
    "BGPQueryParser",
    "ParsedQuery",
    "parse_query",
    "TriplePatternTranslator",
    "NodeKind",
    "PropertyTableNode",
    "compute_node_data",
]

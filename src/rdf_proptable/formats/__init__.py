"""
RDF input formats.
"""

from rdf_proptable.formats.ntriples import NTriplesParser, ParseReport, open_ntriples

__all__ = ["NTriplesParser", "ParseReport", "open_ntriples"]

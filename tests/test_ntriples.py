"""Tests for the streaming N-Triples reader."""
import gzip

import pytest

from rdf_proptable.formats.ntriples import NTriplesParser
from rdf_proptable.models import Triple

SAMPLE = """\
# people
<http://example.org/alice> <http://example.org/name> "Alice"@en .
<http://example.org/alice> <http://example.org/age> "30"^^<http://www.w3.org/2001/XMLSchema#integer> .
<http://example.org/alice> <http://example.org/knows> _:b1 .

_:b1 <http://example.org/name> "Bob \\"the builder\\"" .
this is not a triple
<http://example.org/carol> <http://example.org/knows> <http://example.org/alice>
"""


@pytest.fixture
def parser():
    return NTriplesParser()


class TestParseLine:
    def test_iri_object(self, parser):
        triple = parser.parse_line("<http://a> <http://p> <http://b> .")
        assert triple == Triple("<http://a>", "<http://p>", "<http://b>")

    def test_language_literal(self, parser):
        triple = parser.parse_line('<http://a> <http://p> "chat"@fr .')
        assert triple.object == '"chat"@fr'

    def test_typed_literal(self, parser):
        triple = parser.parse_line(
            '<http://a> <http://p> "1"^^<http://www.w3.org/2001/XMLSchema#integer> .'
        )
        assert triple.object == '"1"^^<http://www.w3.org/2001/XMLSchema#integer>'

    def test_blank_nodes(self, parser):
        triple = parser.parse_line("_:x <http://p> _:y .")
        assert (triple.subject, triple.object) == ("_:x", "_:y")

    def test_trailing_comment(self, parser):
        triple = parser.parse_line("<http://a> <http://p> <http://b> . # note")
        assert triple.object == "<http://b>"

    def test_blank_and_comment_lines(self, parser):
        assert parser.parse_line("") is None
        assert parser.parse_line("   ") is None
        assert parser.parse_line("# comment") is None

    @pytest.mark.parametrize("line", [
        "<http://a> <http://p> <http://b>",
        '"literal" <http://p> <http://b> .',
        "<http://a> _:p <http://b> .",
        "<http://a> <http://p> .",
    ])
    def test_malformed(self, parser, line):
        with pytest.raises(ValueError):
            parser.parse_line(line)


class TestParse:
    def test_skips_malformed_lines(self, parser):
        triples = parser.parse(SAMPLE)
        assert len(triples) == 4
        assert triples[3].object == '"Bob \\"the builder\\""'
        report = parser.report
        assert report.triples == 4
        assert report.skipped == 2
        assert report.lines_read == 8
        assert report.errors[0].startswith("line 7:")

    def test_file_path(self, parser, tmp_path):
        path = tmp_path / "data.nt"
        path.write_text(SAMPLE, encoding="utf-8")
        assert len(parser.parse(path)) == 4


class TestIterChunks:
    def test_chunking(self, parser, tmp_path):
        path = tmp_path / "data.nt"
        path.write_text(SAMPLE, encoding="utf-8")
        chunks = list(parser.iter_chunks(path, chunk_size=3))
        assert [len(chunk) for chunk in chunks] == [3, 1]
        assert chunks[0].columns == ["s", "p", "o"]

    def test_custom_columns(self, parser, tmp_path):
        path = tmp_path / "data.nt"
        path.write_text(SAMPLE, encoding="utf-8")
        chunks = list(parser.iter_chunks(
            path, subject_column="subj", predicate_column="pred", object_column="obj"
        ))
        assert chunks[0].columns == ["subj", "pred", "obj"]

    def test_gzip(self, parser, tmp_path):
        path = tmp_path / "data.nt.gz"
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(SAMPLE)
        chunks = list(parser.iter_chunks(path))
        assert sum(len(chunk) for chunk in chunks) == 4

    def test_empty_file(self, parser, tmp_path):
        path = tmp_path / "empty.nt"
        path.write_text("", encoding="utf-8")
        assert list(parser.iter_chunks(path)) == []

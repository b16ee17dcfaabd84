"""Tests for the predicate dictionary file."""
import pytest

from rdf_proptable.storage.classifier import build_catalog
from rdf_proptable.storage.dictionary import (
    read_predicate_dictionary,
    write_predicate_dictionary,
)


@pytest.fixture
def catalog():
    return build_catalog({
        "<http://example.org/name>": False,
        "<http://example.org/knows>": True,
        "<http://example.org/a,b>": False,
    })


class TestPredicateDictionary:
    def test_format(self, catalog, tmp_path):
        path = tmp_path / "dict.csv"
        assert write_predicate_dictionary(catalog, path) == 3
        assert path.read_text(encoding="utf-8").splitlines() == [
            "<http://example.org/a,b>,http___example_org_a_b",
            "<http://example.org/knows>,http___example_org_knows",
            "<http://example.org/name>,http___example_org_name",
        ]

    def test_round_trip(self, catalog, tmp_path):
        path = tmp_path / "dict.csv"
        write_predicate_dictionary(catalog, path)
        entries = read_predicate_dictionary(path)
        assert entries == {info.predicate: info.column_name for info in catalog}

    def test_creates_parent_directories(self, catalog, tmp_path):
        path = tmp_path / "out" / "nested" / "dict.csv"
        write_predicate_dictionary(catalog, path)
        assert path.exists()

    def test_overwrites(self, catalog, tmp_path):
        path = tmp_path / "dict.csv"
        path.write_text("stale,entry\nmore,stale\nand,more\nlines,here\n", encoding="utf-8")
        write_predicate_dictionary(build_catalog({"<p>": False}), path)
        assert read_predicate_dictionary(path) == {"<p>": "p"}

    def test_malformed_line(self, tmp_path):
        path = tmp_path / "dict.csv"
        path.write_text("<p>,p\nno-comma-here\n", encoding="utf-8")
        with pytest.raises(ValueError, match="2"):
            read_predicate_dictionary(path)

    def test_unwritable_path_raises(self, catalog, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(OSError):
            write_predicate_dictionary(catalog, blocker / "dict.csv")

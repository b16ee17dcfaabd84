"""Tests for the build phase pipeline."""
import pytest

from rdf_proptable.config import ConfigValidationError, LoaderConfig, TableConfig
from rdf_proptable.errors import ColumnNameCollisionError, PropertyTableError
from rdf_proptable.loader import PropertyTableLoader
from rdf_proptable.storage.dictionary import read_predicate_dictionary
from rdf_proptable.storage.duckdb import DuckDBEngine
from rdf_proptable.storage.triples import TripleTable

TRIPLES = [
    ("<http://ex/alice>", "ex:Name", '"Alice"'),
    ("<http://ex/bob>", "ex:name", '"Bob"'),
    ("<http://ex/alice>", "<http://ex/knows>", "<http://ex/bob>"),
    ("<http://ex/alice>", "<http://ex/knows>", "<http://ex/carol>"),
]


@pytest.fixture
def engine():
    with DuckDBEngine() as engine:
        yield engine


class TestPropertyTableLoader:
    def test_load(self, engine, tmp_path):
        TripleTable(engine).write_triples(TRIPLES)
        dictionary = tmp_path / "dict.csv"
        loader = PropertyTableLoader(engine, LoaderConfig(dictionary_file=str(dictionary)))

        result = loader.load()

        assert result.build.row_count == 2
        assert [info.predicate for info in result.catalog] == ["<http://ex/knows>", "ex:Name"]
        assert [d.predicate for d in result.catalog.dropped] == ["ex:name"]
        assert engine.table_exists("properties")
        assert engine.table_exists("property_table")
        assert read_predicate_dictionary(dictionary) == {
            "<http://ex/knows>": "http___ex_knows",
            "ex:Name": "ex_Name",
        }

        summary = result.to_dict()
        assert summary["rows"] == 2
        assert summary["multivalued"] == 1
        assert summary["dropped"] == ["ex:name"]
        assert summary["triples_ignored"] == 1
        assert summary["dictionary_file"] == str(dictionary)

    def test_no_dictionary_by_default(self, engine, tmp_path):
        TripleTable(engine).write_triples(TRIPLES)
        result = PropertyTableLoader(engine).load()
        assert result.dictionary_file is None

    def test_custom_tables(self, engine):
        tables = TableConfig(
            triple_table="triples", property_table="wide", metadata_table="preds",
            subject_column="subject", predicate_column="predicate", object_column="object",
        )
        TripleTable(engine, tables).write_triples(TRIPLES)
        result = PropertyTableLoader(engine, LoaderConfig(tables=tables)).load()
        assert result.build.table == "wide"
        assert list(engine.get_schema("wide"))[0] == "subject"
        assert engine.row_count("preds") == 2

    def test_missing_triple_table(self, engine):
        with pytest.raises(PropertyTableError, match="tripletable"):
            PropertyTableLoader(engine).load()

    def test_collision_fails_load(self, engine):
        TripleTable(engine).write_triples([
            ("<a>", "<http://a/b>", "<x>"),
            ("<a>", "<http://a.b>", "<y>"),
        ])
        with pytest.raises(ColumnNameCollisionError):
            PropertyTableLoader(engine).load()
        assert not engine.table_exists("property_table")

    def test_invalid_config(self, engine):
        with pytest.raises(ConfigValidationError):
            PropertyTableLoader(engine, LoaderConfig(batch_size=0))

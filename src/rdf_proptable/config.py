"""
Loader configuration for rdf-proptable.

Provides:
- Table and column naming for the triple relation and derived tables
- Build settings (database location, scan batch size, dictionary file)
- Validation and loading from YAML or JSON files
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100_000

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class TableConfig:
    """Names of the engine tables and of the triple relation columns."""
    triple_table: str = "tripletable"
    property_table: str = "property_table"
    metadata_table: str = "properties"
    subject_column: str = "s"
    predicate_column: str = "p"
    object_column: str = "o"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "triple_table": self.triple_table,
            "property_table": self.property_table,
            "metadata_table": self.metadata_table,
            "subject_column": self.subject_column,
            "predicate_column": self.predicate_column,
            "object_column": self.object_column,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableConfig":
        return cls(
            triple_table=data.get("triple_table", "tripletable"),
            property_table=data.get("property_table", "property_table"),
            metadata_table=data.get("metadata_table", "properties"),
            subject_column=data.get("subject_column", "s"),
            predicate_column=data.get("predicate_column", "p"),
            object_column=data.get("object_column", "o"),
        )


@dataclass
class LoaderConfig:
    """
    Complete configuration for one property-table load.

    Attributes:
        database: DuckDB database file, or ":memory:"
        tables: Table and column names
        batch_size: Rows per record batch when scanning the triple relation
        dictionary_file: Where to write the predicate dictionary (optional)
        threads: DuckDB worker threads (engine default when None)
    """
    database: str = ":memory:"
    tables: TableConfig = field(default_factory=TableConfig)
    batch_size: int = DEFAULT_BATCH_SIZE
    dictionary_file: Optional[str] = None
    threads: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "database": self.database,
            "tables": self.tables.to_dict(),
            "batch_size": self.batch_size,
            "dictionary_file": self.dictionary_file,
            "threads": self.threads,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoaderConfig":
        return cls(
            database=str(data.get("database", ":memory:")),
            tables=TableConfig.from_dict(data.get("tables", {})),
            batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
            dictionary_file=data.get("dictionary_file"),
            threads=data.get("threads"),
        )

    def validate(self) -> None:
        """
        Check names and limits.

        Raises:
            ConfigValidationError: On the first invalid setting
        """
        tables = self.tables
        for key, value in tables.to_dict().items():
            if not isinstance(value, str) or not _IDENTIFIER.match(value):
                raise ConfigValidationError(
                    f"tables.{key} must be a plain SQL identifier, got {value!r}"
                )

        table_names = [tables.triple_table, tables.property_table, tables.metadata_table]
        if len({name.lower() for name in table_names}) != len(table_names):
            raise ConfigValidationError(f"Table names must be distinct: {table_names}")

        columns = [tables.subject_column, tables.predicate_column, tables.object_column]
        if len({name.lower() for name in columns}) != len(columns):
            raise ConfigValidationError(f"Triple columns must be distinct: {columns}")

        if not isinstance(self.batch_size, int) or self.batch_size <= 0:
            raise ConfigValidationError(
                f"batch_size must be a positive integer, got {self.batch_size!r}"
            )

        if self.threads is not None and (not isinstance(self.threads, int) or self.threads <= 0):
            raise ConfigValidationError(
                f"threads must be a positive integer, got {self.threads!r}"
            )


def load_config(path: Union[str, Path]) -> LoaderConfig:
    """
    Load and validate a LoaderConfig from a YAML or JSON file.

    Files ending in .yaml/.yml are read with yaml.safe_load, anything else
    as JSON. A missing file or a syntax error propagates to the caller.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: top level must be a mapping")

    config = LoaderConfig.from_dict(data)
    config.validate()
    logger.debug(f"Loaded configuration from {path}: {config.to_dict()}")
    return config

"""
Predicate dictionary file.

Plain UTF-8 text, one line per predicate in slot order:

    original_predicate,internal_name

The internal name is the sanitized property-table column. It never contains
a comma, so lines are split on the last comma when read back. I/O errors are
not caught here; a failed write terminates the load.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Union

from rdf_proptable.models import PredicateCatalog

logger = logging.getLogger(__name__)


def write_predicate_dictionary(catalog: PredicateCatalog, path: Union[str, Path]) -> int:
    """
    Write the dictionary for a catalog, replacing any existing file.

    Returns:
        Number of lines written
    """
    path = Path(path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="\n") as f:
        for info in catalog:
            f.write(f"{info.predicate},{info.column_name}\n")

    logger.info(f"Wrote predicate dictionary with {len(catalog)} entries to {path}")
    return len(catalog)


def read_predicate_dictionary(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read a dictionary file back into predicate -> internal name.

    Raises:
        ValueError: If a non-empty line has no comma
    """
    entries: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line:
                continue
            predicate, sep, internal = line.rpartition(",")
            if not sep:
                raise ValueError(f"{path}:{line_number}: expected 'predicate,internal_name'")
            entries[predicate] = internal
    return entries

"""
Metadata Store

Parse per-library DABC tables into lookup key -> MethodMetadata.

Table format: CSV with a header row holding (case-insensitive) `fqn`
and `version` columns; any other column is ignored. The `fqn` cell is
free text carrying optional markers:

    class:<Name>   method:<name>(   param:<name>:

Extraction is marker-substring based. Constructors (`method:__init__(`)
are keyed by their class name, since that is what appears at call sites.
"""
import csv
import io
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from .data_structures import MethodMetadata
from .errors import MetadataResourceError
from .logging_setup import get_logger

logger = get_logger(__name__)

DATA_PACKAGE = "dabcd.data"

LIBRARY_TABLE: Mapping[str, str] = {
    "numpy":   "numpy-dabcs.csv",
    "pandas":  "pandas-dabcs.csv",
    "sklearn": "sklearn-dabcs.csv",
}

CONSTRUCTOR_SENTINEL = "__init__"

_METHOD_MARKER = "method:"
_PARAM_MARKER  = "param:"
_CLASS_MARKER  = "class:"


# ---------------------------------------------------------------------------
# fqn marker extraction
# ---------------------------------------------------------------------------

def _extract_method(fqn: str) -> Optional[str]:
    """Text between `method:` and the next `(`; None without both."""
    start = fqn.find(_METHOD_MARKER)
    if start == -1:
        return None
    start += len(_METHOD_MARKER)
    end = fqn.find("(", start)
    if end <= start:
        return None
    return fqn[start:end].strip()


def _extract_param(fqn: str) -> Optional[str]:
    """Text between `param:` and the next `:` (or end of string)."""
    start = fqn.find(_PARAM_MARKER)
    if start == -1:
        return None
    start += len(_PARAM_MARKER)
    end = fqn.find(":", start)
    if end == -1:
        end = len(fqn)
    return fqn[start:end].strip()


def _extract_class(fqn: str) -> Optional[str]:
    """Text after `class:` up to `(`, else `:`, else end of string."""
    start = fqn.find(_CLASS_MARKER)
    if start == -1:
        return None
    start += len(_CLASS_MARKER)
    end = fqn.find("(", start)
    if end == -1:
        end = fqn.find(":", start)
    if end == -1:
        end = len(fqn)
    return fqn[start:end].strip()


def resolve_key(fqn: str) -> Optional[str]:
    """
    Lookup key for an `fqn` cell.

    Constructors resolve to the enclosing class name; everything else
    resolves to the method name. None when nothing usable is found.
    """
    method = _extract_method(fqn)
    if method == CONSTRUCTOR_SENTINEL:
        key = _extract_class(fqn)
    else:
        key = method
    return key or None


# ---------------------------------------------------------------------------
# Table parsing
# ---------------------------------------------------------------------------

def _column_indices(header: List[str]) -> tuple[int, int]:
    fqn_index, version_index = -1, -1
    for i, name in enumerate(header):
        name = name.strip().lower()
        if name == "fqn":
            fqn_index = i
        elif name == "version":
            version_index = i
    return fqn_index, version_index


def _upsert(table: Dict[str, MethodMetadata], key: str, param: str, version: str) -> None:
    existing = table.get(key)
    if existing is None:
        table[key] = MethodMetadata.create(param, version)
    else:
        existing.add_param(param)


def parse_table(rows: Iterable[List[str]]) -> Dict[str, MethodMetadata]:
    """
    Build the lookup table from CSV rows (header first).

    Missing `fqn`/`version` columns yield an empty table.
    Incomplete rows are skipped. A row that raises is logged and skipped.
    """
    table: Dict[str, MethodMetadata] = {}
    iterator = iter(rows)

    header = next(iterator, None)
    if not header:
        return table

    fqn_index, version_index = _column_indices(header)
    if fqn_index == -1 or version_index == -1:
        logger.debug("Table header lacks fqn/version columns: %r", header)
        return table

    needed = max(fqn_index, version_index)

    for row_number, row in enumerate(iterator, start=2):
        try:
            if len(row) <= needed:
                continue

            fqn = row[fqn_index].strip()
            version = row[version_index].strip()
            if not fqn or not version:
                continue

            key = resolve_key(fqn)
            param = _extract_param(fqn)
            if not key or not param:
                continue

            _upsert(table, key, param, version)
        except Exception:
            logger.warning("Skipping unparseable DABC row %d", row_number, exc_info=True)

    return table


# ---------------------------------------------------------------------------
# Resource loading
# ---------------------------------------------------------------------------

def _read_resource(library: str, resource: str) -> str:
    bundled = resources.files(DATA_PACKAGE).joinpath(resource)
    if bundled.is_file():
        return bundled.read_text(encoding="utf-8")

    path = Path(resource)
    if path.is_file():
        return path.read_text(encoding="utf-8")

    raise MetadataResourceError(library, resource)


def load_library(
    library: str,
    table: Mapping[str, str] = LIBRARY_TABLE,
) -> Dict[str, MethodMetadata]:
    """
    Load one library's DABC table.

    `table` maps library names to either a bundled resource name or a
    CSV path on disk. Raises MetadataResourceError when the library is
    not configured or its resource cannot be found.
    """
    resource = table.get(library)
    if resource is None:
        raise MetadataResourceError(library)

    text = _read_resource(library, resource)
    methods = parse_table(csv.reader(io.StringIO(text)))
    logger.debug("Loaded %d DABC keys for %s", len(methods), library)
    return methods


def load_libraries(
    libraries: Iterable[str],
    table: Mapping[str, str] = LIBRARY_TABLE,
) -> Dict[str, MethodMetadata]:
    """
    Merge the tables of every library into a fresh mapping.

    A library whose table is unavailable is logged and contributes
    nothing; the rest still load.
    """
    allowed: Dict[str, MethodMetadata] = {}
    for library in sorted(libraries):
        try:
            allowed.update(load_library(library, table))
        except MetadataResourceError as e:
            logger.error("%s", e)
    return allowed

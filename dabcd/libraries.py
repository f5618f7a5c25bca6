"""
Library Detection

Which known libraries does a source text import?

Deliberately loose: a line qualifies if it starts with `import ` or
`from ` (no leading whitespace), and a library counts if its name
appears anywhere in that line.
"""
from typing import Iterable, Set

from .metadata import LIBRARY_TABLE

KNOWN_LIBRARIES = frozenset(LIBRARY_TABLE)

_IMPORT_PREFIXES = ("import ", "from ")


def is_import_line(line: str) -> bool:
    return line.startswith(_IMPORT_PREFIXES)


def detect_libraries(text: str, known: Iterable[str] = KNOWN_LIBRARIES) -> Set[str]:
    known = list(known)
    detected: Set[str] = set()

    for line in text.split("\n"):
        if not is_import_line(line):
            continue
        detected.update(name for name in known if name in line)

    return detected

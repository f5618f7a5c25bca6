"""
Finding Tracker

Session-scoped set of dismissed lookup keys.
Keys only ever get added; there is no way back for the session.
"""
from typing import FrozenSet, Iterable, List, Set

from .data_structures import Finding
from .logging_setup import get_logger

logger = get_logger(__name__)


class FindingTracker:

    def __init__(self, ignored: Iterable[str] = ()):
        self._ignored: Set[str] = set(ignored)

    @property
    def ignored(self) -> FrozenSet[str]:
        return frozenset(self._ignored)

    def ignore(self, key: str) -> None:
        if key in self._ignored:
            return
        self._ignored.add(key)
        logger.info("Added method to ignored warnings: %s", key)

    def is_ignored(self, key: str) -> bool:
        return key in self._ignored

    def filter(self, findings: List[Finding]) -> List[Finding]:
        return [f for f in findings if f.key not in self._ignored]

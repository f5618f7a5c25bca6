"""
Data structures for DABC metadata and scan results.

MethodMetadata accumulates while a table is parsed.
Finding is produced fresh on every scan and never stored.
"""
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class MethodMetadata:
    """Risk data for one lookup key (method name or constructor's class)."""

    params: List[str] = field(default_factory=list)
    version: str = ""

    @classmethod
    def create(cls, param: str, version: str) -> "MethodMetadata":
        return cls(params=[param], version=version)

    def add_param(self, param: str) -> None:
        """Append `param` unless already known. Version is left alone."""
        if param not in self.params:
            self.params.append(param)


@dataclass(frozen=True)
class Finding:
    """One at-risk call site in the current scan pass."""

    key: str
    start: int  # span of the identifier, not the whole call
    end: int
    missing_params: Tuple[str, ...]
    metadata: MethodMetadata

    def line_col(self, text: str) -> tuple[int, int]:
        """1-based (line, column) of the identifier within `text`."""
        line = text.count("\n", 0, self.start) + 1
        col = self.start - (text.rfind("\n", 0, self.start) + 1) + 1
        return line, col

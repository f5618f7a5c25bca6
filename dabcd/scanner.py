"""
Call Site Scanner

Find `name(...)` / `owner.name(...)` calls to risky methods and decide
whether each one binds every historically affected parameter.

This is text scanning, not parsing:
- parens inside string literals still count toward nesting
- `param=` is matched by plain containment in the argument text
"""
import re
from typing import AbstractSet, Dict, List, Optional, Tuple

from .data_structures import Finding, MethodMetadata

CALL_PATTERN = re.compile(r"\b(?:\w+\.)?(\w+)\s*\(")


def find_closing_paren(text: str, open_index: int) -> int:
    """
    Index of the `)` matching the `(` at `open_index`.

    Returns -1 when the parens never balance.
    """
    depth = 0
    for i in range(open_index, len(text)):
        char = text[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _binds(args: str, param: str) -> bool:
    return f"{param}=" in args or f"{param} =" in args


def missing_params(args: str, params: List[str]) -> Tuple[str, ...]:
    """Params not explicitly bound in `args`. Empty tuple means safe."""
    return tuple(p for p in params if not _binds(args, p))


def _call_arguments(text: str, match: "re.Match[str]") -> Optional[str]:
    open_index = match.end() - 1
    close_index = find_closing_paren(text, open_index)
    if close_index == -1:
        return None
    return text[open_index + 1:close_index]


def scan_calls(
    text: str,
    allowed: Dict[str, MethodMetadata],
    ignored: AbstractSet[str] = frozenset(),
) -> List[Finding]:
    """
    All at-risk call sites in `text`, in source order.

    Keys in `ignored` are skipped before any paren matching.
    """
    findings: List[Finding] = []

    for match in CALL_PATTERN.finditer(text):
        key = match.group(1)

        metadata = allowed.get(key)
        if metadata is None or key in ignored:
            continue

        args = _call_arguments(text, match)
        if args is None:
            continue

        missing = missing_params(args, metadata.params)
        if not missing:
            continue

        findings.append(Finding(
            key=key,
            start=match.start(1),
            end=match.end(1),
            missing_params=missing,
            metadata=metadata,
        ))

    return findings

"""
Orchestrator

Glue layer. Wires detection, metadata loading, scanning and the ignore
set together, and drives a presentation surface.

Every trigger (source created, text changed) runs one complete,
synchronous refresh. Nothing is diffed against the previous pass:
allowed methods and rendered markers are replaced wholesale.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from .data_structures import Finding, MethodMetadata
from .errors import RefreshError
from .explanation import tooltip_text
from .libraries import detect_libraries
from .logging_setup import get_logger
from .metadata import LIBRARY_TABLE, load_libraries
from .scanner import scan_calls
from .tracker import FindingTracker

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Host interfaces
# ---------------------------------------------------------------------------

class TextSource(Protocol):
    """Read-only view of an editable text (editor buffer, file, ...)."""

    def get_text(self) -> str: ...

    def subscribe(self, callback: Callable[["TextSource"], None]) -> None: ...


class PresentationSurface(Protocol):
    """Where findings are shown. Owns its own markers."""

    def clear_all(self) -> None: ...

    def add_marker(
        self,
        start: int,
        end: int,
        tooltip: str,
        on_dismiss: Callable[[], None],
    ) -> None: ...

    def remove_marker(self, start: int, end: int) -> None: ...


def render_findings(
    surface: PresentationSurface,
    findings: List[Finding],
    on_dismiss: Callable[[Finding], None],
) -> None:
    """Replace everything on `surface` with one marker per finding."""
    surface.clear_all()
    for finding in findings:
        surface.add_marker(
            finding.start,
            finding.end,
            tooltip_text(finding.key, finding.metadata),
            lambda f=finding: on_dismiss(f),
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class EngineState(Enum):
    IDLE     = "idle"
    SCANNING = "scanning"


@dataclass
class _SourceState:
    surface: Optional[PresentationSurface]
    allowed: Dict[str, MethodMetadata] = field(default_factory=dict)
    findings: List[Finding] = field(default_factory=list)


class Engine:
    """
    One detection session (e.g. one open project).

    The ignore set is shared by every source this engine handles;
    allowed methods and findings are kept per source.
    """

    def __init__(
        self,
        library_table: Mapping[str, str] = LIBRARY_TABLE,
        tracker: Optional[FindingTracker] = None,
    ):
        self.library_table = dict(library_table)
        self.tracker = tracker if tracker is not None else FindingTracker()
        self.state = EngineState.IDLE
        self._sources: Dict[TextSource, _SourceState] = {}

    # --- lifecycle ---

    def on_created(
        self,
        source: TextSource,
        surface: Optional[PresentationSurface] = None,
    ) -> List[Finding]:
        self._sources[source] = _SourceState(surface=surface)
        source.subscribe(self.on_changed)
        return self.refresh(source)

    def on_changed(self, source: TextSource) -> List[Finding]:
        if source not in self._sources:
            # Released sources may still deliver a late notification.
            return []
        return self.refresh(source)

    def on_released(self, source: TextSource) -> None:
        self._sources.pop(source, None)

    # --- queries ---

    def allowed_methods(self, source: TextSource) -> Dict[str, MethodMetadata]:
        return self._sources[source].allowed

    def findings(self, source: TextSource) -> List[Finding]:
        return self._sources[source].findings

    # --- refresh ---

    def _load_allowed(self, text: str) -> Dict[str, MethodMetadata]:
        libraries = detect_libraries(text, self.library_table)
        if libraries:
            logger.debug("Detected libraries: %s", ", ".join(sorted(libraries)))
        return load_libraries(libraries, self.library_table)

    def _scan(self, text: str, allowed: Dict[str, MethodMetadata]) -> List[Finding]:
        candidates = scan_calls(text, allowed, self.tracker.ignored)
        return self.tracker.filter(candidates)

    def check_text(self, text: str) -> List[Finding]:
        """One-shot scan of `text` with no source or surface attached."""
        return self._scan(text, self._load_allowed(text))

    def refresh(self, source: TextSource) -> List[Finding]:
        state = self._sources.get(source)
        if state is None:
            state = self._sources[source] = _SourceState(surface=None)

        self.state = EngineState.SCANNING
        try:
            try:
                text = source.get_text()
            except Exception as e:
                logger.error("Could not read text source %r: %s", source, e)
                raise RefreshError(f"Could not read text source: {e}") from e

            state.allowed = self._load_allowed(text)
            state.findings = self._scan(text, state.allowed)

            if state.surface is not None:
                surface = state.surface
                render_findings(
                    surface,
                    state.findings,
                    lambda finding: self.dismiss(finding, surface),
                )
        finally:
            self.state = EngineState.IDLE

        return state.findings

    # --- user actions ---

    def ignore(self, key: str) -> None:
        self.tracker.ignore(key)

    def dismiss(self, finding: Finding, surface: Optional[PresentationSurface] = None) -> None:
        """User acknowledged `finding`: stop reporting its key this session."""
        self.tracker.ignore(finding.key)
        if surface is not None:
            surface.remove_marker(finding.start, finding.end)

"""
dabcd - Default Argument Breaking Change detector.

Flags call sites that rely on a library default whose value changed
between library versions.
"""
from .data_structures import Finding, MethodMetadata
from .errors import DabcdError, MetadataResourceError, RefreshError
from .orchestrator import Engine, EngineState

__version__ = "0.1.0"

__all__ = [
    'DabcdError',
    'Engine',
    'EngineState',
    'Finding',
    'MetadataResourceError',
    'MethodMetadata',
    'RefreshError',
]

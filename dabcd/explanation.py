"""
Explanation Layer

Turn a finding's metadata into the text shown next to the marker.
"""
from .data_structures import MethodMetadata

_TOOLTIP = (
    "Arguments '{params}' from method '{key}' have previously suffered from "
    "Default Argument Breaking Changes (DABCs) in the version '{version}' of the library. "
    "If you want to ignore this warning click the icon."
)


def tooltip_text(key: str, metadata: MethodMetadata) -> str:
    return _TOOLTIP.format(
        params=", ".join(metadata.params),
        key=key,
        version=metadata.version,
    )

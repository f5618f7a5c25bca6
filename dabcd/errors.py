"""Exception taxonomy for the detection engine."""


class DabcdError(Exception):
    """Base class for every error raised by dabcd."""


class MetadataResourceError(DabcdError):
    """A library has no usable DABC table (configuration error)."""

    def __init__(self, library: str, resource: str | None = None):
        self.library = library
        self.resource = resource
        if resource is None:
            message = f"No DABC table configured for library: {library}"
        else:
            message = f"DABC table not found for library {library}: {resource}"
        super().__init__(message)


class RefreshError(DabcdError):
    """Reading the text source failed during a refresh."""

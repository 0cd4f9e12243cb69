# errors.py
"""
Error types raised while assembling a report document.

Every failure that aborts a generation run is a GenerationError, so callers
only need to handle one type. LayoutContractError is a programming error
and is deliberately kept outside that hierarchy.
"""


class GenerationError(Exception):
    """Base class for anything that aborts document generation."""


class TemplateLoadError(GenerationError):
    """The template asset for a variant is missing or cannot be opened."""


class CorruptTemplateError(GenerationError):
    """An expected anchor, table or insertion point is absent from the template."""


class UpstreamLookupError(GenerationError):
    """A domain-data collaborator (user directory, license catalog) failed."""


class SerializationError(GenerationError):
    """Writing the finished document to bytes failed."""


class LayoutContractError(AssertionError):
    """A fixed-index table was resolved out of order, or the offset was set twice."""

"""
Import failure taxonomy.

``FormatUnrecognized``, ``MalformedInput`` and ``MissingRequiredField`` abort a
whole import. ``ItemConversionFailure`` is raised for a single folder or
request and is caught by the decoder that owns the item.
"""


class ImportFailure(Exception):
    """Base class for every import error; ``str(exc)`` is user-facing."""


class FormatUnrecognized(ImportFailure):
    def __init__(self, message: str = "Unsupported file format"):
        super().__init__(message)


class MalformedInput(ImportFailure):
    def __init__(self, message: str = "Invalid file format or corrupted data"):
        super().__init__(message)


class MissingRequiredField(ImportFailure):
    def __init__(self, field: str, source: str = "input"):
        self.field = field
        self.source = source
        super().__init__(f"Invalid {source}: missing required field '{field}'")


class ItemConversionFailure(ImportFailure):
    pass


class DanglingReference(ItemConversionFailure):
    """A folder or request points at a folder that does not exist in its collection."""

    def __init__(self, kind: str, ref: str):
        self.kind = kind
        self.ref = ref
        super().__init__(f"{kind} references unknown folder '{ref}'")

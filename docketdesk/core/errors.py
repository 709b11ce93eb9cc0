class DocketDeskError(Exception):
    """Base class for every error raised by DocketDesk services."""


class ValidationError(DocketDeskError, ValueError):
    """A required field is missing or a value is out of range. Nothing was mutated."""


class NotFoundError(DocketDeskError, LookupError):
    pass


class PersistenceError(DocketDeskError):
    """The store rejected a write or could not be reached. The session was rolled back."""


class ExtractionError(DocketDeskError):
    """The document-AI call failed (network, HTTP status, malformed JSON)."""


class ExtractionMismatch(DocketDeskError):
    """The document-AI call succeeded but returned nothing usable.

    Soft failure: callers surface a warning and fall back to manual entry.
    """

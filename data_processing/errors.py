# epireport/data_processing/errors.py

"""
Structural error taxonomy for the report engine.

Every error carries a ``kind`` string so callers (e.g. an HTTP layer) can map
errors to responses without importing the concrete classes. Missing population
data is not an error: it degrades individual report fields
(``has_population_data=False``) and the report still completes.
"""
from typing import Optional


class ReportError(Exception):
    """Base class for errors that abort a report computation."""
    kind = "ReportError"


class NotFoundError(ReportError):
    """A referenced entity does not exist or is inactive."""
    kind = "NotFound"

    def __init__(self, entity: str, identifier: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        detail = f"{entity} '{identifier}' was not found" if identifier else f"{entity} was not found"
        super().__init__(detail)


class InvalidFilterError(ReportError):
    """A filter value is malformed or out of range."""
    kind = "InvalidFilter"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid filter '{field}': {message}")

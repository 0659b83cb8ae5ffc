"""
Failure conditions surfaced by the catalog.

Both exceptions are HTTP exceptions so Flask routes them to the app-level
error handler: a missing record becomes a 404 page and a failed store call
a 500 page. Validation failures and refused deletes are not exceptions;
handlers recover from them by re-rendering the relevant page.
"""

from werkzeug.exceptions import InternalServerError, NotFound


class EntityNotFound(NotFound):
    """Raised when the record a detail or update operation targets is missing."""

    def __init__(self, kind: str, entity_id=None):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(description=f"{kind} not found")


class StoreFailure(InternalServerError):
    """Raised when the underlying database call fails."""

    def __init__(self, operation: str, original: Exception | None = None):
        self.operation = operation
        self.original = original
        super().__init__(description=f"Database error during {operation}")

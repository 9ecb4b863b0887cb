"""
Error taxonomy for the Spendora store.

- NotInitializedError: the store was never opened, or was closed
- NotFoundError: a row referenced by id (or just written) cannot be read
- ConstraintViolationError: invalid values or a uniqueness/check failure
- TransactionFailureError: a multi-statement operation was rolled back
"""


class StoreError(Exception):
    """Base class for all store errors."""


class NotInitializedError(StoreError):
    """Raised when the store is used before open() or after close()."""

    def __init__(self, message: str = "Database not initialized. Call open() first."):
        super().__init__(message)


class NotFoundError(StoreError):
    """Raised when a row cannot be found by id."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConstraintViolationError(StoreError, ValueError):
    """Raised for rejected values, at the write boundary or by SQLite itself."""


class TransactionFailureError(StoreError):
    """Raised when an atomic operation fails and is rolled back."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed and was rolled back: {cause}")
        self.operation = operation
        self.cause = cause

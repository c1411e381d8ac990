"""Domain errors.

Learn: Services raise these, routes translate them to HTTP status codes.
A missing order is not an error here — lookups return None and the
route turns that into a 404, same as every other "not found" path.
"""


class OrderBoardError(Exception):
    """Base class for all order board errors."""
    pass


class ValidationFailure(OrderBoardError):
    """Raised when a mutation is rejected before reaching the store."""
    pass


class InvalidContentError(ValidationFailure):
    """Raised when an order is created with empty content."""
    pass


class InvalidStatusError(ValidationFailure):
    """Raised when a status is not in the recognized set."""
    pass


class StorageError(OrderBoardError):
    """Raised when the database cannot complete a read or write."""
    pass

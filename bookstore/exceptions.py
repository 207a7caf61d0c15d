class BookstoreError(Exception):
    """Base class for order/cart/catalog failures surfaced to the caller."""

    status_code = 400
    code = "bookstore_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookstoreError):
    status_code = 400
    code = "validation_error"


class InsufficientStock(BookstoreError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, message: str, book_id: int | None = None):
        super().__init__(message)
        self.book_id = book_id


class NotFound(BookstoreError):
    status_code = 404
    code = "not_found"


class InvalidState(BookstoreError):
    status_code = 409
    code = "invalid_state"


class Forbidden(BookstoreError):
    status_code = 403
    code = "forbidden"


class PersistenceFailure(BookstoreError):
    """Commit failed; nothing was applied and the call is safe to retry."""

    status_code = 503
    code = "persistence_failure"

# wishwall/errors.py
# Error taxonomy for the persistence core.
# Transport errors from the drivers are never wrapped by the query executor;
# they propagate unchanged to the caller.


class AppError(Exception):
    """Base application error with structured details."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: dict = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class QueryRejectedError(AppError):
    """Statement rejected before it was sent to the database."""
    def __init__(self, message: str = "Query rejected", details: dict = None):
        super().__init__(
            message=message,
            error_code="QUERY_REJECTED",
            details=details
        )


class NotFoundError(AppError):
    """Entity to update does not exist."""
    def __init__(self, message: str = "Resource not found", details: dict = None):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            details=details
        )


class DuplicateKeyError(AppError):
    """Unique constraint conflict on a non-idempotent write."""
    def __init__(self, message: str = "Resource already exists", details: dict = None):
        super().__init__(
            message=message,
            error_code="DUPLICATE_KEY",
            details=details
        )


class UnsupportedDialectError(AppError):
    """Unknown SQL dialect name."""
    def __init__(self, dialect: str):
        super().__init__(
            message=f"Unsupported database dialect: {dialect}",
            error_code="UNSUPPORTED_DIALECT",
            details={"dialect": dialect}
        )


class DomainError(AppError):
    """Domain invariant violated."""
    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details: dict = None):
        super().__init__(message=message, error_code=error_code, details=details)


# Markers emitted by asyncpg, sqlite3 and MySQL for unique index conflicts
DUPLICATE_KEY_MARKERS = (
    "duplicate key",
    "unique constraint failed",
    "duplicate entry",
    "unique",
)


def is_duplicate_key_error(exc: BaseException) -> bool:
    """True when the driver error message signals a unique constraint conflict."""
    message = str(exc).lower()
    return any(marker in message for marker in DUPLICATE_KEY_MARKERS)

"""Exception types raised by the progression engine."""


class ProgressionError(Exception):
    """Base exception for progression engine errors.

    Carries a machine-readable error code and optional details so callers
    can map failures onto their own transport.

    Example:
        raise ProgressionError("Catalog is empty", details={"path": "x.yaml"})
    """

    error_code: str = "progression_error"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}


class InvalidArgumentError(ProgressionError):
    """Caller contract violation.

    Raised for negative XP, non-positive batch sizes, malformed activity
    events and similar input errors. Not retryable.
    """

    error_code = "invalid_argument"

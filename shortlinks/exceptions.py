"""Error taxonomy for link operations.

Every failure the service layer reports is a ``LinkServiceError`` subclass.
Routes translate them to HTTP statuses; the ``status_code`` attribute is the
status each one maps to at the boundary.
"""

__all__ = [
    "LinkServiceError",
    "InvalidTarget",
    "InvalidCodeFormat",
    "CodeConflict",
    "AllocationExhausted",
    "NotFound",
    "StoreUnavailable",
]


class LinkServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_detail(self) -> dict[str, str]:
        return {"error": self.name, "message": self.message}


class InvalidTarget(LinkServiceError):
    status_code = 400


class InvalidCodeFormat(LinkServiceError):
    status_code = 400


class CodeConflict(LinkServiceError):
    status_code = 409


class AllocationExhausted(LinkServiceError):
    status_code = 503


class NotFound(LinkServiceError):
    status_code = 404


class StoreUnavailable(LinkServiceError):
    """Infrastructure failure. The message never carries store error text."""

    status_code = 503

    def __init__(self, message: str = "Link store is unavailable") -> None:
        super().__init__(message)

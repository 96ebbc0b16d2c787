"""Errors raised by remote store implementations."""

from typing import Optional

# PostgREST error code for "single row requested, zero returned"
NO_ROWS_CODE = "PGRST116"


class BackendError(Exception):
    """A remote call failed (network, auth, validation or server error)."""

    def __init__(
        self, message: str, code: Optional[str] = None, status: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code {self.code})"
        return self.message


class NotFoundError(BackendError):
    """A single-row select matched no rows."""

    def __init__(self, message: str = "No rows returned", status: Optional[int] = None) -> None:
        super().__init__(message, code=NO_ROWS_CODE, status=status)

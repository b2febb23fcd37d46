"""Error taxonomy shared by the tab layer and the HTTP surface."""
from typing import Optional


class TabRelayError(Exception):
    """Base class for errors reported to callers."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(TabRelayError):
    """A tab session or an element is absent."""

    def __str__(self) -> str:
        return f"Not Found: {self.message}"


class OperationError(TabRelayError):
    """A driver call or a request-level operation failed."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message)

    @property
    def detail(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message

    def __str__(self) -> str:
        return f"Operation Error: {self.detail}"


class DriverError(Exception):
    """Raised by a browser driver when a protocol call fails."""

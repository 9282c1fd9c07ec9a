"""Exception classes for bluectl."""


class BluezError(Exception):
    """Base exception for all bluectl errors."""


class TransportError(BluezError):
    """Raised when the bus is unreachable or a method call fails.

    Carries the operation, object path and D-Bus error name so the CLI can
    tell the user exactly which call went wrong.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        path: str | None = None,
        error_name: str | None = None,
    ) -> None:
        self.operation = operation
        self.path = path
        self.error_name = error_name
        super().__init__(message)

    def __str__(self) -> str:
        context_parts = []
        if self.operation:
            context_parts.append(f"operation={self.operation}")
        if self.path:
            context_parts.append(f"path={self.path}")
        if self.error_name:
            context_parts.append(f"error={self.error_name}")
        if context_parts:
            return f"{super().__str__()} ({', '.join(context_parts)})"
        return super().__str__()


class OperationError(TransportError):
    """Raised when BlueZ or the remote device rejects an operation.

    For example a pairing that is refused, or a device that never answers.
    """


class DecodeError(BluezError):
    """Raised when a D-Bus property bag has an unexpected shape or type."""

    def __init__(self, message: str, path: str | None = None, key: str | None = None) -> None:
        self.path = path
        self.key = key
        super().__init__(message)

    def __str__(self) -> str:
        if self.path and self.key:
            return f"{super().__str__()} (path={self.path}, key={self.key})"
        if self.path:
            return f"{super().__str__()} (path={self.path})"
        return super().__str__()


class NotFoundError(BluezError):
    """Raised when no device matches a user-supplied reference."""

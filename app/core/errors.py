from __future__ import annotations

from typing import Any, Optional


class CompletionError(Exception):
    """Base class for errors raised by the completion pipeline boundary."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CompletionError):
    """Rejected client input: bad percentage, type or dlc_id combination."""

    status_code = 400


class NotFoundError(CompletionError):
    status_code = 404

    def __init__(self, resource: str, identifier: Optional[Any] = None, message: Optional[str] = None) -> None:
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} not found"
        super().__init__(message, details={"resource": resource, "identifier": identifier})

"""
Collector exceptions - error taxonomy for the CloudStack domain collector.

TransportError / DecodeError come from the API client.
TypeMismatchError / ParseError come from attribute coercion and only ever
cost the single attribute they were raised for.
"""

from typing import Any, Dict, Optional


class CollectorError(Exception):
    """Base exception for all collector errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class TransportError(CollectorError):
    """Upstream API call failed (network, auth or HTTP status)."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, {"command": command, "status_code": status_code})
        self.command = command
        self.status_code = status_code
        self.original_error = original_error

    def __str__(self) -> str:
        parts = [self.message]
        if self.status_code is not None:
            parts.append(f"[status={self.status_code}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class DecodeError(CollectorError):
    """Response body is not JSON or lacks the expected top-level key."""

    def __init__(self, message: str, command: Optional[str] = None) -> None:
        super().__init__(message, {"command": command})
        self.command = command


class TypeMismatchError(CollectorError):
    """Attribute value has a JSON type its rule does not accept."""

    def __init__(self, message: str, attribute: str, value_type: str) -> None:
        super().__init__(message, {"attribute": attribute, "value_type": value_type})
        self.attribute = attribute
        self.value_type = value_type


class UnsupportedTagType(TypeMismatchError):
    """Tag attribute holding something other than a string or bool."""


class UnexpectedValueType(TypeMismatchError):
    """Field attribute holding an object, array, bool or null."""


class ParseError(CollectorError):
    """Numeric string could not be parsed."""

    def __init__(self, message: str, attribute: str, raw: str) -> None:
        super().__init__(message, {"attribute": attribute, "raw": raw})
        self.attribute = attribute
        self.raw = raw

"""Exception classes for the enrichment and retrieval pipeline."""
from typing import Any, Dict, Optional


class EsragError(Exception):
    """Base exception for all esrag errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for logs and JSON responses."""
        return {
            "error": {
                "message": self.message,
                "code": self.__class__.__name__,
                "details": self.details,
            }
        }


class ConfigurationError(EsragError):
    """A required setting is missing."""

    def __init__(self, setting: str, message: Optional[str] = None):
        super().__init__(
            message or f"Missing required environment variable {setting}",
            details={"setting": setting},
        )


class BackendStatusError(EsragError):
    """Elasticsearch answered with a non-success status."""

    def __init__(self, operation: str, status_code: int, body: str):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"Failed to {operation}. Status code: {status_code}, Response: {body}",
            details={"operation": operation, "status_code": status_code},
        )


class ResponseParseError(EsragError):
    """A response payload is malformed or misses an expected field."""


class MappingParseError(ResponseParseError):
    """An index mapping or a field schema fragment could not be parsed."""


class EncodingError(EsragError):
    """Text could not be turned into an embedding."""


class SearchError(EsragError):
    """A k-NN search round trip failed."""

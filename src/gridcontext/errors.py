from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    FETCH_FAILED = "FETCH_FAILED"
    INVALID_CONTENT = "INVALID_CONTENT"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REFERENCE = "INVALID_REFERENCE"


class ContentError(Exception):
    """Base class for every failure raised by the content layer.

    Nothing in gridcontext catches these. They propagate to whichever layer
    presents results (an MCP tool handler, a CLI) which can serialise them
    with ``to_dict()``.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class TransportError(ContentError):
    """Network failure or non-2xx status while fetching ``url``."""

    def __init__(
        self,
        url: str,
        message: str,
        *,
        status_code: int | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(
            code=ErrorCode.FETCH_FAILED,
            message=message,
            suggestion="The documentation source may be temporarily unavailable.",
            recoverable=recoverable,
        )
        self.url = url
        self.status_code = status_code


class ContentValidationError(ContentError):
    """The body at ``url`` decoded but did not have the expected shape."""

    def __init__(self, url: str, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CONTENT,
            message=message,
            suggestion="The documentation source returned data in an unexpected format.",
            recoverable=False,
        )
        self.url = url
        self.errors = errors or []


class NotFoundError(ContentError):
    """``key`` has no entry in an already resolved ``collection``."""

    def __init__(self, message: str, *, key: str, collection: str, suggestion: str = "") -> None:
        super().__init__(code=ErrorCode.NOT_FOUND, message=message, suggestion=suggestion)
        self.key = key
        self.collection = collection


class InvalidReferenceError(ContentError):
    """A version id or framework name does not exist in its parent collection."""

    def __init__(self, message: str, *, key: str, collection: str, suggestion: str = "") -> None:
        super().__init__(code=ErrorCode.INVALID_REFERENCE, message=message, suggestion=suggestion)
        self.key = key
        self.collection = collection

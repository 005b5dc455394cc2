"""Error kinds and the exception raised by the S3 service layer."""

from __future__ import annotations

from enum import Enum


class CommonError(Enum):
    """Kinds of failure reported by the service layer."""

    NO_VALID_INPUT_OR_PARAMETER = "NO_VALID_INPUT_OR_PARAMETER"
    AWS_ACCESS_ERROR = "AWS_ACCESS_ERROR"

    def __str__(self) -> str:
        return self.name


class S3ServiceError(Exception):
    """Raised when an S3 operation fails; ``kind`` tells why."""

    def __init__(self, kind: CommonError, message: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}" if self.message else str(self.kind)
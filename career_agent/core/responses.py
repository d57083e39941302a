"""JSON envelopes: ``{"data": ...}`` on success, ``{"error": {...}}`` otherwise."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    data: T


class ErrorDetail(BaseModel):
    code: str
    message: str
    # Per-field problems for VALIDATION_ERROR; None for every other code
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail

    @classmethod
    def of(
        cls, code: str, message: str, details: list[dict] | None = None
    ) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message, details=details))

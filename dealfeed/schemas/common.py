"""Common Pydantic schemas used across the API."""

from typing import Any, Dict, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""

    status: str = "success"
    data: T


class ErrorDetail(BaseModel):
    """Error detail for error responses."""

    code: str
    message: str
    details: Dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard API error response."""

    status: str = "error"
    error: ErrorDetail

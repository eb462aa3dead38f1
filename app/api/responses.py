"""
Response envelope shared by all API routes.

Success bodies are {"data": ...}; failures are {"error": "..."} (see
app.main for the exception handlers).
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Successful response wrapper."""

    data: T


class ErrorResponse(BaseModel):
    """Error response body."""

    error: str

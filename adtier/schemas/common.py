"""
Response envelopes shared by every route
"""
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    data: List[T] = []
    total: int = 0


class ErrorDetail(BaseModel):
    type: str                   # exception class name, e.g. AuthError
    code: Optional[int] = None  # Graph API error code when there is one


class ErrorResponse(BaseModel):
    """Body returned by the exception handlers"""
    success: bool = False
    error: str
    detail: ErrorDetail

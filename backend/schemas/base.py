# backend/schemas/base.py
"""
Response envelopes shared by all endpoints
"""

from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class BaseResponse(BaseModel, Generic[T]):
    """Standard success envelope"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Body returned for every domain error"""
    success: bool = False
    error: str
    error_code: str
    details: Optional[Any] = None

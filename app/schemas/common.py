"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None

def reject_null(value: Any, field_name: str) -> Any:
    """Refuse an explicit null for a field whose column is required"""
    if value is None:
        raise ValueError(f"{field_name} may not be null")
    return value

"""
Seating-related Pydantic schemas
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.config import settings
from .common import reject_null

TableType = Literal["VVIP", "VIP", "Regular", "Staff"]

class TableCreate(BaseModel):
    """Schema for creating a table; omitted number means next free number"""
    table_number: Optional[int] = Field(None, ge=1)
    table_type: TableType = "Regular"
    capacity: int = Field(settings.DEFAULT_TABLE_CAPACITY, ge=1, le=settings.MAX_TABLE_CAPACITY)

class TableUpdate(BaseModel):
    """Schema for updating a table"""
    table_number: Optional[int] = Field(None, ge=1)
    table_type: Optional[TableType] = None
    capacity: Optional[int] = Field(None, ge=1, le=settings.MAX_TABLE_CAPACITY)

    @field_validator("table_number", "table_type", "capacity")
    @classmethod
    def _required_columns(cls, value, info):
        return reject_null(value, info.field_name)

class TableMove(BaseModel):
    """Drag delta for a table on the layout"""
    delta_x: float
    delta_y: float

class SeatAssignment(BaseModel):
    """Manual seat assignment; null table clears the seat"""
    table_id: Optional[str] = None

class TableResponse(BaseModel):
    """Table response schema"""
    id: str
    event_id: str
    table_number: int
    table_type: str
    capacity: int
    position_x: Optional[float] = None
    position_y: Optional[float] = None

    class Config:
        from_attributes = True

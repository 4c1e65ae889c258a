"""
Company, user and auth Pydantic schemas
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import reject_null

UserRole = Literal["admin", "manager", "staff", "superadmin"]

class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _required_columns(cls, value, info):
        return reject_null(value, info.field_name)

class CompanyResponse(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    role: UserRole = "staff"

class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None

class RoleUpdate(BaseModel):
    role: UserRole

class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    company_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None

class SignInRequest(BaseModel):
    email: EmailStr
    password: str

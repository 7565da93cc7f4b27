"""Pydantic schemas for authentication, defining the structure for request and response data."""

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional
import datetime

from .models import UserRole


class UserBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(..., description="User email address, also used to log in")


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, description="User password")


class UserResponse(UserBase):
    public_id: str = Field(
        ..., description="Public unique identifier for the user (KSUID)"
    )
    role: UserRole = Field(..., description="User role (customer or admin)")
    is_active: bool = Field(..., description="Whether the user account is active")
    login_count: int = Field(..., description="Number of successful logins")
    last_login: Optional[datetime.datetime] = Field(
        None, description="Timestamp of the most recent login"
    )
    created_at: datetime.datetime = Field(
        ..., description="Timestamp of when the user was created"
    )

    model_config = ConfigDict(
        from_attributes=True,
        protected_namespaces=(),
    )


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    sub: Optional[str] = None

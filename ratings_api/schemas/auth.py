"""
Auth-related Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    """Schema for user registration request."""
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=8)
    color: Optional[str] = Field(default=None, max_length=20)


class UserLogin(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str = "bearer"
    user_id: str
    username: str


class UserResponse(BaseModel):
    """Schema for user response (without password)."""
    id: str
    username: str
    color: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

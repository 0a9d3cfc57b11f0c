from pydantic import BaseModel, Field
from typing import Literal
from datetime import datetime
from quarry_ledger.models.base import ObjectIdStr


class UserLogin(BaseModel):
    """Schema for user login"""
    username: str
    password: str


class UserRegister(BaseModel):
    """Schema for creating an account (admin only)"""
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6, max_length=100)
    full_name: str = ""
    role: Literal["admin", "user"] = "user"


class UserResponse(BaseModel):
    id: ObjectIdStr
    username: str
    full_name: str
    role: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

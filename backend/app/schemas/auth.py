"""Authentication-related schemas."""
from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.user import EMAIL_PATTERN


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=20)


class RegistrationRequest(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class MessageResponse(BaseModel):
    message: str

"""
Blogstack Backend — Authentication Schemas
=============================================

What:  Request/response bodies for /api/auth/*.
How:   Field validators enforce the account rules before the service runs;
       failures surface as FastAPI's 422 validation response.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.blog import CamelModel

# bcrypt only considers the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 6


class SignupRequest(BaseModel):
    """New account: display name, login email, password."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name is required")
        return stripped

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Session token returned by signup and login."""
    token: str


class UserResponse(CamelModel):
    """The authenticated user, as returned by GET /api/auth/user."""
    id: uuid.UUID = Field(alias="_id")
    name: str
    email: str
    created_at: datetime

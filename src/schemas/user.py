"""User schema definitions.

This module defines the User data model and the auth request/response bodies.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import pytz
from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    username: str = Field(description="Login name, unique across the platform.")
    password_hash: str = Field(description="bcrypt hash of the password.")
    role: str = Field(description="Global role: 'admin' or 'student'.")
    display_name: Optional[str] = None
    email: Optional[str] = None
    create_at: str = Field(
        description="The time when the user was created.",
        default_factory=lambda: datetime.now(pytz.utc).isoformat(),
    )


class RegisterRequest(BaseModel):
    username: str
    password: str
    full_name: str
    email: EmailStr
    role: str = "student"
    admin_token: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    user: Dict[str, Any]
    token: str


class CurrentUserResponse(BaseModel):
    user: Dict[str, Any]

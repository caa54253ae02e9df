"""Pydantic schemas for users, login and registration."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from tasklist.schemas.task import format_utc


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    """Partial update. Empty or missing fields are left unchanged."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    username: str
    token: str


class UserRead(BaseModel):
    """Public view of a user. The password digest has no field here."""
    id: uuid.UUID
    username: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("created_at", "updated_at")
    def _utc(self, value: datetime) -> str:
        return format_utc(value)

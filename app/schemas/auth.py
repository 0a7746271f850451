from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    # presence is checked by the service so a missing, null or empty field answers 400, not 422
    username: str | None = Field(default=None, max_length=50)
    password: str | None = Field(default=None, max_length=128)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    profile_image: str | None = None
    friend_code: str
    created_at: datetime


class LoginResponse(BaseModel):
    message: str
    user: UserOut

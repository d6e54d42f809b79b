"""Pydantic schemas for user profiles."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    image: str | None = None
    bio: str | None = None
    role: str
    created_at: datetime


class ProfileSettingsRequest(BaseModel):
    name: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=2000)
    image: str | None = Field(None, max_length=2048)

"""Pydantic schemas for follow and notification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, model_validator


# --- Follows ---


class FollowResponse(BaseModel):
    following: bool
    followers: int


class FollowingStatusResponse(BaseModel):
    following: bool


# --- Notifications ---


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    link: str | None = None
    is_read: bool
    read_at: datetime | None = None
    metadata: dict
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    unread_count: int
    page: int
    per_page: int


class MarkReadRequest(BaseModel):
    notification_ids: list[int] | None = None
    mark_all: bool = False

    @model_validator(mode="after")
    def _one_target(self) -> MarkReadRequest:
        if not self.mark_all and not self.notification_ids:
            raise ValueError("Provide notification_ids or set mark_all")
        return self


class DeleteNotificationsRequest(BaseModel):
    notification_ids: list[int] | None = None
    delete_all_read: bool = False

    @model_validator(mode="after")
    def _one_target(self) -> DeleteNotificationsRequest:
        if not self.delete_all_read and not self.notification_ids:
            raise ValueError("Provide notification_ids or set delete_all_read")
        return self


class NotificationCountResponse(BaseModel):
    count: int


class UnreadCountResponse(BaseModel):
    unread_count: int

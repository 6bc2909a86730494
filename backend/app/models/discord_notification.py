from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class NotificationSubscription(SQLModel, table=True):
    """Discord webhook subscription for a calendar's daily availability digest."""

    __tablename__ = "discord_notifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    # One subscription per calendar
    calendar_id: UUID = Field(
        foreign_key="calendars.id", nullable=False, unique=True, index=True
    )

    webhook_url: str = Field(max_length=500, nullable=False)
    # HH:MM in the storage timezone
    notification_time: str = Field(max_length=8, nullable=False)
    enabled: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Member(SQLModel, table=True):
    """Calendar member with per-calendar role."""

    __tablename__ = "members"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(
        foreign_key="calendars.id", nullable=False, index=True
    )
    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default="member", max_length=32)  # admin, member
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

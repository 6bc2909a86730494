from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from app.core.config import settings


def build_engine(database_url: str | None = None) -> Engine:
    url = database_url or settings.DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


engine = build_engine()


def init_db(bind: Engine | None = None) -> None:
    """Create database tables in environments without migrations."""
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(bind=bind or engine)

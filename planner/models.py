from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, SQLModel, create_engine, Session

from . import config

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildStatus(str, Enum):
    PENDING = "PENDING"
    READY = "READY"
    FAILED = "FAILED"


class PlannerBuild(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(index=True)
    title: str
    year: int
    theme: str = config.DEFAULT_THEME
    recipe: str = config.DEFAULT_RECIPE
    page_count: Optional[int] = None
    status: BuildStatus = Field(default=BuildStatus.PENDING)
    fail_code: Optional[str] = None
    fail_detail: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Artifact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    build_id: int = Field(foreign_key="plannerbuild.id")
    type: str
    path: str
    created_at: datetime = Field(default_factory=_utcnow)


engine = create_engine(f"sqlite:///{config.DB_PATH}")


def reset_engine() -> None:
    global engine
    engine = create_engine(f"sqlite:///{config.DB_PATH}")


def init_db() -> None:
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    _migrate_db()


# columns added after the first release; older databases get them on init
_ADDED_COLUMNS = {
    "page_count": "INTEGER",
    "fail_code": "TEXT",
    "fail_detail": "TEXT",
}


def _migrate_db() -> None:
    try:
        inspector = inspect(engine)
        if "plannerbuild" not in inspector.get_table_names():
            return
        columns = {col["name"] for col in inspector.get_columns("plannerbuild")}
        for name, sql_type in _ADDED_COLUMNS.items():
            if name not in columns:
                with engine.begin() as conn:
                    conn.execute(text(f"ALTER TABLE plannerbuild ADD COLUMN {name} {sql_type}"))
    except SQLAlchemyError:
        logger.warning("Schema migration skipped for %s", config.DB_PATH, exc_info=True)


def get_session() -> Session:
    return Session(engine, expire_on_commit=False)

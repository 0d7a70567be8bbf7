"""Pytest configuration and fixtures.

Every test gets its own in-memory SQLite database with the full schema and
foreign keys switched on, so ON DELETE CASCADE behaves as on PostgreSQL.
"""

import itertools
import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import skillspark.models  # noqa: F401
from skillspark.db.base import Base
from skillspark.db.session import make_engine
from skillspark.services.accounts import create_account
from skillspark.services.roadmaps import upsert_roadmap
from skillspark.services.topics import create_topic

THREE_POINT_ROADMAP = {
    "topic": "Rust",
    "roadmap": {
        "beginner": {
            "step_1": {"pointId": "step_1", "title": "Ownership"},
            "step_2": {"pointId": "step_2", "title": "Borrowing"},
        },
        "advanced": {
            "step_3": {"pointId": "step_3", "title": "Unsafe Rust"},
        },
    },
    "points": [
        {"id": "p1", "title": "Ownership", "level": "beginner", "order": 1},
        {"id": "p2", "title": "Borrowing", "level": "beginner", "order": 2},
        {"id": "p3", "title": "Unsafe Rust", "level": "advanced", "order": 3},
    ],
}


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a SQLite file, so each session gets its own connection."""
    engine = make_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def account(db):
    return create_account(db, "alice", "$2b$12$alicehash")


@pytest.fixture
def other_account(db):
    return create_account(db, "bob", "$2b$12$bobhash")


@pytest.fixture
def topic(db, account):
    return create_topic(db, account.id, "Rust")


@pytest.fixture
def roadmap(db, topic):
    return upsert_roadmap(db, topic.id, THREE_POINT_ROADMAP)


@pytest.fixture
def count_rows(db):
    def _count(model):
        return db.scalar(select(func.count()).select_from(model))
    return _count


@pytest.fixture
def clock(monkeypatch):
    """Pin the timestamps the stores write: each call is one second after the last."""
    ticks = itertools.count()
    start = datetime(2030, 1, 1, tzinfo=timezone.utc)

    def now():
        return start + timedelta(seconds=next(ticks))

    for module in ("roadmaps", "progress", "videos", "settings", "quizzes"):
        monkeypatch.setattr(f"skillspark.services.{module}.utcnow", now)
    return now

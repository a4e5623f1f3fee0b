"""Shared fixtures for the live chat test suite.

Every test gets a fresh in-memory SQLite database (foreign keys on) and its
own channel hub, so no state leaks between tests.
"""

from __future__ import annotations

import os

# Must be set before app.core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "disabled")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy.orm import sessionmaker

from app.chat.channels import ChannelHub
from app.chat.models import ChatMessage, ChatSession  # noqa: F401
from app.chat.store import ChatStore
from app.core.database import create_db_engine
from app.models.base import Base


@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(db_factory):
    session = db_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def channel() -> ChannelHub:
    return ChannelHub()


@pytest.fixture()
def store(db_factory, channel) -> ChatStore:
    return ChatStore(db_factory, channel)


@pytest.fixture()
def broken_store(channel) -> ChatStore:
    """Store whose database cannot be opened: every call raises StoreError."""
    engine = create_db_engine("sqlite:////nonexistent-dir/live-chat/chat.db")
    return ChatStore(sessionmaker(bind=engine), channel)

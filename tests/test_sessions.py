"""Tests for the session registry (app/chat/sessions.py)."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import pytest

from app.chat.errors import SessionNotFoundError, ValidationError
from app.chat.models import ChatSession
from app.chat.sessions import SessionRegistry, validate_identity


class TestValidateIdentity:
    def test_trims_fields(self):
        assert validate_identity("  Ada ", " ada@example.com ") == ("Ada", "ada@example.com")

    @pytest.mark.parametrize(
        "name,email",
        [("", "ada@example.com"), ("   ", "ada@example.com"), ("Ada", ""), ("Ada", "  "), (None, None)],
    )
    def test_rejects_blank_fields(self, name, email):
        with pytest.raises(ValidationError):
            validate_identity(name, email)

    @pytest.mark.parametrize("email", ["ada", "ada@", "@example.com", "ada lovelace@example.com"])
    def test_rejects_malformed_email(self, email):
        with pytest.raises(ValidationError):
            validate_identity("Ada", email)


class TestCreateSession:
    def test_create_session(self, db):
        session = SessionRegistry.create_session(db, "Ada", "ada@example.com", is_registered=True)
        assert isinstance(session.id, uuid.UUID)
        assert session.status == "active"
        assert session.visitor_name == "Ada"
        assert session.visitor_email == "ada@example.com"
        assert session.is_registered is True
        assert session.created_at is not None
        assert session.closed_at is None

    def test_empty_name_creates_no_row(self, db):
        with pytest.raises(ValidationError):
            SessionRegistry.create_session(db, "", "ada@example.com")
        assert db.query(ChatSession).count() == 0

    def test_whitespace_email_creates_no_row(self, db):
        with pytest.raises(ValidationError):
            SessionRegistry.create_session(db, "Ada", "   ")
        assert db.query(ChatSession).count() == 0


class TestListActiveSessions:
    def test_newest_first(self, db):
        now = datetime(2026, 1, 1, 12, 0, 0)
        for offset, name in enumerate(["Old", "Middle", "New"]):
            db.add(ChatSession(
                visitor_name=name,
                visitor_email=f"{name.lower()}@example.com",
                status="active",
                session_number=offset + 1,
                created_at=now + timedelta(minutes=offset),
            ))
        db.commit()

        names = [s.visitor_name for s in SessionRegistry.list_active_sessions(db)]
        assert names == ["New", "Middle", "Old"]

    def test_back_to_back_sessions_keep_creation_order(self, db):
        # SQLite timestamps have one-second resolution, so created_at ties here
        created = [
            SessionRegistry.create_session(db, f"Visitor {i}", f"v{i}@example.com")
            for i in range(8)
        ]

        listed = SessionRegistry.list_active_sessions(db)
        assert [s.id for s in listed] == [s.id for s in reversed(created)]
        assert [s.session_number for s in created] == list(range(1, 9))

    def test_excludes_closed(self, db):
        keep = SessionRegistry.create_session(db, "Ada", "ada@example.com")
        gone = SessionRegistry.create_session(db, "Bob", "bob@example.com")
        SessionRegistry.close_session(db, gone.id)

        ids = [s.id for s in SessionRegistry.list_active_sessions(db)]
        assert ids == [keep.id]

    def test_limit_and_offset(self, db):
        for i in range(5):
            SessionRegistry.create_session(db, f"Visitor {i}", f"v{i}@example.com")
        assert len(SessionRegistry.list_active_sessions(db, limit=2)) == 2
        assert len(SessionRegistry.list_active_sessions(db, limit=10, offset=3)) == 2


class TestCloseSession:
    def test_close_session(self, db):
        session = SessionRegistry.create_session(db, "Ada", "ada@example.com")
        assert SessionRegistry.close_session(db, session.id) is True

        db.refresh(session)
        assert session.status == "closed"
        assert session.closed_at is not None

    def test_close_twice_is_not_an_error(self, db):
        session = SessionRegistry.create_session(db, "Ada", "ada@example.com")
        SessionRegistry.close_session(db, session.id)
        assert SessionRegistry.close_session(db, session.id) is False

        db.refresh(session)
        assert session.status == "closed"

    def test_close_unknown_session(self, db):
        with pytest.raises(SessionNotFoundError):
            SessionRegistry.close_session(db, uuid.uuid4())

    def test_closed_session_is_retained(self, db):
        session = SessionRegistry.create_session(db, "Ada", "ada@example.com")
        SessionRegistry.close_session(db, session.id)
        assert SessionRegistry.get_session(db, session.id) is not None

    def test_get_unknown_session(self, db):
        assert SessionRegistry.get_session(db, uuid.uuid4()) is None

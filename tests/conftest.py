import os
import tempfile
from datetime import datetime

import pytest

# Point the app at a throwaway SQLite file before db.py is imported
_TMP_DIR = tempfile.mkdtemp(prefix="prayer-app-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["EMAIL_PROVIDER"] = "smtp"
os.environ["EMAIL_BATCH_DELAY_SECONDS"] = "0"
os.environ["APP_URL"] = "https://prayers.example.org"

from db import engine, SessionLocal  # noqa: E402
from models import Base, Prayer, PrayerUpdate, ApprovalStatus, PrayerStatus  # noqa: E402
from services import email_service  # noqa: E402
from services.email_service import EmailDispatcher  # noqa: E402


class FakeDispatcher(EmailDispatcher):
    """Records every delivery instead of talking to a mail provider."""

    def __init__(self, fail_for=(), batch_size=30, batch_delay=0):
        self.sleeps = []
        super().__init__(batch_size=batch_size, batch_delay=batch_delay, sleep=self.sleeps.append)
        self.fail_for = {a.lower() for a in fail_for}
        self.sent = []

    def _deliver(self, to, subject, html_body, text_body):
        if "*" in self.fail_for or to.lower() in self.fail_for:
            raise RuntimeError("mailbox unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html_body, "text": text_body})

    def to(self, address):
        return [m for m in self.sent if m["to"] == address]

    def subjects(self):
        return [m["subject"] for m in self.sent]


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def dispatcher(monkeypatch):
    """Default dispatcher used whenever a service is not handed one explicitly."""
    fake = FakeDispatcher()
    monkeypatch.setattr(email_service, "_dispatcher", fake)
    return fake


@pytest.fixture
def failing_dispatcher(monkeypatch):
    fake = FakeDispatcher(fail_for=["*"])
    monkeypatch.setattr(email_service, "_dispatcher", fake)
    return fake


@pytest.fixture
def make_dispatcher():
    return FakeDispatcher


@pytest.fixture
def make_prayer():
    """Insert an approved prayer; keyword args override the defaults."""
    def _make(**overrides):
        values = dict(
            title="Healing for Mom",
            description="Recovering from surgery",
            requester="John Doe",
            prayer_for="Mary Doe",
            email="john@example.org",
            is_anonymous=False,
            status=PrayerStatus.CURRENT,
            approval_status=ApprovalStatus.APPROVED,
            created_at=datetime(2024, 1, 1, 12, 0, 0),
        )
        values.update(overrides)
        with SessionLocal() as db:
            prayer = Prayer(**values)
            db.add(prayer)
            db.commit()
            db.refresh(prayer)
            return prayer
    return _make


@pytest.fixture
def make_update():
    def _make(prayer_id, **overrides):
        values = dict(
            prayer_id=prayer_id,
            content="Surgery went well",
            author="John Doe",
            approval_status=ApprovalStatus.APPROVED,
            created_at=datetime(2024, 1, 1, 12, 0, 0),
        )
        values.update(overrides)
        with SessionLocal() as db:
            update = PrayerUpdate(**values)
            db.add(update)
            db.commit()
            db.refresh(update)
            return update
    return _make

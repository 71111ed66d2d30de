# tests/conftest.py
import os
import sys
import threading
from datetime import datetime

import pytest

# Project root on sys.path for 'import services...', env before config is imported.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["FIREBASE_SERVICE_ACCOUNT"] = ""

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import models  # noqa: E402,F401
from database import Base, enable_sqlite_foreign_keys  # noqa: E402
from models.prescription import Prescription, PrescriptionStatus  # noqa: E402
from services.push import DeliveryErrorKind, DeliveryResult  # noqa: E402


class FakeDelivery:
    """
    Records every send. Per-token outcomes: "ok" (default), "invalid",
    "error", or "raise" to simulate a client blowing up.
    """

    def __init__(self, outcomes=None):
        self.outcomes = dict(outcomes or {})
        self.sent = []  # list of (token, payload)
        self._lock = threading.Lock()

    available = True

    def send(self, token, payload):
        with self._lock:
            self.sent.append((token, payload))
        outcome = self.outcomes.get(token, "ok")
        if outcome == "raise":
            raise RuntimeError("provider unreachable")
        if outcome == "invalid":
            return DeliveryResult.failure(token, DeliveryErrorKind.invalid_token, "registration-token-not-registered")
        if outcome == "error":
            return DeliveryResult.failure(token, DeliveryErrorKind.other, "quota exceeded")
        return DeliveryResult.success(token, f"projects/test/messages/{len(self.sent)}")

    def tokens(self):
        return [token for token, _ in self.sent]


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(eng, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def delivery():
    return FakeDelivery()


@pytest.fixture
def make_prescription(db):
    def _make(user_id=1, medicines=None, status=PrescriptionStatus.current):
        row = Prescription(user_id=user_id, medicines=medicines or [], status=status)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make

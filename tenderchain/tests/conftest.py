import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from tenderchain import mailer
from tenderchain.auth import create_user_token
from tenderchain.crud import create_user
from tenderchain.database import SessionLocal, engine
from tenderchain.main import app
from tenderchain.models import Base, UserType


class Outbox:
    """Records emails instead of talking to SMTP; can be told to fail."""

    def __init__(self):
        self.sent = []
        self.failing = set()
        self.fail_all = False

    def send_email(self, to, subject, html):
        if self.fail_all or to in self.failing:
            raise mailer.MailerError(f"refused {to}")
        self.sent.append({"to": to, "subject": subject, "html": html})

    def recipients(self):
        return [mail["to"] for mail in self.sent]


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(mailer, "send_email", box.send_email)
    return box


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(user_type=UserType.BIDDER, bidder_type=None, verified=True, email=None, preferences=None):
        counter["n"] += 1
        user = create_user(
            db,
            email=email or f"user{counter['n']}@acme.com",
            password="password1",
            company_name=f"Company {counter['n']}",
            user_type=user_type,
            bidder_type=bidder_type,
        )
        user.is_verified = verified
        if preferences:
            user.notification_preferences = {"email": True, "inApp": True, "push": False, **preferences}
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def tender(make_user):
    return make_user(user_type=UserType.TENDER, email="owner@buildco.com")


@pytest.fixture
def auth_header():
    def _header(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}
    return _header

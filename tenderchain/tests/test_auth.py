from datetime import timedelta

import pytest

from tenderchain import mailer
from tenderchain.models import Notification, NotificationType, User, as_utc, utcnow


def signup_payload(**overrides):
    payload = {
        "email": "a@x.com",
        "password": "password1",
        "companyName": "Acme",
        "userType": "bidder",
        "bidderType": "CONTRACTOR",
    }
    payload.update(overrides)
    return payload


def test_signup_creates_unverified_user_and_welcome_notification(client, db, outbox):
    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 200
    data = response.json()
    assert data["emailSent"] is True
    assert "warning" not in data

    user = db.query(User).filter(User.email == "a@x.com").one()
    assert user.is_verified is False
    assert user.bidder_type.value == "CONTRACTOR"
    assert user.verification_token
    assert user.notification_preferences == {"email": True, "inApp": True, "push": False}
    assert as_utc(user.verification_expires) > utcnow() + timedelta(hours=23)

    notifications = db.query(Notification).filter(Notification.user_id == user.id).all()
    assert [n.type for n in notifications] == [NotificationType.SIGNUP_COMPLETE]
    assert notifications[0].notification_metadata == {"profileId": str(user.id)}
    assert user.verification_token in outbox.sent[0]["html"]


@pytest.mark.parametrize("password,expected", [("passwor", 400), ("password", 200)])
def test_signup_minimum_password_length(client, password, expected):
    response = client.post("/api/auth/signup", json=signup_payload(password=password))
    assert response.status_code == expected


@pytest.mark.parametrize("bidder_type,expected", [(None, 400), ("INVALID", 400), ("SUPPLIER", 200)])
def test_signup_bidder_type_validation(client, bidder_type, expected):
    payload = signup_payload(bidderType=bidder_type)
    if bidder_type is None:
        del payload["bidderType"]
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == expected
    if expected == 400:
        assert "error" in response.json()


def test_signup_tender_ignores_bidder_type(client, db):
    response = client.post(
        "/api/auth/signup",
        json=signup_payload(email="t@buildco.com", userType="tender", bidderType="SUPPLIER"),
    )
    assert response.status_code == 200
    user = db.query(User).filter(User.email == "t@buildco.com").one()
    assert user.bidder_type is None


def test_signup_rejects_missing_fields_and_bad_user_type(client):
    missing = client.post("/api/auth/signup", json=signup_payload(companyName=""))
    assert missing.status_code == 400
    assert missing.json() == {"error": "All fields are required"}

    bad_type = client.post("/api/auth/signup", json=signup_payload(userType="admin"))
    assert bad_type.status_code == 400
    assert bad_type.json() == {"error": "Invalid user type"}


def test_signup_rejects_duplicate_email(client):
    assert client.post("/api/auth/signup", json=signup_payload()).status_code == 200
    response = client.post("/api/auth/signup", json=signup_payload())
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_signup_succeeds_with_warning_when_email_fails(client, db, outbox):
    outbox.fail_all = True

    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 200
    data = response.json()
    assert data["emailSent"] is False
    assert "Email delivery failed" in data["warning"]
    user = db.query(User).filter(User.email == "a@x.com").one()
    assert db.query(Notification).filter(Notification.user_id == user.id).count() == 1


def test_verify_email_flips_flag_once(client, db):
    client.post("/api/auth/signup", json=signup_payload())
    token = db.query(User).filter(User.email == "a@x.com").one().verification_token

    response = client.post("/api/auth/verify-email", json={"token": token})
    assert response.status_code == 200
    assert response.json()["user"]["isVerified"] is True

    again = client.post("/api/auth/verify-email", json={"token": token})
    assert again.status_code == 400


def test_signup_reports_welcome_email_failure_separately(client, db, outbox, monkeypatch):
    monkeypatch.setattr(mailer, "send_verification_email", lambda *args: None)
    outbox.fail_all = True

    response = client.post("/api/auth/signup", json=signup_payload())

    assert response.status_code == 200
    data = response.json()
    assert data["emailSent"] is True
    assert data["warning"] == "Welcome email delivery failed"
    user = db.query(User).filter(User.email == "a@x.com").one()
    assert db.query(Notification).filter(Notification.user_id == user.id).count() == 1


def test_verify_email_rejects_token_just_past_expiry(client, db):
    client.post("/api/auth/signup", json=signup_payload())
    user = db.query(User).filter(User.email == "a@x.com").one()
    user.verification_expires = utcnow() - timedelta(seconds=1)
    db.commit()

    response = client.post("/api/auth/verify-email", json={"token": user.verification_token})

    assert response.status_code == 400
    db.expire_all()
    assert db.query(User).filter(User.email == "a@x.com").one().is_verified is False


def test_login_returns_token(client):
    client.post("/api/auth/signup", json=signup_payload())

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "password1"})
    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["user"]["userType"] == "bidder"

    wrong = client.post("/api/auth/login", json={"email": "a@x.com", "password": "nope-nope"})
    assert wrong.status_code == 401


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

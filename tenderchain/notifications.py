"""
In-app notifications with optional email delivery.

Every notification is persisted first. Email is a mirror of the in-app
record, sent only when the recipient has an address and has not turned
email notifications off.
"""
import html
import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from tenderchain import mailer
from tenderchain.models import (
    DEFAULT_NOTIFICATION_PREFERENCES,
    Notification,
    NotificationType,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

PREFERENCE_KEYS = tuple(DEFAULT_NOTIFICATION_PREFERENCES)
PREFERENCE_MODES = ("merge", "replace")


def render_email(title: str, message: str) -> str:
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
          <h2 style="color: #2563eb;">{html.escape(title)}</h2>
          <p>{html.escape(message)}</p>
          <hr style="margin: 20px 0; border: none; border-top: 1px solid #eee;">
          <p style="color: #666; font-size: 12px;">
            You received this notification from TenderChain.
            To manage your notification preferences, visit your account settings.
          </p>
        </div>
    """


def wants_email(user: Optional[User]) -> bool:
    if not user or not user.email:
        return False
    preferences = user.notification_preferences or {}
    return preferences.get("email") is not False


def _build_notification(user_id, type, title, message, metadata, created_at):
    return Notification(
        user_id=int(user_id),
        type=NotificationType(type),
        title=title,
        message=message,
        read=False,
        created_at=created_at,
        notification_metadata=metadata or None,
    )


def create_notification(
    db: Session,
    user_id: Union[int, str],
    type: Union[NotificationType, str],
    title: str,
    message: str,
    metadata: Optional[dict] = None,
) -> Notification:
    """Persist one notification and mirror it by email.

    Email errors propagate to the caller; the notification row is already
    committed by then.
    """
    notification = _build_notification(user_id, type, title, message, metadata, utcnow())
    db.add(notification)
    db.commit()
    db.refresh(notification)

    user = db.query(User).filter(User.id == notification.user_id).first()
    if wants_email(user):
        mailer.send_email(user.email, title, render_email(title, message))

    return notification


def create_bulk_notifications(
    db: Session,
    user_ids: Iterable[Union[int, str]],
    type: Union[NotificationType, str],
    title: str,
    message: str,
    metadata: Optional[dict] = None,
) -> List[Notification]:
    ids = [int(user_id) for user_id in user_ids]
    if not ids:
        return []

    created_at = utcnow()
    notifications = [
        _build_notification(user_id, type, title, message, metadata, created_at)
        for user_id in ids
    ]
    db.add_all(notifications)
    db.commit()

    recipients = db.query(User).filter(User.id.in_(ids)).all()
    body = render_email(title, message)
    sent = 0
    for user in recipients:
        if not wants_email(user):
            continue
        try:
            mailer.send_email(user.email, title, body)
            sent += 1
        except Exception as exc:
            logger.error("Failed to send email to %s: %s", user.email, exc)

    logger.info("Created %d %s notifications, %d emails sent", len(notifications), NotificationType(type).value, sent)
    return notifications


def get_notifications(db: Session, user_id: int, limit: Optional[int] = 50, unread_only: bool = False):
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_unread_notifications(db: Session, user_id: int) -> List[Notification]:
    return get_notifications(db, user_id, limit=None, unread_only=True)


def count_unread_notifications(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).count()


def mark_notification_as_read(db: Session, notification_id: int, user_id: Optional[int] = None):
    query = db.query(Notification).filter(Notification.id == notification_id)
    if user_id is not None:
        query = query.filter(Notification.user_id == user_id)
    notification = query.first()
    if notification and not notification.read:
        notification.read = True
        db.commit()
        db.refresh(notification)
    return notification


def set_read_flag(
    db: Session,
    user_id: int,
    notification_ids: Optional[Iterable[Union[int, str]]] = None,
    read: bool = True,
) -> int:
    """Set the read flag on the given notifications of one recipient.

    Without ids every notification of the recipient is updated. Ids that
    belong to someone else are ignored.
    """
    query = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(not read),
    )
    if notification_ids is not None:
        ids = [int(notification_id) for notification_id in notification_ids]
        if not ids:
            return 0
        query = query.filter(Notification.id.in_(ids))
    updated = query.update({"read": read}, synchronize_session=False)
    db.commit()
    return updated


def mark_all_as_read(db: Session, user_id: int) -> int:
    return set_read_flag(db, user_id)


def update_notification_preferences(db: Session, user_id: int, preferences: dict, mode: str = "merge"):
    """Update a user's {email, inApp, push} preferences.

    "merge" applies only the keys supplied on top of the stored values.
    "replace" stores the supplied keys and resets every omitted key to its default.
    """
    if mode not in PREFERENCE_MODES:
        raise ValueError(f"Unknown preference update mode: {mode}")
    unknown = set(preferences) - set(PREFERENCE_KEYS)
    if unknown:
        raise ValueError(f"Unknown notification preferences: {', '.join(sorted(unknown))}")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return None

    if mode == "merge":
        base = dict(DEFAULT_NOTIFICATION_PREFERENCES)
        base.update(user.notification_preferences or {})
    else:
        base = dict(DEFAULT_NOTIFICATION_PREFERENCES)
    base.update({key: bool(value) for key, value in preferences.items() if value is not None})

    # Assign a new dict so the JSON column is flagged dirty
    user.notification_preferences = base
    db.commit()
    db.refresh(user)
    return user.notification_preferences

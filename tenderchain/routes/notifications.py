from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from tenderchain.database import get_db
from tenderchain.schemas import (
    NotificationResponse, NotificationListResponse, NotificationReadUpdate,
    NotificationPreferencesUpdate, NotificationPreferencesResponse
)
from tenderchain.auth import AuthContext, get_auth_context
from tenderchain.models import Notification
from tenderchain.notifications import (
    get_notifications, count_unread_notifications, mark_notification_as_read,
    mark_all_as_read, set_read_flag, update_notification_preferences
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def to_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        read=bool(notification.read),
        created_at=notification.created_at,
        metadata=notification.notification_metadata or None,
    )


@router.get("", response_model=NotificationListResponse)
def get_user_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    notifications = get_notifications(db, context.user_id, limit, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[to_notification_response(n) for n in notifications],
        unread_count=count_unread_notifications(db, context.user_id),
    )


@router.patch("")
def update_read_state(
    payload: NotificationReadUpdate,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    # No ids means every notification of the caller
    updated = set_read_flag(db, context.user_id, payload.notification_ids, read=payload.mark_as_read)
    return {
        "message": "Notifications updated",
        "updated": updated,
        "unreadCount": count_unread_notifications(db, context.user_id),
    }


@router.post("/read-all")
def mark_all_as_read_endpoint(
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    updated = mark_all_as_read(db, context.user_id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    notification = mark_notification_as_read(db, notification_id, context.user_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return to_notification_response(notification)


@router.put("/preferences", response_model=NotificationPreferencesResponse)
def update_preferences(
    payload: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(get_auth_context),
):
    supplied = payload.model_dump(by_alias=True, exclude_unset=True, exclude={"mode"})
    preferences = update_notification_preferences(db, context.user_id, supplied, mode=payload.mode)
    if preferences is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return NotificationPreferencesResponse(preferences=preferences)

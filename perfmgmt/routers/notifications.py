from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfmgmt.core.schemas import MessageResponse
from perfmgmt.database import get_db
from perfmgmt.models.user import User
from perfmgmt.routers.auth_deps import get_current_user
from perfmgmt.schemas.notification import NotificationResponse, UnreadCount
from perfmgmt.services.notification import InboxService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return InboxService(db, current_user).list_notifications(unread_only)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return UnreadCount(count=InboxService(db, current_user).unread_count())


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return InboxService(db, current_user).mark_read(notification_id)


@router.post("/mark-all-read", response_model=MessageResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    affected = InboxService(db, current_user).mark_all_read()
    return MessageResponse(message="All notifications marked as read", affected=affected)

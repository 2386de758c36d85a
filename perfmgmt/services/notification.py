from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from perfmgmt.core.exceptions import NotFoundError
from perfmgmt.models.notification import Notification
from perfmgmt.models.user import User, ELEVATED_ROLES
from perfmgmt.services.base import BaseService


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        company_id: int,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> Notification:
        """
        Adds a notification to the caller's transaction; the caller commits.
        """
        notification = Notification(
            company_id=company_id,
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def notify_users(
        db: Session,
        company_id: int,
        user_ids: Iterable[int],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> List[Notification]:
        return [
            NotificationService.create_notification(db, company_id, uid, title, message, type, link)
            for uid in user_ids
        ]

    @staticmethod
    def notify_elevated_users(db: Session, company_id: int, title: str, message: str, link: Optional[str] = None):
        user_ids = [
            uid for (uid,) in db.query(User.id).filter(
                User.company_id == company_id,
                User.role.in_(list(ELEVATED_ROLES)),
                User.is_active == True,  # noqa: E712
            )
        ]
        return NotificationService.notify_users(db, company_id, user_ids, title, message, "info", link)


class InboxService(BaseService):
    """A user's own notifications, scoped to their company."""

    PAGE_SIZE = 50

    def __init__(self, db: Session, user: User):
        super().__init__(db, user.company_id)
        self.user_id = user.id

    def _own(self):
        return self.db.query(Notification).filter(
            Notification.company_id == self.company_id,
            Notification.user_id == self.user_id,
        )

    def list_notifications(self, unread_only: bool = False) -> List[Notification]:
        query = self._own()
        if unread_only:
            query = query.filter(Notification.is_read == False)  # noqa: E712
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(self.PAGE_SIZE).all()

    def unread_count(self) -> int:
        return self._own().filter(Notification.is_read == False).count()  # noqa: E712

    def mark_read(self, notification_id: int) -> Notification:
        notification = self._own().filter(Notification.id == notification_id).first()
        if not notification:
            raise NotFoundError("Notification not found")
        notification.is_read = True
        self.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self) -> int:
        affected = self._own().filter(Notification.is_read == False).update(  # noqa: E712
            {Notification.is_read: True}, synchronize_session=False
        )
        self.commit()
        return affected

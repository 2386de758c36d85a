from datetime import datetime
from typing import Optional

from perfmgmt.core.schemas import CamelModel


class NotificationResponse(CamelModel):
    id: int
    title: str
    message: str
    type: Optional[str] = None
    link: Optional[str] = None
    is_read: bool
    created_at: datetime


class UnreadCount(CamelModel):
    count: int

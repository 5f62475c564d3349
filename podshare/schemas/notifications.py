from datetime import datetime
from typing import List, Optional
from .common import CamelModel, UserSummary

class NotificationOut(CamelModel):
    id: int
    type: str
    content: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None

class NotificationMeta(CamelModel):
    total_count: int
    unread_count: int
    page: int
    limit: int
    page_count: int

class NotificationListOut(CamelModel):
    notifications: List[NotificationOut]
    meta: NotificationMeta

class MarkReadIn(CamelModel):
    ids: Optional[List[int]] = None
    all: bool = False

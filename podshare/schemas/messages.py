from datetime import datetime
from typing import List, Optional
from .common import CamelModel, UserSummary

class MessageIn(CamelModel):
    content: Optional[str] = None
    conversation_id: Optional[int] = None
    recipient_id: Optional[int] = None

class MessageOut(CamelModel):
    id: int
    content: str
    sender_id: int
    conversation_id: int
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    sender: Optional[UserSummary] = None

class ConversationOut(CamelModel):
    id: int
    last_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    participants: List[UserSummary] = []
    messages: List[MessageOut] = []

class ConversationSummaryOut(ConversationOut):
    unread_count: int = 0

class ThreadOut(CamelModel):
    conversation: ConversationOut
    messages: List[MessageOut]

class UnreadCountOut(CamelModel):
    count: int

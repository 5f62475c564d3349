from .models import AsyncSessionLocal
from .models.users import User
from .models.conversations import Conversation, conversation_participants
from .models.messages import Message
from .models.notifications import Notification
from .models.uploads import Upload
from .schemas.common import UserSummary
from .schemas.messages import MessageOut, ConversationOut, ConversationSummaryOut
from .schemas.notifications import NotificationOut
from sqlalchemy import select, update, delete, func
from datetime import datetime, timezone
from collections import defaultdict
import uuid


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def get_user_by_id(user_id: int):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.id == user_id))
        return q.scalars().first()

async def _user_summaries(session, user_ids) -> dict:
    ids = set(user_ids)
    if not ids:
        return {}
    res = await session.execute(select(User).where(User.id.in_(ids)))
    return {u.id: UserSummary.model_validate(u) for u in res.scalars().all()}

async def _participants_by_conversation(session, conversation_ids) -> dict:
    ids = list(conversation_ids)
    if not ids:
        return {}
    res = await session.execute(
        select(conversation_participants.c.conversation_id, User)
        .join(User, User.id == conversation_participants.c.user_id)
        .where(conversation_participants.c.conversation_id.in_(ids))
        .order_by(User.id)
    )
    participants = defaultdict(list)
    for conversation_id, user in res.all():
        participants[conversation_id].append(UserSummary.model_validate(user))
    return participants

def _message_out(message, senders: dict) -> MessageOut:
    out = MessageOut.model_validate(message)
    out.sender = senders.get(message.sender_id)
    return out

def _participant_conversation_query(conversation_id: int, user_id: int):
    return select(Conversation).join(
        conversation_participants,
        conversation_participants.c.conversation_id == Conversation.id,
    ).where(Conversation.id == conversation_id, conversation_participants.c.user_id == user_id)

# messaging
async def get_conversation_thread(conversation_id: int, user_id: int):
    """Return (conversation, messages) for a participant and mark the peer's messages read.

    Returns None when the conversation does not exist or the user is not a
    participant; callers must not distinguish the two cases.
    """
    async with AsyncSessionLocal() as session:
        q = await session.execute(_participant_conversation_query(conversation_id, user_id))
        conversation = q.scalars().first()
        if not conversation:
            return None

        participants = await _participants_by_conversation(session, [conversation.id])
        res = await session.execute(
            select(Message).where(Message.conversation_id == conversation.id)
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        messages = res.scalars().all()
        senders = await _user_summaries(session, [m.sender_id for m in messages])
        # snapshot before marking so the response shows what was unread
        messages_out = [_message_out(m, senders) for m in messages]

        await session.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation.id,
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
            .values(read_at=_now())
            .execution_options(synchronize_session=False)
        )
        await session.commit()

        conversation_out = ConversationOut.model_validate(conversation)
        conversation_out.participants = participants.get(conversation.id, [])
        return conversation_out, messages_out

async def list_conversations(user_id: int):
    """Conversations of a user, most recently active first, each with its latest message and unread count"""
    async with AsyncSessionLocal() as session:
        res = await session.execute(
            select(Conversation)
            .join(conversation_participants, conversation_participants.c.conversation_id == Conversation.id)
            .where(conversation_participants.c.user_id == user_id)
            .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
        )
        conversations = res.scalars().all()
        if not conversations:
            return []
        ids = [c.id for c in conversations]

        participants = await _participants_by_conversation(session, ids)

        latest_ids = (
            select(func.max(Message.id))
            .where(Message.conversation_id.in_(ids))
            .group_by(Message.conversation_id)
        )
        res = await session.execute(select(Message).where(Message.id.in_(latest_ids)))
        latest = {m.conversation_id: m for m in res.scalars().all()}
        senders = await _user_summaries(session, [m.sender_id for m in latest.values()])

        res = await session.execute(
            select(Message.conversation_id, func.count(Message.id))
            .where(
                Message.conversation_id.in_(ids),
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
            .group_by(Message.conversation_id)
        )
        unread = dict(res.all())

        out = []
        for c in conversations:
            item = ConversationSummaryOut.model_validate(c)
            item.participants = participants.get(c.id, [])
            item.messages = [_message_out(latest[c.id], senders)] if c.id in latest else []
            item.unread_count = unread.get(c.id, 0)
            out.append(item)
        return out

async def count_unread_messages(user_id: int) -> int:
    async with AsyncSessionLocal() as session:
        res = await session.execute(
            select(func.count(Message.id))
            .select_from(Message)
            .join(conversation_participants, conversation_participants.c.conversation_id == Message.conversation_id)
            .where(
                conversation_participants.c.user_id == user_id,
                Message.sender_id != user_id,
                Message.read_at.is_(None),
            )
        )
        return res.scalar_one()

async def _notify_participants(session, conversation_id: int, sender_id: int):
    res = await session.execute(
        select(conversation_participants.c.user_id).where(
            conversation_participants.c.conversation_id == conversation_id,
            conversation_participants.c.user_id != sender_id,
        )
    )
    sender = (await session.execute(select(User).where(User.id == sender_id))).scalars().first()
    sender_name = (sender.name or sender.email) if sender else None
    for recipient_id in res.scalars().all():
        session.add(Notification(
            user_id=recipient_id,
            sender_id=sender_id,
            type='message',
            content=f"New message from {sender_name or 'someone'}",
        ))

async def _append_message(session, conversation, sender_id: int, content: str):
    m = Message(conversation_id=conversation.id, sender_id=sender_id, content=content)
    session.add(m)
    conversation.last_message_at = _now()
    await _notify_participants(session, conversation.id, sender_id)
    await session.commit()
    await session.refresh(m)
    return m

async def send_to_conversation(sender_id: int, conversation_id: int, content: str):
    """Append to an existing conversation; None when the sender is not a participant"""
    async with AsyncSessionLocal() as session:
        q = await session.execute(_participant_conversation_query(conversation_id, sender_id))
        conversation = q.scalars().first()
        if not conversation:
            return None
        m = await _append_message(session, conversation, sender_id, content)
        senders = await _user_summaries(session, [sender_id])
        return _message_out(m, senders)

async def find_conversation_between(session, user_a: int, user_b: int):
    # any conversation holding both users, not only two-person ones
    a = conversation_participants.alias('a')
    b = conversation_participants.alias('b')
    q = await session.execute(
        select(Conversation)
        .join(a, a.c.conversation_id == Conversation.id)
        .join(b, b.c.conversation_id == Conversation.id)
        .where(a.c.user_id == user_a, b.c.user_id == user_b)
        .order_by(Conversation.id)
        .limit(1)
    )
    return q.scalars().first()

async def send_to_recipient(sender_id: int, recipient_id: int, content: str) -> ConversationOut:
    """Reuse the conversation shared with the recipient, or start one with the message as its first entry.

    The returned conversation carries only the new message.
    """
    async with AsyncSessionLocal() as session:
        conversation = await find_conversation_between(session, sender_id, recipient_id)
        if not conversation:
            conversation = Conversation(last_message_at=_now())
            session.add(conversation)
            await session.flush()
            await session.execute(conversation_participants.insert(), [
                {'conversation_id': conversation.id, 'user_id': sender_id},
                {'conversation_id': conversation.id, 'user_id': recipient_id},
            ])
        m = await _append_message(session, conversation, sender_id, content)
        await session.refresh(conversation)

        participants = await _participants_by_conversation(session, [conversation.id])
        senders = await _user_summaries(session, [sender_id])
        out = ConversationOut.model_validate(conversation)
        out.participants = participants.get(conversation.id, [])
        out.messages = [_message_out(m, senders)]
        return out

# notifications
async def list_notifications(user_id: int, limit: int = 20, page: int = 1):
    async with AsyncSessionLocal() as session:
        total = (await session.execute(
            select(func.count(Notification.id)).where(Notification.user_id == user_id)
        )).scalar_one()
        unread = (await session.execute(
            select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )).scalar_one()
        res = await session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        rows = res.scalars().all()
        senders = await _user_summaries(session, [n.sender_id for n in rows if n.sender_id])
        notifications = []
        for n in rows:
            item = NotificationOut.model_validate(n)
            item.sender = senders.get(n.sender_id)
            notifications.append(item)
        return notifications, total, unread

async def mark_notifications_read(user_id: int, ids=None, mark_all: bool = False) -> int:
    async with AsyncSessionLocal() as session:
        stmt = update(Notification).where(Notification.user_id == user_id)
        if not mark_all:
            stmt = stmt.where(Notification.id.in_(ids or []))
        res = await session.execute(stmt.values(is_read=True).execution_options(synchronize_session=False))
        await session.commit()
        return res.rowcount

async def delete_notifications(user_id: int, ids=None, delete_all: bool = False) -> int:
    async with AsyncSessionLocal() as session:
        stmt = delete(Notification).where(Notification.user_id == user_id)
        if not delete_all:
            stmt = stmt.where(Notification.id.in_(ids or []))
        res = await session.execute(stmt.execution_options(synchronize_session=False))
        await session.commit()
        return res.rowcount

# uploads
async def create_upload(user_id: int, file_name: str, file_type: str, file_size: int, folder: str):
    async with AsyncSessionLocal() as session:
        upload = Upload(
            id=str(uuid.uuid4()),
            user_id=user_id,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            folder=folder,
            parts=[],
            status='initiated',
        )
        session.add(upload)
        await session.commit()
        await session.refresh(upload)
        return upload

async def get_upload(upload_id: str):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(Upload).where(Upload.id == upload_id))
        return q.scalars().first()

async def complete_upload(upload_id: str, parts: list):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(Upload).where(Upload.id == upload_id))
        upload = q.scalars().first()
        if not upload:
            return None
        upload.parts = parts
        upload.status = 'completed'
        upload.completed_at = _now()
        await session.commit()
        await session.refresh(upload)
        return upload

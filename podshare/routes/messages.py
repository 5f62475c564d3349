import os
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from ..schemas.messages import MessageIn, ThreadOut, UnreadCountOut
from ..crud import (
    get_user_by_id,
    get_conversation_thread,
    list_conversations,
    count_unread_messages,
    send_to_conversation,
    send_to_recipient,
)
from ..cache import check_rate_limit
from ..core import MESSAGES_SENT
from ..auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_RATE_LIMIT = int(os.getenv('MESSAGE_RATE_LIMIT', '100'))
CONVERSATION_NOT_FOUND = 'Conversation not found or access denied'


@router.get('/unread', response_model=UnreadCountOut)
async def unread_count(current_user: dict = Depends(get_current_user)):
    try:
        return UnreadCountOut(count=await count_unread_messages(current_user['id']))
    except Exception:
        logger.exception('GET /messages/unread failed')
        raise HTTPException(500, 'Failed to fetch unread count')


@router.get('')
async def get_messages(
    conversation_id: Optional[int] = Query(None, alias='conversationId'),
    current_user: dict = Depends(get_current_user)
):
    """Fetch one thread (marking the peer's messages read) or list all conversations"""
    try:
        if conversation_id is not None:
            thread = await get_conversation_thread(conversation_id, current_user['id'])
            if thread is None:
                raise HTTPException(404, CONVERSATION_NOT_FOUND)
            conversation, messages = thread
            return ThreadOut(conversation=conversation, messages=messages)

        return await list_conversations(current_user['id'])

    except HTTPException:
        raise
    except Exception:
        logger.exception('GET /messages failed')
        raise HTTPException(500, 'Failed to fetch messages')


@router.post('')
async def send(payload: MessageIn, current_user: dict = Depends(get_current_user)):
    content = payload.content
    if not (content or '').strip() or (payload.conversation_id is None and payload.recipient_id is None):
        raise HTTPException(400, 'Missing required fields')

    # Rate limiting - max MESSAGE_RATE_LIMIT messages per hour
    if not await check_rate_limit(
        current_user['id'],
        "send_message",
        limit=MESSAGE_RATE_LIMIT,
        window=3600
    ):
        raise HTTPException(429, "Rate limit exceeded. Too many messages.")

    try:
        if payload.conversation_id is not None:
            message = await send_to_conversation(current_user['id'], payload.conversation_id, content)
            if message is None:
                raise HTTPException(404, CONVERSATION_NOT_FOUND)
            MESSAGES_SENT.labels(target='conversation').inc()
            return message

        if payload.recipient_id == current_user['id']:
            raise HTTPException(400, 'Cannot send a message to yourself')
        if not await get_user_by_id(payload.recipient_id):
            raise HTTPException(404, 'Recipient not found')

        conversation = await send_to_recipient(current_user['id'], payload.recipient_id, content)
        MESSAGES_SENT.labels(target='recipient').inc()
        return conversation

    except HTTPException:
        raise
    except Exception:
        logger.exception('POST /messages failed')
        raise HTTPException(500, 'Failed to send message')

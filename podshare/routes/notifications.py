import math
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from ..schemas.common import ActionOkOut
from ..schemas.notifications import NotificationListOut, NotificationMeta, MarkReadIn
from ..crud import list_notifications, mark_notifications_read, delete_notifications
from ..auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get('', response_model=NotificationListOut)
async def my_notifications(
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    current_user: dict = Depends(get_current_user)
):
    try:
        notifications, total, unread = await list_notifications(current_user['id'], limit, page)
    except Exception:
        logger.exception('Error fetching notifications')
        raise HTTPException(500, 'Failed to fetch notifications')

    return NotificationListOut(
        notifications=notifications,
        meta=NotificationMeta(
            total_count=total,
            unread_count=unread,
            page=page,
            limit=limit,
            page_count=math.ceil(total / limit),
        ),
    )

@router.patch('', response_model=ActionOkOut)
async def mark_read(payload: MarkReadIn, current_user: dict = Depends(get_current_user)):
    if not payload.all and not payload.ids:
        raise HTTPException(400, 'No notifications specified')
    try:
        await mark_notifications_read(current_user['id'], payload.ids, mark_all=payload.all)
    except Exception:
        logger.exception('Error updating notifications')
        raise HTTPException(500, 'Failed to update notifications')

    if payload.all:
        return ActionOkOut(message='All notifications marked as read')
    return ActionOkOut(message='Notifications marked as read')

@router.delete('', response_model=ActionOkOut)
async def remove(
    ids: Optional[str] = Query(None),
    delete_all: bool = Query(False, alias='all'),
    current_user: dict = Depends(get_current_user)
):
    """Delete the requester's notifications, by comma-separated ``ids`` or ``all=true``"""
    id_list = [part.strip() for part in (ids or '').split(',') if part.strip()]
    if not delete_all and not id_list:
        raise HTTPException(400, 'No notifications specified')
    try:
        id_list = [int(part) for part in id_list]
    except ValueError:
        raise HTTPException(400, 'ids must be a comma-separated list of integers')

    try:
        await delete_notifications(current_user['id'], id_list, delete_all=delete_all)
    except Exception:
        logger.exception('Error deleting notifications')
        raise HTTPException(500, 'Failed to delete notifications')

    if delete_all:
        return ActionOkOut(message='All notifications deleted')
    return ActionOkOut(message='Notifications deleted')

from fastapi import APIRouter
from .messages import router as messages_router
from .uploads import router as uploads_router
from .notifications import router as notifications_router

router = APIRouter()
router.include_router(messages_router, prefix='/messages', tags=['messages'])
router.include_router(uploads_router, prefix='/uploads', tags=['uploads'])
router.include_router(notifications_router, prefix='/notifications', tags=['notifications'])

"""Per-user notification inbox."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.dependencies import get_storage
from backend.schemas import Notification
from config_env import NOTIFICATIONS_LIMIT
from domain.storage import Storage

router = APIRouter(prefix="/api", tags=["notifications"])


@router.get("/users/{user_id}/notifications", response_model=list[Notification])
async def list_notifications(user_id: str, storage: Storage = Depends(get_storage)):
    return await storage.list_notifications_by_user(user_id, limit=NOTIFICATIONS_LIMIT)


@router.patch("/notifications/{notification_id}/read", response_model=Notification)
async def mark_read(notification_id: str, storage: Storage = Depends(get_storage)):
    return await storage.mark_notification_read(notification_id)

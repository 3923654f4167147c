"""User profiles."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.dependencies import get_storage
from backend.schemas import User, UserUpdate
from domain.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, storage: Storage = Depends(get_storage)):
    return await storage.get_user(user_id)


@router.patch("/{user_id}", response_model=User)
async def update_user(user_id: str, payload: UserUpdate, storage: Storage = Depends(get_storage)):
    user = await storage.update_user(user_id, payload)
    logger.info("Updated profile of user %s (%s)", user_id, ", ".join(sorted(payload.model_fields_set)) or "no fields")
    return user

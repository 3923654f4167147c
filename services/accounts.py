"""Registration and login on top of the storage interface."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from backend.schemas import User, UserCreate
from domain.storage import Storage
from services.security import hash_password, verify_password

logger = logging.getLogger(__name__)


async def register_user(storage: Storage, payload: UserCreate) -> User:
    """Hash the password off the event loop and persist the user. Raises ConflictError on duplicates."""
    digest = await asyncio.to_thread(hash_password, payload.password)
    user = await storage.create_user(payload.model_copy(update={"password": digest}))
    logger.info("Registered %s user %s (id=%s)", user.role, user.username, user.id)
    return user


async def authenticate(storage: Storage, username: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, else None.

    Callers must answer both failure modes identically; only the log tells
    them apart.
    """
    user = await storage.get_user_by_username(username)
    if user is None:
        logger.info("Login failed: user not found for username %s", username)
        return None
    if not await asyncio.to_thread(verify_password, password, user.password):
        logger.info("Login failed: password mismatch for user %s", username)
        return None
    logger.info("Successful login for user %s", username)
    return user

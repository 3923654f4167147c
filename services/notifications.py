"""
Notification fan-out.

Runs in the same request as the write that triggers it, but is best effort:
any failure is logged and swallowed so the triggering write stands. Each
trigger has a source key, so re-processing the same trigger returns the
notification already written instead of a duplicate.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.schemas import AiFeedback, Interest, Notification, NotificationCreate
from domain.errors import ConflictError
from domain.storage import Storage

logger = logging.getLogger(__name__)


async def _deliver(storage: Storage, payload: NotificationCreate) -> Notification:
    existing = await storage.get_notification_by_source_key(payload.source_key)
    if existing is not None:
        logger.debug("Notification %s already delivered", payload.source_key)
        return existing
    try:
        return await storage.create_notification(payload)
    except ConflictError:
        # lost a race with a concurrent delivery of the same trigger
        return await storage.get_notification_by_source_key(payload.source_key)


async def notify_interest_created(storage: Storage, interest: Interest) -> Optional[Notification]:
    try:
        startup = await storage.get_startup(interest.startup_id)
        investor = await storage.get_user(interest.investor_id)
        return await _deliver(
            storage,
            NotificationCreate(
                user_id=startup.user_id,
                title="New Interest in Your Startup",
                message=f'{investor.full_name} has shown interest in your startup "{startup.name}"',
                type="interest",
                link=f"/startup/{startup.id}",
                source_key=f"interest:{interest.id}",
            ),
        )
    except Exception:
        logger.exception("Interest notification failed for interest %s", interest.id)
        return None


async def notify_ai_feedback_created(storage: Storage, feedback: AiFeedback) -> Optional[Notification]:
    # A re-analysis bumps updated_at and deserves its own notification.
    analysed_at = feedback.updated_at or feedback.created_at
    try:
        startup = await storage.get_startup(feedback.startup_id)
        return await _deliver(
            storage,
            NotificationCreate(
                user_id=startup.user_id,
                title="New AI Analysis Complete",
                message=f'AI has analyzed your "{startup.name}" pitch and generated feedback.',
                type="ai-feedback",
                link=f"/startup/{startup.id}/ai-feedback",
                source_key=f"ai-feedback:{feedback.id}:{analysed_at.isoformat()}",
            ),
        )
    except Exception:
        logger.exception("AI feedback notification failed for feedback %s", feedback.id)
        return None

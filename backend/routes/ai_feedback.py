"""Stored AI feedback per startup (at most one; a new submission replaces it)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.dependencies import get_storage
from backend.schemas import AiFeedback, AiFeedbackCreate, AiFeedbackUpdate
from domain.errors import NotFound
from domain.storage import Storage
from services.notifications import notify_ai_feedback_created

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai-feedback"])


async def save_ai_feedback(storage: Storage, payload: AiFeedbackCreate) -> AiFeedback:
    """Create or replace the startup's feedback, then notify its owner."""
    existing = await storage.get_ai_feedback_by_startup(payload.startup_id)
    if existing is None:
        feedback = await storage.create_ai_feedback(payload)
        logger.info("AI feedback %s created for startup %s", feedback.id, feedback.startup_id)
    else:
        replacement = AiFeedbackUpdate.model_validate(payload.model_dump(exclude={"startup_id"}))
        feedback = await storage.update_ai_feedback(existing.id, replacement)
        logger.info("AI feedback %s replaced for startup %s", feedback.id, feedback.startup_id)
    await notify_ai_feedback_created(storage, feedback)
    return feedback


@router.get("/startups/{startup_id}/ai-feedback", response_model=AiFeedback)
async def get_startup_feedback(startup_id: str, storage: Storage = Depends(get_storage)):
    feedback = await storage.get_ai_feedback_by_startup(startup_id)
    if feedback is None:
        raise NotFound("AI feedback", startup_id)
    return feedback


@router.post("/ai-feedback", response_model=AiFeedback, status_code=201)
async def create_feedback(payload: AiFeedbackCreate, storage: Storage = Depends(get_storage)):
    return await save_ai_feedback(storage, payload)

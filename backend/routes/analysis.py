"""AI pitch analysis and SWOT generation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from backend.dependencies import get_pitch_analyzer, get_storage
from backend.routes.ai_feedback import save_ai_feedback
from backend.schemas import (
    AiFeedbackCreate,
    AiFeedbackUpdate,
    AnalysisResult,
    AnalyzeRequest,
    PitchInput,
    SwotRequest,
    SwotResponse,
)
from domain.storage import Storage
from services.pitch_analyzer import PitchAnalyzer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_pitch(
    payload: AnalyzeRequest,
    storage: Storage = Depends(get_storage),
    analyzer: PitchAnalyzer = Depends(get_pitch_analyzer),
):
    if payload.startup_id is not None:
        pitch = PitchInput.from_startup(await storage.get_startup(payload.startup_id))
    else:
        pitch = payload.pitch

    result = await analyzer.analyze(pitch)

    if payload.save:
        await save_ai_feedback(
            storage, AiFeedbackCreate(startup_id=payload.startup_id, **result.model_dump())
        )
    return result


@router.post("/swot", response_model=SwotResponse)
async def generate_swot(
    payload: SwotRequest,
    storage: Storage = Depends(get_storage),
    analyzer: PitchAnalyzer = Depends(get_pitch_analyzer),
):
    startup = await storage.get_startup(payload.startup_id)
    swot = await analyzer.generate_swot(PitchInput.from_startup(startup))

    feedback = await storage.get_ai_feedback_by_startup(startup.id)
    if feedback is not None:
        await storage.update_ai_feedback(feedback.id, AiFeedbackUpdate(swot_analysis=swot))
        logger.info("SWOT merged into AI feedback %s", feedback.id)
    return SwotResponse(swot_analysis=swot)

"""Startup recommendations for an investor (heuristic match score)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from backend.dependencies import get_storage
from backend.schemas import Recommendation
from domain.errors import ValidationError
from domain.storage import Storage
from services.matching import rank_startups

router = APIRouter(prefix="/api/investors", tags=["recommendations"])


@router.get("/{investor_id}/recommendations", response_model=list[Recommendation])
async def recommend_startups(
    investor_id: str,
    limit: int = Query(10, ge=1, le=50),
    storage: Storage = Depends(get_storage),
):
    investor = await storage.get_user(investor_id)
    if investor.role != "investor":
        raise ValidationError.single("investorId", "User is not an investor")

    seen = {i.startup_id for i in await storage.list_interests_by_investor(investor.id)}
    candidates = []
    for startup in await storage.list_startups():
        if startup.id in seen:
            continue
        candidates.append((startup, await storage.get_ai_feedback_by_startup(startup.id)))
    return rank_startups(investor, candidates, limit=limit)

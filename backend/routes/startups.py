"""Startup listings -- browse with filters, create, edit, delete."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backend.dependencies import get_storage
from backend.schemas import Startup, StartupCreate, StartupFilter, StartupUpdate
from domain.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["startups"])


def _split_tags(tags: Optional[list[str]]) -> list[str]:
    # ?tags=a&tags=b and ?tags=a,b are both accepted
    out = []
    for value in tags or []:
        out.extend(t.strip() for t in value.split(",") if t.strip())
    return out


@router.get("/startups", response_model=list[Startup])
async def list_startups(
    industry: Optional[str] = None,
    funding_stage: Optional[str] = Query(None, alias="fundingStage"),
    location: Optional[str] = None,
    tags: Optional[list[str]] = Query(None),
    funding_min: Optional[int] = Query(None, alias="fundingMin", ge=0),
    funding_max: Optional[int] = Query(None, alias="fundingMax", ge=0),
    funding_range: Optional[str] = Query(None, alias="fundingRange"),
    q: Optional[str] = None,
    storage: Storage = Depends(get_storage),
):
    filters = StartupFilter(
        industry=industry,
        funding_stage=funding_stage,
        location=location,
        tags=_split_tags(tags),
        funding_min=funding_min,
        funding_max=funding_max,
        funding_range=funding_range,
        q=q,
    )
    return await storage.list_startups(filters)


@router.post("/startups", response_model=Startup, status_code=201)
async def create_startup(payload: StartupCreate, storage: Storage = Depends(get_storage)):
    startup = await storage.create_startup(payload)
    logger.info("Startup %s (%s) created by user %s", startup.id, startup.name, startup.user_id)
    return startup


@router.get("/startups/{startup_id}", response_model=Startup)
async def get_startup(startup_id: str, storage: Storage = Depends(get_storage)):
    return await storage.get_startup(startup_id)


@router.patch("/startups/{startup_id}", response_model=Startup)
async def update_startup(startup_id: str, payload: StartupUpdate, storage: Storage = Depends(get_storage)):
    return await storage.update_startup(startup_id, payload)


# Idempotent: an absent id also answers 204, so a retried DELETE never fails.
@router.delete("/startups/{startup_id}", status_code=204, response_class=Response)
async def delete_startup(startup_id: str, storage: Storage = Depends(get_storage)):
    if await storage.delete_startup(startup_id):
        logger.info("Startup %s deleted", startup_id)
    return Response(status_code=204)


@router.get("/users/{user_id}/startups", response_model=list[Startup])
async def list_user_startups(user_id: str, storage: Storage = Depends(get_storage)):
    return await storage.list_startups_by_user(user_id)

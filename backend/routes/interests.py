"""Investor interest in startups (bookmark + feedback), with owner notification."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from backend.dependencies import get_storage
from backend.schemas import Interest, InterestCreate, InterestUpdate
from domain.storage import Storage
from services.notifications import notify_interest_created

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["interests"])


@router.get("/investors/{investor_id}/interests", response_model=list[Interest])
async def list_investor_interests(investor_id: str, storage: Storage = Depends(get_storage)):
    return await storage.list_interests_by_investor(investor_id)


@router.get("/startups/{startup_id}/interests", response_model=list[Interest])
async def list_startup_interests(startup_id: str, storage: Storage = Depends(get_storage)):
    return await storage.list_interests_by_startup(startup_id)


@router.post("/interests", response_model=Interest, status_code=201)
async def create_interest(payload: InterestCreate, storage: Storage = Depends(get_storage)):
    interest = await storage.create_interest(payload)
    logger.info("Investor %s interested in startup %s", interest.investor_id, interest.startup_id)
    await notify_interest_created(storage, interest)
    return interest


@router.patch("/interests/{interest_id}", response_model=Interest)
async def update_interest(interest_id: str, payload: InterestUpdate, storage: Storage = Depends(get_storage)):
    return await storage.update_interest(interest_id, payload)


# Idempotent: an absent id also answers 204.
@router.delete("/interests/{interest_id}", status_code=204, response_class=Response)
async def delete_interest(interest_id: str, storage: Storage = Depends(get_storage)):
    await storage.delete_interest(interest_id)
    return Response(status_code=204)

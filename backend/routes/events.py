"""Live pitch events."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from backend.dependencies import get_storage
from backend.schemas import Event, EventCreate, EventUpdate
from domain.storage import Storage

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=list[Event])
async def list_events(upcoming: bool = False, storage: Storage = Depends(get_storage)):
    return await storage.list_events(upcoming=upcoming)


@router.post("", response_model=Event, status_code=201)
async def create_event(payload: EventCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_event(payload)


@router.get("/{event_id}", response_model=Event)
async def get_event(event_id: str, storage: Storage = Depends(get_storage)):
    return await storage.get_event(event_id)


@router.patch("/{event_id}", response_model=Event)
async def update_event(event_id: str, payload: EventUpdate, storage: Storage = Depends(get_storage)):
    return await storage.update_event(event_id, payload)


# Idempotent: an absent id also answers 204.
@router.delete("/{event_id}", status_code=204, response_class=Response)
async def delete_event(event_id: str, storage: Storage = Depends(get_storage)):
    await storage.delete_event(event_id)
    return Response(status_code=204)

"""Registration and login."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.dependencies import get_storage
from backend.responses import PublicJSONResponse
from backend.schemas import LoginRequest, User, UserCreate
from domain.storage import Storage
from services.accounts import authenticate, register_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=User, status_code=201)
async def register(payload: UserCreate, storage: Storage = Depends(get_storage)):
    return await register_user(storage, payload)


@router.post("/login", response_model=User)
async def login(payload: LoginRequest, storage: Storage = Depends(get_storage)):
    user = await authenticate(storage, payload.username, payload.password)
    if user is None:
        return PublicJSONResponse(status_code=401, content={"message": "Invalid username or password"})
    return user

"""FastAPI dependencies -- shared objects live on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from domain.storage import Storage
from services.pitch_analyzer import PitchAnalyzer


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_pitch_analyzer(request: Request) -> PitchAnalyzer:
    return request.app.state.analyzer

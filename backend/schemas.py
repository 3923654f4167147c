"""Pydantic schemas for FastAPI request / response models and stored records.

Attributes are snake_case; the wire format is camelCase through aliases, so
both ``fullName`` and ``full_name`` are accepted on input.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Role = Literal["entrepreneur", "investor", "admin"]
InterestStatus = Literal["pending", "accepted", "rejected"]


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def ensure_utc(value: dt.datetime) -> dt.datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        # numeric ids from older clients arrive as JSON numbers
        coerce_numbers_to_str=True,
    )


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserCreate(CamelModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6, repr=False)
    full_name: str = Field(..., min_length=2)
    email: EmailStr
    role: Role
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None
    interests: list[str] = Field(default_factory=list)
    expertise: list[str] = Field(default_factory=list)


class UserUpdate(CamelModel):
    # No password field: the generic update path cannot change it.
    username: Optional[str] = Field(None, min_length=3)
    full_name: Optional[str] = Field(None, min_length=2)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None
    interests: Optional[list[str]] = None
    expertise: Optional[list[str]] = None


class User(CamelModel):
    id: str
    username: str
    password: str = Field(default="", exclude=True, repr=False)
    full_name: str
    email: str
    role: Role
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None
    interests: list[str] = Field(default_factory=list)
    expertise: list[str] = Field(default_factory=list)
    created_at: dt.datetime


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)


# ---------------------------------------------------------------------------
# Startups
# ---------------------------------------------------------------------------

class TeamMember(CamelModel):
    name: str
    role: str
    bio: Optional[str] = None


class StartupFields(CamelModel):
    tagline: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    funding_stage: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    pitch_deck: Optional[str] = None
    pitch_video: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None


class StartupCreate(StartupFields):
    user_id: str
    name: str = Field(..., min_length=2)
    funding_needed: Optional[int] = Field(None, ge=0)
    funding_min: Optional[int] = Field(None, ge=0)
    funding_max: Optional[int] = Field(None, ge=0)
    tags: list[str] = Field(default_factory=list)
    team_members: list[TeamMember] = Field(default_factory=list)

    @model_validator(mode="after")
    def _normalize_funding(self):
        # Single legacy amount becomes a degenerate range.
        if self.funding_min is None and self.funding_max is None:
            self.funding_min = self.funding_max = self.funding_needed
        elif self.funding_min is None:
            self.funding_min = self.funding_max
        elif self.funding_max is None:
            self.funding_max = self.funding_min
        return self


class StartupUpdate(StartupFields):
    name: Optional[str] = Field(None, min_length=2)
    funding_needed: Optional[int] = Field(None, ge=0)
    funding_min: Optional[int] = Field(None, ge=0)
    funding_max: Optional[int] = Field(None, ge=0)
    tags: Optional[list[str]] = None
    team_members: Optional[list[TeamMember]] = None


class Startup(StartupFields):
    id: str
    user_id: str
    name: str
    funding_min: Optional[int] = None
    funding_max: Optional[int] = None
    tags: list[str] = Field(default_factory=list)
    team_members: list[TeamMember] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


FUNDING_RANGES = {
    "0-500k": (0, 500_000),
    "500k-1m": (500_000, 1_000_000),
    "1m-5m": (1_000_000, 5_000_000),
    "5m+": (5_000_000, None),
}


class StartupFilter(CamelModel):
    industry: Optional[str] = None
    funding_stage: Optional[str] = None
    location: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    funding_min: Optional[int] = None
    funding_max: Optional[int] = None
    funding_range: Optional[str] = None
    q: Optional[str] = None

    def bounds(self) -> tuple[Optional[int], Optional[int]]:
        """Effective funding window, narrowing by ``funding_range`` if given."""
        lo, hi = self.funding_min, self.funding_max
        if self.funding_range in FUNDING_RANGES:
            r_lo, r_hi = FUNDING_RANGES[self.funding_range]
            lo = r_lo if lo is None else max(lo, r_lo)
            if r_hi is not None:
                hi = r_hi if hi is None else min(hi, r_hi)
        return lo, hi


# ---------------------------------------------------------------------------
# Interests
# ---------------------------------------------------------------------------

class InterestCreate(CamelModel):
    investor_id: str
    startup_id: str
    notes: Optional[str] = None
    feedback: Optional[str] = None
    status: InterestStatus = "pending"


class InterestUpdate(CamelModel):
    notes: Optional[str] = None
    feedback: Optional[str] = None
    status: Optional[InterestStatus] = None


class Interest(CamelModel):
    id: str
    investor_id: str
    startup_id: str
    notes: Optional[str] = None
    feedback: Optional[str] = None
    status: InterestStatus = "pending"
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class EventCreate(CamelModel):
    title: str = Field(..., min_length=2)
    description: str = ""
    event_date: dt.datetime
    duration: int = Field(60, ge=0)
    meeting_link: Optional[str] = None

    @field_validator("event_date")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return ensure_utc(v)


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=2)
    description: Optional[str] = None
    event_date: Optional[dt.datetime] = None
    duration: Optional[int] = Field(None, ge=0)
    meeting_link: Optional[str] = None

    @field_validator("event_date")
    @classmethod
    def _utc(cls, v: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return ensure_utc(v) if v is not None else v


class Event(CamelModel):
    id: str
    title: str
    description: str = ""
    event_date: dt.datetime
    duration: int
    meeting_link: Optional[str] = None
    created_at: dt.datetime


# ---------------------------------------------------------------------------
# AI feedback
# ---------------------------------------------------------------------------

class SwotAnalysis(CamelModel):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)


class AiFeedbackCreate(CamelModel):
    startup_id: str
    clarity: int = Field(..., ge=0, le=100)
    market_need: int = Field(..., ge=0, le=100)
    team_strength: int = Field(..., ge=0, le=100)
    overall_score: Optional[int] = Field(None, ge=0, le=100)
    suggestion: str = ""
    swot_analysis: SwotAnalysis = Field(default_factory=SwotAnalysis)

    @model_validator(mode="after")
    def _default_overall(self):
        if self.overall_score is None:
            self.overall_score = round((self.clarity + self.market_need + self.team_strength) / 3)
        return self


class AiFeedbackUpdate(CamelModel):
    clarity: Optional[int] = Field(None, ge=0, le=100)
    market_need: Optional[int] = Field(None, ge=0, le=100)
    team_strength: Optional[int] = Field(None, ge=0, le=100)
    overall_score: Optional[int] = Field(None, ge=0, le=100)
    suggestion: Optional[str] = None
    swot_analysis: Optional[SwotAnalysis] = None


class AiFeedback(CamelModel):
    id: str
    startup_id: str
    clarity: int
    market_need: int
    team_strength: int
    overall_score: int
    suggestion: str = ""
    swot_analysis: SwotAnalysis = Field(default_factory=SwotAnalysis)
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class NotificationCreate(CamelModel):
    user_id: str
    title: str = Field(..., min_length=2)
    message: str = ""
    type: str = ""
    read: bool = False
    link: Optional[str] = None
    source_key: Optional[str] = None


class Notification(CamelModel):
    id: str
    user_id: str
    title: str
    message: str = ""
    type: str = ""
    read: bool = False
    link: Optional[str] = None
    source_key: Optional[str] = Field(default=None, exclude=True)
    created_at: dt.datetime


# ---------------------------------------------------------------------------
# AI analysis
# ---------------------------------------------------------------------------

class PitchInput(CamelModel):
    name: str = Field(..., min_length=1)
    tagline: str = ""
    description: str = ""
    industry: str = ""
    funding_stage: str = ""
    funding_needed: Optional[float] = Field(None, ge=0)
    tags: list[str] = Field(default_factory=list)
    team_members: list[TeamMember] = Field(default_factory=list)

    @classmethod
    def from_startup(cls, startup: Startup) -> "PitchInput":
        return cls(
            name=startup.name,
            tagline=startup.tagline or "",
            description=startup.description or "",
            industry=startup.industry or "",
            funding_stage=startup.funding_stage or "",
            funding_needed=startup.funding_max,
            tags=startup.tags,
            team_members=startup.team_members,
        )


class AnalysisResult(CamelModel):
    clarity: int
    market_need: int
    team_strength: int
    overall_score: int
    suggestion: str
    swot_analysis: SwotAnalysis


class AnalyzeRequest(CamelModel):
    startup_id: Optional[str] = None
    pitch: Optional[PitchInput] = None
    save: bool = False

    @model_validator(mode="after")
    def _needs_source(self):
        if self.startup_id is None and self.pitch is None:
            raise ValueError("either startupId or pitch is required")
        if self.save and self.startup_id is None:
            raise ValueError("startupId is required to save an analysis")
        return self


class SwotRequest(CamelModel):
    startup_id: str


class SwotResponse(CamelModel):
    swot_analysis: SwotAnalysis


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

class Recommendation(CamelModel):
    startup: Startup
    match_score: int = Field(0, ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)
